import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends

from synapse.api.dependencies import get_study_aids
from synapse.core.generate.study_aids import StudyAidGenerator
from synapse.models.document import GeneratedContent
from synapse.models.study import FlashcardDeck, FlashcardRequest, Quiz, QuizRequest, SummaryResult

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/documents/{doc_id}/summary", response_model=SummaryResult, summary="Summarize a processed document")
def summarize(doc_id: str, study_aids: StudyAidGenerator = Depends(get_study_aids)):
    return study_aids.summarize(doc_id)

@router.post("/documents/{doc_id}/flashcards", response_model=FlashcardDeck, summary="Generate flashcards")
def flashcards(doc_id: str,
               request_data: Optional[FlashcardRequest] = None,
               study_aids: StudyAidGenerator = Depends(get_study_aids)):
    count = request_data.count if request_data else None
    return study_aids.flashcards(doc_id, count)

@router.post("/documents/{doc_id}/quiz", response_model=Quiz, summary="Generate a multiple-choice quiz")
def quiz(doc_id: str,
         request_data: Optional[QuizRequest] = None,
         study_aids: StudyAidGenerator = Depends(get_study_aids)):
    request_data = request_data or QuizRequest()
    logger.info(f"Generating {request_data.difficulty} quiz for {doc_id}")
    return study_aids.quiz(doc_id, request_data.difficulty, request_data.include_timestamps)

@router.get("/documents/{doc_id}/generated/{content_type}", response_model=GeneratedContent,
            summary="Latest stored summary, flashcards, quiz or teach-me script")
def get_generated(doc_id: str,
                  content_type: Literal["summary", "flashcards", "quiz", "teach_me_script"],
                  study_aids: StudyAidGenerator = Depends(get_study_aids)):
    return study_aids.get_generated(doc_id, content_type)
