from typing import List
from fastapi import APIRouter, Depends

from synapse.api.dependencies import get_tutor
from synapse.config.personalities import PERSONALITIES, Personality
from synapse.core.generate.teach_me import TeachMeTutor
from synapse.models.study import (
    EvaluateRequest,
    ExplanationResult,
    FollowUpQuestion,
    FollowUpRequest,
    TeachMeScript,
    TeachMeScriptRequest,
    TeachMeSession,
    TeachMeSessionDetail,
    TeachMeSessionStart,
    TeachMeStartRequest,
)

router = APIRouter()

@router.get("/teach-me/personalities", response_model=List[Personality])
def list_personalities():
    return list(PERSONALITIES.values())

@router.post("/teach-me/sessions", response_model=TeachMeSessionStart, summary="Start teaching an AI student")
def start_session(request_data: TeachMeStartRequest, tutor: TeachMeTutor = Depends(get_tutor)):
    return tutor.start_session(request_data.document_id, request_data.personality_id, request_data.topic)

@router.post("/teach-me/sessions/{session_id}/evaluate", response_model=ExplanationResult)
def evaluate(session_id: str, request_data: EvaluateRequest, tutor: TeachMeTutor = Depends(get_tutor)):
    return tutor.evaluate_explanation(
        session_id,
        request_data.explanation,
        request_data.chunk_ids,
        request_data.personality_id,
        request_data.history
    )

@router.post("/teach-me/sessions/{session_id}/follow-up", response_model=FollowUpQuestion)
def follow_up(session_id: str, request_data: FollowUpRequest, tutor: TeachMeTutor = Depends(get_tutor)):
    return tutor.follow_up_question(
        session_id,
        request_data.personality_id,
        request_data.recent_explanation,
        request_data.comprehension_level
    )

@router.get("/teach-me/sessions/{session_id}", response_model=TeachMeSessionDetail, summary="Session with its conversation")
def get_session(session_id: str, tutor: TeachMeTutor = Depends(get_tutor)):
    return tutor.get_session(session_id)

@router.get("/documents/{doc_id}/teach-me-sessions", response_model=List[TeachMeSession])
def list_sessions(doc_id: str, tutor: TeachMeTutor = Depends(get_tutor)):
    return tutor.list_sessions(doc_id)

@router.post("/teach-me/scripts", response_model=TeachMeScript, summary="Prepare a teaching script and open a session")
def generate_script(request_data: TeachMeScriptRequest, tutor: TeachMeTutor = Depends(get_tutor)):
    return tutor.generate_script(request_data.document_id, request_data.personality_id)
