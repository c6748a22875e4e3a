import json
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from synapse.core.errors import ContentNotFoundError, DocumentNotFoundError, StorageError
from synapse.core.generate.llm_client import LLMClient
from synapse.core.generate.prompt_builder import PromptBuilder
from synapse.core.retrieve.timecodes import format_timestamp
from synapse.models.chunk import StoredChunk
from synapse.models.document import Document, GeneratedContent
from synapse.models.study import Flashcard, FlashcardDeck, Quiz, QuizQuestion, SummaryResult
from synapse.storage.base import ChunkStore, DocumentStore
from synapse.config.settings import settings

logger = logging.getLogger(__name__)

class StudyAidGenerator:
    """
    Generates summaries, flashcards and quizzes from a processed document's chunks.
    Completion errors propagate; only unparseable JSON output falls back to canned content.
    Every result is also stored as generated content for the document.
    """

    def __init__(self, document_store: DocumentStore, chunk_store: ChunkStore, llm: LLMClient):
        self.document_store = document_store
        self.chunk_store = chunk_store
        self.llm = llm
        self.config = settings.study

    def _load(self, document_id: str) -> Tuple[Document, List[StoredChunk]]:
        document = self.document_store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        chunks = self.chunk_store.get_chunks(document_id)
        if not chunks:
            raise StorageError("No content chunks found for document")
        return document, chunks

    def get_generated(self, document_id: str, content_type: str) -> GeneratedContent:
        """Latest stored result of one kind for the document."""
        if self.document_store.get_document(document_id) is None:
            raise DocumentNotFoundError(document_id)
        generated = self.document_store.get_generated_content(document_id, content_type)
        if generated is None:
            raise ContentNotFoundError(document_id, content_type)
        return generated

    def summarize(self, document_id: str) -> SummaryResult:
        document, chunks = self._load(document_id)
        selected = chunks[:self.config.summary_max_chunks]
        context = "\n\n".join(c.content for c in selected)

        logger.info(f"Summarizing doc_id={document_id} from {len(selected)} chunks")
        system_prompt, user_prompt = PromptBuilder.summary_prompts(document.title, context)
        summary = self.llm.complete(system_prompt, user_prompt, temperature=0.3,
                                    max_tokens=settings.llm.max_tokens)

        self.document_store.store_generated_content(
            document_id, "summary", summary,
            metadata={"chunk_count_used": len(selected), "model_used": self.llm.model}
        )
        self.document_store.patch(document_id, {"summary": summary})

        return SummaryResult(
            doc_id=document_id,
            summary=summary,
            chunk_count_used=len(selected),
            model_used=self.llm.model
        )

    def flashcards(self, document_id: str, count: Optional[int] = None) -> FlashcardDeck:
        document, chunks = self._load(document_id)
        count = count or self.config.flashcard_count
        context = "\n\n".join(c.content for c in chunks[:self.config.summary_max_chunks])

        system_prompt, user_prompt = PromptBuilder.flashcard_prompts(document.title, context, count)
        raw = self.llm.complete(system_prompt, user_prompt, temperature=0.7, json_mode=True)

        try:
            cards = [Flashcard.model_validate(card) for card in json.loads(raw)["flashcards"]]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse flashcards JSON for {document_id}: {e}")
            cards = [Flashcard(
                question=f'What is the main topic of "{document.title}"?',
                answer="Review the document summary to identify its main topic."
            )]

        deck = FlashcardDeck(doc_id=document_id, flashcards=cards[:count])
        self.document_store.store_generated_content(
            document_id, "flashcards", deck.model_dump_json(),
            metadata={"card_count": len(deck.flashcards)}
        )
        return deck

    def quiz(self, document_id: str, difficulty: str = "medium", include_timestamps: bool = True) -> Quiz:
        if difficulty not in self.config.quiz_difficulties:
            raise ValueError(f"Unknown quiz difficulty: {difficulty}")
        level = self.config.quiz_difficulties[difficulty]

        document, chunks = self._load(document_id)
        is_audio = document.file_type.startswith("audio/")
        use_timestamps = is_audio and include_timestamps

        if difficulty == "hard":
            selected = chunks
        else:
            selected = chunks[:math.ceil(len(chunks) * self.config.quiz_chunk_ratio)]

        parts = []
        for chunk in selected:
            start, end = chunk.metadata.start_time, chunk.metadata.end_time
            if use_timestamps and start is not None and end is not None:
                parts.append(f"[{format_timestamp(start)} - {format_timestamp(end)}]\n{chunk.content}")
            else:
                parts.append(chunk.content)
        content = "\n\n".join(parts)

        system_prompt, user_prompt = PromptBuilder.quiz_prompts(
            document.title, content, difficulty, level.description, level.question_count, use_timestamps
        )
        raw = self.llm.complete(system_prompt, user_prompt, temperature=0.7, json_mode=True)
        questions = self._parse_questions(raw, difficulty, document.title)

        quiz = Quiz(
            doc_id=document_id,
            difficulty=difficulty,
            questions=questions[:level.question_count],
            is_audio_quiz=is_audio,
            has_timestamp_questions=use_timestamps,
            generated_at=datetime.now(timezone.utc).isoformat()
        )
        self.document_store.store_generated_content(
            document_id, "quiz", quiz.model_dump_json(),
            metadata={
                "difficulty": difficulty,
                "question_count": len(quiz.questions),
                "has_timestamps": use_timestamps
            }
        )
        return quiz

    @staticmethod
    def _parse_questions(raw: str, difficulty: str, title: str) -> List[QuizQuestion]:
        try:
            items = json.loads(raw)["questions"]
            return [
                QuizQuestion.model_validate({"difficulty": difficulty, **item, "id": f"q_{index}"})
                for index, item in enumerate(items)
            ]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse quiz JSON: {e}")
            return [QuizQuestion(
                id="q_0",
                question=f'What is the main topic discussed in "{title}"?',
                options=[
                    "A) The introduction to the subject",
                    "B) Advanced concepts and applications",
                    "C) Historical background",
                    "D) Future developments"
                ],
                correct_answer=0,
                explanation="Based on the document content, the main focus is on introducing the subject.",
                difficulty=difficulty
            )]
