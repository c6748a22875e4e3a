import json
import logging
import math
import random
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from synapse.config.personalities import PERSONALITIES, Personality, get_personality
from synapse.core.errors import CompletionServiceError, DocumentNotFoundError, SessionNotFoundError, StorageError
from synapse.core.generate.llm_client import LLMClient
from synapse.core.generate.prompt_builder import PromptBuilder
from synapse.models.study import (
    ConceptAnalysis,
    Evaluation,
    ExplanationResult,
    FollowUpQuestion,
    HistoryTurn,
    SessionUpdate,
    StudentResponse,
    TeachMeFeedback,
    TeachMeSession,
    TeachMeScript,
    TeachMeSessionDetail,
    TeachMeSessionStart,
    TeachMeTurn,
)
from synapse.storage.base import ChunkStore, DocumentStore
from synapse.config.settings import settings

logger = logging.getLogger(__name__)

WEAK_AREA_THRESHOLD = 70
FALLBACK_SCORE = 50

FALLBACK_ANALYSIS = ConceptAnalysis(
    key_concepts=["Main topic from the document"],
    main_ideas=["Core idea from the content"],
    potential_confusions=["Common misconception"],
    suggested_teaching_order=["Introduction", "Main concepts", "Summary"]
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def response_type(evaluation: Evaluation) -> str:
    if evaluation.overall_score >= 80:
        return "question" if evaluation.missing_concepts else "encouragement"
    if evaluation.clarity < 60:
        return "clarification"
    if evaluation.accuracy < 70:
        return "feedback"
    return "question"


def student_mood(evaluation: Evaluation) -> str:
    if evaluation.overall_score >= 80:
        return "excited"
    if evaluation.clarity < 60:
        return "confused"
    if evaluation.accuracy < 70:
        return "thoughtful"
    return "interested"


def follow_up_type(comprehension_level: float) -> str:
    if comprehension_level > 70:
        return "advanced"
    if comprehension_level < 50:
        return "clarification"
    return "understanding"


def parse_evaluation(raw: str) -> Evaluation:
    """Builds an Evaluation from the evaluator's JSON; raises ValueError when it is unusable."""
    try:
        data = json.loads(raw)
        accuracy = int(data["accuracy"])
        clarity = int(data["clarity"])
        completeness = int(data["completeness"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed evaluation: {e}") from e

    return Evaluation(
        accuracy=accuracy,
        clarity=clarity,
        completeness=completeness,
        overall_score=round_half_up((accuracy + clarity + completeness) / 3),
        misconceptions=data.get("misconceptions") or [],
        missing_concepts=data.get("missing_concepts") or data.get("missingConcepts") or [],
        strengths=data.get("strengths") or []
    )


def feedback_for(evaluation: Evaluation) -> TeachMeFeedback:
    """Scores on a 1-5 scale plus at most three suggestions."""
    suggestions = list(evaluation.misconceptions) + [f"Cover: {c}" for c in evaluation.missing_concepts]
    return TeachMeFeedback(
        clarity=round_half_up(evaluation.clarity / 20),
        accuracy=round_half_up(evaluation.accuracy / 20),
        completeness=round_half_up(evaluation.completeness / 20),
        suggestions=suggestions[:3]
    )


def parse_concept_analysis(raw: str) -> ConceptAnalysis:
    """Concept analysis from JSON, accepting camelCase keys; the fallback analysis when unusable."""
    try:
        data = json.loads(raw)
        return ConceptAnalysis(
            key_concepts=data.get("key_concepts") or data.get("keyConcepts") or [],
            main_ideas=data.get("main_ideas") or data.get("mainIdeas") or [],
            potential_confusions=data.get("potential_confusions") or data.get("potentialConfusions") or [],
            suggested_teaching_order=data.get("suggested_teaching_order") or data.get("suggestedTeachingOrder") or []
        )
    except (ValueError, AttributeError, TypeError) as e:
        logger.error(f"Failed to parse concept analysis JSON: {e}")
        return FALLBACK_ANALYSIS


def weak_areas_for(evaluation: Evaluation) -> List[str]:
    return [
        name for name in ("accuracy", "clarity", "completeness")
        if getattr(evaluation, name) < WEAK_AREA_THRESHOLD
    ]


class TeachMeTutor:
    """
    "Teach Me" mode: the learner explains the material to an AI student with a personality.
    Explanation evaluation falls back to a confused student reply when the completion
    service fails or returns an unusable evaluation; the learner never sees an error there.
    """

    def __init__(self,
                 document_store: DocumentStore,
                 chunk_store: ChunkStore,
                 llm: LLMClient,
                 rng: Optional[random.Random] = None):
        self.document_store = document_store
        self.chunk_store = chunk_store
        self.llm = llm
        self.rng = rng or random.Random()

    def _session(self, session_id: str) -> TeachMeSession:
        session = self.document_store.get_teach_me_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _add_student_turn(self, session_id: str, content: str) -> None:
        self.document_store.add_teach_me_turn(TeachMeTurn(
            session_id=session_id,
            role="ai_student",
            content=content,
            timestamp=_now()
        ))

    def start_session(self, document_id: str, personality_id: str, topic: Optional[str] = None) -> TeachMeSessionStart:
        personality = get_personality(personality_id)
        document = self.document_store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)

        session = self.document_store.create_teach_me_session(TeachMeSession(
            session_id=uuid.uuid4().hex,
            doc_id=document_id,
            personality_id=personality.id,
            current_topic=topic or document.title,
            created_at=_now()
        ))
        greeting = personality.random_response("greeting", self.rng)
        self._add_student_turn(session.session_id, greeting)
        chunks = self.chunk_store.get_chunks(document_id)[:settings.study.teach_me_max_chunks]

        logger.info(f"Started teach-me session {session.session_id} with {personality.name}")
        return TeachMeSessionStart(session=session, greeting=greeting, chunk_ids=[c.chunk_id for c in chunks])

    def evaluate_explanation(self,
                             session_id: str,
                             explanation: str,
                             chunk_ids: Sequence[str],
                             personality_id: str,
                             history: Optional[Sequence[HistoryTurn]] = None) -> ExplanationResult:
        session = self._session(session_id)
        personality = get_personality(personality_id)

        source_chunks = [self.chunk_store.get_chunk(cid) for cid in chunk_ids]
        source_material = "\n\n".join(c.content for c in source_chunks if c is not None)

        try:
            evaluation, reply = self._evaluate(session, personality, source_material, explanation, history or [])
        except (CompletionServiceError, ValueError) as e:
            logger.warning(f"Evaluation failed for session {session_id}, using fallback reply: {e}")
            return self._fallback_result(session, personality)

        self.document_store.add_teach_me_turn(TeachMeTurn(
            session_id=session_id,
            role="user",
            content=explanation,
            feedback=feedback_for(evaluation),
            timestamp=_now()
        ))
        self._add_student_turn(session_id, reply)

        questions_answered = session.questions_answered + 1
        self.document_store.update_teach_me_session(session_id, {
            "comprehension_score": evaluation.overall_score,
            "weak_areas": weak_areas_for(evaluation),
            "questions_answered": questions_answered
        })

        return ExplanationResult(
            evaluation=evaluation,
            student_response=StudentResponse(
                type=response_type(evaluation),
                content=reply,
                personality=personality.name,
                mood=student_mood(evaluation)
            ),
            session_update=SessionUpdate(
                comprehension_score=evaluation.overall_score,
                questions_answered=questions_answered
            )
        )

    def _evaluate(self,
                  session: TeachMeSession,
                  personality: Personality,
                  source_material: str,
                  explanation: str,
                  history: Sequence[HistoryTurn]):
        system_prompt, user_prompt = PromptBuilder.evaluation_prompts(
            source_material, explanation, session.current_topic
        )
        raw = self.llm.complete(system_prompt, user_prompt, temperature=0.3, json_mode=True)
        evaluation = parse_evaluation(raw)

        reply_prompt = PromptBuilder.student_reply_prompt(
            {
                "accuracy": evaluation.accuracy,
                "clarity": evaluation.clarity,
                "completeness": evaluation.completeness
            },
            evaluation.misconceptions,
            evaluation.missing_concepts,
            history
        )
        reply = self.llm.complete(
            personality.system_prompt_for(session.current_topic),
            reply_prompt,
            temperature=0.7,
            max_tokens=300
        )
        return evaluation, reply or personality.random_response("confusion", self.rng)

    def _fallback_result(self, session: TeachMeSession, personality: Personality) -> ExplanationResult:
        reply = personality.random_response("confusion", self.rng)
        self._add_student_turn(session.session_id, reply)

        questions_answered = session.questions_answered + 1
        self.document_store.update_teach_me_session(session.session_id, {
            "questions_answered": questions_answered
        })

        return ExplanationResult(
            evaluation=Evaluation(
                accuracy=FALLBACK_SCORE,
                clarity=FALLBACK_SCORE,
                completeness=FALLBACK_SCORE,
                overall_score=FALLBACK_SCORE
            ),
            student_response=StudentResponse(
                type="confusion",
                content=reply,
                personality=personality.name,
                mood="confused"
            ),
            session_update=SessionUpdate(
                comprehension_score=FALLBACK_SCORE,
                questions_answered=questions_answered
            )
        )

    def follow_up_question(self,
                           session_id: str,
                           personality_id: str,
                           recent_explanation: str,
                           comprehension_level: float) -> FollowUpQuestion:
        session = self._session(session_id)
        personality = get_personality(personality_id)

        prompt = PromptBuilder.follow_up_prompt(session.current_topic, recent_explanation, comprehension_level)
        try:
            question = self.llm.complete(
                personality.system_prompt_for(session.current_topic),
                prompt,
                temperature=0.8,
                max_tokens=150
            )
        except CompletionServiceError as e:
            logger.warning(f"Follow-up generation failed for session {session_id}: {e}")
            return FollowUpQuestion(
                question=personality.random_response("follow_up", self.rng),
                type="understanding"
            )

        question = question or personality.random_response("follow_up", self.rng)
        self._add_student_turn(session_id, question)
        return FollowUpQuestion(question=question, type=follow_up_type(comprehension_level))

    def get_session(self, session_id: str) -> TeachMeSessionDetail:
        session = self._session(session_id)
        return TeachMeSessionDetail(session=session, turns=self.document_store.get_teach_me_turns(session_id))

    def list_sessions(self, document_id: str) -> List[TeachMeSession]:
        if self.document_store.get_document(document_id) is None:
            raise DocumentNotFoundError(document_id)
        return self.document_store.list_teach_me_sessions(document_id)

    def generate_script(self, document_id: str, personality_id: Optional[str] = None) -> TeachMeScript:
        """
        Prepares a teaching session from the document:
        concept analysis -> opening -> targeted questions -> misconception traps.
        The script is stored as `teach_me_script` content and a session is opened on the
        first key concept. Completion errors propagate.
        """
        document = self.document_store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        chunks = self.chunk_store.get_chunks(document_id)
        if not chunks:
            raise StorageError("No content chunks found for document")

        if personality_id is None:
            personality_id = self.rng.choice(sorted(PERSONALITIES))
        personality = get_personality(personality_id)

        # 1. Concepts from the opening chunks
        content = "\n\n".join(c.content for c in chunks[:settings.study.teach_me_max_chunks])
        system_prompt, user_prompt = PromptBuilder.concept_analysis_prompts(content)
        analysis = parse_concept_analysis(
            self.llm.complete(system_prompt, user_prompt, temperature=0.3, json_mode=True)
        )

        # 2. Opening, questions and misconceptions in the student's voice
        starter = self.llm.complete(*PromptBuilder.conversation_starter_prompts(
            personality.name, document.title, analysis.key_concepts
        ))
        questions = self.llm.complete(*PromptBuilder.targeted_question_prompts(
            personality.name, analysis.key_concepts, personality.traits
        ))
        traps = self.llm.complete(*PromptBuilder.misconception_prompts(
            personality.name, document.title, analysis
        ))

        session = self.document_store.create_teach_me_session(TeachMeSession(
            session_id=uuid.uuid4().hex,
            doc_id=document_id,
            personality_id=personality.id,
            current_topic=analysis.key_concepts[0] if analysis.key_concepts else "Introduction",
            created_at=_now()
        ))

        script = TeachMeScript(
            doc_id=document_id,
            session_id=session.session_id,
            personality_id=personality.id,
            personality_name=personality.name,
            concept_analysis=analysis,
            conversation_starter=starter,
            targeted_questions=questions,
            misconception_traps=traps,
            chunk_count=len(chunks),
            model_used=self.llm.model,
            generated_at=_now()
        )
        self.document_store.store_generated_content(
            document_id, "teach_me_script", script.model_dump_json(),
            metadata={"personality": personality.id, "concept_count": len(analysis.key_concepts)}
        )
        logger.info(f"Generated teach-me script for {document_id} with {personality.name}")
        return script
