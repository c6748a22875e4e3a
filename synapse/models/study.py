from pydantic import BaseModel, Field
from enum import Enum
from typing import Literal

class Flashcard(BaseModel):
    question: str
    answer: str

class FlashcardDeck(BaseModel):
    doc_id: str
    flashcards: list[Flashcard]

class QuestionTimestamp(BaseModel):
    start: float
    end: float
    display_time: str

class QuizQuestion(BaseModel):
    id: str
    question: str
    options: list[str]
    correct_answer: int
    explanation: str
    difficulty: str
    type: str = "multiple_choice"    # "multiple_choice" | "true_false" | "timestamp_based"
    timestamp: QuestionTimestamp | None = None

class Quiz(BaseModel):
    doc_id: str
    difficulty: str
    questions: list[QuizQuestion]
    is_audio_quiz: bool
    has_timestamp_questions: bool
    generated_at: str

class SummaryResult(BaseModel):
    doc_id: str
    summary: str
    chunk_count_used: int
    model_used: str

class TeachMeStatus(str, Enum):
    active = "active"
    completed = "completed"
    abandoned = "abandoned"

class TeachMeFeedback(BaseModel):
    clarity: int                     # 1-5
    accuracy: int                    # 1-5
    completeness: int                # 1-5
    suggestions: list[str] = Field(default_factory=list)

class TeachMeSession(BaseModel):
    session_id: str
    doc_id: str
    personality_id: str
    status: TeachMeStatus = TeachMeStatus.active
    current_topic: str
    comprehension_score: int | None = None
    weak_areas: list[str] = Field(default_factory=list)
    questions_answered: int = 0
    created_at: str
    completed_at: str | None = None

class TeachMeTurn(BaseModel):
    session_id: str
    role: Literal["user", "ai_student", "system"]
    content: str
    feedback: TeachMeFeedback | None = None
    timestamp: str

class Evaluation(BaseModel):
    accuracy: int
    clarity: int
    completeness: int
    overall_score: int
    misconceptions: list[str] = Field(default_factory=list)
    missing_concepts: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)

class StudentResponse(BaseModel):
    type: Literal["question", "feedback", "encouragement", "clarification", "confusion"]
    content: str
    personality: str
    mood: Literal["excited", "confused", "thoughtful", "interested"]

class SessionUpdate(BaseModel):
    comprehension_score: int
    questions_answered: int

class ExplanationResult(BaseModel):
    evaluation: Evaluation
    student_response: StudentResponse
    session_update: SessionUpdate

class FollowUpQuestion(BaseModel):
    question: str
    type: Literal["advanced", "clarification", "understanding"]

class HistoryTurn(BaseModel):
    role: str
    content: str

class TeachMeSessionStart(BaseModel):
    session: TeachMeSession
    greeting: str
    chunk_ids: list[str] = Field(default_factory=list)   # source material to teach from

class FlashcardRequest(BaseModel):
    count: int | None = Field(default=None, ge=1, le=50)

class QuizRequest(BaseModel):
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    include_timestamps: bool = True

class TeachMeStartRequest(BaseModel):
    document_id: str
    personality_id: str
    topic: str | None = None

class EvaluateRequest(BaseModel):
    explanation: str
    chunk_ids: list[str] = Field(default_factory=list)
    personality_id: str
    history: list[HistoryTurn] = Field(default_factory=list)

class FollowUpRequest(BaseModel):
    personality_id: str
    recent_explanation: str
    comprehension_level: float = Field(ge=0, le=100)

class TeachMeSessionDetail(BaseModel):
    session: TeachMeSession
    turns: list[TeachMeTurn]

class ConceptAnalysis(BaseModel):
    key_concepts: list[str] = Field(default_factory=list)
    main_ideas: list[str] = Field(default_factory=list)
    potential_confusions: list[str] = Field(default_factory=list)
    suggested_teaching_order: list[str] = Field(default_factory=list)

class TeachMeScript(BaseModel):
    doc_id: str
    session_id: str                  # session opened on the first key concept
    personality_id: str
    personality_name: str
    concept_analysis: ConceptAnalysis
    conversation_starter: str
    targeted_questions: str
    misconception_traps: str
    chunk_count: int
    model_used: str
    generated_at: str

class TeachMeScriptRequest(BaseModel):
    document_id: str
    personality_id: str | None = None
