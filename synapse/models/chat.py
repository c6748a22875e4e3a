from pydantic import BaseModel, Field
from typing import Literal
from synapse.models.chunk import ChunkMetadata

class AudioReference(BaseModel):
    timestamp: float                 # seconds
    duration: float                  # seconds
    text: str                        # surrounding response text
    chunk_id: str

class ChatSession(BaseModel):
    session_id: str
    doc_id: str
    created_at: str
    last_message_at: str

class ChatMessageMetadata(BaseModel):
    chunk_ids: list[str] = Field(default_factory=list)
    audio_references: list[AudioReference] = Field(default_factory=list)

class ChatMessage(BaseModel):
    message_id: str
    session_id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: str
    metadata: ChatMessageMetadata | None = None

class ChatRequest(BaseModel):
    document_id: str
    message: str
    session_id: str | None = None
    include_timestamps: bool = False

class RelevantChunk(BaseModel):
    id: str
    content: str                     # truncated preview
    metadata: ChunkMetadata
    score: float

class ChatAnswer(BaseModel):
    message_id: str
    session_id: str
    content: str
    audio_references: list[AudioReference]
    relevant_chunks: list[RelevantChunk]
