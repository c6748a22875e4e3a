from pydantic import BaseModel, Field
from enum import Enum
from typing import Any

class DocumentStatus(str, Enum):
    uploading = "uploading"
    uploaded = "uploaded"
    processing = "processing"
    completed = "completed"
    failed = "failed"

# Statuses from which an ingestion run may be (re-)triggered
TRIGGERABLE_STATUSES = {DocumentStatus.uploaded, DocumentStatus.completed, DocumentStatus.failed}

class WordSegment(BaseModel):
    text: str
    start: float                     # seconds
    end: float                       # seconds

class ExtractionMetadata(BaseModel):
    page_count: int | None = None
    page_offsets: list[int] | None = None   # start offset of each page in the extracted text
    duration: float | None = None           # audio duration (seconds)
    timestamps: list[WordSegment] | None = None

class ExtractedText(BaseModel):
    content: str
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

class Document(BaseModel):
    doc_id: str
    user_id: str
    title: str
    file_type: str                   # MIME type
    file_size: int                   # bytes
    storage_id: str = ""             # empty while uploading
    status: DocumentStatus = DocumentStatus.uploading
    processing_progress: int = 0     # 0–100
    processed: bool = False
    audio_duration: float | None = None
    error: str | None = None
    content: str = ""
    metadata: ExtractionMetadata | None = None
    summary: str | None = None
    uploaded_at: str

class IngestionResult(BaseModel):
    success: bool
    chunks_created: int
    metadata: ExtractionMetadata

class GeneratedContent(BaseModel):
    content_id: str
    doc_id: str
    type: str                        # "summary" | "quiz" | "flashcards"
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str

class DocumentUpdate(BaseModel):
    title: str = Field(min_length=1)

class ProcessingStatus(BaseModel):
    doc_id: str
    status: DocumentStatus
    processing_progress: int
    error: str | None = None
