from pydantic import BaseModel

class ChunkMetadata(BaseModel):
    # Pre-trim slice bounds into the document's extracted text
    start_offset: int
    end_offset: int
    # Audio only
    start_time: float | None = None
    end_time: float | None = None
    # PDF only
    page_number: int | None = None

class ContentChunk(BaseModel):
    index: int                       # 0-based reading order
    content: str                     # trimmed slice
    metadata: ChunkMetadata

class StoredChunk(BaseModel):
    chunk_id: str
    doc_id: str
    index: int
    content: str
    metadata: ChunkMetadata
    embedding: list[float] | None = None    # omitted on search results
    score: float | None = None              # similarity, search results only
