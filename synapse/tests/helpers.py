from synapse.config.settings import settings
from synapse.models.document import Document, DocumentStatus


def unit_vector(position: int, dim: int = None) -> list:
    dim = dim or settings.embedding.vector_dim
    vector = [0.0] * dim
    vector[position % dim] = 1.0
    return vector


def make_document(doc_id="doc1", file_type="text/plain", status=DocumentStatus.uploaded, **fields) -> Document:
    return Document(
        doc_id=doc_id,
        user_id="user1",
        title=fields.pop("title", "Lecture Notes"),
        file_type=file_type,
        file_size=fields.pop("file_size", 1024),
        storage_id=fields.pop("storage_id", "blob.txt"),
        status=status,
        uploaded_at=fields.pop("uploaded_at", "2026-01-01T00:00:00+00:00"),
        **fields
    )
