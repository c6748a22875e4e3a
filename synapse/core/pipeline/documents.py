import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from synapse.core.errors import DocumentNotFoundError, IngestionConflictError
from synapse.models.chat import ChatSession
from synapse.models.document import Document, DocumentStatus
from synapse.storage.base import BlobStore, ChunkStore, DocumentStore

logger = logging.getLogger(__name__)

class DocumentService:
    """
    Document lifecycle outside of ingestion: create -> upload -> rename / delete.
    Ingestion itself is IngestionPipeline's job; this only moves a record to `uploaded`.
    """

    def __init__(self, document_store: DocumentStore, chunk_store: ChunkStore, blob_store: BlobStore):
        self.document_store = document_store
        self.chunk_store = chunk_store
        self.blob_store = blob_store

    def create_document(self,
                        user_id: str,
                        title: str,
                        file_type: str,
                        file_size: int,
                        audio_duration: Optional[float] = None) -> Document:
        document = Document(
            doc_id=uuid.uuid4().hex,
            user_id=user_id,
            title=title,
            file_type=file_type,
            file_size=file_size,
            audio_duration=audio_duration,
            uploaded_at=datetime.now(timezone.utc).isoformat()
        )
        self.document_store.create_document(document)
        logger.info(f"Created document {document.doc_id} ({file_type}, {file_size} bytes)")
        return document

    def confirm_upload(self, doc_id: str, data: bytes) -> Document:
        document = self.get_document(doc_id)
        storage_id = self.blob_store.save(data, document.file_type)

        confirmed = self.document_store.patch(
            doc_id,
            {"storage_id": storage_id, "status": DocumentStatus.uploaded},
            expected_status={DocumentStatus.uploading}
        )
        if not confirmed:
            self.blob_store.delete(storage_id)
            raise IngestionConflictError(f"Upload for document {doc_id} was already confirmed")
        return self.get_document(doc_id)

    def get_document(self, doc_id: str) -> Document:
        document = self.document_store.get_document(doc_id)
        if document is None:
            raise DocumentNotFoundError(doc_id)
        return document

    def list_documents(self, user_id: Optional[str] = None) -> List[Document]:
        return self.document_store.list_documents(user_id)

    def list_chat_sessions(self, doc_id: str) -> List[ChatSession]:
        self.get_document(doc_id)
        return self.document_store.list_chat_sessions(doc_id)

    def rename(self, doc_id: str, title: str) -> Document:
        if not self.document_store.patch(doc_id, {"title": title}):
            raise DocumentNotFoundError(doc_id)
        return self.get_document(doc_id)

    def delete(self, doc_id: str) -> None:
        """Removes the record, its chunks and its stored file. Refused while ingestion runs."""
        document = self.get_document(doc_id)
        if document.status == DocumentStatus.processing:
            raise IngestionConflictError(f"Document {doc_id} cannot be deleted while processing")
        self.chunk_store.delete_document(doc_id)
        self.blob_store.delete(document.storage_id)
        self.document_store.delete_document(doc_id)
        logger.info(f"Deleted document {doc_id}")
