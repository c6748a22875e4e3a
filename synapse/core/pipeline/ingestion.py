import logging
from typing import Callable, Optional
from synapse.core.chunk.chunker import Chunker, assign_page_numbers
from synapse.core.embed.embedder import Embedder
from synapse.core.errors import (
    DocumentNotFoundError,
    EmbeddingServiceError,
    IngestionConflictError,
    StorageError,
)
from synapse.core.parse.extractor import TextExtractor
from synapse.models.document import DocumentStatus, IngestionResult, TRIGGERABLE_STATUSES
from synapse.storage.base import BlobStore, ChunkStore, DocumentStore

logger = logging.getLogger(__name__)

class IngestionPipeline:
    """
    Orchestrates the ingestion of one document:
    resolve blob -> extract -> chunk -> embed -> store chunks -> store content

    The run is claimed with a compare-and-swap on the document status, so a second
    trigger while processing is rejected. Any failure after the claim is recorded on
    the document (status=failed, error=message) and re-raised.
    """

    def __init__(self,
                 document_store: DocumentStore,
                 chunk_store: ChunkStore,
                 blob_store: BlobStore,
                 extractor: Optional[TextExtractor] = None,
                 chunker: Optional[Chunker] = None,
                 embedder: Optional[Embedder] = None):
        self.document_store = document_store
        self.chunk_store = chunk_store
        self.blob_store = blob_store

        # Initialize components
        self.extractor = extractor or TextExtractor(blob_store)
        self.chunker = chunker or Chunker()
        self._embedder = embedder

    @property
    def embedder(self) -> Embedder:
        if self._embedder is None:
            self._embedder = Embedder()
        return self._embedder

    def run(self,
            doc_id: str,
            progress_callback: Optional[Callable[[int, str], None]] = None) -> IngestionResult:
        document = self.document_store.get_document(doc_id)
        if document is None:
            raise DocumentNotFoundError(doc_id)

        claimed = self.document_store.patch(
            doc_id,
            {"status": DocumentStatus.processing, "processing_progress": 0, "error": None},
            expected_status=TRIGGERABLE_STATUSES
        )
        if not claimed:
            raise IngestionConflictError(
                f"Document {doc_id} cannot be processed while {document.status.value}"
            )

        def update_progress(progress: int, message: str):
            # The record disappearing mid-run aborts the run
            if not self.document_store.patch(doc_id, {"processing_progress": progress}):
                raise DocumentNotFoundError(doc_id)
            if progress_callback:
                progress_callback(progress, message)
            logger.info(f"[{doc_id}] {progress}%: {message}")

        try:
            update_progress(0, "Starting processing")

            # 1. Resolve the stored file
            url = self.blob_store.resolve_url(document.storage_id)
            if not url:
                raise StorageError("Could not get file URL")

            # 2. Extraction
            extracted = self.extractor.extract(
                document.file_type,
                document.storage_id,
                url,
                audio_duration=document.audio_duration
            )
            update_progress(25, f"Extracted {len(extracted.content)} characters")

            # 3. Chunking
            chunks = self.chunker.chunk(extracted.content, extracted.metadata.timestamps)
            if extracted.metadata.page_offsets:
                assign_page_numbers(chunks, extracted.metadata.page_offsets)
            update_progress(50, f"Created {len(chunks)} chunks")

            # 4. Embedding (one batched call, positional pairing below)
            embeddings = self.embedder.embed_many([c.content for c in chunks])
            if len(embeddings) != len(chunks):
                raise EmbeddingServiceError(f"Expected {len(chunks)} embeddings, got {len(embeddings)}")

            # 5. Storage; a re-run replaces the previous chunk set
            self.chunk_store.delete_document(doc_id)
            total = len(chunks)
            for i, (chunk, embedding) in enumerate(zip(chunks, embeddings)):
                self.chunk_store.add_chunk(doc_id, chunk, embedding)
                update_progress(50 + (i + 1) * 40 // total, f"Stored chunk {i + 1}/{total}")

            completed = self.document_store.patch(
                doc_id,
                {
                    "content": extracted.content,
                    "metadata": extracted.metadata,
                    "processed": True,
                    "status": DocumentStatus.completed
                },
                expected_status={DocumentStatus.processing}
            )
            if not completed:
                raise DocumentNotFoundError(doc_id)
            update_progress(100, "Ingestion completed successfully")

            return IngestionResult(success=True, chunks_created=total, metadata=extracted.metadata)

        except Exception as e:
            logger.exception(f"Ingestion failed for {doc_id}")
            recorded = self.document_store.patch(doc_id, {
                "status": DocumentStatus.failed,
                "error": str(e) or type(e).__name__
            })
            if not recorded:
                # Deleted mid-run: drop whatever this run already stored
                self.chunk_store.delete_document(doc_id)
            if progress_callback:
                progress_callback(-1, str(e))  # -1 signals failure
            raise
