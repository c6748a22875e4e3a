import logging
from fastapi import APIRouter, BackgroundTasks, Depends

from synapse.api.dependencies import get_document_service, get_ingestion_pipeline
from synapse.api.routes.documents import run_ingestion
from synapse.core.errors import IngestionConflictError
from synapse.core.pipeline.documents import DocumentService
from synapse.core.pipeline.ingestion import IngestionPipeline
from synapse.models.document import ProcessingStatus, TRIGGERABLE_STATUSES

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/documents/{doc_id}/process", response_model=ProcessingStatus, summary="Re-trigger ingestion for a document")
def process_document(
    doc_id: str,
    background_tasks: BackgroundTasks,
    service: DocumentService = Depends(get_document_service),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline)
):
    """
    Early 409 for a document that is uploading or processing.
    The pipeline's own status compare-and-swap still guards racing triggers.
    """
    document = service.get_document(doc_id)
    if document.status not in TRIGGERABLE_STATUSES:
        raise IngestionConflictError(f"Document {doc_id} cannot be processed while {document.status.value}")

    logger.info(f"Queueing ingestion for {doc_id}")
    background_tasks.add_task(run_ingestion, pipeline, doc_id)
    return ProcessingStatus(
        doc_id=doc_id,
        status=document.status,
        processing_progress=document.processing_progress,
        error=document.error
    )

@router.get("/documents/{doc_id}/status", response_model=ProcessingStatus, summary="Poll ingestion status and progress")
def get_processing_status(doc_id: str, service: DocumentService = Depends(get_document_service)):
    document = service.get_document(doc_id)
    return ProcessingStatus(
        doc_id=doc_id,
        status=document.status,
        processing_progress=document.processing_progress,
        error=document.error
    )
