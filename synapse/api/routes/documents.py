import logging
import mimetypes
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile

from synapse.api.dependencies import get_document_service, get_ingestion_pipeline
from synapse.core.parse.extractor import file_kind_for
from synapse.core.pipeline.documents import DocumentService
from synapse.core.pipeline.ingestion import IngestionPipeline
from synapse.models.document import Document, DocumentUpdate

router = APIRouter()
logger = logging.getLogger(__name__)

def resolve_mime_type(upload: UploadFile) -> str:
    """Declared content type, falling back to the filename for generic uploads."""
    mime_type = upload.content_type
    if not mime_type or mime_type == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(upload.filename or "")
        mime_type = guessed or "application/octet-stream"
    return mime_type

def run_ingestion(pipeline: IngestionPipeline, doc_id: str):
    # The pipeline has already recorded the failure on the document
    try:
        pipeline.run(doc_id)
    except Exception as e:
        logger.error(f"Background ingestion failed for {doc_id}: {e}")

@router.post("/documents", response_model=Document, summary="Upload a document and queue it for ingestion")
async def upload_document(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    user_id: str = Form("local"),
    title: Optional[str] = Form(None),
    audio_duration: Optional[float] = Form(None),
    service: DocumentService = Depends(get_document_service),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline)
):
    """
    1. Rejects unsupported MIME types before anything is stored.
    2. Creates the record, stores the bytes and marks it uploaded.
    3. Dispatches ingestion to BackgroundTasks.
    """
    mime_type = resolve_mime_type(file)
    file_kind_for(mime_type)

    try:
        data = await file.read()
    finally:
        await file.close()

    logger.info(f"Uploading '{file.filename}' ({mime_type}, {len(data)} bytes)")
    document = service.create_document(
        user_id=user_id,
        title=title or file.filename or "Untitled",
        file_type=mime_type,
        file_size=len(data),
        audio_duration=audio_duration
    )
    document = service.confirm_upload(document.doc_id, data)

    background_tasks.add_task(run_ingestion, pipeline, document.doc_id)
    return document

@router.get("/documents", response_model=List[Document], summary="List documents, newest first")
def list_documents(user_id: Optional[str] = None, service: DocumentService = Depends(get_document_service)):
    return service.list_documents(user_id)

@router.get("/documents/{doc_id}", response_model=Document)
def get_document(doc_id: str, service: DocumentService = Depends(get_document_service)):
    return service.get_document(doc_id)

@router.patch("/documents/{doc_id}", response_model=Document, summary="Rename a document")
def update_document(doc_id: str, update: DocumentUpdate, service: DocumentService = Depends(get_document_service)):
    return service.rename(doc_id, update.title)

@router.delete("/documents/{doc_id}", summary="Delete a document with its chunks and stored file")
def delete_document(doc_id: str, service: DocumentService = Depends(get_document_service)):
    service.delete(doc_id)
    return {"doc_id": doc_id, "success": True}
