import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from synapse.config.settings import settings
from synapse.core.embed.embedder import Embedder
from synapse.core.errors import (
    ContentNotFoundError,
    DocumentNotFoundError,
    IngestionConflictError,
    ParseError,
    PersonalityNotFoundError,
    SessionNotFoundError,
    SynapseError,
    UnsupportedFormatError,
)
from synapse.core.generate.llm_client import LLMClient
from synapse.core.generate.study_aids import StudyAidGenerator
from synapse.core.generate.teach_me import TeachMeTutor
from synapse.core.pipeline.documents import DocumentService
from synapse.core.pipeline.ingestion import IngestionPipeline
from synapse.core.pipeline.retrieval import RetrievalPipeline
from synapse.storage.document_store import JsonDocumentStore
from synapse.storage.file_store import LocalBlobStore
from synapse.storage.qdrant_store import QdrantChunkStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup: Initialize singletons ---
    logger.info("Initializing Synapse storage and pipelines...")

    # 1. Storage implementations
    blob_store = LocalBlobStore()
    document_store = JsonDocumentStore(settings.storage.records_path)
    chunk_store = QdrantChunkStore()

    # 2. Shared services (embedding model is loaded once here)
    embedder = Embedder()
    llm_client = LLMClient()

    # 3. Pipelines and generators
    app.state.blob_store = blob_store
    app.state.document_store = document_store
    app.state.chunk_store = chunk_store
    app.state.document_service = DocumentService(document_store, chunk_store, blob_store)
    app.state.ingestion_pipeline = IngestionPipeline(document_store, chunk_store, blob_store, embedder=embedder)
    app.state.retrieval_pipeline = RetrievalPipeline(document_store, chunk_store, embedder=embedder, llm_client=llm_client)
    app.state.study_aids = StudyAidGenerator(document_store, chunk_store, llm_client)
    app.state.tutor = TeachMeTutor(document_store, chunk_store, llm_client)

    logger.info("Initialization complete. All systems ready.")

    yield

    # --- Shutdown ---
    logger.info("Shutting down Synapse backend...")

# Create FastAPI instance
app = FastAPI(
    title="Synapse API",
    description="Document and audio learning: grounded chat, study aids and Teach Me sessions",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def status_code_for(error: SynapseError) -> int:
    if isinstance(error, (DocumentNotFoundError, SessionNotFoundError, PersonalityNotFoundError, ContentNotFoundError)):
        return 404
    if isinstance(error, UnsupportedFormatError):
        return 415
    if isinstance(error, IngestionConflictError):
        return 409
    if isinstance(error, ParseError):
        return 422
    return 500

@app.exception_handler(SynapseError)
async def synapse_error_handler(request: Request, exc: SynapseError):
    status_code = status_code_for(exc)
    if status_code == 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        detail = "The request could not be completed. Please try again."
    else:
        detail = exc.message
    return JSONResponse(status_code=status_code, content={"detail": detail})

# Health Check Endpoint
@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}

from synapse.api.routes import documents, ingest, chat, study, teach_me

app.include_router(documents.router, prefix="/api", tags=["Documents"])
app.include_router(ingest.router, prefix="/api", tags=["Ingestion"])
app.include_router(chat.router, prefix="/api", tags=["Chat"])
app.include_router(study.router, prefix="/api", tags=["Study Aids"])
app.include_router(teach_me.router, prefix="/api", tags=["Teach Me"])

@app.get("/", tags=["System"])
def root():
    return {"message": "Synapse API is running."}
