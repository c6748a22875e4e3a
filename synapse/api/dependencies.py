from fastapi import Request

from synapse.core.generate.study_aids import StudyAidGenerator
from synapse.core.generate.teach_me import TeachMeTutor
from synapse.core.pipeline.documents import DocumentService
from synapse.core.pipeline.ingestion import IngestionPipeline
from synapse.core.pipeline.retrieval import RetrievalPipeline
from synapse.storage.base import DocumentStore

# Dependencies for components built in the lifespan (from app.state)
def get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service

def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store

def get_ingestion_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.ingestion_pipeline

def get_retrieval_pipeline(request: Request) -> RetrievalPipeline:
    return request.app.state.retrieval_pipeline

def get_study_aids(request: Request) -> StudyAidGenerator:
    return request.app.state.study_aids

def get_tutor(request: Request) -> TeachMeTutor:
    return request.app.state.tutor
