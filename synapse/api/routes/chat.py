import logging
from typing import List
from fastapi import APIRouter, Depends

from synapse.api.dependencies import get_document_service, get_document_store, get_retrieval_pipeline
from synapse.core.errors import SessionNotFoundError
from synapse.core.pipeline.documents import DocumentService
from synapse.core.pipeline.retrieval import RetrievalPipeline
from synapse.models.chat import ChatAnswer, ChatMessage, ChatRequest, ChatSession
from synapse.storage.base import DocumentStore

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/chat", response_model=ChatAnswer, summary="Ask a question grounded in one document")
def chat(request_data: ChatRequest, pipeline: RetrievalPipeline = Depends(get_retrieval_pipeline)):
    logger.info(f"Chat on doc {request_data.document_id} (session {request_data.session_id or 'new'})")
    return pipeline.answer(
        request_data.document_id,
        request_data.message,
        session_id=request_data.session_id,
        include_timestamps=request_data.include_timestamps
    )

@router.get("/chat/{session_id}/messages", response_model=List[ChatMessage], summary="Recent messages of a chat session")
def get_messages(session_id: str, limit: int = 50, store: DocumentStore = Depends(get_document_store)):
    if store.get_chat_session(session_id) is None:
        raise SessionNotFoundError(session_id)
    return store.get_recent_messages(session_id, limit)

@router.get("/documents/{doc_id}/chat-sessions", response_model=List[ChatSession], summary="Chat sessions of a document")
def list_chat_sessions(doc_id: str, service: DocumentService = Depends(get_document_service)):
    return service.list_chat_sessions(doc_id)
