import logging
from typing import Optional
from synapse.core.embed.embedder import Embedder
from synapse.core.errors import DocumentNotFoundError, SessionNotFoundError
from synapse.core.generate.llm_client import LLMClient
from synapse.core.generate.prompt_builder import PromptBuilder
from synapse.core.retrieve.citations import extract_audio_references
from synapse.core.retrieve.context_builder import ContextBuilder
from synapse.models.chat import ChatAnswer, ChatMessageMetadata, ChatSession, RelevantChunk
from synapse.storage.base import ChunkStore, DocumentStore
from synapse.config.settings import settings

logger = logging.getLogger(__name__)

class RetrievalPipeline:
    """
    Answers a chat message grounded in one document.
    Sequence: session -> store question -> embed -> search -> context -> history -> complete -> cite -> store answer

    Nothing is caught here: embedding and completion errors reach the caller as they are.
    """

    def __init__(self,
                 document_store: DocumentStore,
                 chunk_store: ChunkStore,
                 embedder: Optional[Embedder] = None,
                 llm_client: Optional[LLMClient] = None):
        self.document_store = document_store
        self.chunk_store = chunk_store
        self._embedder = embedder
        self.llm_client = llm_client or LLMClient()
        self.config = settings.retrieval

    @property
    def embedder(self) -> Embedder:
        if self._embedder is None:
            self._embedder = Embedder()
        return self._embedder

    def _resolve_session(self, doc_id: str, session_id: Optional[str]) -> ChatSession:
        if session_id is None:
            return self.document_store.create_chat_session(doc_id)
        session = self.document_store.get_chat_session(session_id)
        if session is None or session.doc_id != doc_id:
            raise SessionNotFoundError(session_id)
        return session

    def answer(self,
               doc_id: str,
               message: str,
               session_id: Optional[str] = None,
               include_timestamps: bool = False) -> ChatAnswer:
        if self.document_store.get_document(doc_id) is None:
            raise DocumentNotFoundError(doc_id)

        # 1. Session and the user's turn
        session = self._resolve_session(doc_id, session_id)
        self.document_store.add_chat_message(session.session_id, "user", message)
        logger.info(f"Answering in session {session.session_id} for doc {doc_id}")

        # 2. Vector search scoped to the document
        query_vector = self.embedder.embed(message)
        chunks = self.chunk_store.search(doc_id, query_vector, self.config.top_k)

        # 3. Prompt assembly
        context = ContextBuilder.build(chunks, include_timestamps)
        history = self.document_store.get_recent_messages(session.session_id, self.config.history_limit)
        system_prompt = PromptBuilder.chat_system_prompt(include_timestamps)
        user_prompt = PromptBuilder.chat_user_prompt(message, context, history)

        # 4. Generation
        content = self.llm_client.complete(
            system_prompt,
            user_prompt,
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens
        )

        # 5. Citations
        audio_references = extract_audio_references(content, chunks) if include_timestamps else []

        assistant_message = self.document_store.add_chat_message(
            session.session_id,
            "assistant",
            content,
            metadata=ChatMessageMetadata(
                chunk_ids=[c.chunk_id for c in chunks],
                audio_references=audio_references
            )
        )

        return ChatAnswer(
            message_id=assistant_message.message_id,
            session_id=session.session_id,
            content=content,
            audio_references=audio_references,
            relevant_chunks=[
                RelevantChunk(
                    id=c.chunk_id,
                    content=c.content[:self.config.preview_chars] + "...",
                    metadata=c.metadata,
                    score=c.score or 0.0
                )
                for c in chunks
            ]
        )
