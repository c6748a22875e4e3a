from abc import ABC, abstractmethod
from typing import Any, Collection, Dict, List, Optional
from synapse.models.chunk import ContentChunk, StoredChunk
from synapse.models.chat import ChatMessage, ChatMessageMetadata, ChatSession
from synapse.models.document import Document, DocumentStatus, GeneratedContent
from synapse.models.study import TeachMeSession, TeachMeTurn

class BlobStore(ABC):
    @abstractmethod
    def save(self, data: bytes, mime_type: str) -> str:
        """Stores raw bytes and returns the new storage_id."""
        pass

    @abstractmethod
    def resolve_url(self, storage_id: str) -> Optional[str]:
        """URL of a stored blob, or None when it does not exist."""
        pass

    @abstractmethod
    def read(self, storage_id: str) -> bytes:
        pass

    @abstractmethod
    def delete(self, storage_id: str) -> None:
        pass

class ChunkStore(ABC):
    @abstractmethod
    def add_chunk(self, doc_id: str, chunk: ContentChunk, embedding: List[float]) -> str:
        """Persists one embedded chunk and returns its chunk_id."""
        pass

    @abstractmethod
    def get_chunks(self, doc_id: str) -> List[StoredChunk]:
        """All chunks of a document in index order."""
        pass

    @abstractmethod
    def get_chunk(self, chunk_id: str) -> Optional[StoredChunk]:
        pass

    @abstractmethod
    def search(self, doc_id: str, vector: List[float], limit: int) -> List[StoredChunk]:
        """Chunks of one document by descending similarity, each carrying its score."""
        pass

    @abstractmethod
    def delete_document(self, doc_id: str) -> None:
        pass

class DocumentStore(ABC):
    # Documents
    @abstractmethod
    def create_document(self, document: Document) -> Document:
        pass

    @abstractmethod
    def get_document(self, doc_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    def list_documents(self, user_id: Optional[str] = None) -> List[Document]:
        pass

    @abstractmethod
    def patch(self,
              doc_id: str,
              fields: Dict[str, Any],
              expected_status: Optional[Collection[DocumentStatus]] = None) -> bool:
        """
        Applies a partial update to one document atomically.
        With expected_status set, the update only happens if the current status is in it
        (compare-and-swap); returns False when the guard fails.
        """
        pass

    @abstractmethod
    def delete_document(self, doc_id: str) -> None:
        pass

    # Chat
    @abstractmethod
    def create_chat_session(self, doc_id: str) -> ChatSession:
        pass

    @abstractmethod
    def get_chat_session(self, session_id: str) -> Optional[ChatSession]:
        pass

    @abstractmethod
    def list_chat_sessions(self, doc_id: str) -> List[ChatSession]:
        """Sessions of a document, most recently active first."""
        pass

    @abstractmethod
    def add_chat_message(self,
                         session_id: str,
                         role: str,
                         content: str,
                         metadata: Optional[ChatMessageMetadata] = None) -> ChatMessage:
        pass

    @abstractmethod
    def get_recent_messages(self, session_id: str, limit: int) -> List[ChatMessage]:
        """Last `limit` messages of a session, oldest first."""
        pass

    # Generated study content
    @abstractmethod
    def store_generated_content(self,
                                doc_id: str,
                                content_type: str,
                                content: str,
                                metadata: Optional[Dict[str, Any]] = None) -> GeneratedContent:
        pass

    @abstractmethod
    def get_generated_content(self, doc_id: str, content_type: str) -> Optional[GeneratedContent]:
        """Most recent content of a type for a document."""
        pass

    # Teach Me
    @abstractmethod
    def create_teach_me_session(self, session: TeachMeSession) -> TeachMeSession:
        pass

    @abstractmethod
    def get_teach_me_session(self, session_id: str) -> Optional[TeachMeSession]:
        pass

    @abstractmethod
    def list_teach_me_sessions(self, doc_id: str) -> List[TeachMeSession]:
        pass

    @abstractmethod
    def update_teach_me_session(self, session_id: str, fields: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def add_teach_me_turn(self, turn: TeachMeTurn) -> None:
        pass

    @abstractmethod
    def get_teach_me_turns(self, session_id: str) -> List[TeachMeTurn]:
        pass
