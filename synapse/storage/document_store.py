import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Collection, Dict, List, Optional
from synapse.models.chat import ChatMessage, ChatMessageMetadata, ChatSession
from synapse.models.document import Document, DocumentStatus, GeneratedContent
from synapse.models.study import TeachMeSession, TeachMeTurn
from synapse.storage.base import DocumentStore

logger = logging.getLogger(__name__)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

class JsonDocumentStore(DocumentStore):
    """
    Implements DocumentStore as a single JSON file.
    - Every read-modify-write happens under one process-wide lock, which is what makes
      patch() a real compare-and-swap.
    - records_path=None keeps everything in memory (tests).
    """

    def __init__(self, records_path: Optional[str] = None):
        self.records_path = records_path
        self._lock = threading.Lock()
        self._data = {
            "documents": {},
            "chat_sessions": {},
            "chat_messages": [],
            "generated_content": [],
            "teach_me_sessions": {},
            "teach_me_turns": [],
        }
        if records_path and os.path.exists(records_path):
            with open(records_path, "r", encoding="utf-8") as f:
                self._data.update(json.load(f))
            logger.info(f"Loaded {len(self._data['documents'])} documents from {records_path}")

    def _flush(self) -> None:
        """Writes the whole record set; caller holds the lock."""
        if not self.records_path:
            return
        os.makedirs(os.path.dirname(os.path.abspath(self.records_path)), exist_ok=True)
        tmp_path = f"{self.records_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)
        os.replace(tmp_path, self.records_path)

    # Documents

    def create_document(self, document: Document) -> Document:
        with self._lock:
            self._data["documents"][document.doc_id] = document.model_dump(mode="json")
            self._flush()
        return document

    def get_document(self, doc_id: str) -> Optional[Document]:
        with self._lock:
            record = self._data["documents"].get(doc_id)
        return Document.model_validate(record) if record else None

    def list_documents(self, user_id: Optional[str] = None) -> List[Document]:
        with self._lock:
            records = list(self._data["documents"].values())
        docs = [Document.model_validate(r) for r in records]
        if user_id is not None:
            docs = [d for d in docs if d.user_id == user_id]
        return sorted(docs, key=lambda d: d.uploaded_at, reverse=True)

    def patch(self,
              doc_id: str,
              fields: Dict[str, Any],
              expected_status: Optional[Collection[DocumentStatus]] = None) -> bool:
        with self._lock:
            record = self._data["documents"].get(doc_id)
            if record is None:
                return False
            if expected_status is not None and DocumentStatus(record["status"]) not in expected_status:
                return False

            # Validate through the model so a bad field never reaches disk
            updated = Document.model_validate({**record, **fields})
            self._data["documents"][doc_id] = updated.model_dump(mode="json")
            self._flush()
        return True

    def delete_document(self, doc_id: str) -> None:
        with self._lock:
            self._data["documents"].pop(doc_id, None)
            session_ids = {sid for sid, s in self._data["chat_sessions"].items() if s["doc_id"] == doc_id}
            for sid in session_ids:
                del self._data["chat_sessions"][sid]
            self._data["chat_messages"] = [
                m for m in self._data["chat_messages"] if m["session_id"] not in session_ids
            ]
            self._data["generated_content"] = [
                g for g in self._data["generated_content"] if g["doc_id"] != doc_id
            ]
            teach_ids = {sid for sid, s in self._data["teach_me_sessions"].items() if s["doc_id"] == doc_id}
            for sid in teach_ids:
                del self._data["teach_me_sessions"][sid]
            self._data["teach_me_turns"] = [
                t for t in self._data["teach_me_turns"] if t["session_id"] not in teach_ids
            ]
            self._flush()

    # Chat

    def create_chat_session(self, doc_id: str) -> ChatSession:
        now = _now()
        session = ChatSession(
            session_id=uuid.uuid4().hex,
            doc_id=doc_id,
            created_at=now,
            last_message_at=now
        )
        with self._lock:
            self._data["chat_sessions"][session.session_id] = session.model_dump(mode="json")
            self._flush()
        return session

    def get_chat_session(self, session_id: str) -> Optional[ChatSession]:
        with self._lock:
            record = self._data["chat_sessions"].get(session_id)
        return ChatSession.model_validate(record) if record else None

    def list_chat_sessions(self, doc_id: str) -> List[ChatSession]:
        with self._lock:
            records = [s for s in self._data["chat_sessions"].values() if s["doc_id"] == doc_id]
        sessions = [ChatSession.model_validate(s) for s in records]
        return sorted(sessions, key=lambda s: s.last_message_at, reverse=True)

    def add_chat_message(self,
                         session_id: str,
                         role: str,
                         content: str,
                         metadata: Optional[ChatMessageMetadata] = None) -> ChatMessage:
        message = ChatMessage(
            message_id=uuid.uuid4().hex,
            session_id=session_id,
            role=role,
            content=content,
            timestamp=_now(),
            metadata=metadata
        )
        with self._lock:
            self._data["chat_messages"].append(message.model_dump(mode="json"))
            session = self._data["chat_sessions"].get(session_id)
            if session is not None:
                session["last_message_at"] = message.timestamp
            self._flush()
        return message

    def get_recent_messages(self, session_id: str, limit: int) -> List[ChatMessage]:
        if limit <= 0:
            return []
        with self._lock:
            records = [m for m in self._data["chat_messages"] if m["session_id"] == session_id]
        # Appended in arrival order, so the tail is the most recent
        return [ChatMessage.model_validate(m) for m in records[-limit:]]

    # Generated study content

    def store_generated_content(self,
                                doc_id: str,
                                content_type: str,
                                content: str,
                                metadata: Optional[Dict[str, Any]] = None) -> GeneratedContent:
        generated = GeneratedContent(
            content_id=uuid.uuid4().hex,
            doc_id=doc_id,
            type=content_type,
            content=content,
            metadata=metadata or {},
            created_at=_now()
        )
        with self._lock:
            self._data["generated_content"].append(generated.model_dump(mode="json"))
            self._flush()
        return generated

    def get_generated_content(self, doc_id: str, content_type: str) -> Optional[GeneratedContent]:
        with self._lock:
            matches = [
                g for g in self._data["generated_content"]
                if g["doc_id"] == doc_id and g["type"] == content_type
            ]
        return GeneratedContent.model_validate(matches[-1]) if matches else None

    # Teach Me

    def create_teach_me_session(self, session: TeachMeSession) -> TeachMeSession:
        with self._lock:
            self._data["teach_me_sessions"][session.session_id] = session.model_dump(mode="json")
            self._flush()
        return session

    def get_teach_me_session(self, session_id: str) -> Optional[TeachMeSession]:
        with self._lock:
            record = self._data["teach_me_sessions"].get(session_id)
        return TeachMeSession.model_validate(record) if record else None

    def list_teach_me_sessions(self, doc_id: str) -> List[TeachMeSession]:
        with self._lock:
            records = [s for s in self._data["teach_me_sessions"].values() if s["doc_id"] == doc_id]
        sessions = [TeachMeSession.model_validate(s) for s in records]
        return sorted(sessions, key=lambda s: s.created_at, reverse=True)

    def update_teach_me_session(self, session_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            record = self._data["teach_me_sessions"].get(session_id)
            if record is None:
                return
            updated = TeachMeSession.model_validate({**record, **fields})
            self._data["teach_me_sessions"][session_id] = updated.model_dump(mode="json")
            self._flush()

    def add_teach_me_turn(self, turn: TeachMeTurn) -> None:
        with self._lock:
            self._data["teach_me_turns"].append(turn.model_dump(mode="json"))
            self._flush()

    def get_teach_me_turns(self, session_id: str) -> List[TeachMeTurn]:
        with self._lock:
            records = [t for t in self._data["teach_me_turns"] if t["session_id"] == session_id]
        return [TeachMeTurn.model_validate(t) for t in records]
