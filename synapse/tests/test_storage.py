import os

import pytest

from synapse.core.errors import StorageError
from synapse.models.chat import AudioReference, ChatMessageMetadata
from synapse.models.chunk import ChunkMetadata, ContentChunk
from synapse.models.document import DocumentStatus, ExtractionMetadata, TRIGGERABLE_STATUSES
from synapse.models.study import TeachMeSession, TeachMeTurn
from synapse.storage.document_store import JsonDocumentStore
from synapse.tests.helpers import make_document, unit_vector


def make_chunk(index, content=None, **meta):
    return ContentChunk(
        index=index,
        content=content or f"Chunk {index} content",
        metadata=ChunkMetadata(start_offset=index * 100, end_offset=index * 100 + 150, **meta)
    )


# Blob store

def test_blob_store_roundtrip(blob_store):
    storage_id = blob_store.save(b"%PDF-1.4 data", "application/pdf")
    assert storage_id.endswith(".pdf")

    url = blob_store.resolve_url(storage_id)
    assert url.startswith("file://")
    assert blob_store.read(storage_id) == b"%PDF-1.4 data"

    blob_store.delete(storage_id)
    assert blob_store.resolve_url(storage_id) is None


def test_blob_store_missing_and_invalid_ids(blob_store):
    assert blob_store.resolve_url("") is None
    assert blob_store.resolve_url("missing.txt") is None
    with pytest.raises(StorageError):
        blob_store.read("missing.txt")
    with pytest.raises(StorageError):
        blob_store.read("../escape.txt")


# Document store

def test_patch_is_compare_and_swap(document_store):
    document_store.create_document(make_document(status=DocumentStatus.uploaded))

    assert document_store.patch("doc1", {"status": DocumentStatus.processing}, expected_status=TRIGGERABLE_STATUSES)
    # a second trigger while processing loses
    assert not document_store.patch("doc1", {"status": DocumentStatus.processing}, expected_status=TRIGGERABLE_STATUSES)
    assert document_store.get_document("doc1").status == DocumentStatus.processing

    assert document_store.patch("doc1", {"processing_progress": 40})
    assert document_store.get_document("doc1").processing_progress == 40
    assert not document_store.patch("missing", {"title": "x"})


def test_patch_accepts_nested_models(document_store):
    document_store.create_document(make_document())
    metadata = ExtractionMetadata(page_count=2, page_offsets=[0, 120])

    document_store.patch("doc1", {"metadata": metadata, "content": "text", "processed": True})

    doc = document_store.get_document("doc1")
    assert doc.metadata == metadata
    assert doc.processed is True


def test_records_persist_to_disk(tmp_path):
    path = str(tmp_path / "records.json")
    store = JsonDocumentStore(path)
    store.create_document(make_document())
    session = store.create_chat_session("doc1")
    store.add_chat_message(session.session_id, "user", "hello")

    assert os.path.exists(path)
    reloaded = JsonDocumentStore(path)
    assert reloaded.get_document("doc1").title == "Lecture Notes"
    assert [m.content for m in reloaded.get_recent_messages(session.session_id, 10)] == ["hello"]


def test_list_documents_filters_by_user(document_store):
    document_store.create_document(make_document("a", uploaded_at="2026-01-01T00:00:00+00:00"))
    document_store.create_document(make_document("b", uploaded_at="2026-01-02T00:00:00+00:00"))
    other = make_document("c")
    other.user_id = "someone-else"
    document_store.create_document(other)

    assert [d.doc_id for d in document_store.list_documents("user1")] == ["b", "a"]
    assert len(document_store.list_documents()) == 3


def test_recent_messages_returns_tail_in_order(document_store):
    session = document_store.create_chat_session("doc1")
    for i in range(15):
        document_store.add_chat_message(session.session_id, "user" if i % 2 == 0 else "assistant", f"m{i}")

    recent = document_store.get_recent_messages(session.session_id, 10)
    assert [m.content for m in recent] == [f"m{i}" for i in range(5, 15)]
    assert document_store.get_recent_messages(session.session_id, 0) == []


def test_message_metadata_survives(document_store):
    session = document_store.create_chat_session("doc1")
    ref = AudioReference(timestamp=125, duration=30, text="See [2:05]", chunk_id="c1")
    document_store.add_chat_message(
        session.session_id, "assistant", "answer",
        metadata=ChatMessageMetadata(chunk_ids=["c1"], audio_references=[ref])
    )

    message = document_store.get_recent_messages(session.session_id, 1)[0]
    assert message.metadata.audio_references == [ref]
    assert document_store.get_chat_session(session.session_id).last_message_at == message.timestamp


def test_generated_content_latest_wins(document_store):
    document_store.store_generated_content("doc1", "summary", "first")
    document_store.store_generated_content("doc1", "summary", "second", metadata={"n": 2})

    latest = document_store.get_generated_content("doc1", "summary")
    assert latest.content == "second"
    assert latest.metadata == {"n": 2}
    assert document_store.get_generated_content("doc1", "quiz") is None


def test_delete_document_cascades(document_store):
    document_store.create_document(make_document())
    session = document_store.create_chat_session("doc1")
    document_store.add_chat_message(session.session_id, "user", "hello")
    document_store.store_generated_content("doc1", "summary", "text")
    document_store.create_teach_me_session(TeachMeSession(
        session_id="t1", doc_id="doc1", personality_id="peer_student",
        current_topic="Topic", created_at="2026-01-01T00:00:00+00:00"
    ))
    document_store.add_teach_me_turn(TeachMeTurn(
        session_id="t1", role="ai_student", content="Hi!", timestamp="2026-01-01T00:00:00+00:00"
    ))

    document_store.delete_document("doc1")

    assert document_store.get_document("doc1") is None
    assert document_store.get_chat_session(session.session_id) is None
    assert document_store.get_generated_content("doc1", "summary") is None
    assert document_store.get_teach_me_session("t1") is None
    assert document_store.get_teach_me_turns("t1") == []


def test_teach_me_session_updates(document_store):
    document_store.create_teach_me_session(TeachMeSession(
        session_id="t1", doc_id="doc1", personality_id="peer_student",
        current_topic="Topic", created_at="2026-01-01T00:00:00+00:00"
    ))
    document_store.update_teach_me_session("t1", {"comprehension_score": 82, "weak_areas": ["clarity"]})

    session = document_store.get_teach_me_session("t1")
    assert session.comprehension_score == 82
    assert session.weak_areas == ["clarity"]


def test_sessions_are_listed_per_document_most_recent_first(document_store):
    older = document_store.create_chat_session("doc1")
    newer = document_store.create_chat_session("doc1")
    document_store.create_chat_session("doc2")
    document_store.add_chat_message(older.session_id, "user", "Back again")

    assert [s.session_id for s in document_store.list_chat_sessions("doc1")] == [older.session_id, newer.session_id]

    for session_id, created_at in [("t1", "2026-01-01T00:00:00+00:00"), ("t2", "2026-01-02T00:00:00+00:00")]:
        document_store.create_teach_me_session(TeachMeSession(
            session_id=session_id, doc_id="doc1", personality_id="peer_student",
            current_topic="Topic", created_at=created_at
        ))

    assert [s.session_id for s in document_store.list_teach_me_sessions("doc1")] == ["t2", "t1"]
    assert document_store.list_teach_me_sessions("doc2") == []


# Chunk store

def test_chunk_store_returns_chunks_in_index_order(chunk_store):
    for index in [2, 0, 1]:
        chunk_store.add_chunk("doc1", make_chunk(index), unit_vector(index))
    chunk_store.add_chunk("doc2", make_chunk(0), unit_vector(0))

    chunks = chunk_store.get_chunks("doc1")
    assert [c.index for c in chunks] == [0, 1, 2]
    assert all(c.doc_id == "doc1" for c in chunks)


def test_chunk_store_search_is_scoped_and_ranked(chunk_store):
    ids = [chunk_store.add_chunk("doc1", make_chunk(i), unit_vector(i)) for i in range(3)]
    chunk_store.add_chunk("doc2", make_chunk(0, "other doc"), unit_vector(1))

    results = chunk_store.search("doc1", unit_vector(1), limit=2)

    assert len(results) == 2
    assert results[0].chunk_id == ids[1]
    assert results[0].score >= results[1].score
    assert all(r.doc_id == "doc1" for r in results)


def test_chunk_store_get_chunk_and_metadata(chunk_store):
    chunk_id = chunk_store.add_chunk("doc1", make_chunk(0, start_time=100.0, end_time=130.0), unit_vector(0))

    chunk = chunk_store.get_chunk(chunk_id)
    assert chunk.content == "Chunk 0 content"
    assert chunk.metadata.start_time == 100.0
    assert chunk.metadata.end_time == 130.0
    assert chunk_store.get_chunk("not-a-uuid") is None


def test_chunk_store_delete_document(chunk_store):
    chunk_store.add_chunk("doc1", make_chunk(0), unit_vector(0))
    chunk_store.add_chunk("doc2", make_chunk(0), unit_vector(0))

    chunk_store.delete_document("doc1")

    assert chunk_store.get_chunks("doc1") == []
    assert len(chunk_store.get_chunks("doc2")) == 1
