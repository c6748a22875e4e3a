import pytest
from qdrant_client import QdrantClient

from synapse.storage.document_store import JsonDocumentStore
from synapse.storage.file_store import LocalBlobStore
from synapse.storage.qdrant_store import QdrantChunkStore


@pytest.fixture
def document_store():
    return JsonDocumentStore()


@pytest.fixture
def chunk_store():
    return QdrantChunkStore(client=QdrantClient(":memory:"))


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "uploads"))
