import logging
import uuid
from typing import List, Optional
from qdrant_client import QdrantClient
from qdrant_client.http import models as rest
from synapse.models.chunk import ChunkMetadata, ContentChunk, StoredChunk
from synapse.storage.base import ChunkStore
from synapse.config.settings import settings

logger = logging.getLogger(__name__)

_SCROLL_PAGE = 256

def build_client() -> QdrantClient:
    """QdrantClient for the configured mode (local path, in-memory or cloud)."""
    config = settings.qdrant
    if config.mode == "memory":
        return QdrantClient(":memory:")
    if config.mode == "cloud":
        return QdrantClient(url=config.cloud_url, api_key=settings.qdrant_api_key or None)
    return QdrantClient(path=config.local_path)


def _doc_filter(doc_id: str) -> rest.Filter:
    return rest.Filter(
        must=[
            rest.FieldCondition(
                key="doc_id",
                match=rest.MatchValue(value=doc_id)
            )
        ]
    )


class QdrantChunkStore(ChunkStore):
    """
    Implements ChunkStore on a single Qdrant collection.
    Chunk text, index and metadata live in the point payload, so reads need no second store.
    """

    def __init__(self, client: Optional[QdrantClient] = None):
        self.config = settings.qdrant
        self.client = client or build_client()
        self._ensure_collection()

    def _ensure_collection(self):
        if not self.collection_exists():
            logger.info(f"Creating Qdrant collection: {self.config.collection_name}")
            self.client.create_collection(
                collection_name=self.config.collection_name,
                vectors_config=rest.VectorParams(
                    size=settings.embedding.vector_dim,
                    distance=rest.Distance.COSINE
                ),
                hnsw_config=rest.HnswConfigDiff(
                    m=self.config.hnsw_m,
                    ef_construct=self.config.hnsw_ef_construct
                )
            )
            # Every read is scoped to one document
            self.client.create_payload_index(
                collection_name=self.config.collection_name,
                field_name="doc_id",
                field_schema=rest.PayloadSchemaType.KEYWORD
            )

    def collection_exists(self) -> bool:
        collections = self.client.get_collections().collections
        return any(c.name == self.config.collection_name for c in collections)

    def add_chunk(self, doc_id: str, chunk: ContentChunk, embedding: List[float]) -> str:
        chunk_id = str(uuid.uuid4())
        self.client.upsert(
            collection_name=self.config.collection_name,
            points=[rest.PointStruct(
                id=chunk_id,
                vector=embedding,
                payload={
                    "doc_id": doc_id,
                    "index": chunk.index,
                    "content": chunk.content,
                    "metadata": chunk.metadata.model_dump()
                }
            )]
        )
        return chunk_id

    def get_chunks(self, doc_id: str) -> List[StoredChunk]:
        points = []
        offset = None
        while True:
            page, offset = self.client.scroll(
                collection_name=self.config.collection_name,
                scroll_filter=_doc_filter(doc_id),
                limit=_SCROLL_PAGE,
                offset=offset,
                with_payload=True,
                with_vectors=False
            )
            points.extend(page)
            if offset is None:
                break

        chunks = [self._to_chunk(p.id, p.payload) for p in points]
        return sorted(chunks, key=lambda c: c.index)

    def get_chunk(self, chunk_id: str) -> Optional[StoredChunk]:
        try:
            uuid.UUID(chunk_id)
        except ValueError:
            return None

        results = self.client.retrieve(
            collection_name=self.config.collection_name,
            ids=[chunk_id],
            with_payload=True
        )
        if not results:
            return None
        return self._to_chunk(results[0].id, results[0].payload)

    def search(self, doc_id: str, vector: List[float], limit: int) -> List[StoredChunk]:
        results = self.client.query_points(
            collection_name=self.config.collection_name,
            query=vector,
            limit=limit,
            query_filter=_doc_filter(doc_id),
            with_payload=True,
            search_params=rest.SearchParams(
                hnsw_ef=self.config.hnsw_ef
            )
        ).points

        return [self._to_chunk(r.id, r.payload, score=r.score) for r in results]

    def delete_document(self, doc_id: str) -> None:
        self.client.delete(
            collection_name=self.config.collection_name,
            points_selector=rest.FilterSelector(
                filter=_doc_filter(doc_id)
            )
        )

    @staticmethod
    def _to_chunk(point_id, payload: dict, score: Optional[float] = None) -> StoredChunk:
        return StoredChunk(
            chunk_id=str(point_id),
            doc_id=payload["doc_id"],
            index=payload["index"],
            content=payload["content"],
            metadata=ChunkMetadata(**payload["metadata"]),
            score=score
        )
