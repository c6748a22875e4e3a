import logging
from typing import List
from sentence_transformers import SentenceTransformer
from synapse.core.errors import EmbeddingServiceError
from synapse.config.settings import settings

logger = logging.getLogger(__name__)

class Embedder:
    """
    Embedding service backed by a sentence-transformers model.
    - Model is loaded once per process and shared across instances.
    - embed_many is a single batched call whose output order matches its input.
    """

    _model = None

    def __init__(self):
        self.config = settings.embedding
        self._load_model()

    def _load_model(self):
        """Loads the sentence-transformer model onto CPU."""
        if Embedder._model is None:
            logger.info(f"Loading embedding model: {self.config.model_name}...")
            try:
                Embedder._model = SentenceTransformer(self.config.model_name, device="cpu")
            except Exception as e:
                raise EmbeddingServiceError(f"Could not load embedding model {self.config.model_name}: {e}") from e
        self.model = Embedder._model

    def embed_many(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            embeddings = self.model.encode(
                texts,
                batch_size=self.config.batch_size,
                show_progress_bar=False,
                normalize_embeddings=self.config.normalise
            )
        except Exception as e:
            raise EmbeddingServiceError(f"Embedding {len(texts)} texts failed: {e}") from e

        if len(embeddings) != len(texts):
            raise EmbeddingServiceError(f"Expected {len(texts)} embeddings, got {len(embeddings)}")
        return [e.tolist() for e in embeddings]

    def embed(self, text: str) -> List[float]:
        """
        Embeds a single query string.
        BGE models expect the retrieval prefix on queries, not on passages.
        """
        prefixed_query = f"{self.config.query_prefix}{text}"

        try:
            embedding = self.model.encode(
                prefixed_query,
                normalize_embeddings=self.config.normalise
            )
        except Exception as e:
            raise EmbeddingServiceError(f"Query embedding failed: {e}") from e

        return embedding.tolist()
