from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel
import yaml
import os

class ChunkingConfig(BaseModel):
    max_chunk_size: int = 1500
    min_chunk_size: int = 100
    overlap: int = 200
    sentence_enders: list[str] = [". ", "! ", "? ", ".\n", "!\n", "?\n"]

class EmbeddingConfig(BaseModel):
    model_name: str = "BAAI/bge-small-en-v1.5"
    batch_size: int = 32
    vector_dim: int = 384
    query_prefix: str = "Represent this sentence for searching relevant passages: "
    normalise: bool = True

class QdrantConfig(BaseModel):
    mode: str = "local"              # "local" | "memory" | "cloud"
    local_path: str = "./data/qdrant_store"
    cloud_url: str = ""
    collection_name: str = "document_chunks"
    hnsw_m: int = 16
    hnsw_ef_construct: int = 100
    hnsw_ef: int = 64

class RetrievalConfig(BaseModel):
    top_k: int = 5
    history_limit: int = 10
    preview_chars: int = 200

class LLMConfig(BaseModel):
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "openai/gpt-4-turbo"
    max_tokens: int = 1000
    temperature: float = 0.7
    timeout: float = 120.0

class TranscriptionConfig(BaseModel):
    base_url: str = "https://api.deepgram.com/v1"
    model: str = "nova-2"
    language: str = "en"
    timeout: float = 600.0

class StorageConfig(BaseModel):
    uploads_path: str = "./data/uploads"
    records_path: str = "./data/records.json"

class QuizDifficulty(BaseModel):
    description: str
    question_count: int

class StudyConfig(BaseModel):
    summary_max_chunks: int = 20
    teach_me_max_chunks: int = 10
    flashcard_count: int = 10
    quiz_chunk_ratio: float = 0.7
    quiz_difficulties: dict[str, QuizDifficulty] = {
        "easy": QuizDifficulty(description="Basic recall and understanding", question_count=5),
        "medium": QuizDifficulty(description="Application and analysis", question_count=8),
        "hard": QuizDifficulty(description="Synthesis and evaluation", question_count=10),
    }

class AppSettings(BaseSettings):
    chunking: ChunkingConfig = ChunkingConfig()
    embedding: EmbeddingConfig = EmbeddingConfig()
    qdrant: QdrantConfig = QdrantConfig()
    retrieval: RetrievalConfig = RetrievalConfig()
    llm: LLMConfig = LLMConfig()
    transcription: TranscriptionConfig = TranscriptionConfig()
    storage: StorageConfig = StorageConfig()
    study: StudyConfig = StudyConfig()
    openrouter_api_key: str = ""
    deepgram_api_key: str = ""
    qdrant_api_key: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

def load_settings(config_path: str = "synapse/config/config.yaml") -> AppSettings:
    """Loads settings from config.yaml and applies env overrides."""

    paths_to_try = [
        config_path,
        "config.yaml",
        "config/config.yaml",
        os.path.join(os.path.dirname(__file__), "config.yaml")
    ]

    yaml_data = {}
    for path in paths_to_try:
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
            break

    # Map yaml sections onto the sub-models; secrets only come from env
    return AppSettings(
        chunking=ChunkingConfig(**yaml_data.get("chunking", {})),
        embedding=EmbeddingConfig(**yaml_data.get("embedding", {})),
        qdrant=QdrantConfig(**yaml_data.get("qdrant", {})),
        retrieval=RetrievalConfig(**yaml_data.get("retrieval", {})),
        llm=LLMConfig(**yaml_data.get("llm", {})),
        transcription=TranscriptionConfig(**yaml_data.get("transcription", {})),
        storage=StorageConfig(**yaml_data.get("storage", {})),
        study=StudyConfig(**yaml_data.get("study", {}))
    )

# Global settings instance
settings = load_settings()
