"""Configuration management using environment variables and pydantic."""

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.rag.models import CollectionConfig
from src.utils.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Ollama Configuration
    ollama_base_url: str = "http://localhost:11434"
    ollama_model_name: str = "llama3.2:3b"
    ollama_embedding_model: str = "mxbai-embed-large"

    # Vector Database Configuration
    # Either a URL, ":memory:", or a local directory for embedded storage
    qdrant_location: str = "http://localhost:6333"
    qdrant_collection_name: str = "test_collection_name"
    qdrant_timeout_seconds: int = 10

    # RAG Configuration (sizes are in characters)
    rag_chunk_size: int = 1000
    rag_chunk_overlap: int = 200
    rag_top_k_results: int = 4
    rag_upsert_batch_size: int = 100

    # Response Configuration
    max_response_tokens: int = 500
    response_temperature: float = 0.0
    request_timeout_seconds: float = 60.0

    # Document Source Configuration
    docs_path: str = "./documents"
    docs_format: Literal["txt", "markdown", "json", "pdf"] = "txt"
    docs_recursive: bool = True

    # Logging Configuration
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file_path: str = "./logs/rag.log"
    log_max_size_mb: int = 100
    log_backup_count: int = 5

    def collection_config(self) -> CollectionConfig:
        """Collection identity shared by the ingestion and query paths."""
        return CollectionConfig(
            name=self.qdrant_collection_name,
            storage_location=self.qdrant_location,
        )

    def validate_chunking(self) -> None:
        """Raise ConfigurationError if the chunk settings are unusable."""
        validate_chunk_params(self.rag_chunk_size, self.rag_chunk_overlap)


def validate_chunk_params(chunk_size: int, chunk_overlap: int) -> None:
    """Check that chunk_size/chunk_overlap form a valid splitting config."""
    if chunk_size <= 0:
        raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap <= 0:
        raise ConfigurationError(f"chunk_overlap must be positive, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ConfigurationError("chunk_overlap must be less than chunk_size")


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
