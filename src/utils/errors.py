"""Exception hierarchy shared by the ingestion and chat paths."""

from typing import Optional


class RAGError(Exception):
    """Base class for all errors raised by the RAG core."""


class ConfigurationError(RAGError):
    """Missing or invalid configuration. Fatal, never retried."""


class IngestionError(RAGError):
    """An ingestion run could not complete.

    A failure after a partial upsert leaves the collection partially
    updated; there is no rollback.
    """

    SOURCE_UNREADABLE = "source_unreadable"
    NO_DOCUMENTS = "no_documents"
    NO_CHUNKS = "no_chunks"
    EMBEDDING_FAILED = "embedding_failed"
    STORE_WRITE_FAILED = "store_write_failed"

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason)


class NotInitializedError(RAGError):
    """Chat was requested before the orchestrator finished initializing."""


class TransientProviderError(RAGError):
    """Network or timeout failure from an embedding, store or LLM call."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")
