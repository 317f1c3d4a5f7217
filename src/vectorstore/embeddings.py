"""Embedding generation through Ollama."""

import asyncio
from typing import List, Optional, Sequence

import httpx
import ollama

from src.utils.config import Settings, get_settings
from src.utils.errors import TransientProviderError
from src.utils.logger import get_logger

logger = get_logger("embeddings")

# Client-library failures that mean "try again later"
OLLAMA_ERRORS = (
    ollama.ResponseError,
    ollama.RequestError,
    httpx.HTTPError,
    ConnectionError,
    asyncio.TimeoutError,
)


class OllamaEmbeddingProvider:
    """Turns text into vectors with an Ollama embedding model."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[ollama.AsyncClient] = None,
        batch_size: int = 32
    ):
        self.settings = settings or get_settings()
        self.model = self.settings.ollama_embedding_model
        self.batch_size = batch_size
        self.client = client or ollama.AsyncClient(
            host=self.settings.ollama_base_url,
            timeout=self.settings.request_timeout_seconds,
        )

    async def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed texts in order, batch_size texts per request.

        Raises:
            TransientProviderError: On network, timeout or model errors
        """
        vectors: List[List[float]] = []

        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start:start + self.batch_size])
            logger.debug(f"Generating {len(batch)} embeddings with {self.model}")

            try:
                response = await self.client.embed(model=self.model, input=batch)
            except OLLAMA_ERRORS as e:
                logger.error(f"Failed to generate embeddings: {e}")
                raise TransientProviderError("ollama-embeddings", str(e)) from e

            embeddings = response["embeddings"]
            if len(embeddings) != len(batch):
                raise TransientProviderError(
                    "ollama-embeddings",
                    f"expected {len(batch)} embeddings, got {len(embeddings)}"
                )
            vectors.extend(list(vector) for vector in embeddings)

        return vectors
