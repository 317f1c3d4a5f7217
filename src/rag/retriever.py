"""RAG retrieval over the vector store."""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from src.rag.models import Chunk
from src.utils.config import get_settings
from src.utils.errors import NotInitializedError
from src.utils.logger import get_logger

logger = get_logger("retriever")


class EmbeddingProvider(Protocol):
    async def embed(self, text: str) -> List[float]:
        ...

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        ...


class VectorStoreGateway(Protocol):
    collection_name: str

    @property
    def location(self) -> str:
        ...

    async def connect(self) -> None:
        ...

    async def bind_existing(self) -> Dict[str, Any]:
        ...

    async def ensure_collection(self, vector_size: int) -> bool:
        ...

    async def upsert(self, chunks: Sequence[Chunk], vectors: Sequence[Sequence[float]]) -> int:
        ...

    async def search(self, query_vector: Sequence[float], top_k: int) -> List[Chunk]:
        ...

    async def get_collection_info(self) -> Dict[str, Any]:
        ...

    async def close(self) -> None:
        ...


class VectorStoreRetriever:
    """Maps a question to the top_k most similar chunks."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        vector_store: VectorStoreGateway,
        top_k: Optional[int] = None
    ):
        """
        Initialize RAG retriever.

        Args:
            embedder: Embedding provider; must be the one used at ingestion
            vector_store: Store bound to the deployment's collection
            top_k: Number of chunks to return (default from settings)
        """
        self.embedder = embedder
        self.vector_store = vector_store
        self.top_k = top_k or get_settings().rag_top_k_results
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        """
        Bind to the existing collection. Safe to call more than once.

        Raises:
            ConfigurationError: If the collection does not exist
            TransientProviderError: If the store cannot be reached
        """
        if self._ready:
            return

        logger.info("Initializing RAG retriever...")
        await self.vector_store.bind_existing()
        self._ready = True
        logger.info("RAG retriever initialized")

    async def retrieve(self, question: str) -> List[Chunk]:
        """
        Retrieve relevant chunks for a question.

        Returns:
            Chunks in rank order; may be empty
        """
        if not self._ready:
            raise NotInitializedError("Retriever is not initialized")

        logger.info(f"Retrieving documents for query: '{question[:50]}...'")

        query_vector = await self.embedder.embed(question)
        chunks = await self.vector_store.search(query_vector, self.top_k)

        if not chunks:
            logger.warning(f"No documents found for query: '{question[:50]}...'")
        else:
            logger.info(
                f"Retrieved {len(chunks)} chunks, "
                f"context length: {sum(len(c.text) for c in chunks)} characters"
            )

        return chunks

    async def health_check(self) -> Dict[str, Any]:
        """
        Check health of RAG retriever.

        Returns:
            Dictionary with health status
        """
        if not self._ready:
            return {
                "status": "not_initialized",
                "healthy": False
            }

        try:
            info = await self.vector_store.get_collection_info()
        except Exception as e:
            return {
                "status": "error",
                "healthy": False,
                "error": str(e)
            }

        return {
            "status": "healthy",
            "healthy": True,
            "collection": info["name"],
            "documents": info["points_count"],
        }
