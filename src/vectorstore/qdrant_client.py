"""Qdrant vector database client implementation."""

import uuid
from typing import Any, Dict, List, Optional, Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, VectorParams, PointStruct

from src.rag.models import Chunk, CollectionConfig
from src.utils.config import Settings, get_settings
from src.utils.errors import ConfigurationError, TransientProviderError
from src.utils.logger import get_logger

logger = get_logger("qdrant")


def create_async_client(location: str, timeout: int) -> AsyncQdrantClient:
    """Build a client for a server URL, ":memory:", or a local storage path."""
    if location == ":memory:":
        return AsyncQdrantClient(location=":memory:")
    if location.startswith(("http://", "https://")):
        return AsyncQdrantClient(url=location, timeout=timeout)
    return AsyncQdrantClient(path=location)


class QdrantVectorStore:
    """Qdrant-backed store of (chunk, vector) pairs for one collection."""

    def __init__(
        self,
        collection: Optional[CollectionConfig] = None,
        settings: Optional[Settings] = None,
        client: Optional[AsyncQdrantClient] = None
    ):
        """
        Initialize Qdrant store configuration.

        Args:
            collection: Target collection (default from settings)
            settings: Application settings
            client: Pre-built client, mainly for tests
        """
        self.settings = settings or get_settings()
        self.collection = collection or self.settings.collection_config()
        self.collection_name = self.collection.name
        self.batch_size = self.settings.rag_upsert_batch_size
        self.client: Optional[AsyncQdrantClient] = client

    @property
    def location(self) -> str:
        return self.collection.storage_location

    async def connect(self) -> None:
        """
        Connect to Qdrant.

        Raises:
            TransientProviderError: If the server cannot be reached
        """
        if self.client is None:
            logger.info(f"Connecting to Qdrant at {self.location}")
            self.client = create_async_client(
                self.location, self.settings.qdrant_timeout_seconds
            )

        try:
            collections = await self.client.get_collections()
        except Exception as e:
            logger.error(f"Failed to connect to Qdrant: {e}")
            raise TransientProviderError("qdrant", f"connect failed: {e}") from e

        logger.info(f"Connected to Qdrant. Found {len(collections.collections)} collections.")

    async def bind_existing(self) -> Dict[str, Any]:
        """
        Bind to a collection that must already exist.

        Returns:
            Collection info

        Raises:
            ConfigurationError: If the collection does not exist
        """
        await self.connect()
        if not await self._collection_exists():
            raise ConfigurationError(
                f"Collection '{self.collection_name}' does not exist at {self.location}"
            )

        info = await self.get_collection_info()
        logger.info(
            f"Bound to collection: {info['name']} ({info['points_count']} points)"
        )
        return info

    async def ensure_collection(self, vector_size: int) -> bool:
        """
        Create collection if it doesn't exist.

        Args:
            vector_size: Dimension of embedding vectors

        Returns:
            True if the collection was created, False if it already existed
        """
        client = self._require_client()

        if await self._collection_exists():
            logger.info(f"Collection '{self.collection_name}' already exists")
            return False

        logger.info(f"Creating collection '{self.collection_name}' with vector size {vector_size}")
        try:
            await client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE)
            )
        except Exception as e:
            logger.error(f"Failed to create collection: {e}")
            raise TransientProviderError("qdrant", f"create collection failed: {e}") from e

        return True

    async def upsert(self, chunks: Sequence[Chunk], vectors: Sequence[Sequence[float]]) -> int:
        """
        Store chunks with their vectors, batch_size points per request.

        Every point gets a fresh id, so re-ingesting the same content
        appends duplicates instead of replacing earlier points.

        Returns:
            Number of points written

        Raises:
            TransientProviderError: If a batch write fails; earlier batches stay written
        """
        client = self._require_client()

        if len(chunks) != len(vectors):
            raise ValueError("chunks and vectors must have the same length")

        points = [
            PointStruct(id=str(uuid.uuid4()), vector=list(vector), payload=chunk.to_payload())
            for chunk, vector in zip(chunks, vectors)
        ]

        stored = 0
        for start in range(0, len(points), self.batch_size):
            batch = points[start:start + self.batch_size]
            try:
                await client.upsert(collection_name=self.collection_name, points=batch, wait=True)
            except Exception as e:
                logger.error(f"Failed to store batch {start // self.batch_size + 1}: {e}")
                raise TransientProviderError(
                    "qdrant", f"upsert failed after {stored} points: {e}"
                ) from e
            stored += len(batch)
            logger.info(f"Stored {stored}/{len(points)} points")

        return stored

    async def search(self, query_vector: Sequence[float], top_k: int) -> List[Chunk]:
        """
        Find the chunks nearest to query_vector.

        Returns:
            Chunks in rank order, each carrying its similarity score
        """
        client = self._require_client()

        try:
            response = await client.query_points(
                collection_name=self.collection_name,
                query=list(query_vector),
                limit=top_k,
                with_payload=True,
            )
        except Exception as e:
            logger.error(f"Search failed: {e}")
            raise TransientProviderError("qdrant", f"search failed: {e}") from e

        results = [
            Chunk.from_payload(point.payload or {}, score=point.score)
            for point in response.points
        ]
        logger.debug(f"Found {len(results)} results")
        return results

    async def get_collection_info(self) -> Dict[str, Any]:
        """Get information about the collection."""
        client = self._require_client()

        try:
            info = await client.get_collection(collection_name=self.collection_name)
        except Exception as e:
            logger.error(f"Failed to get collection info: {e}")
            raise TransientProviderError("qdrant", f"collection info failed: {e}") from e

        return {
            "name": self.collection_name,
            "location": self.location,
            "points_count": info.points_count,
            "status": str(info.status),
        }

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None

    async def _collection_exists(self) -> bool:
        client = self._require_client()
        try:
            return await client.collection_exists(collection_name=self.collection_name)
        except Exception as e:
            raise TransientProviderError("qdrant", f"collection lookup failed: {e}") from e

    def _require_client(self) -> AsyncQdrantClient:
        if self.client is None:
            raise ConfigurationError("Qdrant client not connected; call connect() first")
        return self.client
