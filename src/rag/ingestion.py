"""Data ingestion pipeline for RAG system."""

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, DefaultDict, Dict, List

from src.rag.chunker import DocumentChunker
from src.rag.document_loader import DocumentSource
from src.rag.models import Chunk, CollectionConfig, Document
from src.rag.retriever import EmbeddingProvider, VectorStoreGateway
from src.utils.errors import IngestionError, RAGError
from src.utils.logger import get_logger

logger = get_logger("ingestion")

# One lock per collection name; runs on the same collection queue up.
_collection_locks: DefaultDict[str, asyncio.Lock] = defaultdict(asyncio.Lock)


def collection_lock(collection_name: str) -> asyncio.Lock:
    """Exclusive section for writes to one collection."""
    return _collection_locks[collection_name]


@dataclass
class IngestionResult:
    """Outcome of a successful ingestion run."""
    chunk_count: int
    collection_location: str
    collection_name: str
    documents_loaded: int
    run_timestamp: str
    duration_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def summary(self) -> str:
        return (
            f"Ingestion complete! {self.chunk_count} chunks stored in collection "
            f"'{self.collection_name}' at {self.collection_location}."
        )


class IngestionPipeline:
    """load -> split -> embed -> upsert, strictly in that order.

    Re-running appends: earlier points are never deleted or replaced. A
    failure part-way through the upsert leaves the batches already
    written in place.
    """

    def __init__(
        self,
        loader: DocumentSource,
        chunker: DocumentChunker,
        embedder: EmbeddingProvider,
        vector_store: VectorStoreGateway,
        collection: CollectionConfig
    ):
        self.loader = loader
        self.chunker = chunker
        self.embedder = embedder
        self.vector_store = vector_store
        self.collection = collection

    async def run(self) -> IngestionResult:
        """
        Run the complete ingestion pipeline.

        Returns:
            IngestionResult with counts and collection location

        Raises:
            IngestionError: If no documents/chunks were produced or a store write failed
            TransientProviderError: If the embedding provider or vector store is unreachable
        """
        async with collection_lock(self.collection.name):
            return await self._run()

    async def _run(self) -> IngestionResult:
        start_time = datetime.now()
        started = time.monotonic()
        logger.info("=" * 70)
        logger.info("Starting Data Ingestion Pipeline")
        logger.info(f"Collection: {self.collection.name} at {self.collection.storage_location}")
        logger.info("=" * 70)

        documents = await self._load_documents()
        chunks = self._chunk_documents(documents)
        vectors = await self._embed_chunks(chunks)
        stored = await self._store_chunks(chunks, vectors)

        result = IngestionResult(
            chunk_count=stored,
            collection_location=self.collection.storage_location,
            collection_name=self.collection.name,
            documents_loaded=len(documents),
            run_timestamp=start_time.isoformat(),
            duration_seconds=time.monotonic() - started,
        )

        logger.info("=" * 70)
        logger.info("Ingestion Pipeline Completed Successfully")
        logger.info(f"Documents loaded: {result.documents_loaded}")
        logger.info(f"Chunks stored: {result.chunk_count}")
        logger.info(f"Duration: {result.duration_seconds:.2f} seconds")
        logger.info("=" * 70)

        return result

    async def _load_documents(self) -> List[Document]:
        """Step 1: Load documents from the source."""
        logger.info("Step 1: Loading documents...")

        try:
            documents = await asyncio.to_thread(self.loader.load)
        except IngestionError:
            raise
        except Exception as e:
            logger.error(f"Failed to load documents: {e}")
            raise IngestionError(IngestionError.SOURCE_UNREADABLE, str(e)) from e

        logger.info(f"Total documents loaded: {len(documents)}")

        if not documents:
            raise IngestionError(
                IngestionError.NO_DOCUMENTS, "No documents were loaded. Cannot continue."
            )
        return documents

    def _chunk_documents(self, documents: List[Document]) -> List[Chunk]:
        """Step 2: Chunk documents into smaller pieces."""
        logger.info("Step 2: Chunking documents...")

        chunks = self.chunker.chunk_documents(documents)

        if not chunks:
            raise IngestionError(
                IngestionError.NO_CHUNKS, "Documents produced no chunks. Cannot continue."
            )

        chunk_lengths = [len(chunk.text) for chunk in chunks]
        logger.info("Chunk statistics:")
        logger.info(f"  Average length: {sum(chunk_lengths) / len(chunk_lengths):.0f} characters")
        logger.info(f"  Min length: {min(chunk_lengths)} characters")
        logger.info(f"  Max length: {max(chunk_lengths)} characters")

        return chunks

    async def _embed_chunks(self, chunks: List[Chunk]) -> List[List[float]]:
        """Step 3: Compute an embedding for every chunk.

        Provider outages propagate as TransientProviderError.
        """
        logger.info(f"Step 3: Embedding {len(chunks)} chunks...")

        vectors = await self.embedder.embed_batch([chunk.text for chunk in chunks])

        if len(vectors) != len(chunks) or not all(vectors):
            raise IngestionError(
                IngestionError.EMBEDDING_FAILED,
                f"Expected {len(chunks)} non-empty vectors, got {len(vectors)}"
            )
        return vectors

    async def _store_chunks(self, chunks: List[Chunk], vectors: List[List[float]]) -> int:
        """Step 4: Store chunks in vector database.

        Connect and collection setup failures propagate unchanged; only a
        failed write becomes IngestionError(store_write_failed).
        """
        logger.info("Step 4: Storing chunks in vector database...")

        await self.vector_store.connect()
        await self.vector_store.ensure_collection(vector_size=len(vectors[0]))

        try:
            stored = await self.vector_store.upsert(chunks, vectors)
        except RAGError as e:
            logger.error(f"Failed to store chunks: {e}")
            raise IngestionError(IngestionError.STORE_WRITE_FAILED, str(e)) from e

        logger.info(f"Successfully stored {stored} chunks in vector database")
        return stored
