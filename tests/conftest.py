"""In-process stand-ins for the embedding, vector store, LLM and loader."""

import math
import re
from typing import Dict, List, Optional, Sequence

import pytest

from src.rag.models import Chunk, CollectionConfig, Document
from src.rag.prompt import REFUSAL_TEXT, RenderedPrompt
from src.utils.errors import ConfigurationError, IngestionError, TransientProviderError


class FakeEmbedder:
    """Bag-of-words vectors over a vocabulary grown on first sight."""

    DIMENSIONS = 256

    def __init__(self, fail: bool = False, drop_last: bool = False):
        self.vocabulary: Dict[str, int] = {}
        self.fail = fail
        self.drop_last = drop_last
        self.calls: List[List[str]] = []

    def _vector(self, text: str) -> List[float]:
        vector = [0.0] * self.DIMENSIONS
        for word in re.findall(r"\w+", text.lower()):
            idx = self.vocabulary.setdefault(word, len(self.vocabulary) % self.DIMENSIONS)
            vector[idx] += 1.0
        return vector

    async def embed(self, text: str) -> List[float]:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise TransientProviderError("fake-embeddings", "unavailable")
        vectors = [self._vector(text) for text in texts]
        return vectors[:-1] if self.drop_last else vectors


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeVectorStore:
    """Single-collection store; only positive-similarity hits are returned."""

    def __init__(self, collection_name: str = "test_collection", exists: bool = False,
                 fail_on_upsert: bool = False, fail_on_connect: bool = False,
                 location: str = ":memory:"):
        self.collection_name = collection_name
        self._location = location
        self.exists = exists
        self.fail_on_upsert = fail_on_upsert
        self.fail_on_connect = fail_on_connect
        self.points: List[tuple] = []
        self.calls: List[str] = []

    @property
    def location(self) -> str:
        return self._location

    async def connect(self) -> None:
        self.calls.append("connect")
        if self.fail_on_connect:
            raise TransientProviderError("fake-store", "connection refused")

    async def bind_existing(self) -> Dict:
        self.calls.append("bind_existing")
        if not self.exists:
            raise ConfigurationError(f"Collection '{self.collection_name}' does not exist")
        return await self.get_collection_info()

    async def ensure_collection(self, vector_size: int) -> bool:
        self.calls.append("ensure_collection")
        created = not self.exists
        self.exists = True
        return created

    async def upsert(self, chunks: Sequence[Chunk], vectors: Sequence[Sequence[float]]) -> int:
        self.calls.append("upsert")
        if self.fail_on_upsert:
            raise TransientProviderError("fake-store", "write refused")
        self.points.extend(zip(chunks, vectors))
        return len(chunks)

    async def search(self, query_vector: Sequence[float], top_k: int) -> List[Chunk]:
        self.calls.append("search")
        scored = [(_cosine(query_vector, vector), chunk) for chunk, vector in self.points]
        scored = [item for item in scored if item[0] > 0]
        scored.sort(key=lambda item: item[0], reverse=True)
        return [chunk for _, chunk in scored[:top_k]]

    async def get_collection_info(self) -> Dict:
        return {"name": self.collection_name, "location": self._location,
                "points_count": len(self.points), "status": "green"}

    async def close(self) -> None:
        self.calls.append("close")


def context_of(prompt: RenderedPrompt) -> str:
    match = re.search(r"<Context>\n(.*)\n</Context>", prompt.system, re.DOTALL)
    return match.group(1) if match else ""


class EchoLLM:
    """Refuses on empty context, otherwise echoes the context back."""

    def __init__(self, answer: Optional[str] = None):
        self.answer = answer
        self.prompts: List[RenderedPrompt] = []

    async def complete(self, prompt: RenderedPrompt) -> str:
        self.prompts.append(prompt)
        if self.answer is not None:
            return self.answer
        context = context_of(prompt)
        if not context.strip():
            return REFUSAL_TEXT
        return f"According to the documents: {context}"


class FakeLoader:
    def __init__(self, documents: Optional[List[Document]] = None, error: Optional[Exception] = None):
        self.documents = documents or []
        self.error = error

    def load(self) -> List[Document]:
        if self.error:
            raise self.error
        return list(self.documents)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def vector_store():
    return FakeVectorStore()


@pytest.fixture
def echo_llm():
    return EchoLLM()


@pytest.fixture
def echo_llm_cls():
    return EchoLLM


@pytest.fixture
def collection():
    return CollectionConfig(name="test_collection", storage_location=":memory:")


@pytest.fixture
def paris_document():
    return Document(id="paris.txt", content="Paris is the capital of France.",
                    metadata={"title": "Paris"})


@pytest.fixture
def fake_loader():
    return FakeLoader


@pytest.fixture
def fake_store_cls():
    return FakeVectorStore


@pytest.fixture
def fake_embedder_cls():
    return FakeEmbedder


@pytest.fixture
def unreadable_source_error():
    return IngestionError(IngestionError.SOURCE_UNREADABLE, "disk gone")
