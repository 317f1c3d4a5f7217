"""Tests for VectorStoreRetriever."""

import asyncio

import pytest

from src.rag.models import Chunk
from src.rag.retriever import VectorStoreRetriever
from src.utils.errors import NotInitializedError


def seed(store, embedder, texts):
    chunks = [Chunk(source_document_id="doc", text=t, sequence_index=i) for i, t in enumerate(texts)]
    vectors = asyncio.run(embedder.embed_batch(texts))
    asyncio.run(store.upsert(chunks, vectors))
    store.exists = True
    return chunks


class TestVectorStoreRetriever:

    def test_retrieve_requires_initialize(self, vector_store, embedder):
        retriever = VectorStoreRetriever(embedder, vector_store, top_k=2)

        with pytest.raises(NotInitializedError):
            asyncio.run(retriever.retrieve("q"))

    def test_returns_ranked_top_k(self, vector_store, embedder):
        seed(vector_store, embedder, [
            "cats sleep all day",
            "dogs chase cats",
            "trains run on time",
        ])
        retriever = VectorStoreRetriever(embedder, vector_store, top_k=2)
        asyncio.run(retriever.initialize())

        results = asyncio.run(retriever.retrieve("do cats sleep"))

        assert len(results) == 2
        assert results[0].text == "cats sleep all day"

    def test_no_match_returns_empty_list(self, vector_store, embedder):
        seed(vector_store, embedder, ["cats sleep all day"])
        retriever = VectorStoreRetriever(embedder, vector_store, top_k=4)
        asyncio.run(retriever.initialize())

        assert asyncio.run(retriever.retrieve("quantum chromodynamics")) == []

    def test_health_check(self, vector_store, embedder):
        retriever = VectorStoreRetriever(embedder, vector_store, top_k=4)
        assert asyncio.run(retriever.health_check())["status"] == "not_initialized"

        seed(vector_store, embedder, ["one"])
        asyncio.run(retriever.initialize())
        health = asyncio.run(retriever.health_check())

        assert health["healthy"] is True
        assert health["documents"] == 1
