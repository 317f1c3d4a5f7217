"""
End-to-end tests for the complete RAG pipeline.

Tests the full workflow with in-process providers:
1. Document ingestion (load → chunk → embed → store)
2. Retrieval (question → search → ranked chunks)
3. Generation (chunks → prompt → LLM → answer)
"""

import asyncio

import pytest

from src.rag.chunker import DocumentChunker
from src.rag.ingestion import IngestionPipeline
from src.rag.orchestrator import ChatOrchestrator
from src.rag.prompt import REFUSAL_TEXT
from src.rag.retriever import VectorStoreRetriever
from src.rag.state_machine import RAGStateMachine
from src.utils.errors import IngestionError


def build_system(loader, embedder, store, llm, collection):
    pipeline = IngestionPipeline(
        loader=loader,
        chunker=DocumentChunker(chunk_size=1000, chunk_overlap=200),
        embedder=embedder,
        vector_store=store,
        collection=collection,
    )
    retriever = VectorStoreRetriever(embedder, store, top_k=4)
    orchestrator = ChatOrchestrator(retriever, RAGStateMachine(retriever, llm))
    return pipeline, orchestrator


def test_capital_question_is_answered_from_ingested_chunk(
    fake_loader, paris_document, embedder, vector_store, echo_llm, collection
):
    pipeline, orchestrator = build_system(
        fake_loader([paris_document]), embedder, vector_store, echo_llm, collection
    )

    async def scenario():
        result = await pipeline.run()
        await orchestrator.initialize()
        answer = await orchestrator.chat("What is the capital of France?")
        return result, answer

    result, answer = asyncio.run(scenario())

    assert result.chunk_count == 1
    assert "Paris" in answer
    assert "Paris is the capital of France." in echo_llm.prompts[0].system


def test_empty_document_set_fails_and_writes_nothing(
    fake_loader, embedder, vector_store, echo_llm, collection
):
    pipeline, _ = build_system(fake_loader([]), embedder, vector_store, echo_llm, collection)

    with pytest.raises(IngestionError):
        asyncio.run(pipeline.run())

    assert vector_store.points == []
    assert "upsert" not in vector_store.calls


def test_irrelevant_question_returns_refusal_verbatim(
    fake_loader, paris_document, embedder, vector_store, echo_llm, collection
):
    pipeline, orchestrator = build_system(
        fake_loader([paris_document]), embedder, vector_store, echo_llm, collection
    )

    async def scenario():
        await pipeline.run()
        await orchestrator.initialize()
        return await orchestrator.chat("irrelevant question")

    answer = asyncio.run(scenario())

    assert answer == REFUSAL_TEXT


def test_concurrent_chats_do_not_share_state(
    fake_loader, paris_document, embedder, vector_store, echo_llm, collection
):
    pipeline, orchestrator = build_system(
        fake_loader([paris_document]), embedder, vector_store, echo_llm, collection
    )

    async def scenario():
        await pipeline.run()
        await orchestrator.initialize()
        return await asyncio.gather(
            orchestrator.chat("What is the capital of France?"),
            orchestrator.chat("irrelevant question"),
        )

    relevant, irrelevant = asyncio.run(scenario())

    assert "Paris" in relevant
    assert irrelevant == REFUSAL_TEXT
