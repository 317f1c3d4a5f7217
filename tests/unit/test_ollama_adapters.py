"""Tests for the Ollama embedding and chat adapters with a stub client."""

import asyncio

import httpx
import ollama
import pytest

from src.llm.ollama_model import OllamaChatModel
from src.rag.prompt import RenderedPrompt
from src.utils.config import Settings
from src.utils.errors import TransientProviderError
from src.vectorstore.embeddings import OllamaEmbeddingProvider


class StubOllamaClient:
    """Records requests and answers like ollama.AsyncClient."""

    def __init__(self, error=None, drop_embedding=False, content="Paris."):
        self.error = error
        self.drop_embedding = drop_embedding
        self.content = content
        self.embed_calls = []
        self.chat_calls = []

    async def embed(self, model, input):
        self.embed_calls.append({"model": model, "input": list(input)})
        if self.error:
            raise self.error
        embeddings = [[float(len(text)), 1.0] for text in input]
        if self.drop_embedding:
            embeddings = embeddings[:-1]
        return {"embeddings": embeddings}

    async def chat(self, model, messages, options):
        self.chat_calls.append({"model": model, "messages": messages, "options": options})
        if self.error:
            raise self.error
        return {"message": {"role": "assistant", "content": self.content}}


@pytest.fixture
def settings():
    return Settings(
        ollama_embedding_model="test-embed",
        ollama_model_name="test-chat",
        response_temperature=0.0,
        max_response_tokens=128,
    )


class TestOllamaEmbeddingProvider:

    def test_batches_keep_order(self, settings):
        client = StubOllamaClient()
        provider = OllamaEmbeddingProvider(settings=settings, client=client, batch_size=2)

        vectors = asyncio.run(provider.embed_batch(["a", "bb", "ccc", "dddd", "eeeee"]))

        assert [len(call["input"]) for call in client.embed_calls] == [2, 2, 1]
        assert all(call["model"] == "test-embed" for call in client.embed_calls)
        assert [vector[0] for vector in vectors] == [1.0, 2.0, 3.0, 4.0, 5.0]

    def test_single_text(self, settings):
        provider = OllamaEmbeddingProvider(settings=settings, client=StubOllamaClient())

        assert asyncio.run(provider.embed("abc")) == [3.0, 1.0]

    def test_embedding_count_mismatch(self, settings):
        provider = OllamaEmbeddingProvider(
            settings=settings, client=StubOllamaClient(drop_embedding=True)
        )

        with pytest.raises(TransientProviderError) as excinfo:
            asyncio.run(provider.embed_batch(["a", "b"]))

        assert "expected 2 embeddings, got 1" in str(excinfo.value)

    @pytest.mark.parametrize("error", [
        ollama.ResponseError("model 'test-embed' not found", 404),
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
    ])
    def test_client_errors_become_transient(self, settings, error):
        provider = OllamaEmbeddingProvider(settings=settings, client=StubOllamaClient(error=error))

        with pytest.raises(TransientProviderError) as excinfo:
            asyncio.run(provider.embed_batch(["a"]))

        assert excinfo.value.provider == "ollama-embeddings"
        assert excinfo.value.__cause__ is error


class TestOllamaChatModel:

    def test_answer_is_returned_unmodified(self, settings):
        client = StubOllamaClient(content="  Paris is the capital.\n")
        model = OllamaChatModel(settings=settings, client=client)
        prompt = RenderedPrompt(system="Answer from the context.", user="What is the capital?")

        answer = asyncio.run(model.complete(prompt))

        assert answer == "  Paris is the capital.\n"
        call = client.chat_calls[0]
        assert call["model"] == "test-chat"
        assert call["messages"] == prompt.to_messages()
        assert call["options"] == {"temperature": 0.0, "num_predict": 128}

    def test_empty_content_is_empty_string(self, settings):
        model = OllamaChatModel(settings=settings, client=StubOllamaClient(content=None))

        assert asyncio.run(model.complete(RenderedPrompt(system="s", user="u"))) == ""

    @pytest.mark.parametrize("error", [
        ollama.ResponseError("server overloaded", 503),
        httpx.ConnectError("connection refused"),
    ])
    def test_client_errors_become_transient(self, settings, error):
        model = OllamaChatModel(settings=settings, client=StubOllamaClient(error=error))

        with pytest.raises(TransientProviderError) as excinfo:
            asyncio.run(model.complete(RenderedPrompt(system="s", user="u")))

        assert excinfo.value.provider == "ollama-chat"
        assert excinfo.value.__cause__ is error
