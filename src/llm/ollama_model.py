"""Chat completion through Ollama."""

from typing import Optional

import ollama

from src.rag.prompt import RenderedPrompt
from src.utils.config import Settings, get_settings
from src.utils.errors import TransientProviderError
from src.utils.logger import get_logger
from src.vectorstore.embeddings import OLLAMA_ERRORS

logger = get_logger("llm")


class OllamaChatModel:
    """Single request/response completion against an Ollama chat model."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[ollama.AsyncClient] = None
    ):
        self.settings = settings or get_settings()
        self.model = self.settings.ollama_model_name
        self.client = client or ollama.AsyncClient(
            host=self.settings.ollama_base_url,
            timeout=self.settings.request_timeout_seconds,
        )

    async def complete(self, prompt: RenderedPrompt) -> str:
        """
        Generate a response for the prompt.

        Returns:
            The model output, unmodified

        Raises:
            TransientProviderError: On network, timeout or model errors
        """
        logger.debug(f"Calling Ollama with model {self.model}")

        try:
            response = await self.client.chat(
                model=self.model,
                messages=prompt.to_messages(),
                options={
                    "temperature": self.settings.response_temperature,
                    "num_predict": self.settings.max_response_tokens,
                }
            )
        except OLLAMA_ERRORS as e:
            logger.error(f"LLM generation failed: {e}")
            raise TransientProviderError("ollama-chat", str(e)) from e

        response_text = response["message"]["content"] or ""
        logger.debug(f"LLM generated {len(response_text)} characters")
        return response_text
