"""Chat entry point: owns the retriever and the compiled RAG graph."""

import asyncio
from typing import Optional

from src.rag.retriever import VectorStoreRetriever
from src.rag.state_machine import CompiledRAGGraph, InitState, RAGStateMachine
from src.utils.errors import NotInitializedError, TransientProviderError
from src.utils.logger import get_logger

logger = get_logger("orchestrator")

NO_ANSWER_PLACEHOLDER = "Could not generate an answer."


class ChatOrchestrator:
    """Answers questions once ``initialize()`` has completed.

    Startup is two-phase: bind the retriever to the existing collection,
    then compile the graph. ``chat`` refuses to run until both are done.
    """

    def __init__(
        self,
        retriever: VectorStoreRetriever,
        state_machine: RAGStateMachine,
        timeout_seconds: Optional[float] = None
    ):
        self.retriever = retriever
        self.state_machine = state_machine
        self.timeout_seconds = timeout_seconds
        self._graph: Optional[CompiledRAGGraph] = None
        self._init_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._graph is not None

    async def initialize(self) -> None:
        """
        Bind the retriever, then compile the graph. Idempotent.

        Raises:
            ConfigurationError: If the collection is missing
            TransientProviderError: If the store cannot be reached
        """
        async with self._init_lock:
            if self._graph is not None:
                return

            logger.info("ChatOrchestrator: Initializing Retriever...")
            await self.retriever.initialize()

            self._graph = self.state_machine.compile()
            logger.info("ChatOrchestrator: ready")

    async def chat(self, question: str, timeout: Optional[float] = None) -> str:
        """
        Answer one question.

        Args:
            question: User question
            timeout: Seconds allowed for the whole run (default: timeout_seconds)

        Returns:
            The model's answer, or NO_ANSWER_PLACEHOLDER if it was empty

        Raises:
            NotInitializedError: If initialize() has not completed
            TransientProviderError: On provider failure or timeout
        """
        graph = self._graph
        if graph is None:
            raise NotInitializedError("Chat graph not initialized")

        timeout = timeout if timeout is not None else self.timeout_seconds

        try:
            result = await asyncio.wait_for(graph.invoke(InitState(question=question)), timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Chat timed out after {timeout}s")
            raise TransientProviderError("chat", f"timed out after {timeout}s") from e

        return result.answer or NO_ANSWER_PLACEHOLDER
