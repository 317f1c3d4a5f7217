"""Two-stage retrieve -> generate execution graph for one question.

Each stage has its own immutable state record, and each node takes the
record of the stage it runs from and returns the record of the next
stage. ``generate`` only accepts a ``RetrievedState``, and the only way
to build one inside the graph is ``retrieve``, so the ordering holds by
construction.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, ClassVar, Dict, Optional, Protocol, Tuple, Union

from src.rag.models import Chunk
from src.rag.prompt import PromptAssembler, RenderedPrompt
from src.utils.errors import ConfigurationError
from src.utils.logger import get_logger

logger = get_logger("graph")


class RAGStage(Enum):
    INIT = "init"
    RETRIEVED = "retrieved"
    ANSWERED = "answered"


@dataclass(frozen=True)
class InitState:
    question: str
    stage: ClassVar[RAGStage] = RAGStage.INIT


@dataclass(frozen=True)
class RetrievedState:
    question: str
    documents: Tuple[Chunk, ...]
    stage: ClassVar[RAGStage] = RAGStage.RETRIEVED


@dataclass(frozen=True)
class AnsweredState:
    question: str
    documents: Tuple[Chunk, ...]
    answer: str
    stage: ClassVar[RAGStage] = RAGStage.ANSWERED


RAGState = Union[InitState, RetrievedState, AnsweredState]

# stage -> (node that leaves it, stage the node produces)
TRANSITIONS: Dict[RAGStage, Tuple[str, RAGStage]] = {
    RAGStage.INIT: ("retrieve", RAGStage.RETRIEVED),
    RAGStage.RETRIEVED: ("generate", RAGStage.ANSWERED),
}
TERMINAL_STAGE = RAGStage.ANSWERED

Node = Callable[..., Awaitable[RAGState]]


class Retriever(Protocol):
    @property
    def is_ready(self) -> bool:
        ...

    async def retrieve(self, question: str) -> list:
        ...


class LanguageModel(Protocol):
    async def complete(self, prompt: RenderedPrompt) -> str:
        ...


class CompiledRAGGraph:
    """Immutable, reusable runner for the transition table.

    Holds no per-request data, so concurrent ``invoke`` calls are safe.
    """

    def __init__(self, nodes: Dict[str, Node], transitions: Dict[RAGStage, Tuple[str, RAGStage]]):
        self._nodes = dict(nodes)
        self._transitions = dict(transitions)

    @property
    def node_order(self) -> Tuple[str, ...]:
        order = []
        stage = RAGStage.INIT
        while stage in self._transitions:
            node_name, stage = self._transitions[stage]
            order.append(node_name)
        return tuple(order)

    async def invoke(self, state: RAGState) -> AnsweredState:
        """Drive state through the table until the terminal stage."""
        while state.stage is not TERMINAL_STAGE:
            node_name, expected_stage = self._transitions[state.stage]
            state = await self._nodes[node_name](state)
            if state.stage is not expected_stage:
                raise RuntimeError(
                    f"Node '{node_name}' produced stage {state.stage.value}, "
                    f"expected {expected_stage.value}"
                )
        return state


class RAGStateMachine:
    """Builds the retrieve -> generate graph from explicit collaborators."""

    def __init__(
        self,
        retriever: Retriever,
        llm: LanguageModel,
        assembler: Optional[PromptAssembler] = None
    ):
        self.retriever = retriever
        self.llm = llm
        self.assembler = assembler or PromptAssembler()

    async def retrieve(self, state: InitState) -> RetrievedState:
        logger.info("-> Node: RETRIEVE")
        documents = await self.retriever.retrieve(state.question)
        return RetrievedState(question=state.question, documents=tuple(documents))

    async def generate(self, state: RetrievedState) -> AnsweredState:
        logger.info("-> Node: GENERATE")
        prompt = self.assembler.assemble(state.question, state.documents)
        answer = await self.llm.complete(prompt)
        return AnsweredState(question=state.question, documents=state.documents, answer=answer)

    def compile(self) -> CompiledRAGGraph:
        """
        Freeze the graph for reuse across requests.

        Raises:
            ConfigurationError: If the retriever has not been initialized
        """
        if not self.retriever.is_ready:
            raise ConfigurationError("Cannot compile RAG graph: retriever is not initialized")

        nodes: Dict[str, Node] = {
            "retrieve": self.retrieve,
            "generate": self.generate,
        }
        missing = [name for name, _ in TRANSITIONS.values() if name not in nodes]
        if missing:
            raise ConfigurationError(f"No node registered for: {', '.join(missing)}")

        logger.info("RAG graph compiled")
        return CompiledRAGGraph(nodes, TRANSITIONS)
