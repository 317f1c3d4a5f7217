"""Prompt rendering for answer generation."""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from src.rag.models import Chunk

REFUSAL_TEXT = (
    "I'm sorry, but I could not find that information in the documents available to me."
)

SYSTEM_TEMPLATE = (
    "You are an expert assistant who answers the user's question using the provided documents. "
    "Answer only from the content inside <Context>. "
    "If the answer cannot be found in <Context>, reply exactly: "
    "\"{refusal}\""
    "\n\n<Context>\n{context}\n</Context>"
)

USER_TEMPLATE = "{question}"

CONTEXT_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class RenderedPrompt:
    """System and user turns ready to send to a chat model."""
    system: str
    user: str

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


class PromptAssembler:
    """Renders the fixed question-answering prompt.

    Chunks are used as given: rank order, count and size are the
    retriever's business.
    """

    def __init__(self, refusal_text: str = REFUSAL_TEXT):
        self.refusal_text = refusal_text

    def assemble(self, question: str, chunks: Sequence[Chunk]) -> RenderedPrompt:
        context = CONTEXT_SEPARATOR.join(chunk.text for chunk in chunks)
        # Braces inside chunk text pass through format() untouched.
        system = SYSTEM_TEMPLATE.format(refusal=self.refusal_text, context=context)
        return RenderedPrompt(system=system, user=USER_TEMPLATE.format(question=question))
