"""Core data records for the RAG pipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Document:
    """One logical unit (file, page, JSON entry) produced by a loader."""
    id: str
    content: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Chunk:
    """A bounded slice of a document's text.

    The first ``overlap_with_previous`` characters repeat the tail of the
    previous chunk from the same document; the rest is new text.
    """
    source_document_id: str
    text: str
    sequence_index: int
    overlap_with_previous: int = 0
    start_char: int = 0
    end_char: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)
    score: Optional[float] = None

    @property
    def new_text(self) -> str:
        """Text not shared with the previous chunk."""
        return self.text[self.overlap_with_previous:]

    def to_payload(self) -> Dict[str, Any]:
        """Convert chunk to a dictionary for vector store storage."""
        return {
            "text": self.text,
            "source_document_id": self.source_document_id,
            "sequence_index": self.sequence_index,
            "overlap_with_previous": self.overlap_with_previous,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], score: Optional[float] = None) -> "Chunk":
        """Rebuild a chunk from a stored payload."""
        return cls(
            source_document_id=str(payload.get("source_document_id", "")),
            text=payload.get("text", ""),
            sequence_index=int(payload.get("sequence_index", 0)),
            overlap_with_previous=int(payload.get("overlap_with_previous", 0)),
            start_char=int(payload.get("start_char", 0)),
            end_char=int(payload.get("end_char", 0)),
            metadata=dict(payload.get("metadata") or {}),
            score=score,
        )


@dataclass(frozen=True)
class CollectionConfig:
    """Target vector collection, fixed for the lifetime of a deployment."""
    name: str
    storage_location: str
