"""Document chunking for RAG pipeline."""

from typing import List, Optional, Sequence

from src.rag.models import Chunk, Document
from src.utils.config import get_settings, validate_chunk_params
from src.utils.logger import get_logger

logger = get_logger("chunker")

# Tried in order; "" means hard character slicing.
DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", " ", "")


class DocumentChunker:
    """Recursive character splitter with a fixed overlap between chunks.

    Sizes are measured in characters. Splitting never rewrites the text:
    dropping each chunk's overlap prefix and concatenating the rest in
    ``sequence_index`` order gives back the original document content.
    """

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        separators: Sequence[str] = DEFAULT_SEPARATORS
    ):
        """
        Initialize document chunker.

        Args:
            chunk_size: Maximum characters per chunk (default from settings)
            chunk_overlap: Characters repeated from the previous chunk (default from settings)
            separators: Separators to split on, in descending priority

        Raises:
            ConfigurationError: If chunk_overlap >= chunk_size or sizes are not positive
        """
        settings = get_settings()
        self.chunk_size = chunk_size if chunk_size is not None else settings.rag_chunk_size
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.rag_chunk_overlap
        self.separators = tuple(separators)

        validate_chunk_params(self.chunk_size, self.chunk_overlap)

        logger.info(
            f"Initialized DocumentChunker with chunk_size={self.chunk_size}, "
            f"overlap={self.chunk_overlap}"
        )

    def split(self, document: Document) -> List[Chunk]:
        """
        Split one document into overlapping chunks.

        Args:
            document: Document to split

        Returns:
            Chunks in document order; empty list for empty content
        """
        text = document.content
        if not text:
            logger.warning(f"Empty document '{document.id}' provided for chunking")
            return []

        # Every unit fits in the space left after the overlap prefix,
        # so each chunk takes at least one unit.
        step = self.chunk_size - self.chunk_overlap
        units = self._split_units(text, self.separators, step)

        chunks: List[Chunk] = []
        position = 0
        unit_idx = 0

        while unit_idx < len(units):
            overlap = 0
            if chunks:
                overlap = min(self.chunk_overlap, len(chunks[-1].text))
            budget = self.chunk_size - overlap

            segment_start = position
            segment_length = 0
            while unit_idx < len(units) and segment_length + len(units[unit_idx]) <= budget:
                segment_length += len(units[unit_idx])
                unit_idx += 1

            position = segment_start + segment_length
            chunks.append(Chunk(
                source_document_id=document.id,
                text=text[segment_start - overlap:position],
                sequence_index=len(chunks),
                overlap_with_previous=overlap,
                start_char=segment_start - overlap,
                end_char=position,
                metadata=dict(document.metadata),
            ))

        logger.debug(
            f"Chunked document '{document.id}' into {len(chunks)} chunks "
            f"(original length: {len(text)} chars)"
        )

        return chunks

    def chunk_documents(self, documents: Sequence[Document]) -> List[Chunk]:
        """
        Chunk multiple documents.

        Args:
            documents: Documents to split

        Returns:
            List of all chunks from all documents, document order preserved
        """
        all_chunks: List[Chunk] = []

        for document in documents:
            all_chunks.extend(self.split(document))

        logger.info(
            f"Chunked {len(documents)} documents into {len(all_chunks)} total chunks"
        )

        return all_chunks

    def _split_units(self, text: str, separators: Sequence[str], limit: int) -> List[str]:
        """
        Break text into units no longer than limit.

        Splits on the first separator present in the text; any piece still
        too long is split again with the remaining, finer separators.

        Returns:
            Units whose concatenation equals text
        """
        if len(text) <= limit:
            return [text]

        for idx, separator in enumerate(separators):
            if separator == "":
                break
            if separator not in text:
                continue

            units: List[str] = []
            for piece in self._split_keeping_separator(text, separator):
                if len(piece) <= limit:
                    units.append(piece)
                else:
                    units.extend(self._split_units(piece, separators[idx + 1:], limit))
            return units

        return [text[i:i + limit] for i in range(0, len(text), limit)]

    @staticmethod
    def _split_keeping_separator(text: str, separator: str) -> List[str]:
        """Split text, leaving each separator attached to the piece before it."""
        parts = text.split(separator)
        pieces = [part + separator for part in parts[:-1]]
        pieces.append(parts[-1])
        return [piece for piece in pieces if piece]
