"""Document loader for source documents on the filesystem."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import fitz

from src.rag.models import Document
from src.utils.config import get_settings
from src.utils.errors import IngestionError
from src.utils.logger import get_logger

logger = get_logger("loader")

READ_ERRORS = (OSError, UnicodeDecodeError, json.JSONDecodeError, fitz.FileDataError)


class DocumentSource(Protocol):
    """Anything that can produce the documents for one ingestion run."""

    def load(self) -> List[Document]:
        ...


class FileDocumentLoader:
    """Load documents from text, Markdown, JSON or PDF files."""

    PATTERNS = {
        "txt": "*.txt",
        "markdown": "*.md",
        "json": "*.json",
        "pdf": "*.pdf",
    }

    def __init__(
        self,
        docs_path: Optional[str] = None,
        docs_format: Optional[str] = None,
        recursive: Optional[bool] = None
    ):
        """
        Initialize the document loader.

        Args:
            docs_path: File or directory containing documents
            docs_format: Format of documents (txt, markdown, json, pdf)
            recursive: Whether to search subdirectories
        """
        settings = get_settings()
        self.docs_path = Path(docs_path or settings.docs_path)
        self.docs_format = docs_format or settings.docs_format
        self.recursive = settings.docs_recursive if recursive is None else recursive

        if self.docs_format not in self.PATTERNS:
            raise IngestionError(
                IngestionError.SOURCE_UNREADABLE,
                f"Unsupported document format: {self.docs_format}"
            )

    def load(self) -> List[Document]:
        """
        Load all documents from the configured path.

        Returns:
            Documents in a stable (sorted path, then page) order

        Raises:
            IngestionError: If the path does not exist or a file cannot be read
        """
        if not self.docs_path.exists():
            raise IngestionError(
                IngestionError.SOURCE_UNREADABLE,
                f"Documents path does not exist: {self.docs_path}"
            )

        logger.info(f"Loading documents from: {self.docs_path}")
        logger.info(f"Format: {self.docs_format}, Recursive: {self.recursive}")

        documents: List[Document] = []
        for path in self._discover_files():
            try:
                if self.docs_format == "json":
                    documents.extend(self._load_json_file(path))
                elif self.docs_format == "pdf":
                    documents.extend(self._load_pdf_file(path))
                else:
                    document = self._load_text_file(path)
                    if document:
                        documents.append(document)
            except READ_ERRORS as e:
                raise IngestionError(
                    IngestionError.SOURCE_UNREADABLE,
                    f"Failed to read {path}: {e}"
                ) from e

        logger.info(f"Loaded {len(documents)} documents")
        return documents

    def _discover_files(self) -> List[Path]:
        """List matching files, sorted so document ids are stable."""
        if self.docs_path.is_file():
            return [self.docs_path]

        pattern = self.PATTERNS[self.docs_format]
        if self.recursive:
            pattern = f"**/{pattern}"

        return sorted(path for path in self.docs_path.glob(pattern) if path.is_file())

    def _document_id(self, path: Path) -> str:
        if self.docs_path.is_file():
            return path.name
        return path.relative_to(self.docs_path).as_posix()

    def _base_metadata(self, path: Path) -> Dict[str, str]:
        return {
            "source": str(path),
            "file": path.name,
            "type": self.docs_format,
        }

    def _load_text_file(self, path: Path) -> Optional[Document]:
        """Load one plain text or Markdown file as a single document."""
        logger.debug(f"Loading {self.docs_format} file: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()

        if not text.strip():
            logger.warning(f"Empty file skipped: {path}")
            return None

        metadata = self._base_metadata(path)
        title = None
        if self.docs_format == "markdown":
            title = self._extract_markdown_title(text)
        metadata["title"] = title or path.stem.replace('_', ' ').replace('-', ' ').title()

        return Document(id=self._document_id(path), content=text, metadata=metadata)

    def _load_pdf_file(self, path: Path) -> List[Document]:
        """Load a PDF as one document per page; pages without text are skipped."""
        logger.debug(f"Loading PDF file: {path}")

        base_id = self._document_id(path)
        documents = []
        with fitz.open(str(path)) as pdf:
            page_count = pdf.page_count
            for page_index in range(page_count):
                page_num = page_index + 1
                text = pdf.load_page(page_index).get_text()
                if not text.strip():
                    logger.debug(f"Page {page_num} of {path.name} has no text")
                    continue

                metadata = self._base_metadata(path)
                metadata.update({
                    "page": str(page_num),
                    "total_pages": str(page_count),
                    "title": (pdf.metadata or {}).get("title") or path.stem,
                })
                documents.append(
                    Document(id=f"{base_id}#p{page_num}", content=text, metadata=metadata)
                )

        logger.info(f"{path.name}: {len(documents)}/{page_count} pages with text")
        return documents

    def _load_json_file(self, path: Path) -> List[Document]:
        """Load a JSON file holding one document, a list, or {"documents": [...]}."""
        logger.debug(f"Loading JSON file: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if isinstance(data, dict) and 'documents' in data:
            items = data['documents']
        elif isinstance(data, list):
            items = data
        else:
            items = [data]

        base_id = self._document_id(path)
        documents = []
        for idx, item in enumerate(items):
            document = self._normalize_document(item, path, f"{base_id}#{idx}")
            if document:
                documents.append(document)

        return documents

    def _normalize_document(self, data: Any, path: Path, doc_id: str) -> Optional[Document]:
        """
        Normalize a JSON entry to a Document.

        Expected format:
        {
            "text": "content...",
            "metadata": {"title": "Document Title", ...}
        }

        Returns:
            Document or None if the entry has no usable text
        """
        if not isinstance(data, dict):
            logger.warning(f"Skipping non-object entry {doc_id}")
            return None

        text = data.get('text') or data.get('content') or ''
        if not text.strip():
            logger.warning(f"Document {doc_id} has empty text")
            return None

        metadata = self._base_metadata(path)
        metadata.update({k: str(v) for k, v in (data.get('metadata') or {}).items()})
        if 'title' in data and 'title' not in metadata:
            metadata['title'] = str(data['title'])

        return Document(id=str(data.get('id') or doc_id), content=text, metadata=metadata)

    @staticmethod
    def _extract_markdown_title(text: str) -> Optional[str]:
        """Extract title from Markdown content (first # heading)."""
        for line in text.split('\n'):
            line = line.strip()
            if line.startswith('# '):
                return line[2:].strip()
        return None
