"""Document discovery and text extraction — thin wrappers around LangChain loaders."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader, TextLoader

from public_mind.exceptions import ExtractionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceDocument:
    """A document found during a corpus scan.

    Attributes
    ----------
    name:
        Stable identity: the path relative to the scanned root, POSIX style.
    path:
        Location on disk used for extraction.
    """

    name: str
    path: Path


class DocumentLoader:
    """Find documents under a directory and extract their plain text.

    Parameters
    ----------
    extensions:
        File suffixes (case-insensitive, with leading dot) to pick up.
    """

    def __init__(self, extensions: Iterable[str] = (".pdf", ".txt", ".md")) -> None:
        self.extensions = frozenset(ext.lower() for ext in extensions)

    def discover(self, root: str | Path) -> list[SourceDocument]:
        """Recursively list supported documents under *root*, sorted by name."""
        root = Path(root)
        if not root.is_dir():
            raise ExtractionError(f"document directory not found: {root}")

        documents = [
            SourceDocument(name=path.relative_to(root).as_posix(), path=path)
            for path in root.rglob("*")
            if path.is_file() and path.suffix.lower() in self.extensions
        ]
        documents.sort(key=lambda d: d.name)
        logger.info("Found %d documents under %s", len(documents), root)
        return documents

    def extract(self, document: SourceDocument) -> str:
        """Return the plain text of *document*, pages joined by newlines."""
        try:
            if document.path.suffix.lower() == ".pdf":
                loader = PyPDFLoader(str(document.path))
            else:
                loader = TextLoader(str(document.path), encoding="utf-8")
            pages = loader.load()
        except Exception as exc:
            raise ExtractionError(f"failed to extract text from {document.name}: {exc}") from exc
        return "\n".join(page.page_content for page in pages)
