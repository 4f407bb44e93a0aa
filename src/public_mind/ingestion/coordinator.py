"""Ingestion coordinator — per-document dedup → chunk → embed → store.

Document lifecycle
------------------
::

    DISCOVERED → CHECKED → CHUNKED → EMBEDDED → STORED → DONE
                    └──→ SKIPPED_ALREADY_PROCESSED
    (any non-terminal state) ──→ FAILED{stage}

Documents of a corpus are processed strictly one after another, so the
dedup check for document N+1 sees every write of documents 1..N.  A
failed document is logged and recorded; the scan moves on to the next
one.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from public_mind.exceptions import IngestionCancelled, PublicMindError
from public_mind.ingestion.chunker import Chunker
from public_mind.ingestion.embedder import EmbeddingClient
from public_mind.ingestion.loader import DocumentLoader, SourceDocument
from public_mind.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class DocumentState(str, Enum):
    DISCOVERED = "discovered"
    CHECKED = "checked"
    CHUNKED = "chunked"
    EMBEDDED = "embedded"
    STORED = "stored"
    DONE = "done"
    SKIPPED_ALREADY_PROCESSED = "skipped_already_processed"
    FAILED = "failed"


class FailureStage(str, Enum):
    """The step that was running when a document failed."""

    CHECK = "check"
    EXTRACTION = "extraction"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    STORAGE = "storage"


@dataclass
class DocumentOutcome:
    """Result of running one document through the state machine.

    Attributes
    ----------
    document_name:
        Identity of the document.
    state:
        Terminal state: ``DONE``, ``SKIPPED_ALREADY_PROCESSED`` or ``FAILED``.
    stage:
        Failing step when ``state`` is ``FAILED``.
    error:
        The exception that failed the document.
    chunk_count:
        Number of chunks stored (0 unless ``DONE``).
    history:
        Every state the document passed through, in order.
    """

    document_name: str
    state: DocumentState = DocumentState.DISCOVERED
    stage: FailureStage | None = None
    error: PublicMindError | None = None
    chunk_count: int = 0
    history: list[DocumentState] = field(default_factory=lambda: [DocumentState.DISCOVERED])

    def advance(self, state: DocumentState) -> None:
        self.state = state
        self.history.append(state)

    def fail(self, stage: FailureStage, error: PublicMindError) -> None:
        self.stage = stage
        self.error = error
        self.advance(DocumentState.FAILED)


@dataclass
class IngestionSummary:
    """Per-corpus counts of processed / skipped / failed documents."""

    outcomes: list[DocumentOutcome] = field(default_factory=list)
    cancelled: bool = False

    def _count(self, state: DocumentState) -> int:
        return sum(1 for o in self.outcomes if o.state is state)

    @property
    def processed(self) -> int:
        return self._count(DocumentState.DONE)

    @property
    def skipped(self) -> int:
        return self._count(DocumentState.SKIPPED_ALREADY_PROCESSED)

    @property
    def failed(self) -> int:
        return self._count(DocumentState.FAILED)

    @property
    def chunks_stored(self) -> int:
        return sum(o.chunk_count for o in self.outcomes)

    def __str__(self) -> str:  # noqa: D105
        return (
            f"processed={self.processed} skipped={self.skipped} failed={self.failed} "
            f"chunks={self.chunks_stored}"
        )


class IngestionCoordinator:
    """Drive documents through dedup, chunking, embedding and storage.

    Parameters
    ----------
    chunker:
        Configured :class:`Chunker`; its construction already validated
        chunk size and overlap.
    embedder:
        Embedding adapter used for all chunks of a document in one batch.
    store:
        Vector store used for the dedup check and for persistence.
    loader:
        Document reader for :meth:`ingest_document` / :meth:`ingest_directory`.
    """

    def __init__(
        self,
        chunker: Chunker,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        *,
        loader: DocumentLoader | None = None,
    ) -> None:
        self._chunker = chunker
        self._embedder = embedder
        self._store = store
        self._loader = loader or DocumentLoader()
        self._cancel = threading.Event()

    # -- cancellation -------------------------------------------------------

    def cancel(self) -> None:
        """Ask the running ingestion to stop at the next stage boundary."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def reset(self) -> None:
        """Clear a previous cancellation request."""
        self._cancel.clear()

    # -- single document ----------------------------------------------------

    def ingest_text(self, document_name: str, text: str) -> DocumentOutcome:
        """Ingest already-extracted *text* under *document_name*."""
        return self._run(document_name, lambda: text)

    def ingest_document(self, document: SourceDocument) -> DocumentOutcome:
        """Ingest a discovered document; text is extracted only if not yet stored."""
        return self._run(document.name, lambda: self._loader.extract(document))

    def _run(self, document_name: str, read_text: Callable[[], str]) -> DocumentOutcome:
        outcome = DocumentOutcome(document_name)
        stage = FailureStage.CHECK
        try:
            self._checkpoint()
            if self._store.exists(document_name):
                outcome.advance(DocumentState.CHECKED)
                outcome.advance(DocumentState.SKIPPED_ALREADY_PROCESSED)
                logger.info("Skipping (already processed): %s", document_name)
                return outcome
            outcome.advance(DocumentState.CHECKED)

            stage = FailureStage.EXTRACTION
            self._checkpoint()
            text = read_text()

            stage = FailureStage.CHUNKING
            self._checkpoint()
            chunks = self._chunker.chunk(document_name, text)
            outcome.advance(DocumentState.CHUNKED)
            logger.info("  %s: %d chunks", document_name, len(chunks))

            stage = FailureStage.EMBEDDING
            self._checkpoint()
            vectors = self._embedder.embed_batch([c.text for c in chunks])
            outcome.advance(DocumentState.EMBEDDED)

            stage = FailureStage.STORAGE
            self._checkpoint()
            self._store.insert_chunks(
                document_name,
                [(chunk.with_embedding(vector), vector) for chunk, vector in zip(chunks, vectors)],
            )
            outcome.advance(DocumentState.STORED)
        except PublicMindError as exc:
            outcome.fail(stage, exc)
            logger.error("Failed to process %s at %s stage: %s", document_name, stage.value, exc)
            return outcome

        outcome.chunk_count = len(chunks)
        outcome.advance(DocumentState.DONE)
        return outcome

    def _checkpoint(self) -> None:
        if self._cancel.is_set():
            raise IngestionCancelled("ingestion cancelled")

    # -- corpus ---------------------------------------------------------------

    def ingest_corpus(self, documents: Iterable[SourceDocument]) -> IngestionSummary:
        """Ingest *documents* sequentially; failures do not stop the scan."""
        documents = list(documents)
        summary = IngestionSummary()
        for i, document in enumerate(documents, 1):
            if self.cancelled:
                summary.cancelled = True
                logger.warning("Ingestion cancelled; %d documents not started", len(documents) - i + 1)
                break
            logger.info("Processing %d/%d: %s", i, len(documents), document.name)
            outcome = self.ingest_document(document)
            summary.outcomes.append(outcome)
            if outcome.state is DocumentState.DONE:
                logger.info("Completed: %s", document.name)
        else:
            summary.cancelled = self.cancelled

        logger.info("Ingestion finished: %s", summary)
        return summary

    def ingest_directory(self, root: str | Path) -> IngestionSummary:
        """Discover documents under *root* and ingest them."""
        return self.ingest_corpus(self._loader.discover(root))
