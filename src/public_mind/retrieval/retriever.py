"""Retriever — query embedding, nearest-neighbour search, ranked results.

This module is the **primary public interface** for retrieval.  It is
independent of ingestion and of LangChain retriever abstractions so that
the HTTP layer, the CLI and tests can use it directly.

Usage::

    from public_mind.bootstrap import build_retriever

    retriever = build_retriever(settings)
    for hit in retriever.retrieve("What are the development permit areas?", top_k=3):
        print(hit.short_ref(), hit.similarity, hit.content[:80])
"""

from __future__ import annotations

import logging
from typing import Any

from public_mind.exceptions import (
    ConfigurationError,
    EmbeddingServiceError,
    PersistenceError,
    RetrievalError,
)
from public_mind.ingestion.embedder import EmbeddingClient
from public_mind.retrieval.base import VectorStoreBase
from public_mind.retrieval.models import SimilarityResult

logger = logging.getLogger(__name__)


class Retriever:
    """Embed a question and return the most similar stored chunks.

    Parameters
    ----------
    embedder:
        Adapter used to embed the question (single item, never batched).
    store:
        A concrete vector-store backend.
    default_top_k:
        Result count used when :meth:`retrieve` is called without one.
    score_threshold:
        Optional minimum similarity; results below it are dropped.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        *,
        default_top_k: int = 5,
        score_threshold: float | None = None,
    ) -> None:
        _check_top_k(default_top_k)
        self._embedder = embedder
        self._store = store
        self.default_top_k = default_top_k
        self.score_threshold = score_threshold

    # -- public API -----------------------------------------------------------

    def retrieve(self, question: str, top_k: int | None = None) -> list[SimilarityResult]:
        """Return up to *top_k* chunks ordered by descending similarity.

        An empty store yields ``[]``.  Any embedding or store failure is
        raised as :class:`RetrievalError`; partial results are never
        returned.
        """
        top_k = self.default_top_k if top_k is None else top_k
        _check_top_k(top_k)

        try:
            vector = self._embedder.embed(question)
        except EmbeddingServiceError as exc:
            raise RetrievalError(f"failed to embed question: {exc}") from exc

        try:
            hits = self._store.nearest(vector, top_k)
        except PersistenceError as exc:
            raise RetrievalError(f"vector store query failed: {exc}") from exc

        if self.score_threshold is not None:
            hits = [h for h in hits if h.similarity >= self.score_threshold]
        logger.debug("Retrieved %d chunks for question %.60r", len(hits), question)
        return hits

    # -- LangChain compat -----------------------------------------------------

    def as_langchain_retriever(self, top_k: int | None = None) -> Any:
        """Return a thin LangChain-compatible retriever wrapper.

        LangChain is imported only here so the rest of the retrieval
        package does not depend on it.
        """
        from langchain_core.documents import Document
        from langchain_core.retrievers import BaseRetriever

        outer = self

        class _LCRetriever(BaseRetriever):
            """Adapter that satisfies LangChain's retriever protocol."""

            def _get_relevant_documents(self_inner, query: str, **kwargs: Any) -> list[Document]:  # type: ignore[override]  # noqa: N805
                return [
                    Document(
                        page_content=hit.content,
                        metadata={
                            "document_name": hit.document_name,
                            "chunk_id": hit.chunk_id,
                            "chunk_index": hit.chunk_index,
                            "similarity": hit.similarity,
                        },
                    )
                    for hit in outer.retrieve(query, top_k=top_k)
                ]

        return _LCRetriever()


def _check_top_k(top_k: int) -> None:
    if top_k <= 0:
        raise ConfigurationError(f"top_k must be > 0, got {top_k}")
