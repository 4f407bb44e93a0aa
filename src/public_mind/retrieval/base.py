"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing the abstract methods.  Ingestion and retrieval are
backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from public_mind.retrieval.models import Chunk, EmbeddingVector, SimilarityResult


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Every backend translates its own errors into
    :class:`~public_mind.exceptions.PersistenceError`.

    Parameters
    ----------
    dimension:
        Vector length declared by the store schema.
    """

    def __init__(self, dimension: int) -> None:
        self.dimension = dimension

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create the chunk table / collection and its similarity index if absent.

        Idempotent; safe to call on every startup.
        """
        ...

    @abstractmethod
    def insert_chunks(
        self,
        document_name: str,
        items: Sequence[tuple[Chunk, EmbeddingVector]],
    ) -> None:
        """Persist all *items* of one document as a single logical batch.

        Either every row becomes visible or none does: a backend that
        cannot write atomically must remove any partial rows before
        raising.
        """
        ...

    @abstractmethod
    def exists(self, document_name: str) -> bool:
        """Return ``True`` if any chunk of *document_name* is stored."""
        ...

    @abstractmethod
    def nearest(self, query_vector: EmbeddingVector, top_k: int) -> list[SimilarityResult]:
        """Return at most *top_k* chunks ranked by descending similarity.

        Ties are broken by insertion order (earliest first).
        """
        ...

    @abstractmethod
    def delete_document(self, document_name: str) -> int:
        """Remove every chunk of *document_name*; return how many were removed."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Total number of stored chunks."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- shared helpers -------------------------------------------------------

    def _check_dimension(self, vector: Sequence[float]) -> bool:
        return len(vector) == self.dimension
