"""Domain models shared by ingestion and retrieval."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

EmbeddingVector = tuple[float, ...]
"""Fixed-length, immutable embedding as produced by the embedding adapter."""


class Chunk(BaseModel):
    """A bounded, overlapping slice of one source document's token stream.

    Attributes
    ----------
    document_name:
        Identity of the owning source document (stable path string).
    index:
        0-based, contiguous position of the chunk within its document.
    text:
        Whitespace tokens joined by single spaces.
    token_count:
        Number of tokens in ``text``.
    embedding:
        The vector for ``text``; ``None`` until computed.
    """

    model_config = ConfigDict(frozen=True)

    document_name: str
    index: int = Field(ge=0)
    text: str
    token_count: int = Field(ge=0)
    embedding: EmbeddingVector | None = None

    def with_embedding(self, embedding: EmbeddingVector) -> Chunk:
        return self.model_copy(update={"embedding": tuple(embedding)})


class SimilarityResult(BaseModel):
    """A stored chunk matched against a query vector.

    ``similarity`` is ``1 - cosine_distance`` and is the only ranking key.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    document_name: str
    chunk_index: int | None = None
    content: str
    similarity: float

    def short_ref(self) -> str:
        """Return a compact ``[document§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.document_name}§{chunk}]"

    def __str__(self) -> str:  # noqa: D105
        return f"{self.short_ref()} ({self.similarity:.3f}) {self.content[:120]}…"
