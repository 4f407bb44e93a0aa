"""Whitespace-token chunking with a fixed-size sliding window."""

from __future__ import annotations

from public_mind.exceptions import ConfigurationError
from public_mind.retrieval.models import Chunk


class Chunker:
    """Split text into overlapping windows of whitespace tokens.

    Parameters
    ----------
    chunk_size:
        Maximum number of tokens per chunk. Every chunk except the last
        has exactly this many tokens.
    overlap:
        Number of tokens shared by consecutive chunks.

    Raises
    ------
    ConfigurationError
        If ``chunk_size <= 0`` or ``overlap`` is outside ``[0, chunk_size)``.
    """

    def __init__(self, chunk_size: int, overlap: int) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be > 0, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(f"chunk overlap must be >= 0, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                f"chunk overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap

    def split(self, text: str) -> list[str]:
        """Return the ordered chunk texts for *text*."""
        tokens = text.split()
        windows: list[str] = []
        for start in range(0, len(tokens), self.step):
            end = min(start + self.chunk_size, len(tokens))
            windows.append(" ".join(tokens[start:end]))
            if end == len(tokens):
                break
        return windows

    def chunk(self, document_name: str, text: str) -> list[Chunk]:
        """Split *text* into :class:`Chunk` objects owned by *document_name*."""
        return [
            Chunk(
                document_name=document_name,
                index=i,
                text=window,
                token_count=len(window.split()),
            )
            for i, window in enumerate(self.split(text))
        ]


def chunk_text(text: str, chunk_size: int, overlap: int) -> list[str]:
    """Functional shortcut for ``Chunker(chunk_size, overlap).split(text)``.

    >>> chunk_text("a b c d e", chunk_size=3, overlap=1)
    ['a b c', 'c d e']
    """
    return Chunker(chunk_size, overlap).split(text)
