"""Shared pytest configuration, fakes and fixtures."""

from __future__ import annotations

import math
from collections.abc import Sequence

import pytest
from langchain_core.embeddings import Embeddings

from public_mind.exceptions import PersistenceError
from public_mind.ingestion.embedder import EmbeddingClient
from public_mind.retrieval.base import VectorStoreBase
from public_mind.retrieval.models import Chunk, EmbeddingVector, SimilarityResult


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embedding backend ──────────────────────────────────────────────

VOCAB = ("kubernetes", "permit", "zoning", "river", "budget", "poison")


class KeywordEmbeddings(Embeddings):
    """Bag-of-keywords embeddings: one axis per word in :data:`VOCAB`.

    Any text containing a word from *fail_on* makes the call raise, and
    every call is recorded in ``calls``.
    """

    def __init__(self, fail_on: Sequence[str] = ()) -> None:
        self.fail_on = set(fail_on)
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        words = text.lower().split()
        if self.fail_on.intersection(words):
            raise RuntimeError("embedding service unavailable")
        # Constant bias keeps keyword-free text off the zero vector.
        return [float(words.count(w)) for w in VOCAB] + [0.1]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append([text])
        return self._vector(text)


DIMENSION = len(VOCAB) + 1


# ── Fake vector store ───────────────────────────────────────────────────


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStoreBase):
    """Exact cosine search over a list; inserts are all-or-nothing."""

    def __init__(
        self,
        dimension: int = DIMENSION,
        *,
        fail_insert_at: int | None = None,
        fail_exists: bool = False,
        fail_nearest: bool = False,
    ) -> None:
        super().__init__(dimension)
        self.rows: list[dict] = []
        self.schema_ready = False
        self.insert_calls = 0
        self.fail_insert_at = fail_insert_at
        self.fail_exists = fail_exists
        self.fail_nearest = fail_nearest
        self._next_id = 1

    def ensure_schema(self) -> None:
        self.schema_ready = True

    def insert_chunks(
        self,
        document_name: str,
        items: Sequence[tuple[Chunk, EmbeddingVector]],
    ) -> None:
        self.insert_calls += 1
        staged = []
        for i, (chunk, vector) in enumerate(items):
            if self.fail_insert_at is not None and i >= self.fail_insert_at:
                raise PersistenceError(f"write failed at row {i}")
            if not self._check_dimension(vector):
                raise PersistenceError("dimension mismatch")
            staged.append(
                {
                    "id": self._next_id + i,
                    "document_name": document_name,
                    "chunk_index": chunk.index,
                    "text": chunk.text,
                    "embedding": tuple(vector),
                }
            )
        self.rows.extend(staged)
        self._next_id += len(staged)

    def exists(self, document_name: str) -> bool:
        if self.fail_exists:
            raise PersistenceError("store unreachable")
        return any(r["document_name"] == document_name for r in self.rows)

    def nearest(self, query_vector: EmbeddingVector, top_k: int) -> list[SimilarityResult]:
        if self.fail_nearest:
            raise PersistenceError("store unreachable")
        scored = sorted(
            ((_cosine(query_vector, r["embedding"]), r) for r in self.rows),
            key=lambda pair: (-pair[0], pair[1]["id"]),
        )
        return [
            SimilarityResult(
                chunk_id=str(r["id"]),
                document_name=r["document_name"],
                chunk_index=r["chunk_index"],
                content=r["text"],
                similarity=sim,
            )
            for sim, r in scored[:top_k]
        ]

    def delete_document(self, document_name: str) -> int:
        before = len(self.rows)
        self.rows = [r for r in self.rows if r["document_name"] != document_name]
        return before - len(self.rows)

    def count(self) -> int:
        return len(self.rows)

    def health_check(self) -> bool:
        return True

    def rows_for(self, document_name: str) -> list[dict]:
        return [r for r in self.rows if r["document_name"] == document_name]


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def keyword_embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings(fail_on=["poison"])


@pytest.fixture()
def embedder(keyword_embeddings: KeywordEmbeddings) -> EmbeddingClient:
    return EmbeddingClient(keyword_embeddings, dimension=DIMENSION)


@pytest.fixture()
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()
