"""Unit tests for settings and component wiring."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import InMemoryVectorStore
from public_mind.bootstrap import build_coordinator, build_retriever, build_vector_store
from public_mind.config import Settings
from public_mind.exceptions import ConfigurationError
from public_mind.ingestion.chunker import Chunker
from public_mind.ingestion.embedder import EmbeddingClient


def test_defaults_match_reference_configuration() -> None:
    settings = Settings(_env_file=None)
    assert settings.embedding_model == "text-embedding-3-small"
    assert settings.embedding_dimension == 1536
    assert (settings.chunk_size, settings.chunk_overlap, settings.top_k) == (900, 150, 5)
    assert settings.port == 8080


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHUNK_SIZE", "200")
    monkeypatch.setenv("CHUNK_OVERLAP", "20")
    monkeypatch.setenv("VECTOR_STORE", "pgvector")
    settings = Settings(_env_file=None)
    assert settings.chunk_size == 200
    assert settings.chunk_overlap == 20
    assert settings.vector_store == "pgvector"


def test_settings_are_frozen() -> None:
    settings = Settings(_env_file=None)
    with pytest.raises(ValidationError):
        settings.chunk_size = 10


def test_coordinator_rejects_overlap_not_below_chunk_size(embedder: EmbeddingClient) -> None:
    settings = Settings(_env_file=None, chunk_size=100, chunk_overlap=100)
    with pytest.raises(ConfigurationError, match="overlap"):
        build_coordinator(settings, store=InMemoryVectorStore(), embedder=embedder)


def test_retriever_rejects_non_positive_top_k(embedder: EmbeddingClient) -> None:
    settings = Settings(_env_file=None, top_k=0)
    with pytest.raises(ConfigurationError, match="top_k"):
        build_retriever(settings, store=InMemoryVectorStore(), embedder=embedder)


def test_score_threshold_reaches_retriever(monkeypatch: pytest.MonkeyPatch, embedder: EmbeddingClient) -> None:
    assert Settings(_env_file=None).score_threshold is None

    monkeypatch.setenv("SCORE_THRESHOLD", "0.5")
    store = InMemoryVectorStore()
    store.ensure_schema()
    store.insert_chunks("a.txt", [(c, embedder.embed(c.text)) for c in Chunker(1, 0).chunk("a.txt", "river budget")])

    retriever = build_retriever(Settings(_env_file=None), store=store, embedder=embedder)

    assert retriever.score_threshold == 0.5
    assert [h.content for h in retriever.retrieve("river")] == ["river"]


def test_unknown_vector_store() -> None:
    with pytest.raises(ConfigurationError, match="faiss"):
        build_vector_store(Settings(_env_file=None, vector_store="faiss"))


def test_pgvector_requires_database_url() -> None:
    with pytest.raises(ConfigurationError, match="database_url"):
        build_vector_store(Settings(_env_file=None, vector_store="pgvector", database_url=""))
