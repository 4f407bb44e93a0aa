"""Unit tests for the serving layer."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from conftest import InMemoryVectorStore
from public_mind.ingestion.chunker import Chunker
from public_mind.ingestion.coordinator import IngestionCoordinator
from public_mind.ingestion.embedder import EmbeddingClient
from public_mind.retrieval.retriever import Retriever
from public_mind.serving.app import app, get_retriever


@pytest.fixture()
def store(embedder: EmbeddingClient) -> InMemoryVectorStore:
    store = InMemoryVectorStore()
    coordinator = IngestionCoordinator(Chunker(50, 5), embedder, store)
    coordinator.ingest_text("permits.pdf", "permit zoning permit")
    coordinator.ingest_text("rivers.pdf", "river river")
    return store


@pytest.fixture()
def client(embedder: EmbeddingClient, store: InMemoryVectorStore) -> Iterator[TestClient]:
    app.dependency_overrides[get_retriever] = lambda: Retriever(embedder, store, default_top_k=5)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_endpoint(client: TestClient) -> None:
    """GET /health should return 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ask_returns_ranked_results(client: TestClient) -> None:
    response = client.post("/ask", json={"question": "river"})
    assert response.status_code == 200
    body = response.json()
    assert body["question"] == "river"
    assert [r["document_name"] for r in body["results"]] == ["rivers.pdf", "permits.pdf"]
    assert body["results"][0]["similarity"] >= body["results"][1]["similarity"]


def test_ask_honours_top_k(client: TestClient) -> None:
    response = client.post("/ask", json={"question": "permit", "top_k": 1})
    assert response.status_code == 200
    assert len(response.json()["results"]) == 1


@pytest.mark.parametrize("payload", [{}, {"question": ""}, {"question": "   "}])
def test_ask_requires_question(client: TestClient, payload: dict) -> None:
    response = client.post("/ask", json=payload)
    assert response.status_code == 400
    assert response.json() == {"detail": "question is required"}


def test_ask_rejects_invalid_top_k(client: TestClient) -> None:
    response = client.post("/ask", json={"question": "river", "top_k": 0})
    assert response.status_code == 400


def test_ask_retrieval_failure_is_502(client: TestClient) -> None:
    response = client.post("/ask", json={"question": "poison"})
    assert response.status_code == 502
    assert response.json() == {"detail": "retrieval failed"}


def test_ask_on_empty_store(embedder: EmbeddingClient) -> None:
    app.dependency_overrides[get_retriever] = lambda: Retriever(embedder, InMemoryVectorStore())
    try:
        response = TestClient(app).post("/ask", json={"question": "anything"})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 200
    assert response.json()["results"] == []
