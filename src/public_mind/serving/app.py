"""FastAPI application exposing retrieval as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from public_mind.bootstrap import build_retriever
from public_mind.config import get_settings
from public_mind.exceptions import ConfigurationError, RetrievalError
from public_mind.retrieval.models import SimilarityResult
from public_mind.retrieval.retriever import Retriever

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Public Mind API",
    version="0.1.0",
    description="Semantic search over the ingested document corpus.",
)


# ── Request / Response schemas ────────────────────────────────────────
class AskRequest(BaseModel):
    """Incoming question from the user."""

    question: str = ""
    top_k: int | None = None


class AskResponse(BaseModel):
    """Chunks ranked by similarity to the question."""

    question: str
    results: list[SimilarityResult] = []


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_retriever() -> Retriever:
    """Build the retriever once per process from the global settings."""
    return build_retriever(get_settings())


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/ask", response_model=AskResponse)
def ask(request: AskRequest, retriever: Retriever = Depends(get_retriever)) -> AskResponse:
    """Return the stored chunks most similar to the question."""
    question = request.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="question is required")

    try:
        results = retriever.retrieve(question, top_k=request.top_k)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RetrievalError as exc:
        logger.error("Retrieval failed for question %.60r: %s", question, exc)
        raise HTTPException(status_code=502, detail="retrieval failed") from exc

    return AskResponse(question=question, results=results)
