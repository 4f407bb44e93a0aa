"""Embedding client adapter around a LangChain ``Embeddings`` backend."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from public_mind.exceptions import ConfigurationError, EmbeddingServiceError
from public_mind.retrieval.models import EmbeddingVector

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from public_mind.config import Settings

logger = logging.getLogger(__name__)


def get_embedding_function(settings: Settings) -> Embeddings:
    """Return the configured LangChain embedding backend.

    The OpenAI client is built with ``max_retries=0``: retrying is left
    to the caller, and every request is bounded by
    ``settings.embedding_timeout``.
    """
    provider = settings.embedding_provider.lower()
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {
            "model": settings.embedding_model,
            "api_key": settings.openai_api_key,
            "timeout": settings.embedding_timeout,
            "max_retries": 0,
        }
        if settings.embedding_base_url:
            logger.info("Using OpenAI-compatible endpoint: %s", settings.embedding_base_url)
            kwargs["base_url"] = settings.embedding_base_url
            # Non-OpenAI servers do not understand pre-tokenised input.
            kwargs["check_embedding_ctx_length"] = False
        return OpenAIEmbeddings(**kwargs)

    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=settings.embedding_model)

    raise ConfigurationError(f"Unsupported embedding_provider={settings.embedding_provider!r}")


class EmbeddingClient:
    """Turn text into fixed-dimension vectors, one failure at a time.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.
    dimension:
        Expected vector length. ``None`` disables the check.
    batch_size:
        Number of texts per provider call in :meth:`embed_batch`. With
        ``batch_size > 1`` a failing call is reported at the index of its
        first item.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        dimension: int | None = None,
        batch_size: int = 1,
    ) -> None:
        if batch_size <= 0:
            raise ConfigurationError(f"embed batch_size must be > 0, got {batch_size}")
        self._embeddings = embeddings
        self.dimension = dimension
        self.batch_size = batch_size

    def embed(self, text: str) -> EmbeddingVector:
        """Embed a single query text."""
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingServiceError(0, exc) from exc
        return self._checked(vector, 0)

    def embed_batch(self, texts: Sequence[str]) -> list[EmbeddingVector]:
        """Embed *texts*, preserving order and length.

        Raises
        ------
        EmbeddingServiceError
            On the first failing item; nothing is returned for the rest.
        """
        vectors: list[EmbeddingVector] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            logger.debug("Embedding items %d-%d of %d", start + 1, start + len(batch), len(texts))
            try:
                raw = self._embeddings.embed_documents(batch)
            except Exception as exc:
                raise EmbeddingServiceError(start, exc) from exc
            if len(raw) != len(batch):
                raise EmbeddingServiceError(
                    start, f"provider returned {len(raw)} vectors for {len(batch)} inputs"
                )
            vectors.extend(self._checked(v, start + i) for i, v in enumerate(raw))
        return vectors

    def _checked(self, vector: Sequence[float], index: int) -> EmbeddingVector:
        if self.dimension is not None and len(vector) != self.dimension:
            raise EmbeddingServiceError(
                index, f"expected dimension {self.dimension}, got {len(vector)}"
            )
        return tuple(float(x) for x in vector)
