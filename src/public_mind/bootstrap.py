"""Component wiring — the only place that reads :class:`Settings`."""

from __future__ import annotations

from public_mind.config import Settings
from public_mind.exceptions import ConfigurationError
from public_mind.ingestion.chunker import Chunker
from public_mind.ingestion.coordinator import IngestionCoordinator
from public_mind.ingestion.embedder import EmbeddingClient, get_embedding_function
from public_mind.ingestion.loader import DocumentLoader
from public_mind.retrieval.base import VectorStoreBase
from public_mind.retrieval.retriever import Retriever


def build_vector_store(settings: Settings) -> VectorStoreBase:
    """Return the configured vector-store backend."""
    backend = settings.vector_store.lower()
    if backend == "chroma":
        from public_mind.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(
            settings.chroma_collection,
            dimension=settings.embedding_dimension,
            host=settings.chroma_host,
            port=settings.chroma_port,
        )
    if backend == "pgvector":
        if not settings.database_url:
            raise ConfigurationError("database_url is required for the pgvector backend")
        from public_mind.retrieval.pgvector_store import PgVectorStore

        return PgVectorStore(
            settings.database_url,
            dimension=settings.embedding_dimension,
            timeout=settings.store_timeout,
        )
    raise ConfigurationError(f"Unsupported vector_store={settings.vector_store!r}")


def build_embedder(settings: Settings) -> EmbeddingClient:
    return EmbeddingClient(
        get_embedding_function(settings),
        dimension=settings.embedding_dimension,
        batch_size=settings.embed_batch_size,
    )


def build_coordinator(
    settings: Settings,
    *,
    store: VectorStoreBase | None = None,
    embedder: EmbeddingClient | None = None,
) -> IngestionCoordinator:
    """Validate chunking settings and assemble an :class:`IngestionCoordinator`."""
    chunker = Chunker(settings.chunk_size, settings.chunk_overlap)
    return IngestionCoordinator(
        chunker,
        embedder or build_embedder(settings),
        store or build_vector_store(settings),
        loader=DocumentLoader(settings.document_extensions),
    )


def build_retriever(
    settings: Settings,
    *,
    store: VectorStoreBase | None = None,
    embedder: EmbeddingClient | None = None,
) -> Retriever:
    return Retriever(
        embedder or build_embedder(settings),
        store or build_vector_store(settings),
        default_top_k=settings.top_k,
        score_threshold=settings.score_threshold,
    )
