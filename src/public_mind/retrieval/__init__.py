"""
Retrieval — vector-store backends and nearest-neighbour search.

This module wraps the vector store behind a clean interface so that
ingestion and query code never need to know which DB backs retrieval.

Public surface
--------------
- :class:`Retriever` — embeds a question and returns ranked chunks.
- :class:`VectorStoreBase` — abstract backend.
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`PgVectorStore` — PostgreSQL + pgvector backend.
- :class:`Chunk`, :class:`SimilarityResult` — data models.
"""

from public_mind.retrieval.base import VectorStoreBase
from public_mind.retrieval.models import Chunk, EmbeddingVector, SimilarityResult

__all__ = [
    "ChromaVectorStore",
    "Chunk",
    "EmbeddingVector",
    "PgVectorStore",
    "Retriever",
    "SimilarityResult",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import backends so chromadb / SQLAlchemy load only when used."""
    if name == "ChromaVectorStore":
        from public_mind.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    if name == "PgVectorStore":
        from public_mind.retrieval.pgvector_store import PgVectorStore

        return PgVectorStore
    if name == "Retriever":
        from public_mind.retrieval.retriever import Retriever

        return Retriever
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
