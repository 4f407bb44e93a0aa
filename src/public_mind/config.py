"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file.

    Components never read these directly; bootstrap code
    (:mod:`public_mind.bootstrap`) passes the relevant values into each
    constructor.
    """

    # Embedding
    openai_api_key: str = Field(default="", description="OpenAI API key")
    embedding_provider: str = Field(
        default="openai",
        description="Embedding backend: 'openai' or 'huggingface'",
    )
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = Field(
        default=1536,
        description="Vector length produced by the model; must match the store schema",
    )
    embedding_base_url: str = Field(
        default="",
        description="OpenAI-compatible base URL. Leave empty to use OpenAI cloud.",
    )
    embedding_timeout: float = 30.0
    embed_batch_size: int = 1

    # Vector store
    vector_store: str = Field(default="chroma", description="'chroma' or 'pgvector'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "public_mind"
    database_url: str = Field(
        default="",
        description="SQLAlchemy URL for the pgvector backend, e.g. postgresql+psycopg://...",
    )
    store_timeout: float = 10.0

    # Chunking / retrieval (whitespace tokens)
    chunk_size: int = 900
    chunk_overlap: int = 150
    top_k: int = 5
    score_threshold: float | None = None

    # Corpus
    docs_dir: str = "docs"
    document_extensions: list[str] = Field(default_factory=lambda: [".pdf", ".txt", ".md"])

    # Serving
    host: str = "localhost"
    port: int = 8080
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings()
