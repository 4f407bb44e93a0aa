"""Error taxonomy shared by ingestion and retrieval."""

from __future__ import annotations


class PublicMindError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(PublicMindError):
    """Invalid chunking / retrieval settings. Fatal at startup."""


class ExtractionError(PublicMindError):
    """The document reader could not produce text for a source document."""


class EmbeddingServiceError(PublicMindError):
    """The embedding provider failed for the item at ``index``."""

    def __init__(self, index: int, cause: BaseException | str) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"embedding failed for item {index}: {cause}")


class PersistenceError(PublicMindError):
    """A vector-store read or write failed."""


class RetrievalError(PublicMindError):
    """A retrieval call could not be completed."""


class IngestionCancelled(PublicMindError):
    """Ingestion was cancelled by the caller."""
