"""PostgreSQL + pgvector implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    delete,
    func,
    insert,
    literal,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from public_mind.exceptions import PersistenceError
from public_mind.retrieval.base import VectorStoreBase
from public_mind.retrieval.models import Chunk, EmbeddingVector, SimilarityResult

logger = logging.getLogger(__name__)


def build_documents_table(metadata: MetaData, dimension: int, name: str = "documents") -> Table:
    """Describe the chunk table with an HNSW cosine index on ``embedding``."""
    table = Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("file_name", Text, nullable=False, index=True),
        Column("chunk_index", Integer, nullable=False),
        Column("chunk_text", Text, nullable=False),
        Column("embedding", Vector(dimension), nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    )
    Index(
        f"{name}_embedding_idx",
        table.c.embedding,
        postgresql_using="hnsw",
        postgresql_ops={"embedding": "vector_cosine_ops"},
    )
    return table


class PgVectorStore(VectorStoreBase):
    """pgvector-backed store; each document is written in one transaction.

    Parameters
    ----------
    database_url:
        SQLAlchemy URL, e.g. ``postgresql+psycopg://user:pw@host/db``.
        Ignored when *engine* is given.
    dimension:
        Declared ``vector(n)`` length.
    engine:
        A ready SQLAlchemy engine.
    timeout:
        Connect and statement timeout in seconds.
    table_name:
        Name of the chunk table.
    """

    def __init__(
        self,
        database_url: str = "",
        *,
        dimension: int = 1536,
        engine: Engine | None = None,
        timeout: float = 10.0,
        table_name: str = "documents",
    ) -> None:
        super().__init__(dimension)
        if engine is None:
            engine = create_engine(
                database_url,
                pool_pre_ping=True,
                connect_args={
                    "connect_timeout": max(1, int(timeout)),
                    "options": f"-c statement_timeout={int(timeout * 1000)}",
                },
            )
        self._engine = engine
        self._metadata = MetaData()
        self.table = build_documents_table(self._metadata, dimension, table_name)

    # -- VectorStoreBase overrides --------------------------------------------

    def ensure_schema(self) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                self._metadata.create_all(conn, checkfirst=True)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to provision schema: {exc}") from exc

    def insert_chunks(
        self,
        document_name: str,
        items: Sequence[tuple[Chunk, EmbeddingVector]],
    ) -> None:
        if not items:
            return
        rows = []
        for chunk, vector in items:
            if not self._check_dimension(vector):
                raise PersistenceError(
                    f"{document_name} chunk {chunk.index}: expected dimension "
                    f"{self.dimension}, got {len(vector)}"
                )
            rows.append(
                {
                    "file_name": document_name,
                    "chunk_index": chunk.index,
                    "chunk_text": chunk.text,
                    "embedding": list(vector),
                }
            )
        try:
            with self._engine.begin() as conn:
                conn.execute(insert(self.table), rows)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to store chunks for {document_name}: {exc}") from exc
        logger.info("Stored %d chunks for %s", len(rows), document_name)

    def exists(self, document_name: str) -> bool:
        query = select(literal(1)).where(self.table.c.file_name == document_name).limit(1)
        try:
            with self._engine.connect() as conn:
                return conn.execute(query).first() is not None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"existence check failed for {document_name}: {exc}") from exc

    def nearest(self, query_vector: EmbeddingVector, top_k: int) -> list[SimilarityResult]:
        if top_k <= 0:
            raise ValueError(f"top_k must be > 0, got {top_k}")
        distance = self.table.c.embedding.cosine_distance(list(query_vector))
        query = (
            select(
                self.table.c.id,
                self.table.c.file_name,
                self.table.c.chunk_index,
                self.table.c.chunk_text,
                (1 - distance).label("similarity"),
            )
            .order_by(distance, self.table.c.id)
            .limit(top_k)
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"nearest-neighbour query failed: {exc}") from exc
        return [
            SimilarityResult(
                chunk_id=str(row.id),
                document_name=row.file_name,
                chunk_index=row.chunk_index,
                content=row.chunk_text,
                similarity=float(row.similarity),
            )
            for row in rows
        ]

    def delete_document(self, document_name: str) -> int:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(delete(self.table).where(self.table.c.file_name == document_name))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to delete chunks for {document_name}: {exc}") from exc
        if result.rowcount:
            logger.info("Deleted %d chunks for %s", result.rowcount, document_name)
        return result.rowcount

    def count(self) -> int:
        try:
            with self._engine.connect() as conn:
                return conn.execute(select(func.count()).select_from(self.table)).scalar_one()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"count failed: {exc}") from exc

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("pgvector health-check failed", exc_info=True)
            return False
