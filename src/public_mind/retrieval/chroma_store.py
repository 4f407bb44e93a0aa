"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import chromadb

from public_mind.exceptions import PersistenceError
from public_mind.retrieval.base import VectorStoreBase
from public_mind.retrieval.models import Chunk, EmbeddingVector, SimilarityResult

logger = logging.getLogger(__name__)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using cosine distance.

    Row ids are ``"<document_name>#<chunk_index>"``.  Chroma has no
    auto-increment key, so each row carries a ``seq`` metadata value
    that records insertion order for tie-breaking.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    dimension:
        Expected embedding length.
    client:
        A ready Chroma client (e.g. ``chromadb.EphemeralClient()``).
        When *None*, an ``HttpClient`` for *host*/*port* is created.
    host / port:
        Chroma server location.
    batch_size:
        Max records per ``add`` call.
    """

    def __init__(
        self,
        collection_name: str = "public_mind",
        *,
        dimension: int = 1536,
        client: Any | None = None,
        host: str = "localhost",
        port: int = 8000,
        batch_size: int = 5000,
    ) -> None:
        super().__init__(dimension)
        self.collection_name = collection_name
        self.batch_size = batch_size
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._collection = None
        self._next_seq: int | None = None

    @property
    def collection(self):
        if self._collection is None:
            self.ensure_schema()
        return self._collection

    # -- VectorStoreBase overrides --------------------------------------------

    def ensure_schema(self) -> None:
        try:
            self._collection = self._client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as exc:
            raise PersistenceError(
                f"failed to create collection {self.collection_name!r}: {exc}"
            ) from exc

    def insert_chunks(
        self,
        document_name: str,
        items: Sequence[tuple[Chunk, EmbeddingVector]],
    ) -> None:
        if not items:
            return
        for chunk, vector in items:
            if not self._check_dimension(vector):
                raise PersistenceError(
                    f"{document_name} chunk {chunk.index}: expected dimension "
                    f"{self.dimension}, got {len(vector)}"
                )

        try:
            seq_base = self._reserve_seq(len(items))
            ids = [f"{document_name}#{chunk.index}" for chunk, _ in items]
            embeddings = [list(vector) for _, vector in items]
            documents = [chunk.text for chunk, _ in items]
            metadatas = [
                {
                    "document_name": document_name,
                    "chunk_index": chunk.index,
                    "token_count": chunk.token_count,
                    "seq": seq_base + i,
                }
                for i, (chunk, _) in enumerate(items)
            ]
            for start in range(0, len(ids), self.batch_size):
                end = start + self.batch_size
                self.collection.add(
                    ids=ids[start:end],
                    embeddings=embeddings[start:end],
                    documents=documents[start:end],
                    metadatas=metadatas[start:end],
                )
        except Exception as exc:
            logger.warning("Insert failed for %s; removing partial rows", document_name)
            self._cleanup(document_name)
            raise PersistenceError(f"failed to store chunks for {document_name}: {exc}") from exc

        logger.info("Stored %d chunks for %s", len(items), document_name)

    def exists(self, document_name: str) -> bool:
        try:
            found = self.collection.get(
                where={"document_name": document_name},
                limit=1,
                include=["metadatas"],
            )
        except Exception as exc:
            raise PersistenceError(f"existence check failed for {document_name}: {exc}") from exc
        return bool(found.get("ids"))

    def nearest(self, query_vector: EmbeddingVector, top_k: int) -> list[SimilarityResult]:
        if top_k <= 0:
            raise ValueError(f"top_k must be > 0, got {top_k}")
        try:
            available = self.collection.count()
            if available == 0:
                return []
            # Chroma picks arbitrarily among rows tied at the cut-off, so keep
            # widening the candidate set until the tie at position top_k is
            # fully inside it.
            n_results = min(available, top_k * 2)
            while True:
                ranked = self._query(query_vector, n_results)
                if n_results >= available or len(ranked) <= top_k:
                    break
                if ranked[-1][0] != ranked[top_k - 1][0]:
                    break
                n_results = min(available, n_results * 2)
        except Exception as exc:
            raise PersistenceError(f"nearest-neighbour query failed: {exc}") from exc

        return [hit for _, _, hit in ranked[:top_k]]

    def delete_document(self, document_name: str) -> int:
        try:
            found = self.collection.get(where={"document_name": document_name}, include=["metadatas"])
            ids = found.get("ids") or []
            if ids:
                self.collection.delete(ids=ids)
        except Exception as exc:
            raise PersistenceError(f"failed to delete chunks for {document_name}: {exc}") from exc
        if ids:
            logger.info("Deleted %d chunks for %s", len(ids), document_name)
        return len(ids)

    def count(self) -> int:
        try:
            return self.collection.count()
        except Exception as exc:
            raise PersistenceError(f"count failed: {exc}") from exc

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _query(
        self, query_vector: EmbeddingVector, n_results: int
    ) -> list[tuple[float, int, SimilarityResult]]:
        """Return ``(rank_key, seq, hit)`` triples sorted by rank key then seq."""
        results = self.collection.query(
            query_embeddings=[list(query_vector)],
            n_results=n_results,
            include=["documents", "metadatas", "distances"],
        )
        ids = results.get("ids", [[]])[0]
        docs = results.get("documents", [[]])[0]
        metas = results.get("metadatas", [[]])[0]
        distances = results.get("distances", [[]])[0]

        ranked: list[tuple[float, int, SimilarityResult]] = []
        for chunk_id, content, meta, dist in zip(ids, docs, metas, distances):
            meta = meta or {}
            similarity = 1.0 - float(dist)
            hit = SimilarityResult(
                chunk_id=chunk_id,
                document_name=meta.get("document_name", "unknown"),
                chunk_index=meta.get("chunk_index"),
                content=content or "",
                similarity=similarity,
            )
            # float32 distances of identical vectors can differ in the last bits
            ranked.append((round(-similarity, 6), meta.get("seq", 0), hit))
        ranked.sort(key=lambda entry: (entry[0], entry[1]))
        return ranked

    def _reserve_seq(self, n: int) -> int:
        """Return the first of *n* fresh insertion sequence numbers.

        The counter starts one past the highest ``seq`` already stored and
        only grows, so deletions never cause a value to be reused.
        """
        if self._next_seq is None:
            self._next_seq = self._max_seq() + 1
        first = self._next_seq
        self._next_seq += n
        return first

    def _max_seq(self) -> int:
        highest = -1
        offset = 0
        while True:
            page = self.collection.get(include=["metadatas"], limit=self.batch_size, offset=offset)
            metas = page.get("metadatas") or []
            for meta in metas:
                highest = max(highest, int((meta or {}).get("seq", -1)))
            if len(metas) < self.batch_size:
                return highest
            offset += self.batch_size

    def _cleanup(self, document_name: str) -> None:
        try:
            self.delete_document(document_name)
        except PersistenceError:
            logger.error("Could not remove partial rows for %s", document_name, exc_info=True)
