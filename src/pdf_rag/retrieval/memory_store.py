"""Process-local vector index for tests and local development."""

from __future__ import annotations

import itertools
import logging
import threading

import numpy as np

from pdf_rag.errors import CollectionNotFoundError, SearchError, UpsertError
from pdf_rag.retrieval.base import VectorIndex, check_k, rank, validate_batch
from pdf_rag.retrieval.models import (
    INSERTION_ORDER_KEY,
    Collection,
    Distance,
    IndexRecord,
    RetrievalResult,
    ScoredRecord,
)

logger = logging.getLogger(__name__)


class _StoredCollection:
    def __init__(self, handle: Collection) -> None:
        self.handle = handle
        self.dimension: int | None = None
        self.records: list[IndexRecord] = []


def similarity(distance: Distance, query: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """Score *vectors* against *query*; higher is always more similar."""
    if distance is Distance.DOT:
        return vectors @ query
    if distance is Distance.L2:
        return 1.0 / (1.0 + np.linalg.norm(vectors - query, axis=1))
    norms = np.linalg.norm(vectors, axis=1) * np.linalg.norm(query)
    norms[norms == 0] = 1.0
    return (vectors @ query) / norms


class InMemoryVectorIndex(VectorIndex):
    """Simple in-memory storage with the same contract as the remote backends."""

    def __init__(self) -> None:
        self._collections: dict[str, _StoredCollection] = {}
        self._lock = threading.Lock()
        self._sequence = itertools.count()

    def ensure_collection(self, name: str) -> Collection:
        stored = self._collections.get(name)
        if stored is None:
            raise CollectionNotFoundError(f"Collection {name!r} does not exist")
        return stored.handle

    def create_collection(self, name: str, distance: Distance = Distance.COSINE) -> Collection:
        with self._lock:
            stored = self._collections.setdefault(name, _StoredCollection(Collection(name=name, distance=distance)))
        return stored.handle

    def upsert(self, collection: Collection, records: list[IndexRecord]) -> None:
        stored = self._collections.get(collection.name)
        if stored is None:
            raise UpsertError(f"Collection {collection.name!r} does not exist")
        if not records:
            return

        with self._lock:
            dim = validate_batch(records, stored.dimension)
            stamped = [
                record.model_copy(
                    update={"metadata": {**record.metadata, INSERTION_ORDER_KEY: next(self._sequence)}}
                )
                for record in records
            ]
            stored.records.extend(stamped)
            stored.dimension = dim
        logger.debug("Stored %d record(s) in %s", len(records), collection.name)

    def search(self, collection: Collection, query_vector: list[float], k: int) -> RetrievalResult:
        check_k(k)
        stored = self._collections.get(collection.name)
        if stored is None:
            raise SearchError(f"Collection {collection.name!r} does not exist")
        records = list(stored.records)
        if not records:
            return RetrievalResult(collection=collection.name)
        if len(query_vector) != stored.dimension:
            raise SearchError(
                f"Query dimension {len(query_vector)} does not match collection dimension {stored.dimension}"
            )

        scores = similarity(
            stored.handle.distance,
            np.asarray(query_vector, dtype=float),
            np.asarray([r.vector for r in records], dtype=float),
        )
        hits = [
            ScoredRecord(id=r.id, text=r.text, score=float(s), metadata=dict(r.metadata))
            for r, s in zip(records, scores)
        ]
        return RetrievalResult(collection=collection.name, hits=rank(hits, k))

    def health_check(self) -> bool:
        return True

    def count(self, collection: Collection) -> int:
        stored = self._collections.get(collection.name)
        return len(stored.records) if stored is not None else 0
