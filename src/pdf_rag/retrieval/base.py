"""Abstract base class for vector-index backends.

Adding a new backend (Qdrant, pgvector …) only requires subclassing
:class:`VectorIndex` and implementing the abstract methods.  The ingestion
and retrieval pipelines are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pdf_rag.errors import UpsertError
from pdf_rag.retrieval.models import (
    INSERTION_ORDER_KEY,
    Collection,
    Distance,
    IndexRecord,
    RetrievalResult,
    ScoredRecord,
)


class VectorIndex(ABC):
    """Backend-agnostic vector-index interface.

    Collections are provisioned out of band with :meth:`create_collection`;
    the pipelines only ever resolve them with :meth:`ensure_collection`.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def ensure_collection(self, name: str) -> Collection:
        """Return the handle for an existing collection.

        Raises
        ------
        CollectionNotFoundError
            When no collection called *name* has been provisioned.
        """
        ...

    @abstractmethod
    def create_collection(self, name: str, distance: Distance = Distance.COSINE) -> Collection:
        """Provision *name* with the given metric (no-op if it already exists)."""
        ...

    @abstractmethod
    def upsert(self, collection: Collection, records: list[IndexRecord]) -> None:
        """Write *records* as one batch: either all of them are stored or none.

        Raises
        ------
        UpsertError
            When a record is malformed or the backend rejects the write.
        """
        ...

    @abstractmethod
    def search(self, collection: Collection, query_vector: list[float], k: int) -> RetrievalResult:
        """Return the *k* records most similar to *query_vector*.

        Results are ordered by descending score; equal scores keep insertion
        order.  *k* larger than the collection returns every record.

        Raises
        ------
        ValueError
            When *k* is not a positive integer.
        SearchError
            When the collection is missing or the backend fails.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def count(self, collection: Collection) -> int:
        """Number of records stored in *collection*.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support count")


# ---------------------------------------------------------------------------
# Helpers shared by backends
# ---------------------------------------------------------------------------


def check_k(k: Any) -> int:
    if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
        raise ValueError(f"k must be a positive integer, got {k!r}")
    return k


def validate_batch(records: list[IndexRecord], expected_dim: int | None = None) -> int | None:
    """Check a batch before anything is written and return its dimension.

    Every record needs non-empty text and a non-empty vector, and all vectors
    must share one dimension (*expected_dim* when the collection already has
    one).
    """
    dims: set[int] = set()
    for i, record in enumerate(records):
        if not record.text:
            raise UpsertError(f"Record {i} ({record.id}) has empty text")
        if not record.vector:
            raise UpsertError(f"Record {i} ({record.id}) has an empty vector")
        dims.add(len(record.vector))

    if len(dims) > 1:
        raise UpsertError(f"Batch mixes vector dimensions: {sorted(dims)}")
    dim = next(iter(dims), None)
    if dim is not None and expected_dim is not None and dim != expected_dim:
        raise UpsertError(f"Vector dimension {dim} does not match collection dimension {expected_dim}")

    ids = [r.id for r in records]
    if len(set(ids)) != len(ids):
        raise UpsertError("Batch contains duplicate record ids")
    return dim


def rank(hits: list[ScoredRecord], k: int) -> list[ScoredRecord]:
    """Order by descending score, breaking ties by insertion order."""
    ordered = sorted(
        hits,
        key=lambda h: (-h.score, h.metadata.get(INSERTION_ORDER_KEY, 0), h.metadata.get("position", 0)),
    )
    return ordered[:k]
