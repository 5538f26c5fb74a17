"""Domain models for indexed records and retrieval results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# Metadata key holding the insertion ordinal used to break score ties.
INSERTION_ORDER_KEY = "indexed_at_ns"


class Distance(str, Enum):
    """Similarity metric fixed at collection provisioning time."""

    COSINE = "cosine"
    DOT = "ip"
    L2 = "l2"


class Collection(BaseModel):
    """Handle on a provisioned collection.

    Handles are plain values: two handles for the same collection compare
    equal, so resolving a collection repeatedly is side-effect free.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    distance: Distance = Distance.COSINE


class IndexRecord(BaseModel):
    """The persisted unit of the vector index: vector, text and metadata."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    vector: list[float]
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScoredRecord(BaseModel):
    """A stored record returned by a similarity search."""

    id: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def source(self) -> str:
        return self.metadata.get("source", "unknown")

    @property
    def page(self) -> int | None:
        return self.metadata.get("page")

    def short_ref(self) -> str:
        """Return a compact ``[source p.N]`` reference string (1-based page)."""
        page = self.page
        return f"[{self.source} p.{page + 1}]" if page is not None else f"[{self.source}]"


class RetrievalResult(BaseModel):
    """Top-*k* records for one query, best match first."""

    collection: str
    hits: list[ScoredRecord] = Field(default_factory=list)

    def __iter__(self) -> Iterator[ScoredRecord]:  # type: ignore[override]
        return iter(self.hits)

    def __len__(self) -> int:
        return len(self.hits)

    def texts(self) -> list[str]:
        return [hit.text for hit in self.hits]
