"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
import re
import time
from typing import Any

import chromadb
from chromadb.errors import NotFoundError

from pdf_rag.config import settings
from pdf_rag.errors import (
    CollectionNotFoundError,
    SearchError,
    UpsertError,
    VectorIndexError,
)
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

# Chroma's default space when a collection was created without one.
_DEFAULT_SPACE = "l2"

_MISSING_COLLECTION = re.compile(r"^Collection \S+ does not exist")

# Extra rows fetched beyond k so equal-score neighbours at the cut-off can be
# re-ranked by insertion order.
_TIE_MARGIN = 8


def _is_missing_collection(exc: Exception) -> bool:
    if isinstance(exc, NotFoundError):
        return True
    # Servers from before the typed error answer with a plain message.
    return isinstance(exc, ValueError) and _MISSING_COLLECTION.search(str(exc)) is not None


def _flatten_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    flat: dict[str, Any] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        flat[key] = value if isinstance(value, (str, int, float, bool)) else str(value)
    return flat


def _to_similarity(distance: Distance, raw: float) -> float:
    # Chroma returns distances; convert to a "higher is more similar" score.
    if distance is Distance.L2:
        return 1.0 / (1.0 + raw)
    return 1.0 - raw


class ChromaVectorIndex(VectorIndex):
    """Chroma-backed vector index.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built client, mainly for tests.  When *None* an
        ``chromadb.HttpClient`` is created on first use.
    """

    def __init__(
        self,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any = None,
    ) -> None:
        self._host = host
        self._port = port
        self._client = client

    # -- VectorIndex overrides ------------------------------------------------

    def ensure_collection(self, name: str) -> Collection:
        chroma_collection = self._get_chroma_collection(name)
        space = (chroma_collection.metadata or {}).get("hnsw:space", _DEFAULT_SPACE)
        return Collection(name=name, distance=Distance(space))

    def create_collection(self, name: str, distance: Distance = Distance.COSINE) -> Collection:
        try:
            self.client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": distance.value},
                embedding_function=None,
            )
        except Exception as exc:
            raise VectorIndexError(f"Could not create collection {name!r}: {exc}", cause=exc) from exc
        logger.info("Provisioned collection %s (distance=%s)", name, distance.value)
        return self.ensure_collection(name)

    def upsert(self, collection: Collection, records: list[IndexRecord]) -> None:
        if not records:
            return
        validate_batch(records)

        try:
            max_batch = self.client.get_max_batch_size()
        except Exception as exc:
            raise UpsertError(f"Vector store unavailable: {exc}", cause=exc) from exc
        # A single write is what keeps the batch all-or-nothing.
        if len(records) > max_batch:
            raise UpsertError(
                f"Batch of {len(records)} records exceeds the store's limit of {max_batch}"
            )

        try:
            chroma_collection = self._get_chroma_collection(collection.name)
        except VectorIndexError as exc:
            raise UpsertError(exc.message, cause=exc) from exc

        indexed_at = time.time_ns()
        try:
            chroma_collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.vector for r in records],
                documents=[r.text for r in records],
                metadatas=[
                    _flatten_metadata({**r.metadata, INSERTION_ORDER_KEY: indexed_at}) for r in records
                ],
            )
        except Exception as exc:
            raise UpsertError(f"Vector store rejected the batch: {exc}", cause=exc) from exc
        logger.info("Upserted %d record(s) into %s", len(records), collection.name)

    def search(self, collection: Collection, query_vector: list[float], k: int) -> RetrievalResult:
        check_k(k)
        try:
            chroma_collection = self._get_chroma_collection(collection.name)
        except VectorIndexError as exc:
            raise SearchError(exc.message, cause=exc) from exc

        try:
            total = chroma_collection.count()
            if total == 0:
                return RetrievalResult(collection=collection.name)
            results = chroma_collection.query(
                query_embeddings=[query_vector],
                n_results=min(k + _TIE_MARGIN, total),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise SearchError(f"Similarity search failed: {exc}", cause=exc) from exc

        hits: list[ScoredRecord] = []
        ids = results.get("ids", [[]])[0]
        docs = results.get("documents", [[]])[0]
        metas = results.get("metadatas", [[]])[0]
        distances = results.get("distances", [[]])[0]

        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            hits.append(
                ScoredRecord(
                    id=doc_id,
                    text=content or "",
                    score=_to_similarity(collection.distance, dist),
                    metadata=dict(meta or {}),
                )
            )
        return RetrievalResult(collection=collection.name, hits=rank(hits, k))

    def health_check(self) -> bool:
        try:
            self.client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def count(self, collection: Collection) -> int:
        try:
            return self._get_chroma_collection(collection.name).count()
        except CollectionNotFoundError:
            return 0

    # -- internals ------------------------------------------------------------

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = chromadb.HttpClient(host=self._host, port=self._port)
            except Exception as exc:
                raise VectorIndexError(
                    f"Could not connect to Chroma at {self._host}:{self._port}", cause=exc
                ) from exc
        return self._client

    def _get_chroma_collection(self, name: str) -> Any:
        try:
            return self.client.get_collection(name=name, embedding_function=None)
        except VectorIndexError:
            raise
        except Exception as exc:
            if _is_missing_collection(exc):
                raise CollectionNotFoundError(f"Collection {name!r} does not exist", cause=exc) from exc
            raise VectorIndexError(f"Vector store unavailable: {exc}", cause=exc) from exc
