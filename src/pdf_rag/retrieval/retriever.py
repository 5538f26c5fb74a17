"""Retrieval pipeline — embed the query, search the index, return ranked hits.

Usage::

    from pdf_rag.retrieval.retriever import RetrievalPipeline

    pipeline = RetrievalPipeline(embedder, index, collection_name="pdf_rag")
    result = pipeline.retrieve("What does chapter two cover?")
    for hit in result:
        print(hit.short_ref(), hit.text[:80])
"""

from __future__ import annotations

import logging

from pdf_rag.config import settings
from pdf_rag.errors import (
    CollectionNotFoundError,
    EmbeddingError,
    InvalidRequestError,
    RetrievalError,
    VectorIndexError,
)
from pdf_rag.ingestion.embedder import EmbeddingProvider
from pdf_rag.retrieval.base import VectorIndex
from pdf_rag.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)


class RetrievalPipeline:
    """Stateless query-time orchestration over an :class:`EmbeddingProvider`
    and a :class:`VectorIndex`.

    Parameters
    ----------
    embedder:
        Must be the same model the collection was indexed with.
    index:
        Vector-index backend holding the collection.
    collection_name:
        Collection to search.
    default_k:
        Number of results returned when :meth:`retrieve` gets no *k*.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        *,
        collection_name: str = settings.chroma_collection,
        default_k: int = settings.retrieval_k,
    ) -> None:
        if default_k <= 0:
            raise ValueError("default_k must be positive")
        self._embedder = embedder
        self._index = index
        self.collection_name = collection_name
        self.default_k = default_k

    def retrieve(self, query: str, *, k: int | None = None) -> RetrievalResult:
        """Return the top-*k* records for *query*.

        Raises
        ------
        InvalidRequestError
            When *query* is blank or *k* is not positive.
        RetrievalError
            When the collection is missing or empty, or when embedding or
            search fails.  No retry is attempted.
        """
        query = (query or "").strip()
        if not query:
            raise InvalidRequestError("Query must not be empty")
        k = self.default_k if k is None else k
        if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
            raise InvalidRequestError(f"k must be a positive integer, got {k!r}")

        try:
            collection = self._index.ensure_collection(self.collection_name)
        except CollectionNotFoundError as exc:
            raise RetrievalError(
                "No documents have been ingested yet", cause=exc, not_found=True
            ) from exc
        except VectorIndexError as exc:
            raise RetrievalError(f"Vector store unavailable: {exc.message}", cause=exc) from exc

        try:
            vector = self._embedder.embed_query(query)
        except EmbeddingError as exc:
            raise RetrievalError(f"Could not embed query: {exc.message}", cause=exc) from exc

        try:
            result = self._index.search(collection, vector, k)
        except VectorIndexError as exc:
            raise RetrievalError(f"Search failed: {exc.message}", cause=exc) from exc

        if not result.hits:
            raise RetrievalError("No documents have been ingested yet", not_found=True)

        logger.info("Retrieved %d hit(s) from %s", len(result), collection.name)
        return result
