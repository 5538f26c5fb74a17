"""
Retrieval — vector index backends and query-time search.

This module wraps the vector store behind a clean interface so that
the pipelines never need to know which DB is backing retrieval.

Public surface
--------------
- :class:`RetrievalPipeline` — main entry point for query-time retrieval.
- :class:`VectorIndex` — abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorIndex` — default Chroma backend.
- :class:`InMemoryVectorIndex` — process-local backend for tests.
- :class:`Collection`, :class:`IndexRecord`, :class:`RetrievalResult` — data models.
"""

from pdf_rag.retrieval.base import VectorIndex
from pdf_rag.retrieval.memory_store import InMemoryVectorIndex
from pdf_rag.retrieval.models import (
    Collection,
    Distance,
    IndexRecord,
    RetrievalResult,
    ScoredRecord,
)
from pdf_rag.retrieval.retriever import RetrievalPipeline

__all__ = [
    "ChromaVectorIndex",
    "Collection",
    "Distance",
    "InMemoryVectorIndex",
    "IndexRecord",
    "RetrievalPipeline",
    "RetrievalResult",
    "ScoredRecord",
    "VectorIndex",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from pdf_rag.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
