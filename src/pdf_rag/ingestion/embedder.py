"""Embedding providers — text in, fixed-length vectors out.

The same provider instance (and therefore the same model) must be used for
indexing and querying a collection.  Nothing checks this at runtime: the
backend does not report its dimensionality up front, so consistency is a
matter of configuration (``settings.embedding_model``).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pdf_rag.config import settings
from pdf_rag.errors import EmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(model_name: str = settings.embedding_model) -> Embeddings:
    """Return the configured sentence-transformer embedding function."""
    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(
        model_name=model_name,
        encode_kwargs={"normalize_embeddings": True},
    )


class EmbeddingProvider(ABC):
    """Maps text to vectors, with separate document and query framing."""

    model_name: str = "unknown"

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* for indexing; returns one vector per text, in order."""
        ...

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed a user query for similarity search."""
        ...


class LangChainEmbeddingProvider(EmbeddingProvider):
    """Adapter over any LangChain ``Embeddings`` implementation.

    Parameters
    ----------
    embeddings:
        The backend.  When *None*, :func:`get_embedding_function` builds the
        HuggingFace model named by *model_name*.
    model_name:
        Identifier recorded alongside indexed vectors.
    batch_size:
        Maximum number of texts per backend call.
    document_prefix / query_prefix:
        Task framing prepended to texts before embedding.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        model_name: str = settings.embedding_model,
        batch_size: int = settings.embedding_batch_size,
        document_prefix: str = settings.embedding_document_prefix,
        query_prefix: str = settings.embedding_query_prefix,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._embeddings = embeddings if embeddings is not None else get_embedding_function(model_name)
        self.model_name = model_name
        self.batch_size = batch_size
        self.document_prefix = document_prefix
        self.query_prefix = query_prefix

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if any(not t or not t.strip() for t in texts):
            raise EmbeddingError("Cannot embed empty text")

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = [self.document_prefix + t for t in texts[start : start + self.batch_size]]
            try:
                result = self._embeddings.embed_documents(batch)
            except Exception as exc:
                raise EmbeddingError(f"Embedding backend failed: {exc}", cause=exc) from exc
            if len(result) != len(batch):
                raise EmbeddingError(
                    f"Embedding backend returned {len(result)} vectors for {len(batch)} texts"
                )
            vectors.extend(list(v) for v in result)
            logger.debug("embedded %d / %d", len(vectors), len(texts))

        _check_dimensions(vectors)
        return vectors

    def embed_query(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        try:
            vector = list(self._embeddings.embed_query(self.query_prefix + text))
        except Exception as exc:
            raise EmbeddingError(f"Embedding backend failed: {exc}", cause=exc) from exc
        _check_dimensions([vector])
        return vector


def _check_dimensions(vectors: list[list[float]]) -> None:
    dims = {len(v) for v in vectors}
    if 0 in dims:
        raise EmbeddingError("Embedding backend returned an empty vector")
    if len(dims) > 1:
        raise EmbeddingError(f"Embedding backend returned mixed dimensions: {sorted(dims)}")
