"""Error taxonomy shared by the ingestion and retrieval pipelines.

Every failure of an external call is classified into one of these types at
the pipeline boundary.  The transport layer turns them into a structured
``{"error": ..., "kind": ...}`` body through :meth:`RagError.to_dict`, so a
request never reports success when indexing or generation did not happen.
"""

from __future__ import annotations


class RagError(Exception):
    """Base class for every failure the core reports to its callers.

    Parameters
    ----------
    message:
        Human-readable description, safe to show to end users.
    cause:
        The underlying exception, when there is one.
    """

    kind: str = "internal"
    status_code: int = 500

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "kind": self.kind}


class InvalidRequestError(RagError):
    """The caller supplied an unusable query or upload."""

    kind = "invalid_request"
    status_code = 400


class LoadError(RagError):
    """The document is unreadable, empty, or not a supported format."""

    kind = "load"
    status_code = 422


class EmbeddingError(RagError):
    """The embedding backend failed, ran out of quota, or got malformed input."""

    kind = "embedding"
    status_code = 502


class VectorIndexError(RagError):
    """The vector store could not be reached or rejected an operation."""

    kind = "vector_index"
    status_code = 502


class CollectionNotFoundError(VectorIndexError):
    """The named collection has not been provisioned."""

    kind = "collection_not_found"
    status_code = 404


class UpsertError(VectorIndexError):
    kind = "upsert"


class SearchError(VectorIndexError):
    kind = "search"


class RetrievalError(RagError):
    """Query-time retrieval failed; wraps the embedding or vector-store cause."""

    kind = "retrieval"
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        not_found: bool = False,
    ) -> None:
        super().__init__(message, cause=cause)
        if not_found:
            self.status_code = 404


class GenerationError(RagError):
    """The generative model was unavailable or refused to answer."""

    kind = "generation"
    status_code = 502
