"""Unit tests for the error taxonomy."""

import pytest

from pdf_rag.errors import (
    CollectionNotFoundError,
    EmbeddingError,
    GenerationError,
    InvalidRequestError,
    LoadError,
    RagError,
    RetrievalError,
    SearchError,
    UpsertError,
    VectorIndexError,
)


@pytest.mark.parametrize(
    ("error_cls", "kind", "status"),
    [
        (InvalidRequestError, "invalid_request", 400),
        (LoadError, "load", 422),
        (EmbeddingError, "embedding", 502),
        (CollectionNotFoundError, "collection_not_found", 404),
        (UpsertError, "upsert", 502),
        (SearchError, "search", 502),
        (RetrievalError, "retrieval", 502),
        (GenerationError, "generation", 502),
    ],
)
def test_kind_and_status(error_cls: type[RagError], kind: str, status: int) -> None:
    err = error_cls("boom")
    assert err.kind == kind
    assert err.status_code == status
    assert err.to_dict() == {"error": "boom", "kind": kind}


def test_vector_index_errors_share_a_base() -> None:
    for cls in (CollectionNotFoundError, UpsertError, SearchError):
        assert issubclass(cls, VectorIndexError)


def test_retrieval_error_not_found_maps_to_404() -> None:
    assert RetrievalError("empty", not_found=True).status_code == 404
    assert RetrievalError("down").status_code == 502


def test_cause_is_kept() -> None:
    cause = ValueError("x")
    assert LoadError("bad", cause=cause).cause is cause
