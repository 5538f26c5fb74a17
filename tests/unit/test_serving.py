"""Unit tests for the serving layer."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from pdf_rag.agent.generator import ChatModelAnswerGenerator
from pdf_rag.config import settings
from pdf_rag.retrieval.memory_store import InMemoryVectorIndex
from pdf_rag.serving import dependencies as deps
from pdf_rag.serving.app import app
from pdf_rag.serving.dependencies import build_graph


@pytest.fixture()
def vector_index() -> InMemoryVectorIndex:
    index = InMemoryVectorIndex()
    index.create_collection(settings.chroma_collection)
    return index


@pytest.fixture()
def client(vector_index, embedder, upload_store) -> Iterator[TestClient]:
    generator = ChatModelAnswerGenerator(FakeListChatModel(responses=["Plants make glucose."]))
    app.dependency_overrides[deps.get_vector_index] = lambda: vector_index
    app.dependency_overrides[deps.get_embedder] = lambda: embedder
    app.dependency_overrides[deps.get_upload_store] = lambda: upload_store
    app.dependency_overrides[deps.get_answer_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()


def _count(index: InMemoryVectorIndex) -> int:
    return index.count(index.ensure_collection(settings.chroma_collection))


def test_health_endpoint() -> None:
    """GET /health should return 200 with status ok."""
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestUpload:
    def test_upload_indexes_and_cleans_up(self, client, vector_index, upload_store, pdf_bytes) -> None:
        response = client.post(
            "/upload/pdf", files={"pdf": ("science.pdf", pdf_bytes, "application/pdf")}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["filename"] == "science.pdf"
        assert body["segments"] == 3
        assert body["records"] == 3
        assert body["stage"] == "cleaned"
        assert _count(vector_index) == 3
        assert list(upload_store.root.iterdir()) == []

    def test_non_pdf_upload(self, client, vector_index, upload_store) -> None:
        response = client.post(
            "/upload/pdf", files={"pdf": ("notes.pdf", b"hello, I am text", "application/pdf")}
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "load"
        assert _count(vector_index) == 0
        assert list(upload_store.root.iterdir()) == []

    def test_missing_file(self, client) -> None:
        response = client.post("/upload/pdf")
        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded", "kind": "invalid_request"}

    def test_form_field_that_is_not_a_file(self, client, upload_store) -> None:
        response = client.post("/upload/pdf", data={"pdf": "not a file"})

        assert response.status_code == 400
        body = response.json()
        assert set(body) == {"error", "kind"}
        assert body["kind"] == "invalid_request"
        assert body["error"].startswith("pdf:")

    def test_missing_collection(self, client, upload_store, pdf_bytes) -> None:
        app.dependency_overrides[deps.get_vector_index] = lambda: InMemoryVectorIndex()
        response = client.post("/upload/pdf", files={"pdf": ("a.pdf", pdf_bytes, "application/pdf")})

        assert response.status_code == 404
        assert response.json()["kind"] == "collection_not_found"
        assert list(upload_store.root.iterdir()) == []


class TestChat:
    def test_answer_after_upload(self, client, pdf_bytes) -> None:
        client.post("/upload/pdf", files={"pdf": ("science.pdf", pdf_bytes, "application/pdf")})

        response = client.get("/chat", params={"message": "How do plants convert sunlight into glucose?"})

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "Plants make glucose."
        assert body["sources"][0] == "[science.pdf p.2]"

    def test_no_documents_is_an_error(self, client) -> None:
        response = client.get("/chat", params={"message": "anything"})
        assert response.status_code == 404
        assert response.json()["kind"] == "retrieval"
        assert "answer" not in response.json()

    def test_blank_message(self, client) -> None:
        response = client.get("/chat", params={"message": "  "})
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_request"

    def test_non_integer_k(self, client) -> None:
        response = client.get("/chat", params={"message": "hi", "k": "abc"})

        assert response.status_code == 400
        body = response.json()
        assert set(body) == {"error", "kind"}
        assert body["kind"] == "invalid_request"
        assert body["error"].startswith("k:")

    def test_graph_is_compiled_once(self, client, pdf_bytes) -> None:
        client.post("/upload/pdf", files={"pdf": ("science.pdf", pdf_bytes, "application/pdf")})

        with patch("pdf_rag.serving.dependencies.build_graph", wraps=build_graph) as build:
            first = client.get("/chat", params={"message": "What do plants make?"})
            second = client.get("/chat", params={"message": "What do volcanoes erupt?"})

        assert first.status_code == second.status_code == 200
        build.assert_called_once()

    def test_same_components_share_a_graph(self, embedder, vector_index) -> None:
        generator = ChatModelAnswerGenerator(FakeListChatModel(responses=["ok"]))

        graph = deps.get_qa_graph(embedder, vector_index, generator)

        assert deps.get_qa_graph(embedder, vector_index, generator) is graph
        other = ChatModelAnswerGenerator(FakeListChatModel(responses=["ok"]))
        assert deps.get_qa_graph(embedder, vector_index, other) is not graph


def test_unexpected_error_is_structured(client, pdf_bytes) -> None:
    broken = MagicMock()
    broken.save.side_effect = RuntimeError("disk on fire")
    app.dependency_overrides[deps.get_upload_store] = lambda: broken

    response = TestClient(app, raise_server_exceptions=False).post(
        "/upload/pdf", files={"pdf": ("a.pdf", pdf_bytes, "application/pdf")}
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "kind": "internal"}


class TestCors:
    def test_preflight_from_allowed_origin(self) -> None:
        origin = settings.cors_origins[0]
        response = TestClient(app).options(
            "/chat", headers={"Origin": origin, "Access-Control-Request-Method": "GET"}
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin

    def test_preflight_from_unknown_origin_is_refused(self) -> None:
        response = TestClient(app).options(
            "/upload/pdf",
            headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers

    def test_simple_request_carries_allow_origin(self) -> None:
        origin = settings.cors_origins[0]
        response = TestClient(app).get("/health", headers={"Origin": origin})

        assert response.headers["access-control-allow-origin"] == origin
