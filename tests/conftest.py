"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import io
import re
import zlib
from collections.abc import Callable
from pathlib import Path

import pytest
from langchain_core.embeddings import Embeddings

from pdf_rag.ingestion.embedder import LangChainEmbeddingProvider
from pdf_rag.ingestion.loader import PdfDocumentLoader
from pdf_rag.ingestion.models import UploadedDocument
from pdf_rag.ingestion.uploads import UploadStore
from pdf_rag.retrieval.memory_store import InMemoryVectorIndex

COLLECTION = "test-collection"

# One distinct topic per page.
THREE_PAGES = [
    "Volcanoes erupt molten lava and ash from magma chambers beneath the crust.",
    "Photosynthesis lets green plants convert sunlight water and carbon dioxide into glucose.",
    "Medieval castles used moats drawbridges and stone walls for defense.",
]


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embeddings ─────────────────────────────────────────────────────


class KeywordEmbeddings(Embeddings):
    """Deterministic bag-of-words embedding: texts sharing words are similar."""

    def __init__(self, dim: int = 512) -> None:
        self.dim = dim
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vec[zlib.crc32(word.encode()) % self.dim] += 1.0
        return vec

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


class FailingEmbeddings(Embeddings):
    """Backend that is always down."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise ConnectionError("quota exhausted")

    def embed_query(self, text: str) -> list[float]:
        raise ConnectionError("quota exhausted")


# ── Minimal PDF writer ──────────────────────────────────────────────────


def build_pdf(pages: list[str]) -> bytes:
    """Return a valid PDF with one line of Helvetica text per page."""
    n = len(pages)
    font_id = 3
    page_ids = [4 + 2 * i for i in range(n)]
    objects: dict[int, bytes] = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: (
            "<< /Type /Pages /Kids [" + " ".join(f"{p} 0 R" for p in page_ids) + f"] /Count {n} >>"
        ).encode(),
        font_id: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for page_id, text in zip(page_ids, pages):
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")
        objects[page_id] = (
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 {font_id} 0 R >> >> /Contents {page_id + 1} 0 R >>"
        ).encode()
        objects[page_id + 1] = (
            f"<< /Length {len(stream)} >>\nstream\n".encode() + stream + b"\nendstream"
        )

    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets: dict[int, int] = {}
    for obj_id in sorted(objects):
        offsets[obj_id] = out.tell()
        out.write(f"{obj_id} 0 obj\n".encode() + objects[obj_id] + b"\nendobj\n")
    xref_at = out.tell()
    size = max(objects) + 1
    out.write(f"xref\n0 {size}\n".encode())
    out.write(b"0000000000 65535 f \n")
    for obj_id in range(1, size):
        out.write(f"{offsets[obj_id]:010d} 00000 n \n".encode())
    out.write(f"trailer\n<< /Size {size} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode())
    return out.getvalue()


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def keyword_embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture()
def embedder(keyword_embeddings: KeywordEmbeddings) -> LangChainEmbeddingProvider:
    return LangChainEmbeddingProvider(keyword_embeddings, model_name="keyword-test", batch_size=2)


@pytest.fixture()
def failing_embedder() -> LangChainEmbeddingProvider:
    return LangChainEmbeddingProvider(FailingEmbeddings(), model_name="down")


@pytest.fixture()
def index() -> InMemoryVectorIndex:
    idx = InMemoryVectorIndex()
    idx.create_collection(COLLECTION)
    return idx


@pytest.fixture()
def loader() -> PdfDocumentLoader:
    return PdfDocumentLoader(chunk_size=1000, chunk_overlap=100)


@pytest.fixture()
def upload_store(tmp_path: Path) -> UploadStore:
    return UploadStore(tmp_path / "uploads")


@pytest.fixture()
def make_upload(upload_store: UploadStore) -> Callable[..., UploadedDocument]:
    """Store raw bytes (or PDF pages) as an upload and return its handle."""

    def _make(content: bytes | list[str] = THREE_PAGES, filename: str = "report.pdf") -> UploadedDocument:
        data = build_pdf(content) if isinstance(content, list) else content
        return upload_store.save(filename, io.BytesIO(data))

    return _make


@pytest.fixture()
def pdf_bytes() -> bytes:
    """The three-page topical PDF as raw bytes."""
    return build_pdf(THREE_PAGES)
