"""FastAPI application exposing PDF ingestion and question answering."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pdf_rag import __version__
from pdf_rag.agent.graph import answer_question
from pdf_rag.config import configure_logging, settings
from pdf_rag.errors import InvalidRequestError, RagError
from pdf_rag.ingestion.models import IngestStage
from pdf_rag.ingestion.pipeline import IngestionPipeline
from pdf_rag.ingestion.uploads import UploadStore
from pdf_rag.serving.dependencies import get_ingestion_pipeline, get_qa_graph, get_upload_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    yield


app = FastAPI(
    title="PDF RAG API",
    version=__version__,
    description="Upload PDFs and ask questions answered from their content.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ── Response schemas ──────────────────────────────────────────────────
class IngestResponse(BaseModel):
    """Outcome of a successful upload."""

    status: str = "ok"
    document_id: str
    filename: str
    collection: str
    segments: int
    records: int
    stage: IngestStage


class ChatResponse(BaseModel):
    """Answer returned for a question."""

    answer: str
    sources: list[str] = []


# ── Error mapping ─────────────────────────────────────────────────────
@app.exception_handler(RagError)
async def rag_error_handler(request: Request, exc: RagError) -> JSONResponse:
    logger.warning("%s %s failed: [%s] %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidRequestError(_describe_validation_errors(exc.errors()))
    logger.warning("%s %s rejected: %s", request.method, request.url.path, error.message)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "kind": "internal"})


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/upload/pdf", response_model=IngestResponse)
async def upload_pdf(
    pdf: UploadFile | None = File(default=None),
    uploads: UploadStore = Depends(get_upload_store),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> IngestResponse:
    """Store the uploaded PDF, index it, and remove the stored copy."""
    if pdf is None or not pdf.filename:
        raise InvalidRequestError("No file uploaded")

    document = await run_in_threadpool(uploads.save, pdf.filename, pdf.file)
    report = await run_in_threadpool(pipeline.ingest, document)
    return IngestResponse(**report.model_dump())


@app.get("/chat", response_model=ChatResponse)
async def chat(
    message: str = Query(default=""),
    k: int | None = Query(default=None),
    graph: Any = Depends(get_qa_graph),
) -> ChatResponse:
    """Answer *message* from the indexed documents."""
    answer = await run_in_threadpool(answer_question, graph, message, k=k)
    return ChatResponse(answer=answer.text, sources=answer.sources)


def _describe_validation_errors(errors) -> str:
    """Render FastAPI validation errors as ``"k: Input should be a valid integer"``."""
    parts = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("query", "body", "path")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"
