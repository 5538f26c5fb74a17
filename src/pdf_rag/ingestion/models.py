"""Domain models for the ingestion side: uploads, segments and reports."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class UploadedDocument(BaseModel):
    """Per-request handle on an uploaded file awaiting ingestion.

    Attributes
    ----------
    document_id:
        Unique identifier generated for this upload.
    filename:
        The name the client uploaded the file under.
    path:
        Location of the file on transient storage.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(default_factory=lambda: uuid4().hex)
    filename: str
    path: Path


class Segment(BaseModel):
    """One addressable unit of text extracted from a document."""

    model_config = ConfigDict(frozen=True)

    text: str
    document_id: str
    source: str
    page: int | None = None
    position: int
    metadata: dict[str, Any] = Field(default_factory=dict)


class IngestStage(str, Enum):
    RECEIVED = "received"
    LOADED = "loaded"
    EMBEDDED = "embedded"
    INDEXED = "indexed"
    CLEANED = "cleaned"
    FAILED = "failed"


class IngestReport(BaseModel):
    """Outcome of a successful ingestion."""

    document_id: str
    filename: str
    collection: str
    segments: int
    records: int
    stage: IngestStage = IngestStage.CLEANED
