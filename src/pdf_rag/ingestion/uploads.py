"""Transient storage for uploaded documents."""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

from pdf_rag.config import settings
from pdf_rag.errors import InvalidRequestError
from pdf_rag.ingestion.models import UploadedDocument

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Reduce a client-supplied name to a harmless basename."""
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "upload"


class UploadStore:
    """Writes uploads under *root* with collision-free ``{uuid}-{name}`` names."""

    def __init__(self, root: str | Path = settings.upload_dir) -> None:
        self.root = Path(root)

    def save(self, filename: str, stream: BinaryIO) -> UploadedDocument:
        if not filename:
            raise InvalidRequestError("Uploaded file has no name")
        self.root.mkdir(parents=True, exist_ok=True)

        document_id = uuid4().hex
        path = self.root / f"{document_id}-{safe_filename(filename)}"
        document = UploadedDocument(document_id=document_id, filename=filename, path=path)
        try:
            with path.open("xb") as fh:
                shutil.copyfileobj(stream, fh)
        except BaseException:
            self.discard(document)
            raise
        logger.info("Stored upload %s at %s", filename, path)
        return document

    def discard(self, document: UploadedDocument) -> None:
        """Remove the stored file; a file that is already gone is not an error."""
        try:
            Path(document.path).unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove upload %s", document.path, exc_info=True)
        else:
            logger.debug("Removed upload %s", document.path)

    @contextmanager
    def transient(self, document: UploadedDocument) -> Iterator[UploadedDocument]:
        """Yield *document* and remove its file on every exit path."""
        try:
            yield document
        finally:
            self.discard(document)
