"""Document loaders — turn an uploaded file into ordered :class:`Segment` objects."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader
from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from pdf_rag.config import settings
from pdf_rag.errors import LoadError
from pdf_rag.ingestion.models import Segment, UploadedDocument

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"

# Page-level metadata worth carrying into the index.
_KEPT_METADATA = ("total_pages", "page_label")


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file, one ``Document`` per page."""
    return PyPDFLoader(str(path)).load()


class DocumentLoader(ABC):
    """Turns an uploaded document into segments.

    Implementations must either return every segment of the document or
    raise :class:`~pdf_rag.errors.LoadError`; a partial list is never
    returned.
    """

    @abstractmethod
    def load(self, document: UploadedDocument) -> list[Segment]:
        ...


class PdfDocumentLoader(DocumentLoader):
    """PDF loader backed by LangChain's ``PyPDFLoader``.

    Parameters
    ----------
    chunk_size / chunk_overlap:
        Character budget of one segment and the overlap carried between
        neighbouring segments of the same page.  Pages shorter than
        *chunk_size* become exactly one segment; a segment never spans
        two pages.
    """

    def __init__(
        self,
        *,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
    ) -> None:
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=["\n\n", "\n", ". ", " ", ""],
        )

    def load(self, document: UploadedDocument) -> list[Segment]:
        path = Path(document.path)
        self._check_is_pdf(path)

        try:
            pages = load_pdf(path)
        except Exception as exc:
            raise LoadError(f"Could not parse {document.filename!r} as PDF", cause=exc) from exc

        chunks = self.split(pages)
        segments = [
            self._to_segment(document, position, chunk)
            for position, chunk in enumerate(c for c in chunks if c.page_content.strip())
        ]
        if not segments:
            raise LoadError(f"{document.filename!r} contains no extractable text")

        logger.info(
            "Loaded %s: %d page(s) -> %d segment(s)", document.filename, len(pages), len(segments)
        )
        return segments

    def split(self, pages: list[Document]) -> list[Document]:
        """Split parsed *pages* into chunks, in page order, keeping page metadata."""
        return self._splitter.split_documents(pages)

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _check_is_pdf(path: Path) -> None:
        try:
            with path.open("rb") as fh:
                header = fh.read(1024)
        except OSError as exc:
            raise LoadError(f"Could not read uploaded file {path.name!r}", cause=exc) from exc
        if not header:
            raise LoadError(f"Uploaded file {path.name!r} is empty")
        # Readers tolerate up to 1024 bytes of junk before the %PDF- header.
        if PDF_MAGIC not in header:
            raise LoadError(f"Uploaded file {path.name!r} is not a PDF document")

    @staticmethod
    def _to_segment(document: UploadedDocument, position: int, chunk: Document) -> Segment:
        meta = chunk.metadata
        return Segment(
            text=chunk.page_content,
            document_id=document.document_id,
            source=document.filename,
            page=meta.get("page"),
            position=position,
            metadata={key: meta[key] for key in _KEPT_METADATA if key in meta},
        )
