"""Ingestion pipeline — load → embed → upsert for one uploaded document.

Each call to :meth:`IngestionPipeline.ingest` walks one document through::

    RECEIVED → LOADED → EMBEDDED → INDEXED → CLEANED

A failure at any stage moves the request to ``FAILED``, skips the remaining
stages and re-raises the typed error.  Removing the uploaded file is tied to
a ``finally`` so it happens on success, failure and caller-side timeouts
alike.  Because the upsert is a single atomic batch, a failure before
``INDEXED`` leaves no records behind for the document.

Re-ingesting the same file is not deduplicated: it adds a second copy of
every record.
"""

from __future__ import annotations

import logging

from pdf_rag.config import settings
from pdf_rag.errors import RagError, UpsertError, VectorIndexError
from pdf_rag.ingestion.embedder import EmbeddingProvider
from pdf_rag.ingestion.loader import DocumentLoader
from pdf_rag.ingestion.models import IngestReport, IngestStage, Segment, UploadedDocument
from pdf_rag.ingestion.uploads import UploadStore
from pdf_rag.retrieval.base import VectorIndex
from pdf_rag.retrieval.models import Collection, IndexRecord

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Stateless orchestration of one document's ingestion.

    Parameters
    ----------
    loader:
        Turns the uploaded file into segments.
    embedder:
        Produces document embeddings; must match the collection's model.
    index:
        Destination vector index.
    uploads:
        Owner of the transient upload files; used for cleanup.
    collection_name:
        Collection every record is written to.
    """

    def __init__(
        self,
        loader: DocumentLoader,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        uploads: UploadStore,
        *,
        collection_name: str = settings.chroma_collection,
    ) -> None:
        self._loader = loader
        self._embedder = embedder
        self._index = index
        self._uploads = uploads
        self.collection_name = collection_name

    def ingest(self, document: UploadedDocument) -> IngestReport:
        stage = IngestStage.RECEIVED
        logger.info("Ingesting %s (%s)", document.filename, document.document_id)

        with self._uploads.transient(document):
            try:
                segments = self._loader.load(document)
                stage = IngestStage.LOADED

                collection = self._index.ensure_collection(self.collection_name)
                vectors = self._embedder.embed_documents([s.text for s in segments])
                stage = IngestStage.EMBEDDED

                records = self._build_records(segments, vectors)
                self._upsert(collection, records)
                stage = IngestStage.INDEXED
            except RagError as exc:
                logger.warning(
                    "Ingestion of %s: %s -> %s: [%s] %s",
                    document.document_id,
                    stage.value,
                    IngestStage.FAILED.value,
                    exc.kind,
                    exc.message,
                )
                raise

        logger.info(
            "Ingested %s: %d segment(s) -> %s", document.filename, len(segments), collection.name
        )
        return IngestReport(
            document_id=document.document_id,
            filename=document.filename,
            collection=collection.name,
            segments=len(segments),
            records=len(records),
            stage=IngestStage.CLEANED,
        )

    # -- internals ------------------------------------------------------------

    def _build_records(self, segments: list[Segment], vectors: list[list[float]]) -> list[IndexRecord]:
        return [
            IndexRecord(
                vector=vector,
                text=segment.text,
                metadata={
                    **segment.metadata,
                    "document_id": segment.document_id,
                    "source": segment.source,
                    "page": segment.page,
                    "position": segment.position,
                    "embedding_model": self._embedder.model_name,
                },
            )
            for segment, vector in zip(segments, vectors, strict=True)
        ]

    def _upsert(self, collection: Collection, records: list[IndexRecord]) -> None:
        try:
            self._index.upsert(collection, records)
        except UpsertError:
            raise
        except VectorIndexError as exc:
            raise UpsertError(exc.message, cause=exc) from exc
