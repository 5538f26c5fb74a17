"""Component wiring for the API.

Long-lived clients (embedding model, vector store, chat model) and the
compiled query graph are built once per process.  The ingestion pipeline is
built per request.  Tests swap any of these through
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import Depends

from pdf_rag.agent.generator import AnswerGenerator, ChatModelAnswerGenerator
from pdf_rag.agent.graph import build_graph
from pdf_rag.config import settings
from pdf_rag.ingestion.embedder import EmbeddingProvider, LangChainEmbeddingProvider
from pdf_rag.ingestion.loader import DocumentLoader, PdfDocumentLoader
from pdf_rag.ingestion.pipeline import IngestionPipeline
from pdf_rag.ingestion.uploads import UploadStore
from pdf_rag.retrieval.base import VectorIndex
from pdf_rag.retrieval.retriever import RetrievalPipeline


@lru_cache
def get_upload_store() -> UploadStore:
    return UploadStore(settings.upload_dir)


@lru_cache
def get_loader() -> DocumentLoader:
    return PdfDocumentLoader(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap)


@lru_cache
def get_embedder() -> EmbeddingProvider:
    return LangChainEmbeddingProvider()


@lru_cache
def get_vector_index() -> VectorIndex:
    from pdf_rag.retrieval.chroma_store import ChromaVectorIndex

    return ChromaVectorIndex(host=settings.chroma_host, port=settings.chroma_port)


@lru_cache
def get_answer_generator() -> AnswerGenerator:
    return ChatModelAnswerGenerator(max_context_chars=settings.max_context_chars)


def get_ingestion_pipeline(
    loader: DocumentLoader = Depends(get_loader),
    embedder: EmbeddingProvider = Depends(get_embedder),
    index: VectorIndex = Depends(get_vector_index),
    uploads: UploadStore = Depends(get_upload_store),
) -> IngestionPipeline:
    return IngestionPipeline(
        loader, embedder, index, uploads, collection_name=settings.chroma_collection
    )


@lru_cache(maxsize=8)
def _compile_qa_graph(
    embedder: EmbeddingProvider, index: VectorIndex, generator: AnswerGenerator
) -> Any:
    retriever = RetrievalPipeline(
        embedder, index, collection_name=settings.chroma_collection, default_k=settings.retrieval_k
    )
    return build_graph(retriever, generator)


def get_qa_graph(
    embedder: EmbeddingProvider = Depends(get_embedder),
    index: VectorIndex = Depends(get_vector_index),
    generator: AnswerGenerator = Depends(get_answer_generator),
) -> Any:
    """The compiled query graph, built once per set of components."""
    return _compile_qa_graph(embedder, index, generator)
