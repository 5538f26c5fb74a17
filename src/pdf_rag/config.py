"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud, "
            "e.g. 'http://localhost:8001/v1' for a local vLLM server."
        ),
    )
    llm_temperature: float = 0.0

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "pdf_rag"
    chroma_distance: str = Field(default="cosine", description="cosine | ip | l2")

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_batch_size: int = Field(default=64, gt=0)
    embedding_document_prefix: str = Field(
        default="",
        description="Prepended to every segment before embedding (e.g. 'passage: ' for E5 models).",
    )
    embedding_query_prefix: str = Field(
        default="",
        description="Prepended to every query before embedding (e.g. 'query: ' for E5 models).",
    )

    # Ingestion
    upload_dir: Path = Path("/tmp/uploads")
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=150, ge=0)

    # Retrieval / generation
    retrieval_k: int = Field(default=2, gt=0)
    max_context_chars: int = Field(default=12_000, gt=0)

    # Serving
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:8000"],
        description='Browser origins allowed to call the API, e.g. CORS_ORIGINS=\'["https://app.example.com"]\'.',
    )

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a root handler at *level* (defaults to ``settings.log_level``)."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
