"""Chat model construction.

The answer generator talks to any OpenAI-compatible chat endpoint through
``ChatOpenAI``: the OpenAI cloud by default, or a self-hosted server
(vLLM, Ollama, ...) when ``LLM_BASE_URL`` is set.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from pdf_rag.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# Self-hosted servers ignore the key, but the client refuses an empty one.
_PLACEHOLDER_API_KEY = "EMPTY"


def get_llm(config: Settings | None = None) -> ChatOpenAI:
    """Return the chat model described by *config* (the process settings by default)."""
    config = config or default_settings
    kwargs: dict = {
        "model": config.llm_model_name,
        "temperature": config.llm_temperature,
    }

    if config.llm_base_url:
        logger.info("Answering with %s at %s", config.llm_model_name, config.llm_base_url)
        kwargs["base_url"] = config.llm_base_url
        kwargs["api_key"] = config.openai_api_key or _PLACEHOLDER_API_KEY
    else:
        if not config.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set; generation requests will be rejected")
        kwargs["api_key"] = config.openai_api_key

    return ChatOpenAI(**kwargs)
