"""Answer generation over retrieved context."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from pdf_rag.agent.prompts import build_rag_prompt
from pdf_rag.config import settings
from pdf_rag.errors import GenerationError

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from pdf_rag.retrieval.models import RetrievalResult, ScoredRecord

logger = logging.getLogger(__name__)

_REFUSAL_FINISH_REASONS = {"content_filter", "safety"}


class Answer(BaseModel):
    """A generated answer and the passages it was grounded on."""

    text: str
    sources: list[str] = Field(default_factory=list)


class AnswerGenerator(ABC):
    @abstractmethod
    def generate(self, query: str, context: RetrievalResult) -> Answer:
        """Answer *query* from *context*, or raise :class:`GenerationError`."""
        ...


def fit_context(hits: list[ScoredRecord], max_chars: int) -> list[ScoredRecord]:
    """Keep the best-ranked hits whose combined text fits in *max_chars*.

    Lower-ranked hits are dropped first.  If even the best hit is too long
    it is kept, cut to *max_chars*.
    """
    kept: list[ScoredRecord] = []
    used = 0
    for hit in hits:
        if used + len(hit.text) > max_chars:
            break
        kept.append(hit)
        used += len(hit.text)
    if not kept and hits:
        kept = [hits[0].model_copy(update={"text": hits[0].text[:max_chars]})]
    return kept


class ChatModelAnswerGenerator(AnswerGenerator):
    """Generator backed by a LangChain chat model.

    Parameters
    ----------
    llm:
        The chat model.  When *None*, :func:`~pdf_rag.agent.llm.get_llm`
        builds the configured ``ChatOpenAI`` client.
    max_context_chars:
        Upper bound on the passage text sent to the model.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        *,
        max_context_chars: int = settings.max_context_chars,
    ) -> None:
        if llm is None:
            from pdf_rag.agent.llm import get_llm

            llm = get_llm()
        self._llm = llm
        self.max_context_chars = max_context_chars

    def generate(self, query: str, context: RetrievalResult) -> Answer:
        hits = fit_context(context.hits, self.max_context_chars)
        if len(hits) < len(context.hits):
            logger.info("Context trimmed from %d to %d passage(s)", len(context.hits), len(hits))

        try:
            response = self._llm.invoke(build_rag_prompt(query, hits))
        except Exception as exc:
            raise GenerationError(f"Language model unavailable: {exc}", cause=exc) from exc

        finish_reason = (getattr(response, "response_metadata", None) or {}).get("finish_reason")
        if finish_reason in _REFUSAL_FINISH_REASONS:
            raise GenerationError("The language model declined to answer this question")

        text = _message_text(response.content).strip()
        if not text:
            raise GenerationError("The language model returned an empty answer")

        return Answer(text=text, sources=_unique(hit.short_ref() for hit in hits))


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def _unique(refs) -> list[str]:
    return list(dict.fromkeys(refs))
