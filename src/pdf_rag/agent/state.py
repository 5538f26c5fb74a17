"""State flowing through the question-answering graph."""

from __future__ import annotations

from typing import TypedDict

from pdf_rag.agent.generator import Answer
from pdf_rag.retrieval.models import RetrievalResult


class QAState(TypedDict, total=False):
    """Per-request state; nothing in it outlives one ``invoke()``.

    Attributes
    ----------
    query:
        The user's question.
    k:
        Number of passages to retrieve (``None`` → retriever default).
    context:
        Ranked passages produced by the ``retrieve`` node.
    answer:
        Output of the ``generate`` node.
    """

    query: str
    k: int | None
    context: RetrievalResult
    answer: Answer
