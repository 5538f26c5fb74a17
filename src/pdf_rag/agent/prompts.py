"""Prompt templates for grounded answer generation.

Keeping prompts in one place makes them easy to audit, version, and A/B
test.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from pdf_rag.retrieval.models import ScoredRecord

SYSTEM_PROMPT = """\
You are a helpful AI assistant who answers the user's question using
**only** the context passages extracted from the uploaded PDF files.

Rules:
1. Base every statement on the context below; do not use outside knowledge.
2. If the context does not contain the answer, say so honestly — do NOT
   fabricate information.
3. When useful, mention the passage number(s) you relied on, e.g. [1].
"""


def build_rag_prompt(query: str, hits: list[ScoredRecord]) -> list[BaseMessage]:
    """Assemble the prompt messages for a retrieval-augmented generation call.

    Parameters
    ----------
    query:
        The user question.
    hits:
        Retrieved passages, best match first, already cut to the context
        budget.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.invoke()``.
    """
    user_msg = (
        f"Context:\n{format_context(hits)}\n\n"
        f"Question: {query}\n\n"
        "Answer the question according to the context above."
    )
    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=user_msg),
    ]


def format_context(hits: list[ScoredRecord]) -> str:
    """Numbered listing suitable for references [1], [2], …"""
    parts: list[str] = []
    for i, hit in enumerate(hits, 1):
        parts.append(f"[{i}] {hit.short_ref()}\n{hit.text}")
    return "\n\n---\n\n".join(parts)
