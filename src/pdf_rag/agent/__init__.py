"""
Agent — grounded answer generation and the question-answering graph.

Public API
----------
- :func:`build_graph` — compile the retrieve → generate workflow.
- :class:`AnswerGenerator` / :class:`ChatModelAnswerGenerator` — generation backends.
- :class:`Answer` — generated answer with its sources.
"""

from pdf_rag.agent.generator import Answer, AnswerGenerator, ChatModelAnswerGenerator
from pdf_rag.agent.graph import answer_question, build_graph

__all__ = [
    "Answer",
    "AnswerGenerator",
    "ChatModelAnswerGenerator",
    "answer_question",
    "build_graph",
]
