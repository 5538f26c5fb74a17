"""LangGraph graph definition — the question-answering workflow.

Two nodes run in sequence::

    START → retrieve → generate → END

Errors raised inside a node propagate unchanged out of ``invoke()``, so
callers see the same :class:`~pdf_rag.errors.RagError` types the
pipelines raise.  The graph can be tested without any external service by
injecting a fake retriever and generator.
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import END, StateGraph

from pdf_rag.agent.generator import Answer, AnswerGenerator
from pdf_rag.agent.state import QAState
from pdf_rag.retrieval.retriever import RetrievalPipeline


def build_graph(retriever: RetrievalPipeline, generator: AnswerGenerator) -> Any:
    """Construct and return the compiled question-answering graph."""

    def retrieve(state: QAState) -> dict[str, Any]:
        return {"context": retriever.retrieve(state["query"], k=state.get("k"))}

    def generate(state: QAState) -> dict[str, Any]:
        return {"answer": generator.generate(state["query"], state["context"])}

    workflow = StateGraph(QAState)
    workflow.add_node("retrieve", retrieve)
    workflow.add_node("generate", generate)

    workflow.set_entry_point("retrieve")
    workflow.add_edge("retrieve", "generate")
    workflow.add_edge("generate", END)

    return workflow.compile()


def answer_question(graph: Any, query: str, *, k: int | None = None) -> Answer:
    """Run *graph* for one question and return the generated answer."""
    result = graph.invoke({"query": query, "k": k})
    return result["answer"]
