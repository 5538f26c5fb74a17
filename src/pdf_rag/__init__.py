"""pdf-rag — retrieval-augmented question answering over uploaded PDFs."""

__version__ = "0.1.0"
