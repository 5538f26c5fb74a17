"""
Ingestion — document loading, chunking, embedding and indexing.

This module turns one uploaded PDF into embedded segments stored in the
vector index, and owns the transient upload files it consumes.
"""
