"""
Serving — FastAPI transport over the ingestion and question-answering pipelines.
"""
