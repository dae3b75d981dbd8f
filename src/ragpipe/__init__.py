"""
ragpipe: Retrieval-Augmented Generation over ingested documents

This package splits documents into overlapping word-based chunks, embeds
them, stores them in a vector index (Qdrant or FAISS) and answers questions
from the most similar chunks.

Key Components:
    - retrieval: Chunker, vector index backends and the ingest/retrieve pipeline
    - llm: OpenAI embedding and answer-generation client
    - api: FastAPI REST endpoints
    - cli: Typer command-line interface

Example:
    >>> from ragpipe.retrieval.resources import build_pipeline
    >>> pipeline = await build_pipeline()
    >>> await pipeline.ingest(text, doc_id="handbook.txt")
    >>> context = await pipeline.retrieve("What is Kubernetes?")
"""

__version__ = "0.1.0"

from ragpipe.config import settings

__all__ = [
    "__version__",
    "settings",
]
