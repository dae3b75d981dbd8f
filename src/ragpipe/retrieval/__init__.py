"""
Document retrieval components for the RAG pipeline.

Components:
    - chunker: Split documents into overlapping word-based chunks
    - indexer: Vector index contract and FAISS backend
    - qdrant_store: Qdrant backend
    - pipeline: Ingest and retrieve orchestration
"""

from ragpipe.retrieval.chunker import Chunker, Segment
from ragpipe.retrieval.indexer import FAISSIndex, IndexedPoint, RetrievedResult, VectorIndex
from ragpipe.retrieval.pipeline import Pipeline, format_context

__all__ = [
    "Chunker",
    "Segment",
    "FAISSIndex",
    "IndexedPoint",
    "RetrievedResult",
    "VectorIndex",
    "Pipeline",
    "format_context",
]
