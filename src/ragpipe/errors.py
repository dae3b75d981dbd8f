"""
Exception hierarchy for the RAG pipeline.

Adapters (embedding provider, vector stores) raise ``ProviderError`` and
``StoreError``. The pipeline translates those into errors that name the
failed step, so callers can tell bad input apart from downstream failures.
"""

from typing import Optional


class RAGError(Exception):
    """Base class for all ragpipe errors."""


class ProviderError(RAGError):
    """The embedding / answer-generation service failed."""


class StoreError(RAGError):
    """The vector store failed."""


class ProvisioningError(RAGError):
    """The vector index could not be prepared for the configured dimension."""


class NoContentError(RAGError):
    """Chunking produced no segments, so there is nothing to index."""

    def __init__(self, message: str = "no chunks created from text") -> None:
        super().__init__(message)


class EmbeddingFailedError(RAGError):
    """Embedding a segment (ingest) or the query (retrieve) failed."""

    def __init__(self, message: str, segment_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.segment_index = segment_index


class IndexWriteFailedError(RAGError):
    """The batch upsert into the vector index failed."""


class SearchFailedError(RAGError):
    """The similarity search failed."""


class NoResultsError(RAGError):
    """The search succeeded but found nothing to ground an answer."""

    def __init__(self, message: str = "no relevant documents found") -> None:
        super().__init__(message)
