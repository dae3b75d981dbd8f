"""
RAG pipeline: ingest documents into a vector index and retrieve context.

Ingest:
    chunk -> embed every chunk (sequentially, in order) -> one batch upsert

Retrieve:
    embed query -> nearest-neighbour search -> ranked context blob

Ingest is all-or-nothing on the pipeline side: the upsert only happens after
every chunk has been embedded, so an embedding failure (or a cancellation)
never leaves a partially indexed document behind. Whether the batch upsert
itself is atomic depends on the vector store; Qdrant does not guarantee it,
so an ``IndexWriteFailedError`` may follow a partial write.

There is no retry logic here. Every downstream failure is raised to the
caller with the step that failed.
"""

import logging
import uuid
from typing import Protocol, Sequence

from ragpipe.errors import (
    EmbeddingFailedError,
    IndexWriteFailedError,
    NoContentError,
    NoResultsError,
    ProviderError,
    ProvisioningError,
    SearchFailedError,
    StoreError,
)
from ragpipe.llm.factory import EmbeddingProvider
from ragpipe.retrieval.chunker import Segment
from ragpipe.retrieval.indexer import (
    POINT_ID_NAMESPACE,
    IndexedPoint,
    RetrievedResult,
    VectorIndex,
    point_id,
)

logger = logging.getLogger(__name__)

DEFAULT_VECTOR_DIMENSION = 3072
"""Output size of text-embedding-3-large."""


class TextChunker(Protocol):
    """Protocol for chunking strategies."""

    def split(self, text: str, doc_id: str = "") -> list[Segment]:
        """Split text into indexed segments."""
        ...


class Pipeline:
    """
    Orchestrates chunking, embedding, indexing and retrieval.

    Instances are built with ``await Pipeline.create(...)``, which checks that
    the vector index is provisioned before any call is accepted. The
    pipeline keeps no per-call state, so one instance can serve concurrent
    requests.

    Example:
        >>> pipeline = await Pipeline.create(chunker, llm_client, index, search_limit=3)
        >>> await pipeline.ingest(text, doc_id="handbook.txt")
        >>> context = await pipeline.retrieve("What is Kubernetes?")
    """

    def __init__(
        self,
        chunker: TextChunker,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        search_limit: int,
        vector_dimension: int = DEFAULT_VECTOR_DIMENSION,
    ) -> None:
        """
        Store collaborators. Prefer ``create`` which also provisions the index.

        Raises:
            ValueError: If search_limit or vector_dimension is not positive
        """
        if search_limit < 1:
            raise ValueError(f"search_limit must be positive, got {search_limit}")
        if vector_dimension < 1:
            raise ValueError(f"vector_dimension must be positive, got {vector_dimension}")

        self.chunker = chunker
        self.embedder = embedder
        self.index = index
        self.search_limit = search_limit
        self.vector_dimension = vector_dimension

    @classmethod
    async def create(
        cls,
        chunker: TextChunker,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        search_limit: int,
        vector_dimension: int = DEFAULT_VECTOR_DIMENSION,
    ) -> "Pipeline":
        """
        Build a pipeline after making sure the index is ready.

        Args:
            chunker: Text chunker
            embedder: Embedding provider
            index: Vector index backend
            search_limit: Number of neighbours retrieved per query
            vector_dimension: Embedding size the index must store

        Returns:
            Ready-to-use Pipeline

        Raises:
            ProvisioningError: If the index cannot be created or has another dimension
        """
        pipeline = cls(chunker, embedder, index, search_limit, vector_dimension)

        try:
            await index.ensure_ready(vector_dimension)
        except StoreError as e:
            raise ProvisioningError(f"failed to ensure collection: {e}") from e

        logger.info(
            f"Pipeline ready (dimension={vector_dimension}, search_limit={search_limit})"
        )
        return pipeline

    async def ingest(self, text: str, doc_id: str = "") -> int:
        """
        Chunk, embed and store a document.

        Args:
            text: Document text
            doc_id: Document identifier. Re-ingesting the same id overwrites
                the points of matching chunk positions. Empty ids get fresh
                point ids on every call.

        Returns:
            Number of points written

        Raises:
            NoContentError: If the text yields no chunks
            EmbeddingFailedError: If any chunk fails to embed (nothing is written)
            IndexWriteFailedError: If the batch upsert fails
        """
        segments = self.chunker.split(text, doc_id)
        if not segments:
            raise NoContentError()

        # Unattributed text gets its own namespace so separate calls never collide
        namespace = POINT_ID_NAMESPACE if doc_id else uuid.uuid4()

        points: list[IndexedPoint] = []
        for segment in segments:
            vector = await self._embed(segment.text, segment_index=segment.index)
            points.append(
                IndexedPoint(
                    id=point_id(doc_id, segment.index, namespace),
                    vector=vector,
                    payload={
                        "text": segment.text,
                        "doc_id": doc_id,
                        "chunk_index": segment.index,
                    },
                )
            )

        try:
            await self.index.upsert(points)
        except StoreError as e:
            raise IndexWriteFailedError(f"failed to upsert points: {e}") from e

        logger.info(f"Ingested document {doc_id or '<unattributed>'} ({len(points)} chunks)")
        return len(points)

    async def retrieve(self, query: str) -> str:
        """
        Build a ranked context blob for a query.

        Args:
            query: User question

        Returns:
            Context blob, best match first

        Raises:
            EmbeddingFailedError: If the query fails to embed
            SearchFailedError: If the similarity search fails
            NoResultsError: If the search returns nothing
        """
        vector = await self._embed(query, segment_index=None)

        try:
            results = await self.index.search(vector, self.search_limit)
        except StoreError as e:
            raise SearchFailedError(f"failed to search: {e}") from e

        if not results:
            raise NoResultsError()

        logger.debug(f"Retrieved {len(results)} chunks for query")
        return format_context(results)

    async def _embed(self, text: str, segment_index: int | None) -> list[float]:
        """Embed text, mapping provider failures to EmbeddingFailedError."""
        target = "query" if segment_index is None else f"chunk {segment_index}"

        try:
            vector = await self.embedder.embed(text)
        except ProviderError as e:
            raise EmbeddingFailedError(
                f"failed to generate embedding for {target}: {e}",
                segment_index=segment_index,
            ) from e

        if len(vector) != self.vector_dimension:
            raise EmbeddingFailedError(
                f"embedding for {target} has {len(vector)} dimensions, "
                f"expected {self.vector_dimension}",
                segment_index=segment_index,
            )
        return vector


def format_context(results: Sequence[RetrievedResult]) -> str:
    """
    Render search results as a single context string.

    Results keep the order given by the index; ranks start at 1.

    Args:
        results: Search results, best first

    Returns:
        Blocks of ``[Document N, Score: S]`` followed by the chunk text
    """
    blocks = [
        f"[Document {rank}, Score: {result.score:.4f}]\n{result.text}\n\n"
        for rank, result in enumerate(results, start=1)
    ]
    return "".join(blocks).rstrip()
