"""
Construction of long-lived pipeline resources from settings.

The API lifespan handler and the CLI both call ``build_pipeline``; the
results are passed around explicitly rather than cached as globals, so tests
can swap in their own backends.

Usage:
    llm_client = create_llm_client(settings)
    pipeline = await build_pipeline(settings, llm_client)
"""

import logging
from typing import Optional

from ragpipe.config import Settings, settings
from ragpipe.llm.factory import EmbeddingProvider
from ragpipe.retrieval.chunker import Chunker
from ragpipe.retrieval.indexer import FAISSIndex, VectorIndex
from ragpipe.retrieval.pipeline import Pipeline

logger = logging.getLogger(__name__)


def create_chunker(config: Optional[Settings] = None) -> Chunker:
    """Create a chunker from the configured size and overlap."""
    config = config or settings
    chunker = Chunker(config.chunk_size, config.chunk_overlap)
    logger.info(
        f"Initialized chunker (size={config.chunk_size}, overlap={config.chunk_overlap})"
    )
    return chunker


def create_vector_index(config: Optional[Settings] = None) -> VectorIndex:
    """
    Create the configured vector index backend.

    Returns:
        QdrantIndex for ``vector_backend="qdrant"``, FAISSIndex for ``"faiss"``
    """
    config = config or settings

    if config.vector_backend == "faiss":
        logger.info(f"Using FAISS index at {config.faiss_index_path}")
        return FAISSIndex(path=config.faiss_index_path)

    from ragpipe.retrieval.qdrant_store import QdrantIndex

    return QdrantIndex(
        collection=config.qdrant_collection,
        host=config.qdrant_host,
        port=config.qdrant_port,
        prefer_grpc=config.qdrant_prefer_grpc,
        timeout=int(config.request_timeout),
    )


async def build_pipeline(
    config: Optional[Settings] = None,
    embedder: Optional[EmbeddingProvider] = None,
    index: Optional[VectorIndex] = None,
) -> Pipeline:
    """
    Wire chunker, embedder and vector index into a ready pipeline.

    Args:
        config: Settings to use (defaults to the global settings)
        embedder: Embedding provider (defaults to an OpenAI client)
        index: Vector index (defaults to the configured backend)

    Returns:
        Pipeline that passed the provisioning gate

    Raises:
        ProvisioningError: If the vector index cannot be prepared
        ValueError: If the OpenAI API key is missing
    """
    config = config or settings

    if embedder is None:
        from ragpipe.llm.factory import create_llm_client

        embedder = create_llm_client(config)

    return await Pipeline.create(
        chunker=create_chunker(config),
        embedder=embedder,
        index=index or create_vector_index(config),
        search_limit=config.search_limit,
        vector_dimension=config.embedding_dimension,
    )
