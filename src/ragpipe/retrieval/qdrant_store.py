"""
Qdrant vector store backend.

Wraps ``AsyncQdrantClient`` behind the ``VectorIndex`` contract: collection
provisioning with cosine distance, batch upserts and nearest-neighbour
queries. Client failures are reported as ``StoreError``.
"""

import logging
from typing import Optional, Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams

from ragpipe.errors import StoreError
from ragpipe.retrieval.indexer import IndexedPoint, RetrievedResult

logger = logging.getLogger(__name__)


class QdrantIndex:
    """Vector index stored in a Qdrant collection."""

    def __init__(
        self,
        collection: str,
        host: str = "localhost",
        port: int = 6334,
        prefer_grpc: bool = True,
        timeout: Optional[int] = 30,
        client: Optional[AsyncQdrantClient] = None,
    ) -> None:
        """
        Initialize the Qdrant backend.

        Args:
            collection: Collection name
            host: Qdrant host
            port: gRPC port when ``prefer_grpc`` is set, REST port otherwise
            prefer_grpc: Use the gRPC transport
            timeout: Request timeout in seconds
            client: Pre-built client (tests, shared connections)
        """
        self.collection = collection
        if client is None:
            if prefer_grpc:
                client = AsyncQdrantClient(
                    host=host, grpc_port=port, prefer_grpc=True, timeout=timeout
                )
            else:
                client = AsyncQdrantClient(host=host, port=port, timeout=timeout)
        self.client = client
        logger.info(f"Initialized Qdrant backend for collection: {self.collection}")

    async def ensure_ready(self, dimension: int) -> None:
        """
        Create the collection if it doesn't exist and check its vector size.

        Raises:
            StoreError: If Qdrant is unreachable or the collection has another size
        """
        try:
            exists = await self.client.collection_exists(self.collection)
            if not exists:
                await self.client.create_collection(
                    collection_name=self.collection,
                    vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
                )
                logger.info(f"Created collection: {self.collection} (size={dimension})")
                return

            info = await self.client.get_collection(self.collection)
        except Exception as e:
            raise StoreError(f"failed to ensure collection {self.collection}: {e}") from e

        size = _vector_size(info.config.params.vectors)
        if size is not None and size != dimension:
            raise StoreError(
                f"collection {self.collection} stores vectors of size {size}, "
                f"expected {dimension}"
            )
        logger.info(f"Collection already exists: {self.collection}")

    async def upsert(self, points: Sequence[IndexedPoint]) -> None:
        """
        Upsert all points in one request.

        Raises:
            StoreError: If the write fails
        """
        structs = [
            PointStruct(id=point.id, vector=list(point.vector), payload=dict(point.payload))
            for point in points
        ]
        try:
            await self.client.upsert(
                collection_name=self.collection,
                points=structs,
                wait=True,
            )
        except Exception as e:
            raise StoreError(f"failed to upsert points: {e}") from e

        logger.debug(f"Upserted {len(structs)} points into {self.collection}")

    async def search(self, vector: Sequence[float], limit: int) -> list[RetrievedResult]:
        """
        Query the nearest neighbours of ``vector``.

        Hits without a text payload are skipped.

        Raises:
            StoreError: If the query fails
        """
        try:
            response = await self.client.query_points(
                collection_name=self.collection,
                query=list(vector),
                limit=limit,
                with_payload=True,
            )
        except Exception as e:
            raise StoreError(f"failed to search: {e}") from e

        results: list[RetrievedResult] = []
        for hit in response.points:
            text = (hit.payload or {}).get("text")
            if isinstance(text, str) and text:
                results.append(RetrievedResult(text=text, score=float(hit.score)))

        logger.debug(f"Qdrant returned {len(results)} results")
        return results

    async def close(self) -> None:
        """Close the underlying client."""
        await self.client.close()


def _vector_size(vectors_config) -> Optional[int]:
    """Size of the unnamed vector, or None for named-vector collections."""
    if isinstance(vectors_config, VectorParams):
        return vectors_config.size
    return None
