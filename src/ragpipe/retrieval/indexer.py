"""
Vector index contract and FAISS implementation.

``VectorIndex`` is the capability the pipeline depends on. ``FAISSIndex``
keeps vectors in memory (optionally persisted to disk) and serves as the
local backend and as a realistic stand-in for Qdrant in tests.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import faiss
import numpy as np
from numpy.typing import NDArray

from ragpipe.errors import StoreError

logger = logging.getLogger(__name__)

POINT_ID_NAMESPACE = uuid.UUID("6f1c1f4e-3a0b-5c51-9d7e-2b8f0a4c7e11")
"""Namespace for point ids of documents ingested with an explicit doc id."""

_POINT_ID_MASK = (1 << 63) - 1


@dataclass
class IndexedPoint:
    """A vector and its payload, as persisted in the index."""

    id: int
    """Unsigned 63-bit point id (see ``point_id``)."""

    vector: list[float]
    """Embedding of the chunk text."""

    payload: dict[str, Any] = field(default_factory=dict)
    """Keys: text, doc_id, chunk_index."""


@dataclass
class RetrievedResult:
    """One nearest neighbour returned by a similarity search."""

    text: str
    score: float
    """Similarity to the query; higher is more relevant."""


@runtime_checkable
class VectorIndex(Protocol):
    """Protocol that all vector store backends must implement."""

    async def ensure_ready(self, dimension: int) -> None:
        """Make sure the index exists and stores vectors of ``dimension``."""
        ...

    async def upsert(self, points: Sequence[IndexedPoint]) -> None:
        """Insert or replace points in a single batch."""
        ...

    async def search(self, vector: Sequence[float], limit: int) -> list[RetrievedResult]:
        """Return up to ``limit`` neighbours, best first."""
        ...


def point_id(doc_id: str, chunk_index: int, namespace: uuid.UUID = POINT_ID_NAMESPACE) -> int:
    """
    Derive a stable point id from a document id and a chunk position.

    The same (doc_id, chunk_index) pair always maps to the same id, so
    re-ingesting a document overwrites its chunks position by position.

    Args:
        doc_id: Document identifier
        chunk_index: Position of the chunk within the document
        namespace: UUID namespace; pass a fresh uuid4 for unattributed text

    Returns:
        Non-negative integer below 2**63 (valid for Qdrant and FAISS)
    """
    return uuid.uuid5(namespace, f"{doc_id}:{chunk_index}").int & _POINT_ID_MASK


class FAISSIndex:
    """
    FAISS-based vector index.

    Uses IndexFlatIP (inner product) over normalized vectors for cosine
    similarity, wrapped in IndexIDMap2 so points can be replaced by id.

    Example:
        >>> index = FAISSIndex(path="data/index/faiss")
        >>> await index.ensure_ready(3072)
        >>> await index.upsert(points)
        >>> results = await index.search(query_vector, limit=3)
    """

    def __init__(self, path: str | Path | None = None) -> None:
        """
        Initialize the FAISS index.

        Args:
            path: Base path for persistence (``.index`` and ``.json`` files).
                None keeps the index in memory only.
        """
        self.path = Path(path) if path is not None else None
        self.dimension: Optional[int] = None
        self._index: Optional[faiss.IndexIDMap2] = None
        self._payloads: dict[int, dict[str, Any]] = {}

    @property
    def is_built(self) -> bool:
        """Check if the index has been created or loaded."""
        return self._index is not None

    @property
    def size(self) -> int:
        """Number of vectors in the index."""
        if self._index is None:
            return 0
        return int(self._index.ntotal)

    async def ensure_ready(self, dimension: int) -> None:
        """
        Create the index, or load it from disk when a saved copy exists.

        Raises:
            StoreError: If a saved index has a different dimension
        """
        if self._index is None and self.path is not None and self._index_file.exists():
            self.load()

        if self._index is None:
            self._index = faiss.IndexIDMap2(faiss.IndexFlatIP(dimension))
            self.dimension = dimension
            logger.info(f"Created FAISS index with dimension {dimension}")
            return

        if self.dimension != dimension:
            raise StoreError(
                f"FAISS index has dimension {self.dimension}, expected {dimension}"
            )

    async def upsert(self, points: Sequence[IndexedPoint]) -> None:
        """
        Insert points, replacing any existing points with the same id.

        The batch is applied to a copy of the index and only becomes
        searchable once it has been written to disk (when a path is set).

        Raises:
            StoreError: If the index is not ready, a vector has the wrong
                dimension or the index can't be persisted
        """
        index = self._require_index()
        if not points:
            return

        vectors = np.asarray([p.vector for p in points], dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape[1] != self.dimension:
            raise StoreError(
                f"Vectors must have dimension {self.dimension}, got shape {vectors.shape}"
            )

        ids = np.asarray([p.id for p in points], dtype=np.int64)
        updated = faiss.clone_index(index)
        updated.remove_ids(ids)
        updated.add_with_ids(np.ascontiguousarray(self._normalize_embeddings(vectors)), ids)

        payloads = dict(self._payloads)
        for point in points:
            payloads[point.id] = dict(point.payload)

        if self.path is not None:
            self._write(updated, payloads)

        self._index = updated
        self._payloads = payloads

    async def search(self, vector: Sequence[float], limit: int) -> list[RetrievedResult]:
        """
        Search for the most similar points.

        Returns:
            Results sorted by cosine similarity, descending

        Raises:
            StoreError: If the index is not ready or the query has the wrong dimension
        """
        index = self._require_index()
        if self.size == 0 or limit <= 0:
            return []

        query = np.asarray(vector, dtype=np.float32).reshape(1, -1)
        if query.shape[1] != self.dimension:
            raise StoreError(
                f"Query must have dimension {self.dimension}, got {query.shape[1]}"
            )

        k = min(limit, self.size)
        scores, ids = index.search(np.ascontiguousarray(self._normalize_embeddings(query)), k)

        results: list[RetrievedResult] = []
        for score, idx in zip(scores[0], ids[0]):
            if idx < 0:
                continue
            text = self._payloads.get(int(idx), {}).get("text")
            if not text:
                continue
            results.append(RetrievedResult(text=text, score=float(score)))

        return results

    def save(self) -> None:
        """
        Save index and payloads to disk.

        Raises:
            StoreError: If there is nothing to save, no path is configured
                or the files can't be written
        """
        index = self._require_index()
        if self.path is None:
            raise StoreError("FAISS index has no path configured")

        self._write(index, self._payloads)

    def _write(self, index: faiss.IndexIDMap2, payloads: dict[int, dict[str, Any]]) -> None:
        assert self.path is not None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            faiss.write_index(index, str(self._index_file))

            with self._metadata_file.open("w", encoding="utf-8") as f:
                json.dump(
                    {str(pid): payload for pid, payload in payloads.items()},
                    f,
                    indent=2,
                    ensure_ascii=False,
                )
        except (OSError, RuntimeError) as e:
            raise StoreError(f"failed to save FAISS index to {self.path}: {e}") from e

    def load(self) -> None:
        """
        Load index and payloads from disk.

        Raises:
            StoreError: If the index files are missing
        """
        if self.path is None:
            raise StoreError("FAISS index has no path configured")
        if not self._index_file.exists():
            raise StoreError(f"Index file not found: {self._index_file}")
        if not self._metadata_file.exists():
            raise StoreError(f"Metadata file not found: {self._metadata_file}")

        self._index = faiss.read_index(str(self._index_file))
        self.dimension = int(self._index.d)

        with self._metadata_file.open(encoding="utf-8") as f:
            self._payloads = {int(pid): payload for pid, payload in json.load(f).items()}

        logger.info(f"Loaded FAISS index from {self._index_file} ({self.size} vectors)")

    @property
    def _index_file(self) -> Path:
        assert self.path is not None
        return self.path.with_suffix(".index")

    @property
    def _metadata_file(self) -> Path:
        assert self.path is not None
        return self.path.with_suffix(".json")

    def _require_index(self) -> faiss.IndexIDMap2:
        if self._index is None:
            raise StoreError("Index is not ready. Call ensure_ready() first.")
        return self._index

    @staticmethod
    def _normalize_embeddings(embeddings: NDArray[np.float32]) -> NDArray[np.float32]:
        """
        Normalize embeddings to unit length for cosine similarity.

        Args:
            embeddings: Array of shape (n, dimension)

        Returns:
            Normalized embeddings of same shape
        """
        norms = np.linalg.norm(embeddings, axis=1, keepdims=True)
        # Avoid division by zero
        norms = np.where(norms == 0, 1, norms)
        return (embeddings / norms).astype(np.float32)
