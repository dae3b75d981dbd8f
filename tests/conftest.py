"""
Pytest configuration and shared fixtures.

Provides common fixtures for:
    - Configuration with test values
    - Deterministic fake embedding / answer providers
    - A recording vector index double
    - Sample documents
"""

import zlib
from typing import Optional, Sequence
from unittest.mock import patch

import numpy as np
import pytest

from ragpipe.errors import ProviderError, StoreError
from ragpipe.retrieval.indexer import IndexedPoint, RetrievedResult

TEST_DIMENSION = 8


# =============================================================================
# Test Doubles
# =============================================================================

class FakeEmbedder:
    """Deterministic embedder: the same text always maps to the same vector."""

    def __init__(
        self,
        dimension: int = TEST_DIMENSION,
        fail_on_call: Optional[int] = None,
        answer_text: str = "generated answer",
    ) -> None:
        self.dimension = dimension
        self.fail_on_call = fail_on_call
        self.answer_text = answer_text
        self.embedded: list[str] = []
        self.answered: list[tuple[str, str]] = []

    async def embed(self, text: str) -> list[float]:
        if self.fail_on_call is not None and len(self.embedded) == self.fail_on_call:
            self.embedded.append(text)
            raise ProviderError("embedding service unavailable")
        self.embedded.append(text)
        rng = np.random.default_rng(zlib.crc32(text.encode("utf-8")))
        return rng.random(self.dimension).astype(np.float32).tolist()

    async def answer(self, context: str, question: str) -> str:
        self.answered.append((context, question))
        return self.answer_text


class RecordingIndex:
    """Vector index double that records calls and returns canned results."""

    def __init__(
        self,
        results: Optional[list[RetrievedResult]] = None,
        fail_ensure: bool = False,
        fail_upsert: bool = False,
        fail_search: bool = False,
    ) -> None:
        self.results = results if results is not None else []
        self.fail_ensure = fail_ensure
        self.fail_upsert = fail_upsert
        self.fail_search = fail_search
        self.ensure_calls: list[int] = []
        self.upserts: list[list[IndexedPoint]] = []
        self.searches: list[tuple[list[float], int]] = []

    async def ensure_ready(self, dimension: int) -> None:
        self.ensure_calls.append(dimension)
        if self.fail_ensure:
            raise StoreError("connection failed")

    async def upsert(self, points: Sequence[IndexedPoint]) -> None:
        if self.fail_upsert:
            raise StoreError("write rejected")
        self.upserts.append(list(points))

    async def search(self, vector: Sequence[float], limit: int) -> list[RetrievedResult]:
        self.searches.append((list(vector), limit))
        if self.fail_search:
            raise StoreError("search timed out")
        return self.results[:limit]


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """Provide test settings without requiring .env file."""
    with patch.dict(
        "os.environ",
        {
            "OPENAI_API_KEY": "test-api-key",
            "OPENAI_MODEL": "gpt-4.1-mini",
            "CHUNK_SIZE": "100",
            "CHUNK_OVERLAP": "5",
            "SEARCH_LIMIT": "3",
            "EMBEDDING_DIMENSION": str(TEST_DIMENSION),
            "VECTOR_BACKEND": "faiss",
        },
    ):
        from ragpipe.config import Settings
        yield Settings()


# =============================================================================
# Double Fixtures
# =============================================================================

@pytest.fixture
def make_embedder():
    """Provide the FakeEmbedder class for tests that need custom behaviour."""
    return FakeEmbedder


@pytest.fixture
def make_index():
    """Provide the RecordingIndex class for tests that need custom behaviour."""
    return RecordingIndex


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    """Provide a deterministic embedder."""
    return FakeEmbedder()


@pytest.fixture
def recording_index() -> RecordingIndex:
    """Provide a recording index returning two results."""
    return RecordingIndex(
        results=[
            RetrievedResult(text="Document 1", score=0.9),
            RetrievedResult(text="Document 2", score=0.8),
        ]
    )


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_documents() -> dict[str, str]:
    """Provide sample documents keyed by id."""
    return {
        "kubernetes.txt": (
            "Kubernetes is an open-source system for automating deployment, "
            "scaling, and management of containerized applications. It groups "
            "containers into logical units called pods."
        ),
        "qdrant.txt": (
            "Qdrant is a vector similarity search engine. Points have an id, "
            "a vector and a JSON payload, and live in collections."
        ),
    }


@pytest.fixture
def sample_question() -> str:
    """Provide a sample question."""
    return "What is Kubernetes?"
