"""Unit tests for retrieval.resources module."""

from unittest.mock import patch

import pytest

from ragpipe.errors import ProvisioningError
from ragpipe.llm.client import OpenAIClient
from ragpipe.retrieval.chunker import Chunker
from ragpipe.retrieval.indexer import FAISSIndex
from ragpipe.retrieval.pipeline import Pipeline
from ragpipe.retrieval.qdrant_store import QdrantIndex
from ragpipe.retrieval.resources import build_pipeline, create_chunker, create_vector_index


@pytest.mark.unit
class TestCreateChunker:
    def test_uses_configured_sizes(self, mock_settings):
        chunker = create_chunker(mock_settings)

        assert isinstance(chunker, Chunker)
        assert chunker.chunk_size == 100
        assert chunker.chunk_overlap == 5


@pytest.mark.unit
class TestCreateVectorIndex:
    def test_faiss_backend(self, mock_settings):
        index = create_vector_index(mock_settings)

        assert isinstance(index, FAISSIndex)
        assert index.path == mock_settings.faiss_index_path

    def test_qdrant_backend(self, mock_settings):
        config = mock_settings.model_copy(
            update={"vector_backend": "qdrant", "qdrant_collection": "test-docs"}
        )

        with patch("ragpipe.retrieval.qdrant_store.AsyncQdrantClient") as mock_client_cls:
            index = create_vector_index(config)

        assert isinstance(index, QdrantIndex)
        assert index.collection == "test-docs"
        mock_client_cls.assert_called_once_with(
            host="localhost", grpc_port=6334, prefer_grpc=True, timeout=60
        )


@pytest.mark.unit
class TestBuildPipeline:
    """Tests for build_pipeline."""

    @pytest.mark.asyncio
    async def test_build_with_injected_backends(self, mock_settings, fake_embedder, recording_index):
        pipeline = await build_pipeline(mock_settings, embedder=fake_embedder, index=recording_index)

        assert isinstance(pipeline, Pipeline)
        assert pipeline.embedder is fake_embedder
        assert pipeline.search_limit == 3
        assert recording_index.ensure_calls == [8]

    @pytest.mark.asyncio
    async def test_build_defaults_to_openai_client(self, mock_settings, recording_index):
        pipeline = await build_pipeline(mock_settings, index=recording_index)

        assert isinstance(pipeline.embedder, OpenAIClient)
        await pipeline.embedder.aclose()

    @pytest.mark.asyncio
    async def test_build_faiss_pipeline(self, mock_settings, fake_embedder, tmp_path):
        config = mock_settings.model_copy(update={"faiss_index_path": tmp_path / "faiss"})

        pipeline = await build_pipeline(config, embedder=fake_embedder)

        assert isinstance(pipeline.index, FAISSIndex)
        assert pipeline.index.dimension == 8

    @pytest.mark.asyncio
    async def test_build_fails_when_index_not_ready(self, mock_settings, fake_embedder, make_index):
        with pytest.raises(ProvisioningError):
            await build_pipeline(
                mock_settings, embedder=fake_embedder, index=make_index(fail_ensure=True)
            )

    @pytest.mark.asyncio
    async def test_build_requires_api_key(self, mock_settings, recording_index):
        config = mock_settings.model_copy(update={"openai_api_key": None})

        with pytest.raises(ValueError, match="OPENAI_API_KEY is required"):
            await build_pipeline(config, index=recording_index)
