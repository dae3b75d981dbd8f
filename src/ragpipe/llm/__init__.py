"""LLM clients for ragpipe."""

from ragpipe.llm.client import OpenAIClient
from ragpipe.llm.factory import AnswerGenerator, EmbeddingProvider, create_llm_client

__all__ = ["OpenAIClient", "AnswerGenerator", "EmbeddingProvider", "create_llm_client"]
