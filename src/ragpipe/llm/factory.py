"""
LLM capability contracts and client factory.

The pipeline only needs ``EmbeddingProvider``; the HTTP layer also needs
``AnswerGenerator``. ``OpenAIClient`` implements both.
"""

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ragpipe.config import Settings
    from ragpipe.llm.client import OpenAIClient


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol that all embedding backends must implement."""

    async def embed(self, text: str) -> list[float]:
        """Map text to a fixed-length vector."""
        ...


@runtime_checkable
class AnswerGenerator(Protocol):
    """Protocol that all answer backends must implement."""

    async def answer(self, context: str, question: str) -> str:
        """Answer a question from the given context."""
        ...


def create_llm_client(config: Optional["Settings"] = None) -> "OpenAIClient":
    """
    Create an LLM client based on configuration settings.

    Args:
        config: Settings to use (defaults to the global settings)

    Returns:
        OpenAIClient implementing both EmbeddingProvider and AnswerGenerator

    Raises:
        ValueError: If no OpenAI API key is configured
    """
    from ragpipe.config import settings
    from ragpipe.llm.client import OpenAIClient
    from ragpipe.llm.prompts import load_prompts

    config = config or settings

    if not config.openai_api_key_value:
        raise ValueError(
            "OPENAI_API_KEY is required (set via environment variable or .env file)"
        )

    return OpenAIClient(
        api_key=config.openai_api_key_value,
        model=config.openai_model,
        embed_model=config.openai_embed_model,
        base_url=config.openai_base_url,
        temperature=config.answer_temperature,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        prompts=load_prompts(config.prompts_dir),
    )
