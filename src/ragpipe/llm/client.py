"""
Client for OpenAI-compatible embedding and chat completion endpoints.

One long-lived ``httpx.AsyncClient`` is shared by all calls. Rate limits
(429) and gateway errors (502/503/504) are retried with exponential backoff;
everything else is reported immediately as ``ProviderError``.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from ragpipe.config import settings
from ragpipe.errors import ProviderError
from ragpipe.llm.prompts import PromptSet

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = (429, 502, 503, 504)


class OpenAIClient:
    """
    Embeddings and answers from the OpenAI REST API.

    Example:
        >>> client = OpenAIClient(api_key="sk-...")
        >>> vector = await client.embed("What is Kubernetes?")
        >>> len(vector)
        3072
        >>> answer = await client.answer(context, "What is Kubernetes?")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        embed_model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: float = 1.0,
        prompts: Optional[PromptSet] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: OpenAI API key (default from settings)
            model: Chat model (default from settings)
            embed_model: Embedding model (default from settings)
            base_url: API base URL (default from settings)
            temperature: Sampling temperature for answers (default from settings)
            timeout: Per-request timeout in seconds (default from settings)
            max_retries: Attempts per request (default from settings)
            retry_delay: Initial delay between retries, doubled each attempt
            prompts: Prompt set for answers (defaults when omitted)
            http_client: Pre-built client (tests, connection sharing)
        """
        self.api_key = api_key or settings.openai_api_key_value
        self.model = model or settings.openai_model
        self.embed_model = embed_model or settings.openai_embed_model
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.temperature = temperature if temperature is not None else settings.answer_temperature
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max_retries or settings.max_retries
        self.retry_delay = retry_delay
        self.prompts = prompts or PromptSet()
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    async def embed(self, text: str) -> list[float]:
        """
        Generate an embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            ProviderError: If the request fails or the response has no data
        """
        result = await self._post("/embeddings", {"model": self.embed_model, "input": text})

        data = result.get("data") or []
        if not data:
            raise ProviderError("no embedding data in response")

        try:
            return [float(v) for v in data[0]["embedding"]]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"malformed embedding response: {e}") from e

    async def answer(self, context: str, question: str) -> str:
        """
        Generate an answer to ``question`` grounded in ``context``.

        Args:
            context: Context blob built from retrieved chunks
            question: User question

        Returns:
            Model answer

        Raises:
            ProviderError: If the request fails or the response has no choices
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.prompts.system},
                {"role": "user", "content": self.prompts.render_answer(context, question)},
            ],
            "temperature": self.temperature,
        }
        result = await self._post("/chat/completions", payload)

        choices = result.get("choices") or []
        if not choices:
            raise ProviderError("no choices in response")

        try:
            return choices[0]["message"]["content"]
        except (KeyError, TypeError) as e:
            raise ProviderError(f"malformed completion response: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST a JSON payload with retry on rate limits and gateway errors.

        Raises:
            ProviderError: If the request fails after all retries
        """
        if not self.api_key:
            raise ProviderError("OPENAI_API_KEY is required")

        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        retry_delay = self.retry_delay

        for attempt in range(self.max_retries):
            try:
                response = await self._client.post(url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                raise ProviderError(f"request to {path} failed: {e}") from e

            if response.status_code in RETRY_STATUS_CODES and attempt < self.max_retries - 1:
                logger.warning(
                    f"{path} returned {response.status_code}, "
                    f"retrying in {retry_delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
                continue

            try:
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                raise ProviderError(
                    f"{path} returned HTTP {e.response.status_code}"
                ) from e
            except ValueError as e:
                raise ProviderError(f"{path} returned invalid JSON: {e}") from e

        # This shouldn't be reached, but just in case
        raise ProviderError(f"request to {path} failed after {self.max_retries} attempts")
