"""LLM provider interface and implementations."""

from abc import ABC, abstractmethod
from typing import List, Optional

from openai import AsyncOpenAI

from ..exceptions import ProviderError
from .models import Completion, EmbeddingResponse


class LLMProvider(ABC):
    """Abstract base class for text-generation backends."""

    service: str = "llm"

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str,
        max_tokens: int = 500,
        temperature: float = 0.3,
    ) -> Completion:
        """
        Generate text for a system instruction + user message.

        Args:
            system_prompt: System instructions
            user_prompt: User message
            model: Provider model identifier
            max_tokens: Maximum output tokens
            temperature: Sampling temperature

        Returns:
            Generated text with token counts
        """
        pass


class EmbeddingProvider(ABC):
    """Abstract base class for embedding backends."""

    service: str = "embeddings"
    model: str = ""

    @abstractmethod
    async def embed(self, text: str, dimensions: int) -> EmbeddingResponse:
        """Embed text into a vector of ``dimensions`` floats."""
        pass


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible chat completions (OpenAI, OpenRouter)."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        service: str = "openrouter",
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize provider.

        Args:
            api_key: API key
            base_url: Custom base URL (OpenRouter, proxies, testing)
            service: Service tag used in the usage ledger
            timeout: Request timeout in seconds
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=1,
        )
        self.service = service

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str,
        max_tokens: int = 500,
        temperature: float = 0.3,
    ) -> Completion:
        """Generate text using the chat completions API."""
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        if not response.choices:
            raise ProviderError(f"No choices returned by {model}")

        input_tokens = output_tokens = 0
        if response.usage:
            input_tokens = response.usage.prompt_tokens or 0
            output_tokens = response.usage.completion_tokens or 0

        return Completion(
            text=(response.choices[0].message.content or "").strip(),
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings API."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: Optional[str] = None,
        timeout: float = 20.0,
    ) -> None:
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=1,
        )
        self.service = "openai"
        self.model = model

    async def embed(self, text: str, dimensions: int) -> EmbeddingResponse:
        """Embed text using the embeddings API."""
        response = await self.client.embeddings.create(
            model=self.model,
            input=text,
            dimensions=dimensions,
        )
        if not response.data:
            raise ProviderError("Embedding response contained no data")

        vector: List[float] = list(response.data[0].embedding)
        input_tokens = response.usage.prompt_tokens if response.usage else 0
        return EmbeddingResponse(vector=vector, model=self.model, input_tokens=input_tokens)
