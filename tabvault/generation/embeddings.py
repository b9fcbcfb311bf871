"""Embedding generation for captures and search queries."""

import logging
from typing import List, Optional

from ..db.usage import UsageRecorder
from ..exceptions import ProviderError
from ..models import EMBEDDING_DIMENSIONS, Capture
from .llm_provider import EmbeddingProvider

logger = logging.getLogger(__name__)


def compose_text(
    title: Optional[str] = None,
    summary: Optional[str] = None,
    category: Optional[str] = None,
    tags: Optional[List[str]] = None,
    content: Optional[str] = None,
    content_prefix_chars: int = 10000,
) -> str:
    """Join the non-empty capture fields into the text that gets embedded."""
    parts = []
    if title:
        parts.append(f"Title: {title}")
    if summary:
        parts.append(f"Summary: {summary}")
    if category:
        parts.append(f"Category: {category}")
    if tags:
        parts.append(f"Tags: {', '.join(tags)}")
    if content:
        parts.append(f"Content: {content[:content_prefix_chars]}")
    return "\n\n".join(parts)


class EmbeddingGenerator:
    """Turns captures and queries into fixed-length vectors."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        usage: Optional[UsageRecorder] = None,
        dimensions: int = EMBEDDING_DIMENSIONS,
        max_input_chars: int = 30000,
        content_prefix_chars: int = 10000,
    ) -> None:
        self.provider = provider
        self.usage = usage or UsageRecorder(None)
        self.dimensions = dimensions
        self.max_input_chars = max_input_chars
        self.content_prefix_chars = content_prefix_chars

    async def embed_text(
        self,
        text: str,
        capture_id: Optional[str] = None,
        operation: str = "embedding",
    ) -> List[float]:
        """Embed arbitrary text; raises ProviderError on empty input or a bad vector."""
        text = (text or "").strip()
        if not text:
            raise ProviderError("Nothing to embed")

        response = await self.provider.embed(text[: self.max_input_chars], self.dimensions)
        if len(response.vector) != self.dimensions:
            raise ProviderError(
                f"Expected {self.dimensions} dimensions, got {len(response.vector)}"
            )

        self.usage.record(
            capture_id=capture_id,
            service=self.provider.service,
            model=response.model,
            operation=operation,
            input_tokens=response.input_tokens,
        )
        return response.vector

    async def embed_capture(self, capture: Capture) -> List[float]:
        """Embed a capture from its title, summary, category, tags and content."""
        text = compose_text(
            title=capture.title,
            summary=capture.summary,
            category=capture.category,
            tags=capture.tags,
            content=capture.content,
            content_prefix_chars=self.content_prefix_chars,
        )
        return await self.embed_text(text, capture_id=capture.id, operation="embedding")

    async def embed_query(self, query: str) -> List[float]:
        """Embed a search query."""
        return await self.embed_text(query, operation="search")
