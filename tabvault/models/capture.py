"""Capture model: one saved web page and its enrichment."""

import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator

from .base import DBModel

EMBEDDING_DIMENSIONS = 1536


class CaptureStatus(str, Enum):
    """Lifecycle status of a capture."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class Capture(DBModel):
    """Capture model."""

    url: str = Field(..., description="Source URL")
    title: Optional[str] = Field(None, description="User-supplied title")
    selected_text: Optional[str] = Field(None, description="User-selected snippet")
    favicon_url: Optional[str] = Field(None, description="Favicon URL")

    content: Optional[str] = Field(None, description="Scraped plain text")
    summary: Optional[str] = Field(None, description="AI summary (2-3 sentences)")
    display_title: Optional[str] = Field(None, description="AI-cleaned title (<= 80 chars)")
    category: Optional[str] = Field(None, description="Category name from the dynamic list")
    tags: Optional[List[str]] = Field(None, description="Lowercase, de-duplicated tags")
    quality_score: Optional[int] = Field(None, description="Quality 1-10", ge=1, le=10)
    actionability_score: Optional[int] = Field(None, description="Actionability 1-10", ge=1, le=10)
    key_takeaways: Optional[List[str]] = Field(None, description="Key points (3-5)")
    action_items: Optional[List[str]] = Field(None, description="Action items (0-3)")

    source_platform: Optional[str] = Field(None, description="Detected platform tag")
    author_name: Optional[str] = Field(None, description="Extracted author")
    image_url: Optional[str] = Field(None, description="URL of the stored image copy")

    embedding: Optional[List[float]] = Field(None, description="Embedding vector")

    status: CaptureStatus = Field(CaptureStatus.PENDING, description="Lifecycle status")
    error_message: Optional[str] = Field(None, description="Error message when status is error")
    processed_at: Optional[datetime] = Field(None, description="Last pipeline completion")

    notion_synced: bool = Field(False, description="Synced to Notion (external)")
    notion_page_id: Optional[str] = Field(None, description="Notion page reference (external)")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_vector(cls, v: Any) -> Any:
        # pgvector columns come back as "[0.1,0.2,...]" without a registered adapter
        if isinstance(v, str):
            return json.loads(v)
        if v is not None and not isinstance(v, list):
            return list(v)
        return v

    @property
    def label(self) -> str:
        """Short human label for logs."""
        return self.title or self.url
