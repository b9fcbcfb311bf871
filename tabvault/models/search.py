"""Similarity search result."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SearchMatch(BaseModel):
    """A capture returned by vector similarity search."""

    id: str
    url: str
    title: Optional[str] = None
    display_title: Optional[str] = None
    summary: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    quality_score: Optional[int] = None
    created_at: Optional[datetime] = None
    similarity: float = Field(..., description="Cosine similarity (1 = identical)")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags(cls, v):
        return v or []
