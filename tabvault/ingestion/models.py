"""Data models for ingestion."""

from typing import Optional

from pydantic import BaseModel, Field


class ScrapeResult(BaseModel):
    """Result of scraping a page."""

    url: str = Field(..., description="Requested URL")
    success: bool = Field(..., description="Whether usable text was extracted")
    content: Optional[str] = Field(None, description="Plain text content")
    html: str = Field("", description="Raw markup, kept even on failure")
    error: Optional[str] = Field(None, description="Error message if failed")
    rendered: bool = Field(False, description="Content came from the headless renderer")


class RenderResult(BaseModel):
    """Text extracted by the headless renderer."""

    success: bool
    content: str = ""
    html: str = ""
    error: Optional[str] = None
