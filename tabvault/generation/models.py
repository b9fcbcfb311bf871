"""Data models for generation."""

from typing import List, Optional

from pydantic import BaseModel, Field


class Completion(BaseModel):
    """Text returned by a text-generation backend."""

    text: str = Field(..., description="Generated text")
    model: str = Field(..., description="Model that produced the text")
    input_tokens: int = Field(0, description="Prompt tokens")
    output_tokens: int = Field(0, description="Completion tokens")


class EmbeddingResponse(BaseModel):
    """Vector returned by an embedding backend."""

    vector: List[float] = Field(..., description="Embedding")
    model: str = Field(..., description="Embedding model")
    input_tokens: int = Field(0, description="Input tokens")


class Categorization(BaseModel):
    """Category and tags for a capture."""

    category: str
    tags: List[str] = Field(default_factory=list)


class Scores(BaseModel):
    """Quality and actionability, each 1-10."""

    quality: int = Field(5, ge=1, le=10)
    actionability: int = Field(5, ge=1, le=10)


class Insights(BaseModel):
    """Key takeaways and action items."""

    takeaways: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Output of content analysis. A None field means that sub-call failed."""

    summary: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    quality_score: Optional[int] = None
    actionability_score: Optional[int] = None
    display_title: Optional[str] = None
    key_takeaways: Optional[List[str]] = None
    action_items: Optional[List[str]] = None
    errors: List[str] = Field(default_factory=list, description="Failed sub-calls")

    def to_update(self) -> dict:
        """Capture columns for every sub-call that succeeded."""
        return self.model_dump(exclude={"errors"}, exclude_none=True)
