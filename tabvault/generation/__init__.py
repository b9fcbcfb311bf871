"""AI analysis and embedding generation."""

from .analyzer import (
    ContentAnalyzer,
    clamp_score,
    clean_display_title,
    clean_summary,
    extract_json,
    normalize_tags,
    parse_categorization,
    parse_insights,
    parse_scores,
)
from .embeddings import EmbeddingGenerator, compose_text
from .llm_provider import EmbeddingProvider, LLMProvider, OpenAIEmbeddingProvider, OpenAIProvider
from .models import AnalysisResult, Categorization, Completion, EmbeddingResponse, Insights, Scores

__all__ = [
    "ContentAnalyzer",
    "EmbeddingGenerator",
    "LLMProvider",
    "EmbeddingProvider",
    "OpenAIProvider",
    "OpenAIEmbeddingProvider",
    "AnalysisResult",
    "Categorization",
    "Completion",
    "EmbeddingResponse",
    "Insights",
    "Scores",
    "clamp_score",
    "clean_display_title",
    "clean_summary",
    "compose_text",
    "extract_json",
    "normalize_tags",
    "parse_categorization",
    "parse_insights",
    "parse_scores",
]
