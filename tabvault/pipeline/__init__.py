"""Capture enrichment pipeline."""

from .factory import build_processor, get_embedding_provider, get_llm_provider
from .models import BackfillResult, BatchResult, DeleteResult, ProcessResult
from .processor import CaptureProcessor, PipelineStage

__all__ = [
    "CaptureProcessor",
    "PipelineStage",
    "ProcessResult",
    "BatchResult",
    "BackfillResult",
    "DeleteResult",
    "build_processor",
    "get_llm_provider",
    "get_embedding_provider",
]
