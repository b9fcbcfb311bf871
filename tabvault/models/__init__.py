"""Data models for Tab Vault."""

from .capture import EMBEDDING_DIMENSIONS, Capture, CaptureStatus
from .category import DEFAULT_CATEGORIES, Category
from .search import SearchMatch
from .usage import DailyUsage, ServiceUsage, UsageRecord, UsageSummary, UsageTotals

__all__ = [
    "Capture",
    "CaptureStatus",
    "Category",
    "DEFAULT_CATEGORIES",
    "EMBEDDING_DIMENSIONS",
    "SearchMatch",
    "UsageRecord",
    "UsageTotals",
    "UsageSummary",
    "DailyUsage",
    "ServiceUsage",
]
