"""Database management for Tab Vault."""

from .captures import CaptureStore, PostgresCaptureStore, format_vector
from .categories import CategoryStore
from .connection import close_async_pool, get_async_pool, get_connection, get_connection_pool
from .init import init_database, validate_connection
from .settings import SettingsStore
from .usage import PostgresUsageLedger, UsageLedger, UsageRecorder, calculate_cost, summarize_usage

__all__ = [
    "CaptureStore",
    "PostgresCaptureStore",
    "CategoryStore",
    "SettingsStore",
    "UsageLedger",
    "PostgresUsageLedger",
    "UsageRecorder",
    "calculate_cost",
    "summarize_usage",
    "format_vector",
    "get_connection",
    "get_connection_pool",
    "get_async_pool",
    "close_async_pool",
    "init_database",
    "validate_connection",
]
