"""Database connection management."""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, ConnectionPool


class DatabaseConfig:
    """Database configuration."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize database config from dict."""
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "tabvault")
        self.user = config.get("user", "tabvault")
        self.password = config.get("password") or ""

    @property
    def connection_string(self) -> str:
        """Get psycopg connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


_connection_pool: Optional[ConnectionPool] = None
_async_pool: Optional[AsyncConnectionPool] = None


def get_connection_pool(config: Dict[str, Any]) -> ConnectionPool:
    """Get or create the synchronous connection pool (schema management)."""
    global _connection_pool
    if _connection_pool is None:
        db_config = DatabaseConfig(config)
        _connection_pool = ConnectionPool(
            db_config.connection_string,
            min_size=1,
            max_size=4,
            kwargs={"row_factory": dict_row},
        )
    return _connection_pool


@contextmanager
def get_connection(config: Dict[str, Any]) -> Generator[psycopg.Connection, None, None]:
    """Get a database connection from the pool."""
    pool = get_connection_pool(config)
    with pool.connection() as conn:
        yield conn


async def get_async_pool(config: Dict[str, Any]) -> AsyncConnectionPool:
    """Get or create the async connection pool used by the pipeline."""
    global _async_pool
    if _async_pool is None:
        db_config = DatabaseConfig(config)
        _async_pool = AsyncConnectionPool(
            db_config.connection_string,
            min_size=1,
            max_size=10,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        await _async_pool.open()
    return _async_pool


async def close_async_pool() -> None:
    """Close the async pool if it was opened."""
    global _async_pool
    if _async_pool is not None:
        await _async_pool.close()
        _async_pool = None
