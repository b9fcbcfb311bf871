"""Capture storage."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import psycopg
from psycopg import sql
from psycopg_pool import AsyncConnectionPool

from ..exceptions import PersistenceError
from ..models import Capture, SearchMatch

# Columns the pipeline is allowed to write
UPDATABLE_COLUMNS = frozenset(
    {
        "content",
        "summary",
        "display_title",
        "category",
        "tags",
        "quality_score",
        "actionability_score",
        "key_takeaways",
        "action_items",
        "source_platform",
        "author_name",
        "image_url",
        "embedding",
        "status",
        "error_message",
        "processed_at",
    }
)


def format_vector(embedding: Sequence[float]) -> str:
    """Format an embedding as a pgvector literal."""
    return "[" + ",".join(repr(float(x)) for x in embedding) + "]"


class CaptureStore(ABC):
    """Row storage for captures, keyed by capture id."""

    @abstractmethod
    async def get_capture(self, capture_id: str) -> Optional[Capture]:
        """Fetch a capture, or None if it does not exist."""

    @abstractmethod
    async def update_capture(self, capture_id: str, fields: Dict[str, Any]) -> None:
        """Partially update a capture."""

    @abstractmethod
    async def list_pending_ids(self, limit: int) -> List[str]:
        """Ids of pending captures, oldest first."""

    @abstractmethod
    async def list_missing_embedding(self, limit: int) -> List[Capture]:
        """Completed captures without an embedding, newest first."""

    @abstractmethod
    async def count_missing_embedding(self) -> int:
        """Number of completed captures without an embedding."""

    @abstractmethod
    async def list_missing_display_title(self, limit: int) -> List[Capture]:
        """Completed captures without a display title, newest first."""

    @abstractmethod
    async def count_missing_display_title(self) -> int:
        """Number of completed captures without a display title."""

    @abstractmethod
    async def search_similar(
        self, embedding: Sequence[float], threshold: float, count: int
    ) -> List[SearchMatch]:
        """Approximate nearest-neighbour search over stored embeddings."""

    @abstractmethod
    async def delete_capture(self, capture_id: str) -> Optional[Capture]:
        """Delete a capture, returning the deleted row."""


class PostgresCaptureStore(CaptureStore):
    """Capture store backed by Postgres + pgvector."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """Initialize with an open async connection pool."""
        self.pool = pool

    async def _fetchall(self, query, params=()) -> List[Dict[str, Any]]:
        try:
            async with self.pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    return await cur.fetchall()
        except psycopg.Error as e:
            raise PersistenceError(str(e)) from e

    async def _fetchone(self, query, params=()) -> Optional[Dict[str, Any]]:
        rows = await self._fetchall(query, params)
        return rows[0] if rows else None

    async def get_capture(self, capture_id: str) -> Optional[Capture]:
        row = await self._fetchone(
            "SELECT * FROM captures WHERE id = %s",
            (capture_id,),
        )
        return Capture.model_validate(row) if row else None

    async def update_capture(self, capture_id: str, fields: Dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not fields:
            return

        assignments = []
        params: List[Any] = []
        for column, value in fields.items():
            if column == "embedding":
                placeholder = sql.SQL("%s::vector")
                value = format_vector(value) if value is not None else None
            else:
                placeholder = sql.Placeholder()
                if isinstance(value, Enum):
                    value = value.value
            assignments.append(sql.SQL("{} = {}").format(sql.Identifier(column), placeholder))
            params.append(value)
        params.append(capture_id)

        query = sql.SQL("UPDATE captures SET {} WHERE id = %s RETURNING id").format(
            sql.SQL(", ").join(assignments)
        )
        row = await self._fetchone(query, params)
        if row is None:
            raise PersistenceError(f"Capture {capture_id} was not updated (row missing)")

    async def list_pending_ids(self, limit: int) -> List[str]:
        rows = await self._fetchall(
            """
            SELECT id FROM captures
            WHERE status = 'pending'
            ORDER BY created_at ASC
            LIMIT %s
            """,
            (limit,),
        )
        return [str(row["id"]) for row in rows]

    async def list_missing_embedding(self, limit: int) -> List[Capture]:
        rows = await self._fetchall(
            """
            SELECT id, url, title, summary, category, tags, content, status, created_at
            FROM captures
            WHERE embedding IS NULL AND status = 'completed'
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (limit,),
        )
        return [Capture.model_validate(row) for row in rows]

    async def count_missing_embedding(self) -> int:
        row = await self._fetchone(
            "SELECT COUNT(*) AS n FROM captures WHERE embedding IS NULL AND status = 'completed'"
        )
        return int(row["n"]) if row else 0

    async def list_missing_display_title(self, limit: int) -> List[Capture]:
        rows = await self._fetchall(
            """
            SELECT id, url, title, content, status, created_at
            FROM captures
            WHERE display_title IS NULL AND status = 'completed'
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (limit,),
        )
        return [Capture.model_validate(row) for row in rows]

    async def count_missing_display_title(self) -> int:
        row = await self._fetchone(
            "SELECT COUNT(*) AS n FROM captures WHERE display_title IS NULL AND status = 'completed'"
        )
        return int(row["n"]) if row else 0

    async def search_similar(
        self, embedding: Sequence[float], threshold: float, count: int
    ) -> List[SearchMatch]:
        rows = await self._fetchall(
            "SELECT * FROM search_captures(%s::vector, %s, %s)",
            (format_vector(embedding), threshold, count),
        )
        return [SearchMatch.model_validate(row) for row in rows]

    async def delete_capture(self, capture_id: str) -> Optional[Capture]:
        row = await self._fetchone(
            "DELETE FROM captures WHERE id = %s RETURNING *",
            (capture_id,),
        )
        return Capture.model_validate(row) if row else None
