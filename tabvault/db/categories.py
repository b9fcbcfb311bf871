"""Category list used by the classifier."""

import logging
from typing import List, Optional

from psycopg_pool import AsyncConnectionPool

from ..models import DEFAULT_CATEGORIES, Category

logger = logging.getLogger(__name__)


class CategoryStore:
    """Loads the admin-managed category list, with a cached copy."""

    def __init__(self, pool: Optional[AsyncConnectionPool] = None) -> None:
        self.pool = pool
        self._cached: Optional[List[Category]] = None

    async def get_categories(self) -> List[Category]:
        """Get categories ordered by sort order; defaults if the store is unavailable."""
        if self.pool is None:
            return list(DEFAULT_CATEGORIES)
        if self._cached is not None:
            return self._cached

        try:
            async with self.pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        "SELECT name, description FROM categories ORDER BY sort_order ASC, name ASC"
                    )
                    rows = await cur.fetchall()
        except Exception as e:
            logger.warning("Failed to load categories, using defaults: %s", e)
            return list(DEFAULT_CATEGORIES)

        categories = [
            Category(name=row["name"], description=row["description"] or "") for row in rows
        ]
        if not categories:
            return list(DEFAULT_CATEGORIES)

        self._cached = categories
        return categories
