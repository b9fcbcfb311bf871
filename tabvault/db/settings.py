"""Admin settings (selected AI model)."""

import logging
from typing import Optional

from psycopg_pool import AsyncConnectionPool

from ..config.ai_models import DEFAULT_MODEL, MODELS

logger = logging.getLogger(__name__)


class SettingsStore:
    """Reads the admin-selected model key from the ``settings`` table."""

    def __init__(
        self,
        pool: Optional[AsyncConnectionPool] = None,
        default_model: str = DEFAULT_MODEL,
    ) -> None:
        self.pool = pool
        self.default_model = default_model if default_model in MODELS else DEFAULT_MODEL
        self._cached_model: Optional[str] = None

    async def get_ai_model(self) -> str:
        """Get the selected model key."""
        if self.pool is None:
            return self.default_model
        if self._cached_model is not None:
            return self._cached_model

        try:
            async with self.pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT ai_model FROM settings LIMIT 1")
                    row = await cur.fetchone()
        except Exception as e:
            logger.warning("Failed to load settings, using default model: %s", e)
            return self.default_model

        model = row["ai_model"] if row and row["ai_model"] in MODELS else self.default_model
        self._cached_model = model
        return model

    async def set_ai_model(self, model_key: str) -> None:
        """Persist a new model selection."""
        if model_key not in MODELS:
            raise ValueError(f"Unknown model: {model_key}")
        if self.pool is None:
            self.default_model = model_key
            return
        async with self.pool.connection() as conn:
            await conn.execute(
                "UPDATE settings SET ai_model = %s, updated_at = NOW()",
                (model_key,),
            )
        self._cached_model = model_key
