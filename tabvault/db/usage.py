"""Usage ledger: token counts and cost per backend call."""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set

import psycopg
from psycopg_pool import AsyncConnectionPool

from ..exceptions import PersistenceError
from ..models import DailyUsage, ServiceUsage, UsageRecord, UsageSummary

logger = logging.getLogger(__name__)

# Cents per million tokens
PRICING: Dict[str, Dict[str, float]] = {
    "anthropic/claude-haiku-4.5": {"input": 100, "output": 500},
    "anthropic/claude-sonnet-4-20250514": {"input": 300, "output": 1500},
    "anthropic/claude-3.5-haiku": {"input": 80, "output": 400},
    "anthropic/claude-3-haiku": {"input": 25, "output": 125},
    "openai/gpt-4o-mini": {"input": 15, "output": 60},
    "openai/gpt-4o": {"input": 250, "output": 1000},
    "text-embedding-3-small": {"input": 2, "output": 0},
    "text-embedding-3-large": {"input": 13, "output": 0},
}
DEFAULT_PRICING = PRICING["anthropic/claude-haiku-4.5"]


def calculate_cost(model: str, input_tokens: int, output_tokens: int = 0) -> float:
    """Cost in cents, rounded up to the nearest hundredth of a cent."""
    pricing = PRICING.get(model, DEFAULT_PRICING)
    cents = (input_tokens / 1_000_000) * pricing["input"] + (
        output_tokens / 1_000_000
    ) * pricing["output"]
    return math.ceil(round(cents * 100, 6)) / 100


class UsageLedger(ABC):
    """Persists usage records and reads them back in aggregate."""

    @abstractmethod
    async def record(self, record: UsageRecord) -> None:
        """Persist one usage record."""

    @abstractmethod
    async def usage_rows(self, days_back: int) -> List[Dict[str, Any]]:
        """
        Usage grouped by day and service since ``days_back`` days ago.

        Each row has ``day``, ``service``, ``requests``, ``input_tokens``,
        ``output_tokens`` and ``cost_units`` (integer hundredths of a cent).
        """

    async def summary(self, days_back: int = 30) -> UsageSummary:
        """Totals plus daily and per-service breakdowns."""
        return summarize_usage(await self.usage_rows(days_back), days_back)


def summarize_usage(rows: Iterable[Dict[str, Any]], days_back: int) -> UsageSummary:
    """Fold grouped ledger rows into a UsageSummary."""
    summary = UsageSummary(days_back=days_back)
    daily: Dict[Any, DailyUsage] = {}
    services: Dict[str, ServiceUsage] = {}

    for row in rows:
        day = daily.setdefault(row["day"], DailyUsage(day=row["day"]))
        service = services.setdefault(row["service"], ServiceUsage(service=row["service"]))
        cost_cents = (row.get("cost_units") or 0) / 100
        for totals in (summary, day, service):
            totals.requests += row.get("requests") or 0
            totals.input_tokens += row.get("input_tokens") or 0
            totals.output_tokens += row.get("output_tokens") or 0
            totals.cost_cents += cost_cents

    summary.daily = sorted(daily.values(), key=lambda d: d.day, reverse=True)
    summary.by_service = sorted(services.values(), key=lambda s: (-s.cost_cents, s.service))
    return summary


class PostgresUsageLedger(UsageLedger):
    """Usage ledger backed by the ``usage`` table."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def record(self, record: UsageRecord) -> None:
        try:
            async with self.pool.connection() as conn:
                await conn.execute(
                    """
                    INSERT INTO usage (
                        capture_id, service, model, operation,
                        input_tokens, output_tokens, cost_cents
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        record.capture_id,
                        record.service,
                        record.model,
                        record.operation,
                        record.input_tokens,
                        record.output_tokens,
                        # stored as integer hundredths of a cent
                        round(record.cost_cents * 100),
                    ),
                )
        except psycopg.Error as e:
            raise PersistenceError(str(e)) from e

    async def usage_rows(self, days_back: int) -> List[Dict[str, Any]]:
        try:
            async with self.pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        SELECT created_at::date AS day,
                               service,
                               COUNT(*) AS requests,
                               COALESCE(SUM(input_tokens), 0) AS input_tokens,
                               COALESCE(SUM(output_tokens), 0) AS output_tokens,
                               COALESCE(SUM(cost_cents), 0) AS cost_units
                        FROM usage
                        WHERE created_at >= CURRENT_DATE - %s::int
                        GROUP BY 1, 2
                        ORDER BY 1 DESC, 2
                        """,
                        (max(0, days_back),),
                    )
                    return list(await cur.fetchall())
        except psycopg.Error as e:
            raise PersistenceError(str(e)) from e


class UsageRecorder:
    """Fire-and-forget front end to a usage ledger.

    Recording never blocks or fails the call that produced the usage:
    each record is written from its own task and any error is logged
    and dropped.
    """

    def __init__(self, ledger: Optional[UsageLedger]) -> None:
        self.ledger = ledger
        self._pending: Set[asyncio.Task] = set()

    def record(
        self,
        *,
        capture_id: Optional[str],
        service: str,
        model: str,
        operation: str,
        input_tokens: int,
        output_tokens: int = 0,
    ) -> None:
        """Schedule a usage record; returns immediately."""
        if self.ledger is None:
            return
        try:
            entry = UsageRecord(
                capture_id=capture_id,
                service=service,
                model=model,
                operation=operation,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost_cents=calculate_cost(model, input_tokens, output_tokens),
            )
            task = asyncio.get_running_loop().create_task(self._write(entry))
        except Exception as e:
            logger.warning("Usage record for %s dropped: %s", operation, e)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: UsageRecord) -> None:
        try:
            await self.ledger.record(entry)
            logger.debug(
                "Recorded usage: %s %s/%s tokens, %.4f cents",
                entry.operation,
                entry.input_tokens,
                entry.output_tokens,
                entry.cost_cents,
            )
        except Exception as e:
            logger.warning("Failed to record usage for %s: %s", entry.operation, e)

    async def flush(self) -> None:
        """Wait for scheduled records to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
