"""Usage ledger entry and aggregates."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from .base import DBModel


class UsageRecord(DBModel):
    """Token usage and cost of one backend call."""

    capture_id: Optional[str] = Field(None, description="Capture the call was made for")
    service: str = Field(..., description="Backend service (openrouter, openai)")
    model: str = Field(..., description="Model identifier")
    operation: str = Field(..., description="summarize, categorize, score, title, insights, embedding, search")
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    cost_cents: float = Field(0.0, description="Cost in cents", ge=0)


class UsageTotals(BaseModel):
    """Aggregated usage for one day or one service."""

    requests: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost_cents: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class DailyUsage(UsageTotals):
    day: date


class ServiceUsage(UsageTotals):
    service: str


class UsageSummary(UsageTotals):
    """Usage over the last ``days_back`` days (0 means today only)."""

    days_back: int
    daily: List[DailyUsage] = Field(default_factory=list, description="Newest day first")
    by_service: List[ServiceUsage] = Field(default_factory=list, description="Costliest first")

    @property
    def cost_dollars(self) -> float:
        return self.cost_cents / 100
