"""Result models returned by the capture processor."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProcessResult(BaseModel):
    """Outcome of one pipeline run."""

    capture_id: str
    success: bool = Field(..., description="Capture reached completed")
    status: Optional[str] = Field(None, description="Final status written, if any")
    error: Optional[str] = Field(None, description="Fatal error message")
    stages: List[Dict[str, Any]] = Field(default_factory=list, description="Per-stage report")
    duration: float = Field(0.0, description="Run time in seconds")

    @property
    def degraded_stages(self) -> List[str]:
        """Names of stages that failed without failing the run."""
        return [s["name"] for s in self.stages if not s["success"] and not s.get("skipped")]


class BatchResult(BaseModel):
    """Outcome of a pending-capture sweep."""

    success: bool = True
    processed: int = 0
    failed: int = 0
    error: Optional[str] = None
    results: List[ProcessResult] = Field(default_factory=list)


class BackfillResult(BaseModel):
    """Outcome of a single-field backfill."""

    success: bool = True
    processed: int = 0
    failed: int = 0
    remaining: int = 0
    error: Optional[str] = None


class DeleteResult(BaseModel):
    """Outcome of deleting a capture and its stored image."""

    capture_id: str
    success: bool
    image_deleted: bool = False
    error: Optional[str] = None
