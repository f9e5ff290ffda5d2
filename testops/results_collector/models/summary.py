"""Models for collector outputs other than report artifacts."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class QueueSummary(BaseModel):
    """Aggregated statistics for one queue execution."""

    model_config = ConfigDict(populate_by_name=True)

    queue_id: str | int = Field(..., alias="queueId")
    date: str = Field(..., description="Execution date (YYYY-MM-DD)")
    total_tests: int = Field(..., alias="totalTests")
    passed: int
    failed: int
    passed_rate: str = Field(..., alias="passedRate", description="e.g. '85%'")
    duration: str = Field(..., description="HH:MM:SS")


class QueueRunResult(BaseModel):
    """Result of collecting a single queue."""

    queue: str = Field(..., description="Queue name")
    status: Literal["collected", "failed"] = Field(..., description="Run status")
    written: list[str] = Field(
        default_factory=list, description="Execution keys written in this run"
    )
    skipped: list[str] = Field(
        default_factory=list, description="Execution keys already collected"
    )
    message: str | None = Field(
        default=None, description="Error message or status details"
    )
