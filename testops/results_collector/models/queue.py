"""Models for work queues and their executions."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


def parse_platform_timestamp(value: str) -> datetime:
    """Parse a platform timestamp, keeping its wall-clock fields.

    No timezone conversion is applied: an offset, when present, is kept on
    the returned value but the date and time fields are the ones reported.
    """
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


class WorkQueue(BaseModel):
    """Queue entry from the queue registry."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Queue title as shown on the platform")
    standard_name: str = Field(..., alias="standardName")
    store_status_file: str = Field(..., alias="storeStatusFile")


class QueueDefinition(BaseModel):
    """Queue item listed by the platform."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str
    key: str | int
    description: str | None = None


class QueueExecution(BaseModel):
    """One run of a queue."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    key: str | int | None = None
    duration: str | None = None
    executed_by: str | None = Field(default=None, alias="executedByUserName")
    execution_start: str | None = Field(default=None, alias="executionStartTimeStamp")
    execution_end: str | None = Field(default=None, alias="executionEndTimeStamp")
    environment: str | None = None

    @property
    def execution_key(self) -> str:
        """Key as a string, as stored in the dedup tracker."""
        return "" if self.key is None else str(self.key)

    @property
    def started_at(self) -> datetime | None:
        """Execution start time, or None when not reported."""
        if not self.execution_start:
            return None
        return parse_platform_timestamp(self.execution_start)
