"""Tests for queue models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from testops.results_collector.models.queue import (
    QueueDefinition,
    QueueExecution,
    WorkQueue,
    parse_platform_timestamp,
)


def test_work_queue_from_registry_entry() -> None:
    """WorkQueue reads registry field names."""
    queue = WorkQueue.model_validate(
        {
            "name": "01.) JDEdwards Finance",
            "standardName": "FIN",
            "storeStatusFile": "fin-status.txt",
        }
    )

    assert queue.name == "01.) JDEdwards Finance"
    assert queue.standard_name == "FIN"
    assert queue.store_status_file == "fin-status.txt"


def test_work_queue_missing_field() -> None:
    """WorkQueue requires every registry field."""
    with pytest.raises(ValidationError):
        WorkQueue.model_validate({"name": "Finance", "standardName": "FIN"})


def test_queue_definition_keeps_extra_fields() -> None:
    """QueueDefinition accepts platform fields it does not declare."""
    definition = QueueDefinition.model_validate(
        {"title": "Finance", "key": 42, "owner": "qa"}
    )

    assert definition.key == 42
    assert definition.model_extra == {"owner": "qa"}


def test_queue_execution_key_as_string() -> None:
    """execution_key is the key rendered as a string."""
    assert QueueExecution(key=1003).execution_key == "1003"
    assert QueueExecution(key="1003").execution_key == "1003"
    assert QueueExecution().execution_key == ""


def test_queue_execution_started_at() -> None:
    """started_at parses the start timestamp."""
    execution = QueueExecution.model_validate(
        {"key": 1, "executionStartTimeStamp": "2025-03-14T09:30:15.1234567"}
    )

    assert execution.started_at == datetime(2025, 3, 14, 9, 30, 15, 123456)


def test_queue_execution_without_start() -> None:
    """started_at is None when the platform reports no start."""
    assert QueueExecution(key=1).started_at is None
    assert QueueExecution(key=1, execution_start="").started_at is None


def test_parse_platform_timestamp_keeps_wall_clock() -> None:
    """parse_platform_timestamp keeps the reported fields of an offset value."""
    parsed = parse_platform_timestamp("2025-03-14T23:45:00Z")

    assert (parsed.year, parsed.month, parsed.day) == (2025, 3, 14)
    assert (parsed.hour, parsed.minute) == (23, 45)
    assert parsed.utcoffset() == timedelta(0)
    assert parsed.tzinfo == timezone.utc


def test_parse_platform_timestamp_invalid() -> None:
    """parse_platform_timestamp rejects malformed values."""
    with pytest.raises(ValueError):
        parse_platform_timestamp("yesterday")
