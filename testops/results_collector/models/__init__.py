"""Data models for queues, execution records, configuration, and outputs."""

from testops.results_collector.models.config import (
    CollectorSettings,
    IssueTrackerConfig,
    PlatformConfig,
)
from testops.results_collector.models.execution import (
    DetailStep,
    ExecutionRecord,
    ExecutionResults,
    Outcome,
    normalize_outcome,
)
from testops.results_collector.models.issue import Issue, IssueSearchResponse
from testops.results_collector.models.queue import (
    QueueDefinition,
    QueueExecution,
    WorkQueue,
)
from testops.results_collector.models.summary import QueueRunResult, QueueSummary

__all__ = [
    "CollectorSettings",
    "DetailStep",
    "ExecutionRecord",
    "ExecutionResults",
    "Issue",
    "IssueSearchResponse",
    "IssueTrackerConfig",
    "Outcome",
    "PlatformConfig",
    "QueueDefinition",
    "QueueExecution",
    "QueueRunResult",
    "QueueSummary",
    "WorkQueue",
    "normalize_outcome",
]
