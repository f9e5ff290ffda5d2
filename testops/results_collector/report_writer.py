"""Writes enriched execution results as dated JSON reports."""

import logging
from pathlib import Path

from testops.results_collector.dedup import DedupTracker
from testops.results_collector.file_utils import sanitize_filename, write_json
from testops.results_collector.models.execution import ExecutionResults
from testops.results_collector.models.queue import QueueExecution, WorkQueue

logger = logging.getLogger(__name__)


class ReportWriter:
    """Materializes one queue execution as ``<date>/<queue>_<time>.json``.

    The file name depends only on the queue name and the execution start
    time, so re-driving an execution rewrites the same file.
    """

    def __init__(self, reports_path: Path) -> None:
        """Initialize the writer for the given reports directory."""
        self.reports_path = reports_path

    def report_path(self, queue: WorkQueue, execution: QueueExecution) -> Path:
        """Return the report location for an execution.

        Raises:
            ValueError: If the execution has no start timestamp

        """
        started_at = execution.started_at
        if started_at is None:
            raise ValueError(
                f"Execution {execution.execution_key} does not have an "
                "execution start timestamp"
            )

        folder = self.reports_path / started_at.strftime("%Y-%m-%d")
        queue_name = sanitize_filename(queue.name) or "queue"
        return folder / f"{queue_name}_{started_at.strftime('%H-%M-%S')}.json"

    def write(
        self,
        queue: WorkQueue,
        execution: QueueExecution,
        results: ExecutionResults,
        tracker: DedupTracker,
    ) -> Path:
        """Write the report, then mark the execution as processed."""
        path = self.report_path(queue, execution)
        write_json(path, results.to_report())
        logger.info(f"Report saved to: {path}")

        tracker.record_processed(execution.execution_key)
        return path
