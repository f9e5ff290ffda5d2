"""Per-execution pass/fail statistics for trend display."""

import json
import logging
from pathlib import Path

from testops.results_collector.clients.platform import PlatformClient
from testops.results_collector.collector import list_recent_executions
from testops.results_collector.file_utils import write_json
from testops.results_collector.models.execution import ExecutionResults, Outcome
from testops.results_collector.models.queue import QueueExecution, WorkQueue
from testops.results_collector.models.summary import QueueRunResult, QueueSummary

logger = logging.getLogger(__name__)


def format_duration(duration: str | None) -> str:
    """Format a platform duration ("0:2:7.4547924") as "HH:MM:SS".

    Fractions of a second are truncated. An empty duration is "00:00:00";
    a value that is not colon separated is returned unchanged.
    """
    if not duration or not duration.strip():
        return "00:00:00"

    parts = duration.strip().split(":")
    if len(parts) < 3:
        logger.warning(f'Unexpected duration format "{duration}"')
        return duration

    hours = parts[0].zfill(2)
    minutes = parts[1].zfill(2)
    seconds = parts[2].split(".")[0].zfill(2)
    return f"{hours}:{minutes}:{seconds}"


def calculate_queue_summary(
    results: ExecutionResults, execution: QueueExecution
) -> QueueSummary:
    """Compute pass/fail statistics of one execution.

    Every record that did not pass counts as failed.
    """
    records = results.records
    total = len(records)
    passed = sum(1 for r in records if r.outcome is Outcome.PASSED)
    rate = round(passed / total * 100) if total > 0 else 0

    started_at = execution.started_at
    date = started_at.strftime("%Y-%m-%d") if started_at else ""

    return QueueSummary(
        queue_id=execution.key if execution.key is not None else "",
        date=date,
        total_tests=total,
        passed=passed,
        failed=total - passed,
        passed_rate=f"{rate}%",
        duration=format_duration(execution.duration),
    )


def summary_file_path(reports_path: Path, queue: WorkQueue) -> Path:
    """Location of a queue's summary file."""
    return reports_path / f"{queue.standard_name.lower()}-queue-results.json"


def load_existing_summaries(path: Path) -> list[object]:
    """Read the entries of a summary file as stored.

    Entries are not revalidated, so saving a new summary never rewrites or
    drops an older one. A missing file, malformed JSON, or a document that
    is not a list reads as empty.
    """
    if not path.exists():
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Error loading existing queue summaries from {path}: {e}")
        return []

    if not isinstance(data, list):
        logger.warning(f"Queue summaries in {path} are not a list, ignoring them")
        return []
    return data


def summarized_queue_ids(entries: list[object]) -> set[str]:
    """Queue ids present in summary entries, compared as strings."""
    return {
        str(entry["queueId"])
        for entry in entries
        if isinstance(entry, dict) and entry.get("queueId") is not None
    }


def save_queue_summary(path: Path, summary: QueueSummary) -> bool:
    """Prepend ``summary`` to the file unless its queue id is already there.

    Returns:
        True if the summary was added

    """
    entries = load_existing_summaries(path)
    if str(summary.queue_id) in summarized_queue_ids(entries):
        logger.info(
            f"Queue ID {summary.queue_id} already exists in {path.name}, skipping..."
        )
        return False

    write_json(path, [summary.model_dump(by_alias=True), *entries])
    logger.info(f"Queue summary saved to: {path}")
    return True


class QueueSummaryCollector:
    """Collects summaries of recent executions without enrichment."""

    def __init__(
        self,
        platform: PlatformClient,
        reports_path: Path,
        results_per_queue: int = 1,
        tests_per_queue: int = 150,
        listing_page_size: int = 50,
    ) -> None:
        """Initialize the collector."""
        self.platform = platform
        self.reports_path = reports_path
        self.results_per_queue = results_per_queue
        self.tests_per_queue = tests_per_queue
        self.listing_page_size = listing_page_size

    async def run(self, queues: list[WorkQueue]) -> list[QueueRunResult]:
        """Summarize every queue; a failing queue does not stop the others."""
        results: list[QueueRunResult] = []
        for queue in queues:
            logger.info(f"Collecting queue results for queue: {queue.name}")
            try:
                results.append(await self.collect_queue(queue))
            except Exception as e:
                logger.exception(f"Queue summary failed for queue {queue.name}")
                results.append(
                    QueueRunResult(
                        queue=queue.name,
                        status="failed",
                        message=f"{type(e).__name__}: {e}",
                    )
                )
        return results

    async def collect_queue(self, queue: WorkQueue) -> QueueRunResult:
        """Summarize the most recent executions of one queue, oldest first."""
        executions = await list_recent_executions(
            self.platform, queue, self.results_per_queue, self.listing_page_size
        )
        path = summary_file_path(self.reports_path, queue)
        result = QueueRunResult(queue=queue.name, status="collected")

        for execution in executions:
            key = execution.execution_key
            if not key:
                raise ValueError(f"Execution of queue {queue.name} has no key")
            if execution.started_at is None:
                logger.warning(
                    f"Execution {key} does not have an execution start timestamp, "
                    "skipping..."
                )
                continue

            if key in summarized_queue_ids(load_existing_summaries(path)):
                logger.info(
                    f"Queue ID {key} already exists in {path.name}, skipping..."
                )
                result.skipped.append(key)
                continue

            results = await self.platform.fetch_results_for_execution(
                key, self.tests_per_queue
            )
            summary = calculate_queue_summary(results, execution)

            if save_queue_summary(path, summary):
                result.written.append(key)
            else:
                result.skipped.append(key)

            logger.info(
                f"Queue {key}: {summary.total_tests} tests, {summary.passed} passed "
                f"({summary.passed_rate}), duration: {summary.duration}"
            )

        return result

