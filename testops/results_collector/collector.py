"""Collects new queue executions into enriched JSON reports."""

import logging
from pathlib import Path

from testops.results_collector.clients.platform import PlatformClient
from testops.results_collector.dedup import DedupTracker
from testops.results_collector.enrichment import EnrichmentOrchestrator
from testops.results_collector.errors import QueueNotFoundError
from testops.results_collector.lookup_cache import IssueKeyCache
from testops.results_collector.models.queue import QueueExecution, WorkQueue
from testops.results_collector.models.summary import QueueRunResult
from testops.results_collector.report_writer import ReportWriter

logger = logging.getLogger(__name__)


async def list_recent_executions(
    platform: PlatformClient,
    queue: WorkQueue,
    count: int,
    page_size: int = 50,
) -> list[QueueExecution]:
    """List up to ``count`` most recent executions of a queue, oldest first.

    Raises:
        QueueNotFoundError: If no platform queue has the queue's name

    """
    definition = await platform.find_queue_by_title(queue.name)
    if definition is None:
        raise QueueNotFoundError(f"Queue not found on the platform: {queue.name}")

    executions = await platform.list_executions_for_queue(
        definition.key, page=1, page_size=page_size
    )
    newest = executions[: min(count, len(executions))]
    logger.info(
        f"Queue {queue.name}: {len(executions)} executions listed, "
        f"considering the {len(newest)} most recent"
    )
    return list(reversed(newest))


class TestResultsCollector:
    """Runs the collection pipeline for every configured queue.

    For each queue: list recent executions, skip those already in the
    queue's dedup tracker, fetch and enrich the rest oldest first, write
    each report and mark it processed.
    """

    __test__ = False

    def __init__(
        self,
        platform: PlatformClient,
        enrichment: EnrichmentOrchestrator,
        writer: ReportWriter,
        issue_cache: IssueKeyCache,
        reports_path: Path,
        results_per_queue: int = 1,
        tests_per_queue: int = 150,
        listing_page_size: int = 50,
    ) -> None:
        """Initialize the collector with its collaborators."""
        self.platform = platform
        self.enrichment = enrichment
        self.writer = writer
        self.issue_cache = issue_cache
        self.reports_path = reports_path
        self.results_per_queue = results_per_queue
        self.tests_per_queue = tests_per_queue
        self.listing_page_size = listing_page_size

    def tracker_for(self, queue: WorkQueue) -> DedupTracker:
        """Dedup tracker of a queue."""
        return DedupTracker(self.reports_path / queue.store_status_file)

    async def run(self, queues: list[WorkQueue]) -> list[QueueRunResult]:
        """Collect every queue and persist the issue key cache at the end.

        A failing queue is logged and reported; the remaining queues still
        run.
        """
        self.issue_cache.load()
        results: list[QueueRunResult] = []
        try:
            for queue in queues:
                results.append(await self._run_queue(queue))
        finally:
            self.issue_cache.save()
        return results

    async def _run_queue(self, queue: WorkQueue) -> QueueRunResult:
        logger.info(f"Collecting test results for queue: {queue.name}")
        try:
            return await self.collect_queue(queue)
        except Exception as e:
            logger.exception(f"Collection failed for queue {queue.name}")
            return QueueRunResult(
                queue=queue.name,
                status="failed",
                message=f"{type(e).__name__}: {e}",
            )

    async def collect_queue(self, queue: WorkQueue) -> QueueRunResult:
        """Collect new executions of one queue.

        Errors propagate: a failed listing, fetch, or write aborts the queue.
        Executions already written stay written and marked.
        """
        tracker = self.tracker_for(queue)
        executions = await list_recent_executions(
            self.platform, queue, self.results_per_queue, self.listing_page_size
        )

        result = QueueRunResult(queue=queue.name, status="collected")
        for execution in executions:
            key = execution.execution_key
            if not key:
                raise ValueError(f"Execution of queue {queue.name} has no key")

            if tracker.has(key):
                logger.info(
                    f"{tracker.path} already contains queue id {key}, skipping..."
                )
                result.skipped.append(key)
                continue

            await self.collect_execution(queue, execution, tracker)
            result.written.append(key)

        logger.info(
            f"Queue {queue.name}: {len(result.written)} written, "
            f"{len(result.skipped)} already collected"
        )
        return result

    async def collect_execution(
        self, queue: WorkQueue, execution: QueueExecution, tracker: DedupTracker
    ) -> Path:
        """Fetch, enrich, and write one execution."""
        key = execution.execution_key
        logger.info(f"Fetching results for execution {key}")
        results = await self.platform.fetch_results_for_execution(
            key, self.tests_per_queue
        )
        logger.info(f"Execution {key}: {len(results.records)} records")

        await self.enrichment.enrich(results)
        return self.writer.write(queue, execution, results, tracker)
