"""Enrichment of execution records with issue keys and failure details."""

import asyncio
import logging
from dataclasses import dataclass

from testops.results_collector.clients.platform import PlatformClient
from testops.results_collector.errors import ScreenshotDownloadError
from testops.results_collector.lookup_cache import IssueKeyCache
from testops.results_collector.models.execution import (
    DetailStep,
    ExecutionRecord,
    ExecutionResults,
    Outcome,
)
from testops.results_collector.screenshots import ScreenshotStore

logger = logging.getLogger(__name__)


@dataclass
class FailureDetail:
    """Failure fields gathered for one record before they are applied."""

    title: str | None
    description: str | None
    image_url: str | None = None

    def apply_to(self, record: ExecutionRecord) -> None:
        """Copy the gathered fields onto ``record``."""
        record.error_title = self.title
        record.error_description = self.description
        if self.image_url is not None:
            record.image_url = self.image_url


def first_failed_step(steps: list[DetailStep]) -> DetailStep | None:
    """Return the first failed step that was not disabled."""
    for step in steps:
        if step.outcome is Outcome.FAILED and not step.is_disabled:
            return step
    return None


class EnrichmentOrchestrator:
    """Enriches one queue execution's records in place.

    Every record gets its issue key. Failed records additionally get the
    title and description of their first failed step and a screenshot. A
    failure while enriching one record is logged and leaves that record's
    failure fields unset; it never fails the batch.
    """

    def __init__(
        self,
        platform: PlatformClient,
        issue_cache: IssueKeyCache,
        screenshots: ScreenshotStore,
        detail_concurrency: int | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            platform: Client used for history detail lookups
            issue_cache: Run-wide issue key cache
            screenshots: Destination for downloaded screenshots
            detail_concurrency: Cap on concurrent detail lookups, None for no cap

        """
        self.platform = platform
        self.issue_cache = issue_cache
        self.screenshots = screenshots
        self.detail_concurrency = detail_concurrency

    async def enrich(self, results: ExecutionResults) -> ExecutionResults:
        """Attach issue keys and failure details to every record of ``results``."""
        records = results.records
        await self.attach_issue_keys(records)

        failed = [
            r for r in records if r.outcome is Outcome.FAILED and r.key is not None
        ]
        if failed:
            logger.info(f"Fetching failure details for {len(failed)} failed tests")
            await self._enrich_failures(failed)

        return results

    async def attach_issue_keys(self, records: list[ExecutionRecord]) -> None:
        """Resolve issue keys for every distinct test name and attach them."""
        test_names = [r.test_name for r in records if r.test_name]
        unique_names = list(dict.fromkeys(test_names))
        logger.info(f"Processing {len(unique_names)} unique test names...")

        issue_keys = await self.issue_cache.resolve(unique_names)
        for record in records:
            record.jira_key = issue_keys.get(record.test_name or "")

        found = sum(1 for key in issue_keys.values() if key is not None)
        logger.info(
            f"Found issue keys for {found} out of {len(unique_names)} test names"
        )

    async def enrich_failure(self, record: ExecutionRecord) -> None:
        """Fetch and apply failure details for one failed record."""
        try:
            detail = await self._collect_failure_detail(record)
        except Exception as e:
            logger.warning(
                f"Failed to fetch history details for test {record.key}: "
                f"{type(e).__name__}: {e}"
            )
            return

        if detail is not None:
            detail.apply_to(record)

    async def _collect_failure_detail(
        self, record: ExecutionRecord
    ) -> FailureDetail | None:
        steps = await self.platform.fetch_failure_detail(record.key or "")
        step = first_failed_step(steps)
        if step is None:
            logger.debug(f"No failed step found for test {record.key}")
            return None

        detail = FailureDetail(title=step.title, description=step.description)
        if step.key:
            detail.image_url = await self._store_screenshot(
                step.key, record.test_name or str(record.key)
            )
        return detail

    async def _store_screenshot(self, image_url: str, test_name: str) -> str:
        """Download a screenshot, falling back to the remote reference."""
        try:
            return await self.screenshots.download(image_url, test_name)
        except ScreenshotDownloadError as e:
            logger.warning(f"Failed to download screenshot for test {test_name}: {e}")
            return image_url

    async def _enrich_failures(self, records: list[ExecutionRecord]) -> None:
        """Enrich failed records concurrently, within ``detail_concurrency``."""
        if self.detail_concurrency is None:
            await asyncio.gather(*(self.enrich_failure(r) for r in records))
            return

        semaphore = asyncio.Semaphore(self.detail_concurrency)

        async def enrich_with_semaphore(record: ExecutionRecord) -> None:
            async with semaphore:
                await self.enrich_failure(record)

        await asyncio.gather(*(enrich_with_semaphore(r) for r in records))
