"""CLI entry point for the test results collector."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable

import aiohttp
import typer
from pydantic import ValidationError

from testops.results_collector.clients.issue_tracker import IssueTrackerClient
from testops.results_collector.clients.platform import PlatformClient
from testops.results_collector.collector import TestResultsCollector
from testops.results_collector.enrichment import EnrichmentOrchestrator
from testops.results_collector.lookup_cache import IssueKeyCache
from testops.results_collector.models.config import CollectorSettings
from testops.results_collector.models.queue import WorkQueue
from testops.results_collector.models.summary import QueueRunResult
from testops.results_collector.queue_loader import load_queues
from testops.results_collector.queue_summary import QueueSummaryCollector
from testops.results_collector.report_writer import ReportWriter
from testops.results_collector.screenshots import ScreenshotStore
from testops.results_collector.session import create_platform_session
from testops.results_collector.settings import load_settings

# Configure logging - force reconfiguration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
    force=True,
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Collect automated test results into JSON reports.")


@app.callback()
def configure(
    log_level: str = typer.Option(
        "INFO", envvar="LOG_LEVEL", help="Logging level (debug, info, warning...)"
    ),
) -> None:
    """Configure logging for every command."""
    logging.getLogger().setLevel(log_level.upper())


async def collect_test_results(
    settings: CollectorSettings, queues: list[WorkQueue]
) -> list[QueueRunResult]:
    """Run the enriched test results pipeline for every queue."""
    async with (
        create_platform_session(settings.platform) as platform_session,
        aiohttp.ClientSession() as tracker_session,
    ):
        platform = PlatformClient(platform_session, settings.platform)
        issue_cache = IssueKeyCache(
            settings.cache_path,
            IssueTrackerClient(tracker_session, settings.issue_tracker),
            project=settings.issue_tracker.project,
            batch_size=settings.issue_tracker.batch_size,
        )
        enrichment = EnrichmentOrchestrator(
            platform,
            issue_cache,
            ScreenshotStore(
                settings.reports_path,
                platform_session,
                settings.platform.detail_timeout,
            ),
            detail_concurrency=settings.detail_concurrency,
        )
        collector = TestResultsCollector(
            platform,
            enrichment,
            ReportWriter(settings.reports_path),
            issue_cache,
            settings.reports_path,
            results_per_queue=settings.results_per_queue,
            tests_per_queue=settings.tests_per_queue,
            listing_page_size=settings.listing_page_size,
        )
        return await collector.run(queues)


async def collect_queue_results(
    settings: CollectorSettings, queues: list[WorkQueue]
) -> list[QueueRunResult]:
    """Run the queue summary pipeline for every queue."""
    async with create_platform_session(settings.platform) as platform_session:
        collector = QueueSummaryCollector(
            PlatformClient(platform_session, settings.platform),
            settings.reports_path,
            results_per_queue=settings.results_per_queue,
            tests_per_queue=settings.tests_per_queue,
            listing_page_size=settings.listing_page_size,
        )
        return await collector.run(queues)


def _load_configuration(
    results_per_queue: int | None,
) -> tuple[CollectorSettings, list[WorkQueue]]:
    """Load settings and queues, exiting with code 1 when they are invalid."""
    try:
        settings = load_settings()
        if results_per_queue is not None:
            settings = settings.model_copy(
                update={"results_per_queue": results_per_queue}
            )
        queues = load_queues(settings.queues_file)
    except (ValueError, ValidationError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    logger.info(f"Reports path: {settings.reports_path}")
    logger.info(f"Queues: {[queue.name for queue in queues]}")
    return settings, queues


def _report(pipeline: str, results: list[QueueRunResult]) -> bool:
    """Log and print run results; return whether every queue succeeded."""
    logger.info("=" * 80)
    logger.info(f"{pipeline} Summary:")
    logger.info("=" * 80)
    for result in results:
        if result.status == "collected":
            logger.info(
                f"✓ {result.queue}: {len(result.written)} written, "
                f"{len(result.skipped)} skipped"
            )
        else:
            logger.error(f"✗ {result.queue}: {result.message}")

    output = {
        "pipeline": pipeline,
        "total": len(results),
        "collected": sum(1 for r in results if r.status == "collected"),
        "failed": sum(1 for r in results if r.status == "failed"),
        "results": [r.model_dump() for r in results],
    }
    typer.echo(json.dumps(output, indent=2))

    return all(r.status == "collected" for r in results)


def _run_pipeline(
    pipeline: str,
    collect: Callable[
        [CollectorSettings, list[WorkQueue]], Awaitable[list[QueueRunResult]]
    ],
    settings: CollectorSettings,
    queues: list[WorkQueue],
) -> bool:
    """Run one pipeline; return whether every queue was collected."""
    try:
        logger.info(f"Starting {pipeline.lower()} collection...")
        results = asyncio.run(collect(settings, queues))
    except Exception as e:
        logger.exception(f"{pipeline} collection failed")
        typer.echo(f"Error running collector: {e}", err=True)
        return False

    return _report(pipeline, results)


results_option = typer.Option(
    None,
    "--results-per-queue",
    min=1,
    help="Most recent executions per queue (overrides NUMBER_OF_QUEUE_RESULTS)",
)


@app.command("test-results")
def run_test_results(results_per_queue: int | None = results_option) -> None:
    """Collect enriched test results of new queue executions."""
    settings, queues = _load_configuration(results_per_queue)
    if not _run_pipeline("Test Results", collect_test_results, settings, queues):
        raise typer.Exit(code=1)


@app.command("queue-results")
def run_queue_results(results_per_queue: int | None = results_option) -> None:
    """Collect pass/fail summaries of recent queue executions."""
    settings, queues = _load_configuration(results_per_queue)
    if not _run_pipeline("Queue Results", collect_queue_results, settings, queues):
        raise typer.Exit(code=1)


@app.command("all")
def run_all(results_per_queue: int | None = results_option) -> None:
    """Run the queue summary and the test results pipelines."""
    settings, queues = _load_configuration(results_per_queue)
    summary_ok = _run_pipeline(
        "Queue Results", collect_queue_results, settings, queues
    )
    results_ok = _run_pipeline("Test Results", collect_test_results, settings, queues)
    if not (summary_ok and results_ok):
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
