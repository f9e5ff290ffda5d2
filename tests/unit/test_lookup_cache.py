"""Tests for the issue key cache."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from testops.results_collector.errors import IssueTrackerError
from testops.results_collector.lookup_cache import IssueKeyCache, build_summary_jql
from testops.results_collector.models.issue import Issue, IssueSearchResponse


def _response(*keys: str) -> IssueSearchResponse:
    return IssueSearchResponse(issues=[Issue(key=key) for key in keys])


@pytest.fixture
def client() -> AsyncMock:
    """Create a mocked issue tracker client."""
    client = AsyncMock()
    client.search_issues.return_value = _response()
    return client


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Location of the persisted cache."""
    return tmp_path / "test-name-jira-key-mapping.json"


def test_build_summary_jql() -> None:
    """build_summary_jql scopes the summary search to the project."""
    assert build_summary_jql("QA", "Login") == 'project = QA AND summary ~ "Login"'


def test_build_summary_jql_escapes_quotes() -> None:
    """build_summary_jql escapes quotes and backslashes in the test name."""
    jql = build_summary_jql("QA", 'Open "Reports" C:\\tmp')

    assert jql == 'project = QA AND summary ~ "Open \\"Reports\\" C:\\\\tmp"'


async def test_resolve_searches_misses(cache_path: Path, client: AsyncMock) -> None:
    """resolve searches uncached names and returns the first issue key."""
    client.search_issues.return_value = _response("QA-7", "QA-8")
    cache = IssueKeyCache(cache_path, client, project="QA")

    keys = await cache.resolve(["Checkout"])

    assert keys == {"Checkout": "QA-7"}
    assert cache.entries == {"Checkout": "QA-7"}
    client.search_issues.assert_awaited_once_with(
        'project = QA AND summary ~ "Checkout"',
        max_results=1,
        fields=["key", "summary"],
    )


async def test_negative_result_is_cached_across_runs(
    cache_path: Path, client: AsyncMock
) -> None:
    """A name without an issue is stored as None and not searched again."""
    first_run = IssueKeyCache(cache_path, client, project="QA")
    first_run.load()
    assert await first_run.resolve(["Login with valid credentials"]) == {
        "Login with valid credentials": None
    }
    first_run.save()

    assert json.loads(cache_path.read_text()) == {"Login with valid credentials": None}

    client.search_issues.reset_mock()
    second_run = IssueKeyCache(cache_path, client, project="QA")
    second_run.load()
    keys = await second_run.resolve(["Login with valid credentials"])

    assert keys == {"Login with valid credentials": None}
    client.search_issues.assert_not_awaited()


async def test_resolve_uses_cached_entries(cache_path: Path, client: AsyncMock) -> None:
    """resolve only searches names missing from the cache."""
    cache_path.write_text(json.dumps({"Login": "QA-1"}))
    client.search_issues.return_value = _response("QA-2")
    cache = IssueKeyCache(cache_path, client, project="QA")
    cache.load()

    keys = await cache.resolve(["Login", "Checkout", "Login"])

    assert keys == {"Login": "QA-1", "Checkout": "QA-2"}
    assert client.search_issues.await_count == 1


async def test_search_error_resolves_to_none(
    cache_path: Path, client: AsyncMock
) -> None:
    """A failed search resolves to None without raising."""
    client.search_issues.side_effect = IssueTrackerError("boom", status=500)
    cache = IssueKeyCache(cache_path, client, project="QA")

    keys = await cache.resolve(["Checkout"])

    assert keys == {"Checkout": None}
    assert "Checkout" in cache


async def test_resolve_batches_searches(cache_path: Path, client: AsyncMock) -> None:
    """resolve runs at most batch_size searches at once."""
    in_flight = 0
    peak = 0

    async def search(*args: object, **kwargs: object) -> IssueSearchResponse:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1
        return _response()

    client.search_issues.side_effect = search
    cache = IssueKeyCache(cache_path, client, project="QA", batch_size=5)

    keys = await cache.resolve([f"Test {i}" for i in range(12)])

    assert len(keys) == 12
    assert client.search_issues.await_count == 12
    assert peak == 5


async def test_save_keeps_previous_entries(cache_path: Path, client: AsyncMock) -> None:
    """Entries loaded from disk survive a save with new entries."""
    cache_path.write_text(json.dumps({"Login": "QA-1", "Logout": None}))
    client.search_issues.return_value = _response("QA-2")
    cache = IssueKeyCache(cache_path, client, project="QA")
    cache.load()

    await cache.resolve(["Checkout"])
    cache.save()

    assert json.loads(cache_path.read_text()) == {
        "Login": "QA-1",
        "Logout": None,
        "Checkout": "QA-2",
    }
    assert len(cache) == 3


@pytest.mark.parametrize(
    "content",
    ["{not json", '["Login"]', '{"Login": 12}'],
)
def test_load_unusable_file_starts_empty(
    cache_path: Path, client: AsyncMock, content: str
) -> None:
    """load starts empty when the file is corrupt or has the wrong shape."""
    cache_path.write_text(content)
    cache = IssueKeyCache(cache_path, client, project="QA")

    assert cache.load() == {}
    assert len(cache) == 0


def test_load_missing_file(cache_path: Path, client: AsyncMock) -> None:
    """load starts empty when no cache was persisted."""
    cache = IssueKeyCache(cache_path, client, project="QA")

    assert cache.load() == {}


def test_save_failure_is_logged(
    tmp_path: Path, client: AsyncMock, caplog: pytest.LogCaptureFixture
) -> None:
    """save logs a write failure instead of raising."""
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    cache = IssueKeyCache(blocker / "cache.json", client, project="QA")

    cache.save()

    assert "Failed to save issue key cache" in caplog.text
