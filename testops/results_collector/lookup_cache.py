"""Persistent mapping from test name to issue-tracker key."""

import asyncio
import json
import logging
from collections.abc import Iterable
from pathlib import Path

from testops.results_collector.clients.issue_tracker import IssueTrackerClient
from testops.results_collector.file_utils import write_json

logger = logging.getLogger(__name__)


def build_summary_jql(project: str, test_name: str) -> str:
    """Build a JQL query matching ``test_name`` in issue summaries of ``project``."""
    escaped = test_name.replace("\\", "\\\\").replace('"', '\\"')
    return f'project = {project} AND summary ~ "{escaped}"'


class IssueKeyCache:
    """Test name to issue key lookup, shared by every queue of a run.

    A ``None`` value is a cached negative result: the name was searched and
    no issue was found (or the search failed). Entries are never removed, so
    the persisted mapping only grows from one run to the next.

    Usage:
        cache = IssueKeyCache(path, client, project="QA")
        cache.load()
        keys = await cache.resolve(["Login with valid credentials"])
        cache.save()
    """

    def __init__(
        self,
        path: Path,
        client: IssueTrackerClient,
        project: str,
        batch_size: int = 5,
    ) -> None:
        """Initialize an empty cache; call ``load`` to read persisted entries."""
        self.path = path
        self.client = client
        self.project = project
        self.batch_size = batch_size
        self._entries: dict[str, str | None] = {}

    @property
    def entries(self) -> dict[str, str | None]:
        """Current in-memory mapping."""
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, test_name: object) -> bool:
        return test_name in self._entries

    def load(self) -> dict[str, str | None]:
        """Load persisted entries, starting empty when the file is unusable."""
        self._entries = {}
        if not self.path.exists():
            logger.info(f"No issue key cache at {self.path}, starting empty")
            return self._entries

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                f"Failed to load issue key cache {self.path}, starting empty: {e}"
            )
            return self._entries

        if not isinstance(data, dict) or not all(
            isinstance(value, str) or value is None for value in data.values()
        ):
            logger.warning(
                f"Issue key cache {self.path} is not a name to key mapping, "
                "starting empty"
            )
            return self._entries

        self._entries = dict(data)
        logger.info(f"Loaded {len(self._entries)} entries from issue key cache")
        return self._entries

    def save(self) -> None:
        """Persist every entry. Failures are logged, not raised."""
        try:
            write_json(self.path, self._entries)
        except OSError as e:
            logger.error(f"Failed to save issue key cache {self.path}: {e}")
            return
        logger.info(f"Saved {len(self._entries)} entries to issue key cache")

    async def resolve(self, test_names: Iterable[str]) -> dict[str, str | None]:
        """Return the issue key for each test name, searching cache misses.

        Misses are searched in batches of ``batch_size`` concurrent queries.
        A search error resolves to ``None`` and never propagates.
        """
        names = list(dict.fromkeys(test_names))
        results: dict[str, str | None] = {}
        misses: list[str] = []

        for name in names:
            if name in self._entries:
                results[name] = self._entries[name]
            else:
                misses.append(name)

        if not misses:
            logger.info(
                f"All {len(names)} test names found in cache, skipping issue search"
            )
            return results

        logger.info(
            f"Found {len(results)} test names in cache, "
            f"searching issues for {len(misses)} uncached names"
        )

        for start in range(0, len(misses), self.batch_size):
            batch = misses[start : start + self.batch_size]
            keys = await asyncio.gather(*(self._search(name) for name in batch))
            for name, key in zip(batch, keys, strict=True):
                results[name] = key
                self._entries[name] = key

        return results

    async def _search(self, test_name: str) -> str | None:
        """Search one test name, returning the first matching issue key."""
        jql = build_summary_jql(self.project, test_name)
        try:
            response = await self.client.search_issues(
                jql, max_results=1, fields=["key", "summary"]
            )
        except Exception as e:
            logger.error(
                f'Error searching issues for test name "{test_name}": '
                f"{type(e).__name__}: {e}"
            )
            return None

        if not response.issues:
            logger.debug(f"No issue found for test name: {test_name}")
            return None

        issue_key = response.issues[0].key
        logger.info(f"Found issue {issue_key} for test name: {test_name}")
        return issue_key
