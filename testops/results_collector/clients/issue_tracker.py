"""Jira issue search client."""

import base64
import logging

import aiohttp

from testops.results_collector.clients.base import JsonApiClient
from testops.results_collector.errors import IssueTrackerError
from testops.results_collector.models.config import IssueTrackerConfig
from testops.results_collector.models.issue import IssueSearchResponse

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = ["key", "summary", "status", "created", "updated"]


class IssueTrackerClient(JsonApiClient):
    """Searches Jira issues with JQL using basic authentication."""

    def __init__(
        self, session: aiohttp.ClientSession, config: IssueTrackerConfig
    ) -> None:
        """Initialize Jira client with configuration."""
        super().__init__(session, config.request_timeout)
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._encoded_credentials = base64.b64encode(
            f"{config.email}:{config.api_token}".encode()
        ).decode()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Basic {self._encoded_credentials}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Atlassian-Token": "no-check",
        }

    def _error(self, message: str, status: int, body: str) -> Exception:
        logger.error(f"Jira API request failed: {status} {body}")
        return IssueTrackerError(message, status=status, body=body)

    async def search_issues(
        self,
        jql: str,
        max_results: int = 50,
        fields: list[str] | None = None,
    ) -> IssueSearchResponse:
        """Run a JQL search and return its first page.

        Args:
            jql: JQL query
            max_results: Page size
            fields: Issue fields to return

        Returns:
            The page of matching issues

        """
        params = {
            "jql": jql,
            "maxResults": str(max_results),
            "fields": ",".join(fields or DEFAULT_FIELDS),
        }

        data = await self._request_json(
            "GET",
            f"{self.base_url}/rest/api/3/search/jql",
            "search issues",
            params=params,
        )
        if not isinstance(data, dict):
            raise IssueTrackerError("Unexpected search response: expected an object")

        return IssueSearchResponse.model_validate(data)
