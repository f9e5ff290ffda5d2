"""Client for the test-management platform API."""

import logging
from collections.abc import Awaitable, Callable, Mapping

import aiohttp

from testops.results_collector.clients.base import JsonApiClient, call_with_retries
from testops.results_collector.errors import PlatformError
from testops.results_collector.models.config import PlatformConfig
from testops.results_collector.models.execution import DetailStep, ExecutionResults
from testops.results_collector.models.queue import QueueDefinition, QueueExecution

logger = logging.getLogger(__name__)


class PlatformClient(JsonApiClient):
    """Queries queues, executions, and history detail on the platform.

    The session must already carry the authentication cookies produced by
    the login step; this client never logs in or refreshes a session.
    """

    def __init__(self, session: aiohttp.ClientSession, config: PlatformConfig) -> None:
        """Initialize the client with an authenticated session."""
        super().__init__(session, config.request_timeout)
        self.config = config
        self.api_url = config.api_url

    async def list_queue_definitions(self) -> list[QueueDefinition]:
        """List every queue defined on the platform."""

        async def call() -> object:
            return await self._request_json(
                "GET", f"{self.api_url}/Queue/GetItems", "list queue items"
            )

        data = await self._with_retries(call, "Listing queue items")
        if not isinstance(data, list):
            raise PlatformError("Unexpected queue items response: expected a list")

        return [QueueDefinition.model_validate(item) for item in data]

    async def find_queue_by_title(self, title: str) -> QueueDefinition | None:
        """Find the queue definition whose title matches exactly."""
        for definition in await self.list_queue_definitions():
            if definition.title == title:
                return definition
        return None

    async def list_executions_for_queue(
        self,
        queue_id: str | int,
        page: int = 1,
        page_size: int = 50,
    ) -> list[QueueExecution]:
        """List executions of a queue, newest first as ordered by the platform.

        Raises:
            PlatformError: If the response carries no execution list

        """

        async def call() -> object:
            return await self._request_json(
                "POST",
                f"{self.api_url}/Queue/GetAutomatedTestQueuesForTestQueue",
                "list queue executions",
                json={"page": page, "pageSize": page_size, "testQueueId": queue_id},
            )

        data = await self._with_retries(call, f"Listing executions of queue {queue_id}")
        values = _data_values(data)
        if values is None:
            raise PlatformError(f"No automated queues found for test queue {queue_id}")

        return [QueueExecution.model_validate(item) for item in values]

    async def fetch_results_for_execution(
        self, execution_id: str | int, page_size: int
    ) -> ExecutionResults:
        """Fetch the first page of records of a queue execution.

        Only one page is requested. When the platform reports more records
        than fit in ``page_size`` the remainder is not collected.
        """

        async def call() -> object:
            return await self._request_json(
                "GET",
                f"{self.api_url}/Queue/GetAutomatedTestListForTestQueue",
                "get execution results",
                params={
                    "testQueueId": str(execution_id),
                    "page": "1",
                    "pageSize": str(page_size),
                },
            )

        data = await self._with_retries(call, f"Fetching results of {execution_id}")
        if not isinstance(data, Mapping):
            raise PlatformError(f"Unexpected results response for {execution_id}")

        results = ExecutionResults.model_validate(data)
        if results.total is not None and results.total > len(results.records):
            logger.warning(
                f"Execution {execution_id} reports {results.total} records, "
                f"only the first {len(results.records)} were retrieved"
            )
        return results

    async def fetch_failure_detail(
        self, execution_record_id: str | int
    ) -> list[DetailStep]:
        """Fetch the step-by-step history of one execution record."""
        data = await self._request_json(
            "GET",
            f"{self.api_url}/Execution/GetHistoryDetail",
            "get history detail",
            timeout=self.config.detail_timeout,
            params={"testHistoryId": str(execution_record_id)},
        )
        if not isinstance(data, list):
            raise PlatformError(
                f"Unexpected history detail response for {execution_record_id}"
            )

        return [DetailStep.model_validate(item) for item in data]

    async def _with_retries(
        self, call: Callable[[], Awaitable[object]], description: str
    ) -> object:
        return await call_with_retries(
            call,
            description,
            attempts=self.config.listing_attempts,
            retry_delay=self.config.retry_delay,
        )


def _data_values(data: object) -> list[object] | None:
    """Extract ``data.Value`` from a platform response."""
    if not isinstance(data, Mapping):
        return None
    wrapper = data.get("data")
    if not isinstance(wrapper, Mapping):
        return None
    values = wrapper.get("Value")
    return values if isinstance(values, list) else None
