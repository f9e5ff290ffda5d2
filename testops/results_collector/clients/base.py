"""Shared request handling for the remote API clients."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from testops.results_collector.errors import PlatformError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonApiClient:
    """Base for clients issuing JSON requests over an injected session."""

    def __init__(self, session: aiohttp.ClientSession, timeout: float) -> None:
        """Initialize with an open session and a default timeout in seconds."""
        self.session = session
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _error(self, message: str, status: int, body: str) -> Exception:
        """Build the exception raised for an unexpected response status."""
        return PlatformError(message, status=status, body=body)

    async def _request_json(
        self,
        method: str,
        url: str,
        action: str,
        timeout: float | None = None,
        **kwargs: object,
    ) -> object:
        """Issue a request and return the decoded JSON body.

        Args:
            method: HTTP method
            url: Absolute request URL
            action: Short description used in error messages
            timeout: Total timeout in seconds (defaults to the client timeout)
            **kwargs: Passed through to ``ClientSession.request``

        Raises:
            PlatformError (or the client's error type): On a non-2xx status

        """
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        async with self.session.request(
            method,
            url,
            headers=self._headers(),
            timeout=client_timeout,
            **kwargs,  # type: ignore[arg-type]
        ) as response:
            if not 200 <= response.status < 300:
                text = await response.text()
                raise self._error(
                    f"Failed to {action}: {response.status} {text}",
                    response.status,
                    text,
                )

            return await response.json(content_type=None)


def _is_retryable(error: BaseException) -> bool:
    """Transport errors, timeouts and 5xx responses are worth another attempt."""
    if isinstance(error, PlatformError):
        return error.is_server_error
    return isinstance(error, (aiohttp.ClientError, asyncio.TimeoutError))


def _log_retry(description: str, attempts: int) -> Callable[[RetryCallState], None]:
    """Build a ``before_sleep`` hook logging the failed attempt."""

    def log(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{description} failed: {type(error).__name__}: {error}, "
            f"attempt {retry_state.attempt_number}/{attempts}"
        )

    return log


async def call_with_retries(
    call: Callable[[], Awaitable[T]],
    description: str,
    attempts: int = 3,
    retry_delay: float = 2.0,
) -> T:
    """Await ``call`` up to ``attempts`` times with linear backoff.

    The n-th retry waits ``retry_delay * n`` seconds. Non-retryable errors
    and the error of the final attempt propagate unchanged.
    """
    if attempts < 1:
        raise ValueError(f"{description}: attempts must be at least 1, got {attempts}")

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=retry_delay, increment=retry_delay),
        retry=retry_if_exception(_is_retryable),
        before_sleep=_log_retry(description, attempts),
        sleep=asyncio.sleep,
        reraise=True,
    ):
        with attempt:
            result = await call()

    return result
