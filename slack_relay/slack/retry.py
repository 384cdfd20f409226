from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from slack_relay.config import settings
from slack_relay.errors import UpstreamUnavailable

logger = structlog.get_logger()

T = TypeVar("T")


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning("slack.retrying", attempt=state.attempt_number, error=str(exc))


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int | None = None,
    wait_seconds: float | None = None,
) -> T:
    """Await ``fn()``, retrying only on UpstreamUnavailable.

    UpstreamRejected and everything else propagate on the first failure.
    After the last attempt the original UpstreamUnavailable is re-raised.
    """
    if wait_seconds is None:
        wait_seconds = settings.SLACK_RETRY_WAIT_SECONDS
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts or settings.SLACK_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=wait_seconds, max=max(wait_seconds * 8, 0)),
        retry=retry_if_exception_type(UpstreamUnavailable),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            result = await fn()
    return result
