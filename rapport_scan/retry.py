"""Provider request retries: tenacity, configured from :class:`RetryConfig`."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import RetryConfig

logger = structlog.get_logger()

# Connection resets and timeouts; HTTP status errors are not retried.
TRANSIENT_HTTP_ERRORS: tuple[type[BaseException], ...] = (httpx.TransportError,)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "request_retrying",
        attempt=state.attempt_number,
        wait_seconds=round(state.next_action.sleep, 3) if state.next_action else None,
        error=repr(exc),
    )


def with_retry(
    config: RetryConfig,
    *,
    retryable_exceptions: tuple[type[BaseException], ...] = TRANSIENT_HTTP_ERRORS,
) -> Callable:
    """Decorator retrying *retryable_exceptions* with exponential backoff.

    The final failure is re-raised unchanged, not wrapped in
    ``tenacity.RetryError``::

        @with_retry(settings.retry)
        async def send() -> httpx.Response: ...
    """
    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.multiplier,
            min=config.initial_wait_seconds,
            max=config.max_wait_seconds,
        ),
        retry=retry_if_exception_type(retryable_exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
