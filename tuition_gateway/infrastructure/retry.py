"""Generic retry wrapper for document store operations (linear backoff)"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, TypeVar, Union
from tuition_gateway.config import settings
from tuition_gateway.infrastructure.observability.metrics import store_retry_counter

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def retry_operation(
    operation: Callable[[], Union[T, Awaitable[T]]],
    max_retries: int | None = None,
    delay: float | None = None,
) -> T:
    """
    Run operation, retrying on any exception.

    Retry strategy:
    - Up to max_retries attempts in total (default 3)
    - Linear backoff between attempts: delay * attempt (1s, 2s, ...)
    - Every exception is retried, including ones that cannot succeed on a
      second try (validation, permission); the last one is re-raised

    Args:
        operation: Zero-argument callable, sync or async
        max_retries: Total attempts
        delay: Base delay in seconds
    """
    max_retries = max_retries if max_retries is not None else settings.store_max_retries
    delay = delay if delay is not None else settings.store_retry_delay_seconds

    attempt = 0
    while True:
        attempt += 1
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            store_retry_counter.labels(error=type(e).__name__).inc()
            logger.warning(
                f"Attempt {attempt} failed: {e}",
                extra={"attempt": attempt, "max_retries": max_retries},
            )
            if attempt >= max_retries:
                raise
            await asyncio.sleep(delay * attempt)
