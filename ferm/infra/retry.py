"""Bounded retry with fixed delay for connecting to infrastructure."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ferm.core.errors import TransientInfraError
from ferm.infra.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    delay_seconds: float,
    target: str,
) -> T:
    """Run ``operation`` until it succeeds or ``attempts`` are exhausted.

    Args:
        operation: Zero-argument coroutine factory
        attempts: Maximum number of tries (at least one is made)
        delay_seconds: Fixed sleep between tries
        target: Name used in logs and in the raised error

    Raises:
        TransientInfraError: If every attempt failed
    """
    attempts = max(attempts, 1)
    last_error: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e
            logger.warning(
                "Connection attempt failed",
                target=target,
                attempt=attempt,
                attempts=attempts,
                error=str(e),
            )
            if attempt < attempts and delay_seconds > 0:
                await asyncio.sleep(delay_seconds)

    raise TransientInfraError(f"{target} unreachable after {attempts} attempts: {last_error}")
