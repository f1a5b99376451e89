"""Deadline and bounded exponential backoff for storage calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from artverse.config import StorageConfig
from artverse.lib.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    timeout: float = 10.0
    retries: int = 2
    backoff_base: float = 0.2
    backoff_max: float = 2.0

    @classmethod
    def from_config(cls, config: StorageConfig) -> RetryPolicy:
        return cls(
            timeout=config.timeout,
            retries=config.retries,
            backoff_base=config.backoff_base,
            backoff_max=config.backoff_max,
        )

    def delay(self, attempt: int) -> float:
        return min(self.backoff_base * (2**attempt), self.backoff_max)


async def call_storage(
    policy: RetryPolicy,
    operation: Callable[[], Awaitable[T]],
    description: str,
) -> T:
    """Run *operation* with a per-attempt deadline, retrying transient failures.

    Timeouts surface as :class:`StorageError`. Non-storage exceptions
    (validation, programming errors) propagate immediately.
    """
    attempt = 0
    while True:
        try:
            return await asyncio.wait_for(operation(), timeout=policy.timeout)
        except asyncio.TimeoutError:
            error = StorageError(f"{description} timed out after {policy.timeout}s")
        except StorageError as exc:
            if not exc.transient:
                raise
            error = exc

        if attempt >= policy.retries:
            raise error

        delay = policy.delay(attempt)
        logger.warning(
            "%s failed (attempt %d/%d), retrying in %.2fs: %s",
            description,
            attempt + 1,
            policy.retries + 1,
            delay,
            error.message,
        )
        await asyncio.sleep(delay)
        attempt += 1
