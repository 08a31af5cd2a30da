"""Base service class for domain services."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import logfire

from faragent.domain.error import StoreUnavailableError

T = TypeVar("T")


class Service:
    """Base class for all domain services.

    Domain services contain business logic that doesn't naturally belong
    to a single entity or spans multiple entities/aggregates.
    """

    pass


async def with_store_retry(
    store: str,
    operation: str,
    call: Callable[[], Awaitable[T]],
    attempts: int,
    delay: float,
) -> T:
    """Run a store call, retrying StoreUnavailableError a bounded number of times.

    Args:
        store: Store name for logs ("session_store", "link_store")
        operation: Operation name for logs
        call: Zero-argument coroutine factory, called once per attempt
        attempts: Retries after the first failed call
        delay: Seconds before the first retry, doubled each retry

    Raises:
        StoreUnavailableError: If the last attempt still fails
    """
    for attempt in range(attempts + 1):
        try:
            return await call()
        except StoreUnavailableError as e:
            if attempt >= attempts:
                logfire.error(
                    "Store unavailable",
                    store=store,
                    operation=operation,
                    attempts=attempt + 1,
                    error=str(e),
                )
                raise
            logfire.warn(
                "Store call failed, retrying",
                store=store,
                operation=operation,
                attempt=attempt + 1,
                error=str(e),
            )
            await asyncio.sleep(delay)
            delay *= 2
    raise AssertionError("unreachable")
