"""
Store Call Guard

Every store call made by the domain goes through `call_store`, which
bounds it with a timeout and maps backend failures to PersistenceError.
The caller decides what to do with the failure; nothing is retried here.
"""

import asyncio
from typing import Awaitable, TypeVar

from ledger.errors import PersistenceError
from ledger.services.storage.interface import StorageError

T = TypeVar("T")


async def call_store(
    awaitable: Awaitable[T],
    *,
    operation: str,
    timeout: float,
) -> T:
    """
    Await a store call with a timeout.

    Args:
        awaitable: The pending store call
        operation: Short name used in the error message (e.g. "save_closure")
        timeout: Seconds before the call is abandoned

    Raises:
        PersistenceError: On timeout or StorageError
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise PersistenceError(f"{operation} timed out after {timeout}s") from e
    except StorageError as e:
        raise PersistenceError(f"{operation} failed: {e}") from e
