"""Port for synchronously waiting on an asynchronous operation."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class BlockingWaitPort(Protocol):
    """Block the calling thread until an awaitable completes or times out."""

    def wait(self, operation: Callable[[], Awaitable[T]], timeout: float | None = None) -> T: ...


__all__ = ["BlockingWaitPort"]
