"""Synchronous waits on asynchronous queue operations.

Purpose
-------
Let the sink's synchronous ``emit`` push a message through the async Azure
SDK without ever scheduling the continuation on the caller's own event loop.

Contents
--------
* :class:`BlockingWaiter` - owns a private event loop thread and joins work on it.
* :func:`default_waiter` - process-wide shared waiter.
* :func:`is_waiter_thread` - tell whether a thread ident belongs to a waiter loop.

System Role
-----------
Every awaitable runs on the waiter's loop thread. The calling thread only
blocks on a :class:`concurrent.futures.Future`, so it never has to pump a loop
for the operation to finish, whether or not it is running one itself. SDK
clients stay bound to that one loop for the lifetime of the process.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from lib_log_azure_queue.errors import PublishTimeoutError, TransportError

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)

_LOOP_THREAD_IDENTS: set[int] = set()


def is_waiter_thread(ident: int | None) -> bool:
    """Return ``True`` when ``ident`` is the loop thread of a running waiter.

    Log records produced there must not be routed back into a sink, because
    the publish they would join is the one the loop is busy finishing.

    Examples
    --------
    >>> is_waiter_thread(threading.get_ident())
    False
    >>> is_waiter_thread(None)
    False
    """

    return ident is not None and ident in _LOOP_THREAD_IDENTS


class BlockingWaiter:
    """Run awaitables on a dedicated loop thread and wait for them synchronously.

    Examples
    --------
    >>> async def answer():
    ...     return 42
    >>> waiter = BlockingWaiter()
    >>> waiter.wait(answer, timeout=5.0)
    42
    >>> waiter.close()
    """

    def __init__(self, *, thread_name: str = "lib-log-azure-queue-waiter") -> None:
        self._thread_name = thread_name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def wait(self, operation: Callable[[], Awaitable[T]], timeout: float | None = None) -> T:
        """Run ``operation()`` on the loop thread and block until it finishes.

        Parameters
        ----------
        operation:
            Zero-argument callable returning the awaitable to run. It is
            invoked on the loop thread so coroutine construction never touches
            the caller's context.
        timeout:
            Seconds to wait; ``None`` waits indefinitely.

        Raises
        ------
        PublishTimeoutError
            The operation did not complete within ``timeout``; it is cancelled.
        TransportError
            The operation raised; the original exception is chained.
        """

        loop = self._ensure_loop()
        if threading.current_thread() is self._thread:
            raise TransportError("Blocking wait requested from the waiter's own loop thread")

        future = asyncio.run_coroutine_threadsafe(_invoke(operation), loop)
        try:
            try:
                return future.result(timeout)
            except concurrent.futures.TimeoutError:
                if future.done() and not future.cancelled():
                    raise
                raise PublishTimeoutError(timeout) from None
        except PublishTimeoutError:
            raise
        except Exception as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc
        finally:
            if not future.done():
                future.cancel()

    def close(self, timeout: float | None = 5.0) -> None:
        """Stop the loop thread; pending operations are cancelled."""

        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        if thread.is_alive():
            LOGGER.warning("Waiter loop thread %s did not stop within %s seconds", thread.name, timeout)
            return
        loop.close()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def thread_ident(self) -> int | None:
        """Ident of the loop thread, or ``None`` before first use and after close."""
        thread = self._thread
        return thread.ident if thread is not None else None

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        """Start the loop thread on first use."""

        with self._lock:
            if self._loop is not None and self._thread is not None and self._thread.is_alive():
                return self._loop
            loop = asyncio.new_event_loop()
            ready = threading.Event()
            thread = threading.Thread(target=self._run, args=(loop, ready), name=self._thread_name, daemon=True)
            thread.start()
            ready.wait()
            self._loop = loop
            self._thread = thread
            return loop

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
        ident = threading.get_ident()
        _LOOP_THREAD_IDENTS.add(ident)
        asyncio.set_event_loop(loop)
        loop.call_soon(ready.set)
        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            _LOOP_THREAD_IDENTS.discard(ident)


async def _invoke(operation: Callable[[], Awaitable[Any]]) -> Any:
    return await operation()


_DEFAULT: BlockingWaiter | None = None
_DEFAULT_LOCK = threading.Lock()


def default_waiter() -> BlockingWaiter:
    """Return the waiter shared by every sink in the process."""

    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = BlockingWaiter()
        return _DEFAULT


__all__ = ["BlockingWaiter", "default_waiter", "is_waiter_thread"]
