"""Ports describing the queue transport the sink publishes to."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class QueueHandle(Protocol):
    """Resolved reference to one named queue, safe for concurrent reuse."""

    @property
    def name(self) -> str: ...

    async def create_if_not_exists(self) -> bool:
        """Create the queue when absent; return ``True`` if it was created."""

    async def send_message(self, content: str) -> Any:
        """Enqueue ``content`` as a single message."""


@runtime_checkable
class QueueProviderPort(Protocol):
    """Turn a connection context and a queue name into a ready handle."""

    def get_queue(self, connection: Any, queue_name: str, bypass_creation_validation: bool) -> QueueHandle:
        """Return a handle for ``queue_name``, creating the queue when absent."""

    def close(self, connection: Any) -> None:
        """Release transport resources held for ``connection``."""


__all__ = ["QueueHandle", "QueueProviderPort"]
