"""Exception hierarchy raised by the queue sink.

Configuration problems surface while the sink is being built; transport
problems surface from :meth:`AzureQueueSink.emit` and queue resolution.
"""

from __future__ import annotations

from typing import Any


class AzureQueueSinkError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(AzureQueueSinkError, ValueError):
    """A required construction argument is missing or invalid."""


class TransportError(AzureQueueSinkError):
    """The queue client failed while creating a queue or sending a message."""


class QueueCreationError(TransportError):
    """Ensuring that a queue exists failed."""

    def __init__(self, queue_name: str, message: str | None = None) -> None:
        super().__init__(message or f"Failed to create queue {queue_name!r}")
        self.queue_name = queue_name


class PublishTimeoutError(AzureQueueSinkError, TimeoutError):
    """A blocking wait did not complete within its allotted time."""

    def __init__(self, timeout: float | None) -> None:
        super().__init__(f"Operation failed to complete within {timeout} seconds")
        self.timeout = timeout


class UnsupportedLevelError(AzureQueueSinkError, ValueError):
    """A severity outside the fixed routing table reached the router."""

    def __init__(self, level: Any) -> None:
        super().__init__(f"No queue suffix is defined for level {level!r}")
        self.level = level


__all__ = [
    "AzureQueueSinkError",
    "ConfigurationError",
    "PublishTimeoutError",
    "QueueCreationError",
    "TransportError",
    "UnsupportedLevelError",
]
