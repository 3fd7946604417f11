"""Use case forwarding one log event to one queue message.

Purpose
-------
Format an event, pick its destination queue, and publish it, blocking the
calling thread until the transport acknowledges the message.

Contents
--------
* :data:`DEFAULT_QUEUE_NAME` - base queue name used when none is configured.
* :class:`AzureQueueSink` - the live sink.
* :class:`NullSink` - no-op stand-in for a sink that failed to configure.

System Role
-----------
Invoked synchronously by the logging pipeline for every event that passed its
level filter. Waiting for the publish lets a pipeline flush guarantee that all
earlier events have been sent.
"""

from __future__ import annotations

from typing import Any

from lib_log_azure_queue.application.ports import (
    BlockingWaitPort,
    LogEventSinkPort,
    QueueHandle,
    QueueProviderPort,
    TextFormatterPort,
)
from lib_log_azure_queue.domain.events import LogEvent
from lib_log_azure_queue.errors import ConfigurationError

from .routing import LevelRoutingCache, validate_queue_name

DEFAULT_QUEUE_NAME = "logevents"


class AzureQueueSink(LogEventSinkPort):
    """Write log events as messages to an Azure Storage queue.

    Parameters
    ----------
    connection:
        Account/credential context passed untouched to ``queue_provider``.
    formatter:
        Renders each event into the message body.
    queue_provider:
        Resolves queue names into handles, creating queues when absent.
    waiter:
        Runs the asynchronous publish and blocks until it completes.
    queue_name:
        Base queue name; with ``separate_queues_by_level`` the actual queues
        are ``{queue_name}-{suffix}``.
    bypass_queue_creation_validation:
        Keep going when a queue cannot be created (restricted credentials).
    separate_queues_by_level:
        Route each severity to its own queue, resolved lazily on first use.
    publish_timeout:
        Seconds a publish may take; ``None`` waits indefinitely.

    The shared queue is resolved here, so a queue that cannot be created
    without bypass fails construction rather than the first ``emit``.
    """

    def __init__(
        self,
        *,
        connection: Any,
        formatter: TextFormatterPort,
        queue_provider: QueueProviderPort,
        waiter: BlockingWaitPort,
        queue_name: str | None = None,
        bypass_queue_creation_validation: bool = False,
        separate_queues_by_level: bool = False,
        publish_timeout: float | None = None,
    ) -> None:
        if connection is None:
            raise ConfigurationError("connection must not be None")
        if formatter is None:
            raise ConfigurationError("formatter must not be None")
        if queue_provider is None:
            raise ConfigurationError("queue_provider must not be None")
        if waiter is None:
            raise ConfigurationError("waiter must not be None")
        if publish_timeout is not None and publish_timeout <= 0:
            raise ConfigurationError("publish_timeout must be positive or None")

        self._connection = connection
        self._formatter = formatter
        self._provider = queue_provider
        self._waiter = waiter
        self._queue_name = validate_queue_name(queue_name or DEFAULT_QUEUE_NAME)
        self._bypass = bypass_queue_creation_validation
        self._separate = separate_queues_by_level
        self._publish_timeout = publish_timeout
        self._closed = False

        self._queue: QueueHandle | None = None
        self._routes: LevelRoutingCache | None = None
        if separate_queues_by_level:
            self._routes = LevelRoutingCache(
                provider=queue_provider,
                connection=connection,
                base_name=self._queue_name,
                bypass_creation_validation=bypass_queue_creation_validation,
            )
        else:
            self._queue = queue_provider.get_queue(connection, self._queue_name, bypass_queue_creation_validation)

    @property
    def queue_name(self) -> str:
        return self._queue_name

    @property
    def separate_queues_by_level(self) -> bool:
        return self._separate

    def emit(self, event: LogEvent) -> None:
        """Publish ``event`` and wait for the transport to accept it.

        Raises
        ------
        PublishTimeoutError
            The publish did not finish within ``publish_timeout``.
        TransportError
            The queue client rejected the message.
        UnsupportedLevelError
            Per-level routing met a level outside the routing table.
        """

        output = self._formatter.format(event)
        queue = self._queue_for(event)
        self._waiter.wait(lambda: queue.send_message(output), self._publish_timeout)

    def close(self) -> None:
        """Release the transport resources of the connection."""
        if self._closed:
            return
        self._closed = True
        self._provider.close(self._connection)

    def _queue_for(self, event: LogEvent) -> QueueHandle:
        if self._routes is not None:
            return self._routes.get_or_create(event.level, event.properties)
        if self._queue is None:
            raise ConfigurationError("sink has no queue configured")
        return self._queue

    def __repr__(self) -> str:
        return (
            f"AzureQueueSink(queue_name={self._queue_name!r}, "
            f"separate_queues_by_level={self._separate}, bypass={self._bypass})"
        )


class NullSink(LogEventSinkPort):
    """Accept events and drop them."""

    def emit(self, event: LogEvent) -> None:
        return None

    def close(self) -> None:
        return None

    def __repr__(self) -> str:
        return "NullSink()"


__all__ = ["AzureQueueSink", "DEFAULT_QUEUE_NAME", "NullSink"]
