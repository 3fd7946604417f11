"""Write log events to Azure Storage queues.

Applications configure a sink once through :func:`azure_queue_sink` (or
:func:`sink_from_env`) and hand it to :func:`attach` so standard
:mod:`logging` records become queue messages. Everything else is reachable
from the layer packages (``domain``, ``application``, ``adapters``).
"""

from __future__ import annotations

from .adapters import AzureQueueProvider, BlockingWaiter, JsonFormatter, QueueSinkHandler, StorageConnection
from .application.use_cases.emit import DEFAULT_QUEUE_NAME, AzureQueueSink, NullSink
from .config import SinkSettings
from .diagnostics import SelfLog
from .domain import LogEvent, LogLevel
from .errors import (
    AzureQueueSinkError,
    ConfigurationError,
    PublishTimeoutError,
    QueueCreationError,
    TransportError,
    UnsupportedLevelError,
)
from .runtime import attach, attach_from_env, azure_queue_sink, sink_from_env, summary_info

__all__ = [
    "AzureQueueProvider",
    "AzureQueueSink",
    "AzureQueueSinkError",
    "BlockingWaiter",
    "ConfigurationError",
    "DEFAULT_QUEUE_NAME",
    "JsonFormatter",
    "LogEvent",
    "LogLevel",
    "NullSink",
    "PublishTimeoutError",
    "QueueCreationError",
    "QueueSinkHandler",
    "SelfLog",
    "SinkSettings",
    "StorageConnection",
    "TransportError",
    "UnsupportedLevelError",
    "attach",
    "attach_from_env",
    "azure_queue_sink",
    "sink_from_env",
    "summary_info",
]
