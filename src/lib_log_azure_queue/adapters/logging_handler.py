"""Bridge from :mod:`logging` to a log-event sink.

Purpose
-------
Let applications keep using the standard library loggers while every record
at or above the handler level is forwarded to the queue sink.

Contents
--------
* :func:`record_to_event` - convert a :class:`logging.LogRecord`.
* :class:`QueueSinkHandler` - :class:`logging.Handler` wrapping a sink.

System Role
-----------
The handler is the logging pipeline from the sink's point of view: it filters
by level and by origin thread before ``emit`` and applies the pipeline failure
policy (:meth:`logging.Handler.handleError`) when ``emit`` raises. Filters run
before :meth:`logging.Handler.handle` takes the handler lock, so records from a
waiter loop thread never wait on a publish that is holding it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from lib_log_azure_queue.adapters.blocking import is_waiter_thread
from lib_log_azure_queue.application.ports.sink import LogEventSinkPort
from lib_log_azure_queue.domain.events import LogEvent
from lib_log_azure_queue.domain.levels import LogLevel

SOURCE_CONTEXT_PROPERTY = "SourceContext"

_RESERVED_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}
_INTERNAL_LOGGERS = ("lib_log_azure_queue", "azure")
_EXCEPTION_FORMATTER = logging.Formatter()


def _is_internal(name: str) -> bool:
    return any(name == prefix or name.startswith(prefix + ".") for prefix in _INTERNAL_LOGGERS)


def _ignore_internal_records(record: logging.LogRecord) -> bool:
    """Drop records emitted by this package or the Azure SDK to avoid feedback loops."""
    return not _is_internal(record.name)


def _ignore_waiter_thread_records(record: logging.LogRecord) -> bool:
    """Drop records logged on a waiter loop thread while it completes a publish."""
    return not is_waiter_thread(record.thread)


def record_to_event(record: logging.LogRecord) -> LogEvent:
    """Translate ``record`` into a :class:`LogEvent`.

    Mapping arguments (``log.info("User {User}", {"User": "ada"})``) keep the
    message as a template and become properties; positional arguments are
    applied stdlib-style first. ``extra`` fields become properties as well.

    Examples
    --------
    >>> record = logging.makeLogRecord({'name': 'app', 'levelno': logging.WARNING,
    ...                                 'msg': 'Disk {Drive} low', 'args': {'Drive': 'C'}})
    >>> event = record_to_event(record)
    >>> event.level, event.message_template, event.properties['Drive'], event.properties['SourceContext']
    (<LogLevel.WARNING: 30>, 'Disk {Drive} low', 'C', 'app')
    """

    properties: dict[str, Any] = {SOURCE_CONTEXT_PROPERTY: record.name}
    args = record.args
    if isinstance(args, Mapping):
        template = str(record.msg)
        properties.update(args)
    else:
        template = record.getMessage()

    for key, value in vars(record).items():
        if key in _RESERVED_ATTRIBUTES or key.startswith("_"):
            continue
        properties[key] = value

    exception: str | None = None
    if record.exc_info:
        exception = record.exc_text or _EXCEPTION_FORMATTER.formatException(record.exc_info)
    elif record.exc_text:
        exception = record.exc_text

    return LogEvent(
        timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
        level=LogLevel.from_python_level(record.levelno),
        message_template=template if template.strip() else "(empty)",
        properties=properties,
        exception=exception,
    )


class QueueSinkHandler(logging.Handler):
    """Forward log records to a :class:`LogEventSinkPort`.

    Parameters
    ----------
    sink:
        Destination sink; ``emit`` failures reach :meth:`handleError`.
    minimum_level:
        Lowest severity forwarded; filtering happens here, not in the sink.
    owns_sink:
        Close the sink together with the handler.
    """

    def __init__(
        self,
        sink: LogEventSinkPort,
        *,
        minimum_level: LogLevel | int = LogLevel.TRACE,
        owns_sink: bool = True,
    ) -> None:
        level = minimum_level.to_python_level() if isinstance(minimum_level, LogLevel) else int(minimum_level)
        super().__init__(level=level)
        self._sink = sink
        self._owns_sink = owns_sink
        self.addFilter(_ignore_internal_records)
        self.addFilter(_ignore_waiter_thread_records)

    @property
    def sink(self) -> LogEventSinkPort:
        return self._sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._sink.emit(record_to_event(record))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        try:
            if self._owns_sink:
                self._sink.close()
        finally:
            super().close()


__all__ = ["QueueSinkHandler", "SOURCE_CONTEXT_PROPERTY", "record_to_event"]
