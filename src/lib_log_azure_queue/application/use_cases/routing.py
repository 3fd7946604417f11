"""Per-level queue routing for the sink.

Purpose
-------
Derive the destination queue of an event from its severity and cache the
resolved handle so each destination is resolved once per sink.

Contents
--------
* :data:`MONITOR_PROPERTY` - property key that reroutes warnings.
* :func:`level_suffix` - fixed level → suffix table.
* :class:`LevelRoutingCache` - lazy, race-tolerant handle cache.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Mapping
from typing import Any

from lib_log_azure_queue.application.ports.queue import QueueHandle, QueueProviderPort
from lib_log_azure_queue.domain.levels import LogLevel
from lib_log_azure_queue.errors import ConfigurationError, UnsupportedLevelError

LOGGER = logging.getLogger(__name__)

MONITOR_PROPERTY = "Monitor"
"""Presence of this key (whatever its value) sends a warning to the ``monitor`` queue."""

_QUEUE_NAME = re.compile(r"^[a-z0-9](?!.*--)[a-z0-9-]{1,61}[a-z0-9]$")

_SUFFIXES = {
    LogLevel.TRACE: "trace",
    LogLevel.DEBUG: "debug",
    LogLevel.INFORMATION: "information",
    LogLevel.WARNING: "warning",
    LogLevel.ERROR: "error",
    LogLevel.FATAL: "critical",
}


def level_suffix(level: LogLevel, properties: Mapping[str, Any]) -> str:
    """Return the queue-name suffix for ``level``.

    Examples
    --------
    >>> level_suffix(LogLevel.FATAL, {})
    'critical'
    >>> level_suffix(LogLevel.WARNING, {'Monitor': False})
    'monitor'
    >>> level_suffix(LogLevel.WARNING, {})
    'warning'
    """

    if level is LogLevel.WARNING and MONITOR_PROPERTY in properties:
        return "monitor"
    try:
        return _SUFFIXES[level]
    except (KeyError, TypeError) as exc:
        raise UnsupportedLevelError(level) from exc


def validate_queue_name(name: str) -> str:
    """Return ``name`` when it is a legal Azure queue name.

    Examples
    --------
    >>> validate_queue_name("applogs")
    'applogs'
    >>> validate_queue_name("App_Logs")
    Traceback (most recent call last):
    ...
    lib_log_azure_queue.errors.ConfigurationError: Invalid queue name 'App_Logs': use 3-63 lowercase letters, digits or single hyphens
    """

    if not isinstance(name, str) or not _QUEUE_NAME.match(name):
        raise ConfigurationError(
            f"Invalid queue name {name!r}: use 3-63 lowercase letters, digits or single hyphens",
        )
    return name


def routed_queue_name(base_name: str, level: LogLevel, properties: Mapping[str, Any]) -> str:
    return f"{base_name}-{level_suffix(level, properties)}"


class LevelRoutingCache:
    """Resolve and remember one queue handle per routing destination.

    Entries are keyed by suffix, so a marked warning (``monitor``) and a plain
    warning get separate entries. Only destinations actually used are ever
    resolved. Resolution runs outside the lock; concurrent first uses of the
    same destination may both resolve, and the first insert wins.
    """

    def __init__(
        self,
        *,
        provider: QueueProviderPort,
        connection: Any,
        base_name: str,
        bypass_creation_validation: bool = False,
    ) -> None:
        self._provider = provider
        self._connection = connection
        self._base_name = base_name
        self._bypass = bypass_creation_validation
        self._handles: dict[str, QueueHandle] = {}
        self._lock = threading.Lock()

    def get_or_create(self, level: LogLevel, properties: Mapping[str, Any]) -> QueueHandle:
        """Return the cached handle for the event's destination, resolving it on first use."""
        suffix = level_suffix(level, properties)
        handle = self._handles.get(suffix)
        if handle is not None:
            return handle

        queue_name = f"{self._base_name}-{suffix}"
        resolved = self._provider.get_queue(self._connection, queue_name, self._bypass)
        with self._lock:
            handle = self._handles.setdefault(suffix, resolved)
        if handle is not resolved:
            LOGGER.debug("Discarded duplicate resolution of queue %s", queue_name)
        return handle

    def cached_suffixes(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def __len__(self) -> int:
        return len(self._handles)


__all__ = [
    "LevelRoutingCache",
    "MONITOR_PROPERTY",
    "level_suffix",
    "routed_queue_name",
    "validate_queue_name",
]
