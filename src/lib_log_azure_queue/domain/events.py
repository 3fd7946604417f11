"""Domain event describing a structured log message.

Purpose
-------
Provide an immutable representation of the log events handed to the sink by
the logging pipeline.

Contents
--------
* :class:`LogEvent` dataclass with message-template rendering.
* Utility function ``_ensure_aware`` for timestamp validation.

System Role
-----------
Read-only input of :meth:`AzureQueueSink.emit`; formatters and the level
router only ever inspect it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from .levels import LogLevel

_TOKEN = re.compile(r"\{([@$]?)([A-Za-z_][A-Za-z0-9_]*)(?::([^{}]*))?\}")


def _ensure_aware(ts: datetime) -> datetime:
    """Validate that ``ts`` is timezone-aware and normalise to UTC."""
    if ts.tzinfo is None or ts.tzinfo.utcoffset(ts) is None:
        raise ValueError("timestamp must be timezone-aware")
    return ts.astimezone(timezone.utc)


@dataclass(slots=True, frozen=True)
class LogEvent:
    """Immutable log event received from the logging pipeline.

    Attributes
    ----------
    timestamp:
        Time of the event in timezone-aware UTC.
    level:
        :class:`LogLevel` severity associated with the event.
    message_template:
        Message template with ``{Name}`` placeholders.
    properties:
        Shallow copy of the structured values captured with the event.
    exception:
        Optional formatted exception text.
    """

    timestamp: datetime
    level: LogLevel
    message_template: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    exception: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _ensure_aware(self.timestamp))
        if not self.message_template.strip():
            raise ValueError("message_template must not be empty")
        object.__setattr__(self, "properties", dict(self.properties))

    def render_message(self) -> str:
        """Substitute template placeholders with property values.

        Unknown placeholders are kept verbatim.

        Examples
        --------
        >>> event = LogEvent(datetime(2025, 1, 1, tzinfo=timezone.utc), LogLevel.INFORMATION,
        ...                  'User {User} took {Elapsed:0.1f} ms {Missing}', {'User': 'ada', 'Elapsed': 12.345})
        >>> event.render_message()
        'User ada took 12.3 ms {Missing}'
        """

        def substitute(match: re.Match[str]) -> str:
            name = match.group(2)
            if name not in self.properties:
                return match.group(0)
            value = self.properties[name]
            format_spec = match.group(3)
            if format_spec:
                try:
                    return format(value, format_spec)
                except (TypeError, ValueError):
                    return str(value)
            return str(value)

        return _TOKEN.sub(substitute, self.message_template)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the event to a dictionary with ISO8601 timestamps."""

        data: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.severity,
            "message_template": self.message_template,
            "properties": dict(self.properties),
        }
        if self.exception is not None:
            data["exception"] = self.exception
        return data

    def replace(self, **changes: Any) -> "LogEvent":
        """Return a copied event with ``changes`` applied."""

        return replace(self, **changes)


__all__ = ["LogEvent"]
