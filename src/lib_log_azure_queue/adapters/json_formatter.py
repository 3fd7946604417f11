"""Default formatter rendering one JSON document per log event.

Why
---
Queue consumers need a self-describing message body. The layout mirrors the
classic structured-logging JSON shape (``Timestamp``, ``Level``,
``MessageTemplate``, ``Properties``) so existing consumers can parse it.

Contents
--------
* :class:`JsonFormatter` - concrete :class:`TextFormatterPort`.
"""

from __future__ import annotations

import json
from typing import Any

from lib_log_azure_queue.application.ports.formatter import TextFormatterPort
from lib_log_azure_queue.domain.events import LogEvent


class JsonFormatter(TextFormatterPort):
    """Render events as compact JSON without a trailing delimiter.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> from lib_log_azure_queue.domain.levels import LogLevel
    >>> event = LogEvent(datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), LogLevel.WARNING,
    ...                  'Disk {Drive} low', {'Drive': 'C'})
    >>> JsonFormatter().format(event)
    '{"Timestamp": "2025-09-30T12:00:00+00:00", "Level": "Warning", "MessageTemplate": "Disk {Drive} low", "Properties": {"Drive": "C"}}'
    >>> json.loads(JsonFormatter(render_message=True).format(event))["RenderedMessage"]
    'Disk C low'
    """

    def __init__(self, *, render_message: bool = False) -> None:
        self._render_message = render_message

    def format(self, event: LogEvent) -> str:
        """Return the JSON document for ``event``."""
        payload: dict[str, Any] = {
            "Timestamp": event.timestamp.isoformat(),
            "Level": event.level.display_name,
            "MessageTemplate": event.message_template,
        }
        if self._render_message:
            payload["RenderedMessage"] = event.render_message()
        if event.exception is not None:
            payload["Exception"] = event.exception
        payload["Properties"] = dict(event.properties)
        return json.dumps(payload, default=str, ensure_ascii=False)


__all__ = ["JsonFormatter"]
