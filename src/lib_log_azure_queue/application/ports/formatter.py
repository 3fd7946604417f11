"""Port for rendering a log event into a queue message body."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_azure_queue.domain.events import LogEvent


@runtime_checkable
class TextFormatterPort(Protocol):
    """Render events deterministically and without side effects."""

    def format(self, event: LogEvent) -> str:
        """Return the text payload for ``event``."""


__all__ = ["TextFormatterPort"]
