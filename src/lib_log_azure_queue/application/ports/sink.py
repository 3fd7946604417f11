"""Port implemented by anything that accepts already-filtered log events."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_azure_queue.domain.events import LogEvent


@runtime_checkable
class LogEventSinkPort(Protocol):
    """Receive log events and perform the forwarding side effect."""

    def emit(self, event: LogEvent) -> None:
        """Forward ``event``; failures propagate to the caller."""

    def close(self) -> None:
        """Release resources held by the sink."""


__all__ = ["LogEventSinkPort"]
