"""Protocols the application layer depends on."""

from __future__ import annotations

from .formatter import TextFormatterPort
from .queue import QueueHandle, QueueProviderPort
from .sink import LogEventSinkPort
from .wait import BlockingWaitPort

__all__ = [
    "BlockingWaitPort",
    "LogEventSinkPort",
    "QueueHandle",
    "QueueProviderPort",
    "TextFormatterPort",
]
