"""Domain value objects shared by the sink layers."""

from __future__ import annotations

from .events import LogEvent
from .levels import LogLevel

__all__ = ["LogEvent", "LogLevel"]
