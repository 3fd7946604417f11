"""Severity levels understood by the queue sink.

Purpose
-------
Give the routing and formatting code one closed set of severities instead of
the open-ended integers of :mod:`logging`.

Contents
--------
* :class:`LogLevel` enum with conversion helpers.
* ``_ALIASES`` mapping alternative spellings onto members.

System Role
-----------
The routing use case derives queue-name suffixes from these members and the
JSON formatter renders their display names.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import total_ordering


@total_ordering
class LogLevel(Enum):
    """Ordered severities from the most verbose to the most severe."""

    TRACE = 5
    DEBUG = 10
    INFORMATION = 20
    WARNING = 30
    ERROR = 40
    FATAL = 50

    @property
    def severity(self) -> str:
        """Return the lowercase level name."""

        return self.name.lower()

    @property
    def display_name(self) -> str:
        """Return the PascalCase name used in serialised payloads."""

        return self.name.capitalize()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.value < other.value

    def to_python_level(self) -> int:
        """Return the :mod:`logging` number matching this level."""

        return _PYTHON_LEVELS[self]

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        normalized = name.strip().upper()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc

    @classmethod
    def from_numeric(cls, level: int) -> "LogLevel":
        """Return the member whose value equals ``level`` exactly."""
        try:
            return cls(level)
        except ValueError as exc:
            raise ValueError(f"Unsupported log level numeric: {level}") from exc

    @classmethod
    def from_python_level(cls, level: int) -> "LogLevel":
        """Bucket a stdlib logging number (custom levels included) into a member.

        Examples
        --------
        >>> LogLevel.from_python_level(logging.INFO)
        <LogLevel.INFORMATION: 20>
        >>> LogLevel.from_python_level(25)
        <LogLevel.INFORMATION: 20>
        >>> LogLevel.from_python_level(logging.CRITICAL)
        <LogLevel.FATAL: 50>
        """
        if level < logging.DEBUG:
            return cls.TRACE
        if level < logging.INFO:
            return cls.DEBUG
        if level < logging.WARNING:
            return cls.INFORMATION
        if level < logging.ERROR:
            return cls.WARNING
        if level < logging.CRITICAL:
            return cls.ERROR
        return cls.FATAL


_ALIASES = {
    "VERBOSE": "TRACE",
    "INFO": "INFORMATION",
    "WARN": "WARNING",
    "CRITICAL": "FATAL",
}

_PYTHON_LEVELS = {
    LogLevel.TRACE: 5,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFORMATION: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}


__all__ = ["LogLevel"]
