"""Process-wide self-diagnostic channel.

Purpose
-------
Report failures of the sink itself (queue creation, configuration) somewhere
other than the sink, which may be the very thing that is broken.

Contents
--------
* :class:`SelfLog` - class-level switchboard with ``enable``/``disable``/``write_line``.

System Role
-----------
Disabled by default. Hosts call :meth:`SelfLog.enable` once at startup,
typically with ``sys.stderr``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, TextIO, Union

Writer = Callable[[str], None]
Target = Union[TextIO, Writer]

LOGGER = logging.getLogger(__name__)


class SelfLog:
    """Write diagnostic lines to the configured target.

    Examples
    --------
    >>> lines = []
    >>> SelfLog.enable(lines.append)
    >>> SelfLog.write_line("Failed to create queue %s", "applogs")
    >>> lines[0].endswith("Failed to create queue applogs")
    True
    >>> SelfLog.disable()
    """

    _writer: Writer | None = None
    _lock = threading.Lock()

    @classmethod
    def enable(cls, target: Target) -> None:
        """Route diagnostic lines to a text stream or a callable."""

        if target is None:
            raise ValueError("target must not be None")
        writer: Writer
        if callable(target):
            writer = target
        else:
            stream = target

            def writer(line: str) -> None:
                stream.write(line + "\n")
                stream.flush()

        with cls._lock:
            cls._writer = writer

    @classmethod
    def disable(cls) -> None:
        """Stop emitting diagnostic lines."""

        with cls._lock:
            cls._writer = None

    @classmethod
    def is_enabled(cls) -> bool:
        return cls._writer is not None

    @classmethod
    def write_line(cls, template: str, *args: Any) -> None:
        """Format ``template`` with ``args`` and hand it to the writer.

        Writer failures are logged through :mod:`logging` and never reach the caller.
        """

        writer = cls._writer
        if writer is None:
            return
        message = template % args if args else template
        stamp = datetime.now(timezone.utc).isoformat()
        with cls._lock:
            try:
                writer(f"{stamp} {message}")
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("SelfLog writer raised; diagnostic line dropped", exc_info=exc)


__all__ = ["SelfLog"]
