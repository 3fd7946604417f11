"""Rich rendering of the level → queue routing table.

Purpose
-------
Show operators which queue each severity lands in before they point a
consumer at the storage account.

Contents
--------
* :data:`_STYLE_MAP` - default level-to-style mapping.
* :func:`route_rows` - plain ``(level, marker, queue)`` rows.
* :class:`RouteTablePrinter` - prints the rows as a Rich table.
"""

from __future__ import annotations

from typing import Mapping

from rich.console import Console
from rich.table import Table

from lib_log_azure_queue.application.use_cases.routing import MONITOR_PROPERTY, routed_queue_name
from lib_log_azure_queue.domain.levels import LogLevel

_STYLE_MAP: Mapping[LogLevel, str] = {
    LogLevel.TRACE: "dim",
    LogLevel.DEBUG: "dim",
    LogLevel.INFORMATION: "cyan",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
    LogLevel.FATAL: "bold red",
}


def route_rows(queue_name: str, separate_queues_by_level: bool) -> list[tuple[LogLevel, str, str]]:
    """Return one row per destination, the marked warning included.

    Examples
    --------
    >>> [row[2] for row in route_rows("applogs", True)][3:5]
    ['applogs-warning', 'applogs-monitor']
    >>> {row[2] for row in route_rows("applogs", False)}
    {'applogs'}
    """

    rows: list[tuple[LogLevel, str, str]] = []
    for level in LogLevel:
        markers: list[tuple[str, dict[str, object]]] = [("", {})]
        if level is LogLevel.WARNING:
            markers.append((MONITOR_PROPERTY, {MONITOR_PROPERTY: True}))
        for marker, properties in markers:
            destination = routed_queue_name(queue_name, level, properties) if separate_queues_by_level else queue_name
            rows.append((level, marker, destination))
    return rows


class RouteTablePrinter:
    """Print routing rows with Rich, styled by level."""

    def __init__(self, *, console: Console | None = None, no_color: bool = False) -> None:
        self._console = console if console is not None else Console(no_color=no_color)
        self._no_color = no_color

    def print(self, queue_name: str, separate_queues_by_level: bool) -> None:
        """Render the routing table for ``queue_name``.

        Examples
        --------
        >>> from io import StringIO
        >>> console = Console(file=StringIO(), record=True, width=100)
        >>> RouteTablePrinter(console=console).print("applogs", True)
        >>> 'applogs-critical' in console.export_text()
        True
        """
        mode = "per level" if separate_queues_by_level else "shared"
        table = Table(title=f"Routes for {queue_name} ({mode})")
        table.add_column("Level")
        table.add_column("Property")
        table.add_column("Queue")
        for level, marker, destination in route_rows(queue_name, separate_queues_by_level):
            style = "" if self._no_color else _STYLE_MAP.get(level, "")
            table.add_row(level.display_name, marker or "-", destination, style=style or None)
        self._console.print(table)


__all__ = ["RouteTablePrinter", "route_rows"]
