"""Concrete adapters: Azure transport, blocking waits, formatting, logging bridge."""

from __future__ import annotations

from .azure_queue import AzureQueueHandle, AzureQueueProvider, StorageConnection, parse_connection_string
from .blocking import BlockingWaiter, default_waiter, is_waiter_thread
from .json_formatter import JsonFormatter
from .logging_handler import QueueSinkHandler, record_to_event
from .route_table import RouteTablePrinter, route_rows

__all__ = [
    "AzureQueueHandle",
    "AzureQueueProvider",
    "BlockingWaiter",
    "JsonFormatter",
    "QueueSinkHandler",
    "RouteTablePrinter",
    "StorageConnection",
    "default_waiter",
    "is_waiter_thread",
    "parse_connection_string",
    "record_to_event",
    "route_rows",
]
