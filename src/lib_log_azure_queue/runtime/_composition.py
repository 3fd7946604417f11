"""Composition helpers turning configuration inputs into a live sink.

Purpose
-------
Keep argument validation and adapter selection out of the façade so each
step stays small and testable.

Contents
--------
* :func:`coerce_level` - accept level names, numbers, or :class:`LogLevel`.
* :func:`select_connection` - pick the single connection form supplied.
* :func:`build_sink` - wire formatter, provider, and waiter into a sink.
"""

from __future__ import annotations

from dataclasses import dataclass

from lib_log_azure_queue.adapters import (
    AzureQueueProvider,
    BlockingWaiter,
    JsonFormatter,
    StorageConnection,
    default_waiter,
)
from lib_log_azure_queue.application.ports import QueueProviderPort, TextFormatterPort
from lib_log_azure_queue.application.use_cases.emit import AzureQueueSink
from lib_log_azure_queue.domain.levels import LogLevel
from lib_log_azure_queue.errors import ConfigurationError


def coerce_level(level: LogLevel | str | int) -> LogLevel:
    """Normalise ``level`` into a :class:`LogLevel`.

    Examples
    --------
    >>> coerce_level("warn")
    <LogLevel.WARNING: 30>
    >>> coerce_level(40)
    <LogLevel.ERROR: 40>
    >>> coerce_level(LogLevel.DEBUG)
    <LogLevel.DEBUG: 10>
    """

    if isinstance(level, LogLevel):
        return level
    try:
        if isinstance(level, str):
            return LogLevel.from_name(level)
        return LogLevel.from_numeric(int(level))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(str(exc)) from exc


@dataclass(slots=True, frozen=True)
class ConnectionChoice:
    """Which connection form the caller supplied, still unparsed."""

    kind: str
    connection_string: str | None = None
    account_name: str | None = None
    shared_access_signature: str | None = None
    connection: StorageConnection | None = None

    @property
    def is_sas(self) -> bool:
        return self.kind == "sas"

    def open(self) -> StorageConnection:
        if self.kind == "connection_string" and self.connection_string is not None:
            return StorageConnection.from_connection_string(self.connection_string)
        if self.kind == "sas" and self.shared_access_signature is not None and self.account_name is not None:
            return StorageConnection.from_sas(self.shared_access_signature, self.account_name)
        if self.kind == "connection" and self.connection is not None:
            return self.connection
        raise ConfigurationError(f"incomplete {self.kind} connection arguments")


def select_connection(
    *,
    connection_string: str | None,
    account_name: str | None,
    shared_access_signature: str | None,
    connection: StorageConnection | None,
) -> ConnectionChoice:
    """Return the one connection form supplied, rejecting none or several.

    Text arguments that are empty or whitespace-only are rejected rather
    than treated as absent.

    Examples
    --------
    >>> select_connection(connection_string="UseDevelopmentStorage=true", account_name=None,
    ...                   shared_access_signature=None, connection=None).kind
    'connection_string'
    >>> select_connection(connection_string="  ", account_name=None,
    ...                   shared_access_signature=None, connection=None)
    Traceback (most recent call last):
    ...
    lib_log_azure_queue.errors.ConfigurationError: connection_string must not be blank
    """

    for name, value in (
        ("connection_string", connection_string),
        ("account_name", account_name),
        ("shared_access_signature", shared_access_signature),
    ):
        if value is not None and not value.strip():
            raise ConfigurationError(f"{name} must not be blank")

    if shared_access_signature is not None and not account_name:
        raise ConfigurationError("shared_access_signature requires account_name")
    if account_name and shared_access_signature is None and connection_string is None and connection is None:
        raise ConfigurationError("account_name requires shared_access_signature")

    supplied = [
        kind
        for kind, present in (
            ("connection_string", connection_string is not None),
            ("sas", shared_access_signature is not None),
            ("connection", connection is not None),
        )
        if present
    ]
    if not supplied:
        raise ConfigurationError(
            "one of connection_string, shared_access_signature with account_name, or connection is required",
        )
    if len(supplied) > 1:
        raise ConfigurationError(f"connection arguments are mutually exclusive, got {', '.join(supplied)}")
    return ConnectionChoice(
        kind=supplied[0],
        connection_string=connection_string,
        account_name=account_name,
        shared_access_signature=shared_access_signature,
        connection=connection,
    )


def build_sink(
    *,
    choice: ConnectionChoice,
    formatter: TextFormatterPort | None,
    queue_name: str,
    bypass_queue_creation_validation: bool,
    separate_queues_by_level: bool,
    queue_provider: QueueProviderPort | None,
    publish_timeout: float | None,
    message_encoding: str,
    waiter: BlockingWaiter | None,
) -> AzureQueueSink:
    """Open the connection and construct the sink; errors propagate to the caller."""

    active_waiter = waiter or default_waiter()
    provider = queue_provider or AzureQueueProvider(waiter=active_waiter, message_encoding=message_encoding)
    return AzureQueueSink(
        connection=choice.open(),
        formatter=formatter if formatter is not None else JsonFormatter(),
        queue_provider=provider,
        waiter=active_waiter,
        queue_name=queue_name,
        bypass_queue_creation_validation=bypass_queue_creation_validation,
        separate_queues_by_level=separate_queues_by_level,
        publish_timeout=publish_timeout,
    )


__all__ = ["ConnectionChoice", "build_sink", "coerce_level", "select_connection"]
