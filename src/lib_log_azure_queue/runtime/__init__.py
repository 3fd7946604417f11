"""Runtime façade for configuring the Azure queue sink.

Purpose
-------
Expose the configuration step host applications call instead of wiring the
inner layers themselves.

Contents
--------
* :func:`azure_queue_sink` - build a sink, degrading to a no-op on failure.
* :func:`attach` - install the sink on a :mod:`logging` logger.
* :func:`sink_from_env` - build a sink from ``LOG_AZURE_QUEUE_*`` variables.
* :func:`attach_from_env` - build from the environment and attach at the configured level.
* :func:`summary_info` - metadata banner used by the CLI.

System Role
-----------
Outer shell of the package. A misconfigured sink must never take the host
application down, so build failures are reported on :class:`SelfLog` and a
:class:`NullSink` is handed back instead.
"""

from __future__ import annotations

import logging

from lib_log_azure_queue.adapters import BlockingWaiter, QueueSinkHandler, StorageConnection
from lib_log_azure_queue.application.ports import LogEventSinkPort, QueueProviderPort, TextFormatterPort
from lib_log_azure_queue.application.use_cases.emit import DEFAULT_QUEUE_NAME, NullSink
from lib_log_azure_queue.application.use_cases.routing import validate_queue_name
from lib_log_azure_queue.config import SinkSettings
from lib_log_azure_queue.diagnostics import SelfLog
from lib_log_azure_queue.domain.levels import LogLevel
from lib_log_azure_queue.errors import ConfigurationError

from ._composition import build_sink, coerce_level, select_connection

LOGGER = logging.getLogger(__name__)


def azure_queue_sink(
    *,
    connection_string: str | None = None,
    account_name: str | None = None,
    shared_access_signature: str | None = None,
    connection: StorageConnection | None = None,
    formatter: TextFormatterPort | None = None,
    queue_name: str | None = None,
    bypass_queue_creation_validation: bool = False,
    separate_queues_by_level: bool = False,
    queue_provider: QueueProviderPort | None = None,
    publish_timeout: float | None = None,
    message_encoding: str = "text",
    waiter: BlockingWaiter | None = None,
) -> LogEventSinkPort:
    """Build a sink that writes log events to Azure Storage queues.

    Exactly one connection form is accepted: ``connection_string``,
    ``shared_access_signature`` together with ``account_name``, or a prepared
    ``connection``. A SAS token usually cannot create queues, so the SAS form
    always bypasses the creation check and always publishes to the single
    shared queue.

    Raises
    ------
    ConfigurationError
        Missing or conflicting connection arguments, an invalid queue name,
        or a non-positive ``publish_timeout``.

    Returns
    -------
    LogEventSinkPort
        The live sink, or a :class:`NullSink` when building it failed; the
        failure is written to :class:`SelfLog`.
    """

    choice = select_connection(
        connection_string=connection_string,
        account_name=account_name,
        shared_access_signature=shared_access_signature,
        connection=connection,
    )
    name = validate_queue_name(queue_name or DEFAULT_QUEUE_NAME)
    if publish_timeout is not None and publish_timeout <= 0:
        raise ConfigurationError("publish_timeout must be positive or None")

    if choice.is_sas:
        bypass_queue_creation_validation = True
        separate_queues_by_level = False

    try:
        sink = build_sink(
            choice=choice,
            formatter=formatter,
            queue_name=name,
            bypass_queue_creation_validation=bypass_queue_creation_validation,
            separate_queues_by_level=separate_queues_by_level,
            queue_provider=queue_provider,
            publish_timeout=publish_timeout,
            message_encoding=message_encoding,
            waiter=waiter,
        )
    except Exception as exc:
        SelfLog.write_line("Error configuring AzureQueueStorage: %r", exc)
        return NullSink()
    LOGGER.debug("Configured %r", sink)
    return sink


def attach(
    logger: logging.Logger | str | None,
    sink: LogEventSinkPort,
    minimum_level: LogLevel | str | int = LogLevel.TRACE,
) -> QueueSinkHandler:
    """Install ``sink`` on ``logger`` (default: the root logger).

    The returned handler owns the sink: removing and closing the handler
    closes the sink as well.
    """

    level = coerce_level(minimum_level)
    target = logger if isinstance(logger, logging.Logger) else logging.getLogger(logger)
    handler = QueueSinkHandler(sink, minimum_level=level)
    target.addHandler(handler)
    if target.getEffectiveLevel() > level.to_python_level():
        target.setLevel(level.to_python_level())
    return handler


def sink_from_env(
    settings: SinkSettings | None = None,
    *,
    queue_provider: QueueProviderPort | None = None,
    waiter: BlockingWaiter | None = None,
    **overrides: object,
) -> LogEventSinkPort:
    """Build a sink from :class:`SinkSettings` read from the environment.

    ``overrides`` replace individual settings when they are not ``None``.
    ``minimum_level`` is not a sink option; :func:`attach_from_env` applies it.
    """

    resolved = (settings or SinkSettings.from_env()).merged(**overrides)
    return azure_queue_sink(
        connection_string=resolved.connection_string,
        account_name=resolved.account_name,
        shared_access_signature=resolved.shared_access_signature,
        queue_name=resolved.queue_name,
        bypass_queue_creation_validation=resolved.bypass_queue_creation_validation,
        separate_queues_by_level=resolved.separate_queues_by_level,
        publish_timeout=resolved.publish_timeout,
        queue_provider=queue_provider,
        waiter=waiter,
    )


def attach_from_env(
    logger: logging.Logger | str | None = None,
    settings: SinkSettings | None = None,
    *,
    queue_provider: QueueProviderPort | None = None,
    waiter: BlockingWaiter | None = None,
    **overrides: object,
) -> QueueSinkHandler:
    """Build a sink from the environment and install it on ``logger``.

    The handler level comes from ``LOG_AZURE_QUEUE_MIN_LEVEL`` (or a
    ``minimum_level`` override), so records below it never reach the sink.
    """

    resolved = (settings or SinkSettings.from_env()).merged(**overrides)
    sink = sink_from_env(resolved, queue_provider=queue_provider, waiter=waiter)
    return attach(logger, sink, resolved.minimum_level)


def summary_info() -> str:
    """Return the metadata banner used by the CLI entry point.

    Examples
    --------
    >>> "version" in summary_info()
    True
    """
    from lib_log_azure_queue import __init__conf__

    lines: list[str] = []
    __init__conf__.print_info(writer=lines.append)
    return "".join(lines)


__all__ = ["attach", "attach_from_env", "azure_queue_sink", "coerce_level", "sink_from_env", "summary_info"]
