from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from lib_log_azure_queue import runtime
from lib_log_azure_queue.adapters import JsonFormatter, QueueSinkHandler, StorageConnection
from lib_log_azure_queue.application.use_cases.emit import AzureQueueSink, NullSink
from lib_log_azure_queue.config import SinkSettings
from lib_log_azure_queue.runtime._composition import ConnectionChoice
from lib_log_azure_queue.domain.levels import LogLevel
from lib_log_azure_queue.errors import ConfigurationError

CONNECTION_STRING = "DefaultEndpointsProtocol=https;AccountName=acct;AccountKey=a2V5;EndpointSuffix=core.windows.net"


@pytest.fixture
def app_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("tests.runtime_attach")
    logger.setLevel(logging.NOTSET)
    logger.propagate = False
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def test_connection_string_sink_is_live(provider, waiter) -> None:
    sink = runtime.azure_queue_sink(
        connection_string=CONNECTION_STRING,
        queue_name="applogs",
        queue_provider=provider,
        waiter=waiter,
    )
    assert isinstance(sink, AzureQueueSink)
    assert provider.resolved == ["applogs"]


def test_default_formatter_is_json(provider, waiter, event_factory) -> None:
    sink = runtime.azure_queue_sink(connection_string=CONNECTION_STRING, queue_provider=provider, waiter=waiter)
    event = event_factory()

    sink.emit(event)

    assert provider.messages_for("logevents") == [JsonFormatter().format(event)]


def test_sas_form_forces_bypass_and_shared_queue(make_provider, waiter) -> None:
    provider = make_provider(failing={"applogs"})
    sink = runtime.azure_queue_sink(
        shared_access_signature="sv=2024&sig=abc",
        account_name="acct",
        queue_name="applogs",
        bypass_queue_creation_validation=False,
        separate_queues_by_level=True,
        queue_provider=provider,
        waiter=waiter,
    )

    assert isinstance(sink, AzureQueueSink)
    assert sink.separate_queues_by_level is False
    assert provider.resolved == ["applogs"]


def test_prepared_connection_is_used_as_is(provider, waiter) -> None:
    connection = StorageConnection(lambda: None, account_name="acct")  # type: ignore[arg-type,return-value]
    runtime.azure_queue_sink(connection=connection, queue_provider=provider, waiter=waiter).close()
    assert provider.closed == [connection]


def test_creation_failure_degrades_to_null_sink(make_provider, waiter, selflog_lines: list[str]) -> None:
    provider = make_provider(failing={"applogs"})

    sink = runtime.azure_queue_sink(
        connection_string=CONNECTION_STRING,
        queue_name="applogs",
        queue_provider=provider,
        waiter=waiter,
    )

    assert isinstance(sink, NullSink)
    assert len(selflog_lines) == 1
    assert "Error configuring AzureQueueStorage" in selflog_lines[0]
    assert "applogs" in selflog_lines[0]


def test_malformed_connection_string_degrades_to_null_sink(provider, waiter, selflog_lines: list[str]) -> None:
    sink = runtime.azure_queue_sink(connection_string="AccountName=acct", queue_provider=provider, waiter=waiter)

    assert isinstance(sink, NullSink)
    assert "Error configuring AzureQueueStorage" in selflog_lines[0]
    assert provider.resolved == []


@pytest.mark.parametrize(
    "arguments, message",
    [
        ({}, "required"),
        ({"connection_string": CONNECTION_STRING, "shared_access_signature": "sv=1", "account_name": "acct"}, "mutually exclusive"),
        ({"shared_access_signature": "sv=1"}, "account_name"),
        ({"account_name": "acct"}, "shared_access_signature"),
        ({"connection_string": CONNECTION_STRING, "queue_name": "Bad_Name"}, "Invalid queue name"),
        ({"connection_string": CONNECTION_STRING, "publish_timeout": 0}, "publish_timeout"),
        ({"connection_string": ""}, "connection_string must not be blank"),
        ({"connection_string": "   "}, "connection_string must not be blank"),
        ({"shared_access_signature": "sv=1", "account_name": "  "}, "account_name must not be blank"),
        ({"shared_access_signature": " ", "account_name": "acct"}, "shared_access_signature must not be blank"),
    ],
)
def test_invalid_arguments_raise_immediately(provider, waiter, arguments: dict[str, object], message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        runtime.azure_queue_sink(queue_provider=provider, waiter=waiter, **arguments)  # type: ignore[arg-type]
    assert provider.resolved == []


def test_attach_installs_handler_and_forwards_records(provider, waiter, app_logger: logging.Logger) -> None:
    sink = runtime.azure_queue_sink(
        connection_string=CONNECTION_STRING,
        queue_name="applogs",
        separate_queues_by_level=True,
        queue_provider=provider,
        waiter=waiter,
    )

    handler = runtime.attach(app_logger, sink, minimum_level="information")
    app_logger.debug("dropped")
    app_logger.error("Order {OrderId} failed", {"OrderId": 17})

    assert isinstance(handler, QueueSinkHandler)
    assert handler in app_logger.handlers
    assert provider.resolved == ["applogs-error"]
    assert len(provider.messages_for("applogs-error")) == 1


def test_attach_accepts_logger_names(provider, waiter, app_logger: logging.Logger) -> None:
    sink = runtime.azure_queue_sink(connection_string=CONNECTION_STRING, queue_provider=provider, waiter=waiter)

    handler = runtime.attach("tests.runtime_attach", sink, minimum_level=LogLevel.TRACE)

    assert handler in app_logger.handlers
    assert app_logger.level == 5


def test_attach_rejects_unknown_level(provider, waiter, app_logger: logging.Logger) -> None:
    sink = runtime.azure_queue_sink(connection_string=CONNECTION_STRING, queue_provider=provider, waiter=waiter)
    with pytest.raises(ConfigurationError):
        runtime.attach(app_logger, sink, minimum_level="loud")


def test_sink_from_env_builds_sink_from_settings(provider, waiter, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_azure_queue_sink(**kwargs: object) -> NullSink:
        captured.update(kwargs)
        return NullSink()

    monkeypatch.setattr(runtime, "azure_queue_sink", fake_azure_queue_sink)
    settings = SinkSettings(connection_string=CONNECTION_STRING, queue_name="applogs", separate_queues_by_level=True)

    runtime.sink_from_env(settings, queue_name="override", publish_timeout=None)

    assert captured["connection_string"] == CONNECTION_STRING
    assert captured["queue_name"] == "override"
    assert captured["separate_queues_by_level"] is True
    assert captured["publish_timeout"] is None


def test_attach_from_env_applies_configured_minimum_level(provider, waiter, app_logger: logging.Logger) -> None:
    settings = SinkSettings(connection_string=CONNECTION_STRING, queue_name="applogs", minimum_level=LogLevel.WARNING)

    handler = runtime.attach_from_env(app_logger, settings, queue_provider=provider, waiter=waiter)
    app_logger.info("below threshold")
    app_logger.warning("Disk {Drive} low", {"Drive": "C"})

    assert handler in app_logger.handlers
    assert handler.level == logging.WARNING
    assert len(provider.messages_for("applogs")) == 1
    assert "Disk {Drive} low" in provider.messages_for("applogs")[0]


def test_attach_from_env_reads_minimum_level_from_environment(
    provider,
    waiter,
    app_logger: logging.Logger,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LOG_AZURE_QUEUE_CONNECTION_STRING", CONNECTION_STRING)
    monkeypatch.setenv("LOG_AZURE_QUEUE_MIN_LEVEL", "error")
    for name in (
        "LOG_AZURE_QUEUE_ACCOUNT_NAME",
        "LOG_AZURE_QUEUE_SAS",
        "LOG_AZURE_QUEUE_NAME",
        "LOG_AZURE_QUEUE_SEPARATE_BY_LEVEL",
        "LOG_AZURE_QUEUE_BYPASS_CREATION",
        "LOG_AZURE_QUEUE_PUBLISH_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)

    runtime.attach_from_env(app_logger, queue_provider=provider, waiter=waiter)
    app_logger.warning("dropped")
    app_logger.error("kept")

    (message,) = provider.messages_for("logevents")
    assert "kept" in message


def test_summary_info_names_the_package() -> None:
    banner = runtime.summary_info()
    assert banner.startswith("Info for lib_log_azure_queue:")
    assert "version" in banner


@pytest.mark.parametrize(
    "choice",
    [
        ConnectionChoice(kind="connection_string"),
        ConnectionChoice(kind="sas", account_name="acct"),
        ConnectionChoice(kind="connection"),
    ],
)
def test_incomplete_connection_choice_is_configuration_error(choice: ConnectionChoice) -> None:
    with pytest.raises(ConfigurationError, match="incomplete"):
        choice.open()
