from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

import pytest

from lib_log_azure_queue.adapters.blocking import BlockingWaiter
from lib_log_azure_queue.adapters.logging_handler import QueueSinkHandler, record_to_event
from lib_log_azure_queue.domain.events import LogEvent
from lib_log_azure_queue.domain.levels import LogLevel


class _RecordingSink:
    def __init__(self, failure: BaseException | None = None) -> None:
        self.events: list[LogEvent] = []
        self.failure = failure
        self.closed = 0

    def emit(self, event: LogEvent) -> None:
        if self.failure is not None:
            raise self.failure
        self.events.append(event)

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def app_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("tests.queue_sink_handler")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True


def test_mapping_args_become_template_properties() -> None:
    record = logging.makeLogRecord(
        {"name": "app", "levelno": logging.WARNING, "msg": "Disk {Drive} low", "args": {"Drive": "C"}},
    )
    event = record_to_event(record)

    assert event.message_template == "Disk {Drive} low"
    assert event.properties["Drive"] == "C"
    assert event.properties["SourceContext"] == "app"
    assert event.level is LogLevel.WARNING


def test_positional_args_are_applied_to_the_message() -> None:
    record = logging.makeLogRecord({"name": "app", "levelno": logging.INFO, "msg": "took %d ms", "args": (12,)})
    assert record_to_event(record).message_template == "took 12 ms"


def test_extra_fields_become_properties(app_logger: logging.Logger) -> None:
    sink = _RecordingSink()
    app_logger.addHandler(QueueSinkHandler(sink))

    app_logger.info("Order placed", extra={"OrderId": 17, "Region": "eu"})

    (event,) = sink.events
    assert event.properties["OrderId"] == 17
    assert event.properties["Region"] == "eu"
    assert "levelname" not in event.properties


def test_exception_text_is_captured(app_logger: logging.Logger) -> None:
    sink = _RecordingSink()
    app_logger.addHandler(QueueSinkHandler(sink))

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        app_logger.exception("Import failed")

    (event,) = sink.events
    assert event.level is LogLevel.ERROR
    assert event.exception is not None
    assert "RuntimeError: boom" in event.exception


def test_empty_message_gets_placeholder_template() -> None:
    record = logging.makeLogRecord({"name": "app", "levelno": logging.INFO, "msg": ""})
    assert record_to_event(record).message_template == "(empty)"


def test_handler_filters_below_minimum_level(app_logger: logging.Logger) -> None:
    sink = _RecordingSink()
    app_logger.addHandler(QueueSinkHandler(sink, minimum_level=LogLevel.WARNING))

    app_logger.debug("quiet")
    app_logger.info("still quiet")
    app_logger.warning("loud")

    assert [event.message_template for event in sink.events] == ["loud"]


def test_handler_ignores_internal_and_sdk_loggers() -> None:
    sink = _RecordingSink()
    handler = QueueSinkHandler(sink)

    for name in ("lib_log_azure_queue.adapters.azure_queue", "azure.core.pipeline", "azure"):
        handler.handle(logging.makeLogRecord({"name": name, "levelno": logging.ERROR, "msg": "internal"}))
    handler.handle(logging.makeLogRecord({"name": "azurelike", "levelno": logging.ERROR, "msg": "app"}))

    assert [event.properties["SourceContext"] for event in sink.events] == ["azurelike"]


def test_sink_failure_goes_to_handle_error_and_handler_keeps_working(
    app_logger: logging.Logger,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    sink = _RecordingSink(failure=RuntimeError("transport down"))
    handler = QueueSinkHandler(sink)
    handled: list[logging.LogRecord] = []
    monkeypatch.setattr(handler, "handleError", handled.append)
    app_logger.addHandler(handler)

    app_logger.error("first")
    sink.failure = None
    app_logger.error("second")

    assert [record.getMessage() for record in handled] == ["first"]
    assert [event.message_template for event in sink.events] == ["second"]


def test_close_closes_owned_sink_only() -> None:
    owned = _RecordingSink()
    borrowed = _RecordingSink()

    QueueSinkHandler(owned).close()
    QueueSinkHandler(borrowed, owns_sink=False).close()

    assert owned.closed == 1
    assert borrowed.closed == 0


class _WaiterBackedSink:
    """Sink whose publish logs through the same logger tree from the loop thread."""

    def __init__(self, waiter: BlockingWaiter, chatter: logging.Logger) -> None:
        self.waiter = waiter
        self.chatter = chatter
        self.events: list[LogEvent] = []

    def emit(self, event: LogEvent) -> None:
        async def publish() -> None:
            self.chatter.info("connection pool reused")
            self.events.append(event)

        self.waiter.wait(publish, timeout=5.0)

    def close(self) -> None:
        return None


def test_records_from_the_waiter_thread_do_not_block_the_publish(app_logger: logging.Logger) -> None:
    waiter = BlockingWaiter(thread_name="handler-test-waiter")
    sink = _WaiterBackedSink(waiter, app_logger.getChild("transport"))
    handler = QueueSinkHandler(sink)
    failures: list[logging.LogRecord] = []
    handler.handleError = failures.append  # type: ignore[method-assign]
    app_logger.addHandler(handler)
    finished = threading.Event()

    def log_from_app_thread() -> None:
        app_logger.info("hello")
        finished.set()

    try:
        worker = threading.Thread(target=log_from_app_thread, daemon=True)
        worker.start()
        worker.join(10)

        assert finished.is_set()
        assert failures == []
        assert [event.message_template for event in sink.events] == ["hello"]
    finally:
        app_logger.removeHandler(handler)
        waiter.close()


def test_handler_drops_records_stamped_with_a_waiter_thread() -> None:
    waiter = BlockingWaiter(thread_name="handler-test-waiter")
    sink = _RecordingSink()
    handler = QueueSinkHandler(sink)

    async def noop() -> None:
        return None

    try:
        waiter.wait(noop, timeout=5.0)
        for message, thread in (("loop", waiter.thread_ident), ("app", threading.get_ident())):
            record = logging.makeLogRecord({"name": "asyncio", "levelno": logging.WARNING, "msg": message})
            record.thread = thread
            handler.handle(record)
    finally:
        waiter.close()

    assert [event.message_template for event in sink.events] == ["app"]
