from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from lib_log_azure_queue.diagnostics import SelfLog
from lib_log_azure_queue.domain.events import LogEvent
from lib_log_azure_queue.domain.levels import LogLevel
from lib_log_azure_queue.errors import QueueCreationError


class FakeQueueHandle:
    """In-memory queue recording every message body it receives."""

    def __init__(self, name: str, sent: list[tuple[str, str]], *, failure: BaseException | None = None) -> None:
        self._name = name
        self._sent = sent
        self.failure = failure
        self.create_calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def create_if_not_exists(self) -> bool:
        self.create_calls += 1
        return True

    async def send_message(self, content: str) -> dict[str, str]:
        if self.failure is not None:
            raise self.failure
        self._sent.append((self._name, content))
        return {"id": str(len(self._sent))}


class FakeQueueProvider:
    """Queue provider that never touches the network.

    ``failing`` names queues whose creation fails; with bypass the handle is
    still returned, mirroring the Azure provider.
    """

    def __init__(self, *, failing: set[str] | None = None, send_failure: BaseException | None = None) -> None:
        self.failing = set(failing or ())
        self.send_failure = send_failure
        self.resolved: list[str] = []
        self.sent: list[tuple[str, str]] = []
        self.closed: list[Any] = []
        self._lock = threading.Lock()

    def get_queue(self, connection: Any, queue_name: str, bypass_creation_validation: bool) -> FakeQueueHandle:
        with self._lock:
            self.resolved.append(queue_name)
        if queue_name in self.failing and not bypass_creation_validation:
            raise QueueCreationError(queue_name)
        return FakeQueueHandle(queue_name, self.sent, failure=self.send_failure)

    def close(self, connection: Any) -> None:
        self.closed.append(connection)

    def messages_for(self, queue_name: str) -> list[str]:
        return [content for name, content in self.sent if name == queue_name]


class InlineWaiter:
    """Run each awaitable to completion on a fresh event loop in the caller thread."""

    def __init__(self) -> None:
        self.timeouts: list[float | None] = []

    def wait(self, operation: Callable[[], Awaitable[Any]], timeout: float | None = None) -> Any:
        self.timeouts.append(timeout)

        async def _run() -> Any:
            return await operation()

        return asyncio.run(_run())


class TagFormatter:
    """Formatter producing ``Level:template`` so assertions stay readable."""

    def format(self, event: LogEvent) -> str:
        return f"{event.level.display_name}:{event.message_template}"


@pytest.fixture
def provider() -> FakeQueueProvider:
    return FakeQueueProvider()


@pytest.fixture
def waiter() -> InlineWaiter:
    return InlineWaiter()


@pytest.fixture
def formatter() -> TagFormatter:
    return TagFormatter()


@pytest.fixture
def event_factory() -> Callable[..., LogEvent]:
    def build(level: LogLevel = LogLevel.INFORMATION, template: str = "hello", **properties: Any) -> LogEvent:
        return LogEvent(
            timestamp=datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc),
            level=level,
            message_template=template,
            properties=properties,
        )

    return build


@pytest.fixture
def selflog_lines() -> list[str]:
    lines: list[str] = []
    SelfLog.enable(lines.append)
    yield lines
    SelfLog.disable()


@pytest.fixture
def make_provider() -> Callable[..., FakeQueueProvider]:
    return FakeQueueProvider
