"""Azure Queue Storage adapter for the queue ports.

Purpose
-------
Resolve named queues on an Azure storage account and publish message bodies
through the asynchronous ``azure-storage-queue`` client.

Contents
--------
* :class:`StorageConnection` - the account/credential context handed to the sink.
* :class:`AzureQueueHandle` - :class:`QueueHandle` over an SDK ``QueueClient``.
* :class:`AzureQueueProvider` - default :class:`QueueProviderPort`.

System Role
-----------
The only module that imports the Azure SDK. All SDK coroutines are driven by a
:class:`BlockingWaiter`, so the async clients stay bound to its loop.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from azure.core.credentials import AzureSasCredential
from azure.core.exceptions import ResourceExistsError
from azure.storage.queue import TextBase64EncodePolicy
from azure.storage.queue.aio import QueueClient, QueueServiceClient

from lib_log_azure_queue.application.ports.queue import QueueHandle, QueueProviderPort
from lib_log_azure_queue.diagnostics import SelfLog
from lib_log_azure_queue.errors import ConfigurationError, QueueCreationError

from .blocking import BlockingWaiter, default_waiter

LOGGER = logging.getLogger(__name__)

DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"
_MESSAGE_ENCODINGS = {"text", "base64"}


def parse_connection_string(connection_string: str) -> dict[str, str]:
    """Split an Azure storage connection string into its settings.

    Examples
    --------
    >>> settings = parse_connection_string('DefaultEndpointsProtocol=https;AccountName=acct;AccountKey=a2V5;')
    >>> settings['AccountName'], settings['AccountKey']
    ('acct', 'a2V5')
    >>> parse_connection_string('nonsense')
    Traceback (most recent call last):
    ...
    lib_log_azure_queue.errors.ConfigurationError: Malformed connection string segment: 'nonsense'
    """

    if not connection_string or not connection_string.strip():
        raise ConfigurationError("connection string must not be empty")
    settings: dict[str, str] = {}
    for segment in connection_string.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        key, sep, value = segment.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"Malformed connection string segment: {segment!r}")
        settings[key.strip()] = value.strip()

    if settings.get("UseDevelopmentStorage", "").lower() == "true":
        return settings
    if "QueueEndpoint" in settings:
        return settings
    if "AccountName" not in settings:
        raise ConfigurationError("connection string lacks AccountName or QueueEndpoint")
    if "AccountKey" not in settings and "SharedAccessSignature" not in settings:
        raise ConfigurationError("connection string lacks AccountKey or SharedAccessSignature")
    return settings


class StorageConnection:
    """Account and credential context shared by every queue of a sink.

    The async service client is created once, on first use, and reused by
    every handle resolved from this connection.
    """

    def __init__(self, factory: Callable[[], QueueServiceClient], *, account_name: str | None = None) -> None:
        self._factory = factory
        self._account_name = account_name
        self._client: QueueServiceClient | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "StorageConnection":
        settings = parse_connection_string(connection_string)
        return cls(
            lambda: QueueServiceClient.from_connection_string(connection_string),
            account_name=settings.get("AccountName"),
        )

    @classmethod
    def from_sas(
        cls,
        shared_access_signature: str,
        account_name: str,
        *,
        endpoint_suffix: str = DEFAULT_ENDPOINT_SUFFIX,
    ) -> "StorageConnection":
        """Build a connection from an account name and a SAS token."""
        if not account_name or not account_name.strip():
            raise ConfigurationError("account_name must not be empty")
        token = (shared_access_signature or "").strip().lstrip("?")
        if not token:
            raise ConfigurationError("shared_access_signature must not be empty")
        account_url = f"https://{account_name.strip()}.queue.{endpoint_suffix}"
        return cls(
            lambda: QueueServiceClient(account_url, credential=AzureSasCredential(token)),
            account_name=account_name.strip(),
        )

    @classmethod
    def from_service_client(cls, client: QueueServiceClient) -> "StorageConnection":
        """Wrap an already configured async service client."""
        if client is None:
            raise ConfigurationError("client must not be None")
        return cls(lambda: client, account_name=getattr(client, "account_name", None))

    @property
    def account_name(self) -> str | None:
        return self._account_name

    def service_client(self) -> QueueServiceClient:
        with self._lock:
            if self._client is None:
                self._client = self._factory()
            return self._client

    async def aclose(self) -> None:
        """Close the service client and its HTTP session, if one was created."""
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            await client.close()

    def __repr__(self) -> str:
        return f"StorageConnection(account_name={self._account_name!r})"


class AzureQueueHandle(QueueHandle):
    """Handle over one SDK ``QueueClient``."""

    def __init__(self, client: QueueClient) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return self._client.queue_name

    @property
    def url(self) -> str:
        return self._client.url

    async def create_if_not_exists(self) -> bool:
        try:
            await self._client.create_queue()
        except ResourceExistsError:
            return False
        return True

    async def send_message(self, content: str) -> Any:
        return await self._client.send_message(content)

    def __repr__(self) -> str:
        return f"AzureQueueHandle(name={self.name!r})"


class AzureQueueProvider(QueueProviderPort):
    """Resolve queue handles, creating queues that do not exist yet.

    Parameters
    ----------
    waiter:
        Waiter driving the SDK coroutines; defaults to the process-wide one.
    creation_timeout:
        Seconds to wait for the create-if-absent call; ``None`` waits forever.
    message_encoding:
        ``"text"`` sends bodies verbatim, ``"base64"`` encodes them for
        consumers that expect base64 message content.
    """

    def __init__(
        self,
        *,
        waiter: BlockingWaiter | None = None,
        creation_timeout: float | None = None,
        message_encoding: str = "text",
    ) -> None:
        encoding = message_encoding.lower()
        if encoding not in _MESSAGE_ENCODINGS:
            raise ConfigurationError("message_encoding must be 'text' or 'base64'")
        self._waiter = waiter or default_waiter()
        self._creation_timeout = creation_timeout
        self._client_options: dict[str, Any] = {}
        if encoding == "base64":
            self._client_options["message_encode_policy"] = TextBase64EncodePolicy()

    def get_queue(
        self,
        connection: StorageConnection,
        queue_name: str,
        bypass_creation_validation: bool,
    ) -> AzureQueueHandle:
        """Return a handle for ``queue_name`` after ensuring the queue exists.

        A restricted credential (a SAS token, typically) may not be allowed to
        create queues. With ``bypass_creation_validation`` the failure is only
        written to :class:`SelfLog` and the handle is returned anyway.
        """
        client = connection.service_client().get_queue_client(queue_name, **self._client_options)
        handle = AzureQueueHandle(client)
        try:
            created = self._waiter.wait(handle.create_if_not_exists, self._creation_timeout)
        except Exception as exc:
            SelfLog.write_line("Failed to create queue %s: %r", queue_name, exc)
            if not bypass_creation_validation:
                raise QueueCreationError(queue_name) from exc
        else:
            LOGGER.debug("Resolved queue %s (created=%s)", queue_name, created)
        return handle

    def close(self, connection: StorageConnection) -> None:
        self._waiter.wait(connection.aclose, self._creation_timeout)


__all__ = [
    "AzureQueueHandle",
    "AzureQueueProvider",
    "StorageConnection",
    "parse_connection_string",
]
