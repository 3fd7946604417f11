"""Environment-driven configuration for the queue sink.

Purpose
-------
Collect sink options from ``LOG_AZURE_QUEUE_*`` environment variables,
optionally seeded from the nearest ``.env`` file.

Contents
--------
* :data:`DOTENV_ENV_VAR` - toggle for ``.env`` loading.
* :func:`should_use_dotenv` / :func:`enable_dotenv` - ``.env`` support.
* :class:`SinkSettings` - resolved options with :meth:`SinkSettings.from_env`.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .domain.levels import LogLevel
from .errors import ConfigurationError

DOTENV_ENV_VAR = "LIB_LOG_AZURE_QUEUE_USE_DOTENV"

ENV_CONNECTION_STRING = "LOG_AZURE_QUEUE_CONNECTION_STRING"
ENV_ACCOUNT_NAME = "LOG_AZURE_QUEUE_ACCOUNT_NAME"
ENV_SAS = "LOG_AZURE_QUEUE_SAS"
ENV_QUEUE_NAME = "LOG_AZURE_QUEUE_NAME"
ENV_SEPARATE_BY_LEVEL = "LOG_AZURE_QUEUE_SEPARATE_BY_LEVEL"
ENV_BYPASS_CREATION = "LOG_AZURE_QUEUE_BYPASS_CREATION"
ENV_MIN_LEVEL = "LOG_AZURE_QUEUE_MIN_LEVEL"
ENV_PUBLISH_TIMEOUT = "LOG_AZURE_QUEUE_PUBLISH_TIMEOUT"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

_DOTENV_LOCK = threading.Lock()
_DOTENV_PATH: Path | None = None
_DOTENV_ATTEMPTED = False


def should_use_dotenv(*, explicit: bool | None = None, env_value: str | None = None) -> bool:
    """Decide whether ``.env`` loading is enabled.

    An explicit CLI flag wins over the environment toggle.

    Examples
    --------
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    >>> should_use_dotenv(env_value="yes")
    True
    >>> should_use_dotenv()
    False
    """

    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    return env_value.strip().lower() in _TRUTHY


def enable_dotenv(*, search_from: Path | None = None) -> Path | None:
    """Load the nearest ``.env`` without overriding existing variables.

    The search walks upward from ``search_from`` (default: the working
    directory). Loading happens at most once per process; later calls return
    the path found by the first one.
    """

    global _DOTENV_PATH, _DOTENV_ATTEMPTED
    with _DOTENV_LOCK:
        if _DOTENV_ATTEMPTED:
            return _DOTENV_PATH
        _DOTENV_ATTEMPTED = True
        if search_from is not None:
            found = _search_upwards(Path(search_from))
        else:
            located = find_dotenv(usecwd=True)
            found = Path(located).resolve() if located else None
        if found is None:
            return None
        load_dotenv(found, override=False)
        _DOTENV_PATH = found
        return found


def _search_upwards(start: Path) -> Path | None:
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


def _reset_dotenv_state_for_testing() -> None:
    global _DOTENV_PATH, _DOTENV_ATTEMPTED
    with _DOTENV_LOCK:
        _DOTENV_PATH = None
        _DOTENV_ATTEMPTED = False


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    """Return the boolean value of ``name`` with fallback.

    Examples
    --------
    >>> _env_bool({'FLAG': 'On'}, 'FLAG', default=False)
    True
    >>> _env_bool({}, 'FLAG', default=True)
    True
    """
    value = environ.get(name)
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ConfigurationError(f"{name} must be one of {sorted(_TRUTHY | _FALSY)}, got {value!r}")


def _env_timeout(environ: Mapping[str, str], name: str) -> float | None:
    value = environ.get(name)
    if value is None or not value.strip() or value.strip().lower() in {"none", "infinite"}:
        return None
    try:
        timeout = float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}") from exc
    if timeout <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return timeout


def _env_text(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(slots=True, frozen=True)
class SinkSettings:
    """Options for building a queue sink outside of code."""

    connection_string: str | None = None
    account_name: str | None = None
    shared_access_signature: str | None = None
    queue_name: str | None = None
    separate_queues_by_level: bool = False
    bypass_queue_creation_validation: bool = False
    minimum_level: LogLevel = LogLevel.TRACE
    publish_timeout: float | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SinkSettings":
        """Read settings from ``environ`` (default: :data:`os.environ`)."""
        env = os.environ if environ is None else environ
        level_name = _env_text(env, ENV_MIN_LEVEL)
        try:
            minimum_level = LogLevel.from_name(level_name) if level_name else LogLevel.TRACE
        except ValueError as exc:
            raise ConfigurationError(f"{ENV_MIN_LEVEL}: {exc}") from exc
        return cls(
            connection_string=_env_text(env, ENV_CONNECTION_STRING),
            account_name=_env_text(env, ENV_ACCOUNT_NAME),
            shared_access_signature=_env_text(env, ENV_SAS),
            queue_name=_env_text(env, ENV_QUEUE_NAME),
            separate_queues_by_level=_env_bool(env, ENV_SEPARATE_BY_LEVEL, False),
            bypass_queue_creation_validation=_env_bool(env, ENV_BYPASS_CREATION, False),
            minimum_level=minimum_level,
            publish_timeout=_env_timeout(env, ENV_PUBLISH_TIMEOUT),
        )

    def merged(self, **overrides: Any) -> "SinkSettings":
        """Return a copy where every non-``None`` override replaces the stored value."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


__all__ = [
    "DOTENV_ENV_VAR",
    "SinkSettings",
    "enable_dotenv",
    "should_use_dotenv",
]
