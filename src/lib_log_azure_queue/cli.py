"""Command-line surface for inspecting and exercising the queue sink.

Purpose
-------
Give operators a quick way to check routing and to publish a test event with
the same configuration an application would read from its environment.

Contents
--------
* :func:`cli` - Click group holding the global traceback/dotenv toggles.
* ``info`` / ``routes`` / ``send`` - subcommands.
* :func:`main` - entry point wrapped by :func:`lib_cli_exit_tools.run_cli`.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Sequence

import click
import lib_cli_exit_tools

from . import __init__conf__
from . import config
from .adapters import RouteTablePrinter
from .application.use_cases.emit import DEFAULT_QUEUE_NAME, AzureQueueSink
from .application.use_cases.routing import MONITOR_PROPERTY, routed_queue_name, validate_queue_name
from .diagnostics import SelfLog
from .domain.events import LogEvent
from .errors import AzureQueueSinkError, ConfigurationError
from .runtime import coerce_level, sink_from_env, summary_info

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _parse_properties(values: Sequence[str]) -> dict[str, str]:
    """Split ``KEY=VALUE`` options into a mapping.

    Examples
    --------
    >>> _parse_properties(["Drive=C", "Region=eu"])
    {'Drive': 'C', 'Region': 'eu'}
    """
    properties: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--property")
        properties[key.strip()] = value
    return properties


@click.group(invoke_without_command=True, context_settings=CLICK_CONTEXT_SETTINGS)
@click.version_option(version=__init__conf__.version, prog_name=__init__conf__.shell_command, message="%(version)s")
@click.option(
    "--traceback/--no-traceback",
    default=None,
    help="Show full Python tracebacks on errors.",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load the nearest .env before reading settings (default: ${config.DOTENV_ENV_VAR}).",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool | None, use_dotenv: bool | None) -> None:
    """Publish log events to Azure Storage queues."""

    if traceback is not None:
        lib_cli_exit_tools.config.traceback = traceback
        lib_cli_exit_tools.config.traceback_force_color = traceback

    if config.should_use_dotenv(explicit=use_dotenv, env_value=os.getenv(config.DOTENV_ENV_VAR)):
        config.enable_dotenv()

    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print package metadata."""
    click.echo(summary_info(), nl=False)


@cli.command("routes", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--queue-name", default=DEFAULT_QUEUE_NAME, show_default=True, help="Base queue name.")
@click.option("--separate-by-level", is_flag=True, help="Show per-level destinations.")
@click.option("--no-color", is_flag=True, help="Disable colour output.")
def cli_routes(queue_name: str, separate_by_level: bool, no_color: bool) -> None:
    """Show the destination queue for every level."""
    try:
        validate_queue_name(queue_name)
    except ConfigurationError as exc:
        raise click.BadParameter(str(exc), param_hint="--queue-name") from exc
    RouteTablePrinter(no_color=no_color).print(queue_name, separate_by_level)


@cli.command("send", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("message")
@click.option("--level", default="information", show_default=True, help="Level name (trace .. fatal).")
@click.option("--monitor", is_flag=True, help=f"Attach the {MONITOR_PROPERTY} property (routes warnings to -monitor).")
@click.option("--property", "-p", "properties", multiple=True, help="Extra KEY=VALUE property; repeatable.")
@click.option("--queue-name", default=None, help="Base queue name (default: environment or 'logevents').")
@click.option("--separate-by-level/--shared-queue", default=None, help="Route each level to its own queue.")
@click.option("--bypass-creation/--validate-creation", default=None, help="Ignore queue creation failures.")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for the publish.")
def cli_send(
    message: str,
    level: str,
    monitor: bool,
    properties: Sequence[str],
    queue_name: str | None,
    separate_by_level: bool | None,
    bypass_creation: bool | None,
    timeout: float | None,
) -> None:
    """Publish MESSAGE as one log event using LOG_AZURE_QUEUE_* settings."""

    try:
        event_level = coerce_level(level)
    except ConfigurationError as exc:
        raise click.BadParameter(str(exc), param_hint="--level") from exc
    event_properties: dict[str, object] = dict(_parse_properties(properties))
    if monitor:
        event_properties[MONITOR_PROPERTY] = True
    try:
        event = LogEvent(
            timestamp=datetime.now(timezone.utc),
            level=event_level,
            message_template=message,
            properties=event_properties,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="MESSAGE") from exc

    try:
        settings = config.SinkSettings.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    if event_level < settings.minimum_level:
        click.echo(
            f"Skipped {event_level.display_name} event: below minimum level "
            f"{settings.minimum_level.display_name} ({config.ENV_MIN_LEVEL})"
        )
        return

    SelfLog.enable(lambda line: click.echo(line, err=True))
    try:
        sink = sink_from_env(
            settings,
            queue_name=queue_name,
            separate_queues_by_level=separate_by_level,
            bypass_queue_creation_validation=bypass_creation,
            publish_timeout=timeout,
        )
        if not isinstance(sink, AzureQueueSink):
            raise click.ClickException("the queue sink could not be configured")
        try:
            sink.emit(event)
        finally:
            sink.close()
    except AzureQueueSinkError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        SelfLog.disable()

    destination = (
        routed_queue_name(sink.queue_name, event_level, event_properties)
        if sink.separate_queues_by_level
        else sink.queue_name
    )
    click.echo(f"Sent {event_level.display_name} event to {destination}")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI through :func:`lib_cli_exit_tools.run_cli`.

    Traceback preferences changed by ``--traceback`` are restored afterwards
    so repeated in-process invocations start from the same state.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        lib_cli_exit_tools.config.traceback = previous_traceback
        lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main"]
