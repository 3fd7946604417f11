"""Static package metadata surfaced by the CLI banner.

The values here are kept in sync with ``pyproject.toml``; :func:`print_info`
renders them as the ``info`` command output.
"""

from __future__ import annotations

from typing import Callable

name = "lib_log_azure_queue"
title = "Log events to Azure Storage queues from the standard logging stack"
version = "0.1.0"
author = "lib_log_azure_queue contributors"
shell_command = "lib_log_azure_queue"


def print_info(writer: Callable[[str], object] | None = None) -> None:
    """Write the metadata banner through ``writer`` (default: :func:`print`).

    Examples
    --------
    >>> print_info()  # doctest: +ELLIPSIS
    Info for lib_log_azure_queue:
    ...
        version       = 0.1.0
    ...
    """

    fields = [
        ("name", name),
        ("title", title),
        ("version", version),
        ("author", author),
        ("shell_command", shell_command),
    ]
    pad = max(len(label) for label, _ in fields)
    lines = [f"Info for {name}:", ""]
    lines.extend(f"    {label.ljust(pad)} = {value}" for label, value in fields)
    text = "\n".join(lines) + "\n"
    if writer is None:
        print(text, end="")
    else:
        writer(text)
