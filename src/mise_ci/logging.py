# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing logging helpers with optional colour and emoji support."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from rich.rule import Rule
from rich.text import Text

from .console import color_supported, get_console, in_github_actions


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
) -> None:
    """Render ``msg`` to the console using shared styling helpers.

    Args:
        msg: Message text to print to the console.
        style: Rich style name to apply when colour output is active.
        use_emoji: Flag indicating whether emoji output is desired.
        use_color: ``False`` forces plain output; otherwise colour follows detection.
    """

    color_enabled = use_color is not False and color_supported()
    console = get_console(color=color_enabled, emoji=use_emoji)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def _print_command(command: str, msg: str) -> None:
    console = get_console(color=False, emoji=False)
    console.print(Text(f"::{command}::{msg}"))


def section(title: str, *, use_color: bool | None = None) -> None:
    """Render a section header to delineate console output blocks."""

    color_enabled = use_color is not False and color_supported()
    console = get_console(color=color_enabled, emoji=True)
    if color_enabled:
        console.print()
        console.print(Rule(title))
    else:
        console.print(Text(f"\n--- {title} ---"))


@contextmanager
def group(title: str) -> Iterator[None]:
    """Fold the output emitted inside the block under ``title``.

    Inside GitHub Actions this uses the ``::group::`` workflow commands so the
    log viewer collapses the block; elsewhere a plain section header is printed.
    """

    if not in_github_actions():
        section(title)
        yield
        return
    _print_command("group", title)
    try:
        yield
    finally:
        _print_command("endgroup", "")


def info(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    prefix = emoji("ℹ️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit a success message."""

    prefix = emoji("✅ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit a warning message.

    Inside GitHub Actions the message is raised as a workflow annotation so
    it shows up on the run summary without failing the job.
    """

    if in_github_actions():
        _print_command("warning", msg)
        return
    prefix = emoji("⚠️ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool = True, use_color: bool | None = None) -> None:
    """Emit an error message."""

    if in_github_actions():
        _print_command("error", msg)
        return
    prefix = emoji("❌ ", use_emoji)
    _print_line(f"{prefix}{msg}", style="red", use_emoji=use_emoji, use_color=use_color)


__all__ = ["emoji", "fail", "group", "in_github_actions", "info", "ok", "section", "warn"]
