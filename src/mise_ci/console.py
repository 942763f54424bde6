# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared Rich consoles for terminal and CI job log output."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from functools import cache

from rich.console import Console

_ACTIONS_ENV = "GITHUB_ACTIONS"
_NO_COLOR_ENV = "NO_COLOR"


def in_github_actions() -> bool:
    """Return ``True`` when running inside a GitHub Actions job."""

    return os.environ.get(_ACTIONS_ENV, "").lower() == "true"


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def color_supported() -> bool:
    """Return ``True`` when ANSI colour will be rendered by the reader.

    The Actions log viewer renders colour even though stdout is a pipe there.
    Setting ``NO_COLOR`` turns colour off everywhere.
    """

    if os.environ.get(_NO_COLOR_ENV):
        return False
    return detect_tty() or in_github_actions()


@dataclass(frozen=True, slots=True)
class ConsoleProfile:
    """Presentation settings that select one shared :class:`Console`."""

    color: bool
    emoji: bool
    tty: bool


@cache
def _console_for(profile: ConsoleProfile) -> Console:
    if not profile.color:
        return Console(
            color_system=None,
            force_terminal=False,
            no_color=True,
            emoji=profile.emoji,
            highlight=False,
            soft_wrap=True,
        )
    # Off a terminal Rich cannot probe capabilities, so fall back to 16 colours.
    return Console(
        color_system="auto" if profile.tty else "standard",
        force_terminal=True,
        emoji=profile.emoji,
        highlight=False,
        soft_wrap=True,
    )


def get_console(*, color: bool, emoji: bool) -> Console:
    """Return the shared console for the requested presentation.

    Args:
        color: Whether colour is wanted. It is only honoured when
            :func:`color_supported` agrees.
        emoji: Whether Rich should render emoji glyphs.

    Returns:
        Console: A console reused by every caller asking for the same profile.
    """

    profile = ConsoleProfile(color=color and color_supported(), emoji=emoji, tty=detect_tty())
    return _console_for(profile)


__all__ = ["ConsoleProfile", "color_supported", "detect_tty", "get_console", "in_github_actions"]
