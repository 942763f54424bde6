# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve the platform/architecture/libc tag embedded in cache keys."""

from __future__ import annotations

import logging
import platform
import sys
from collections.abc import Callable
from typing import Final

from .exceptions import UnsupportedPlatformError
from .models import PlatformFamily, SystemIdentity
from .process_utils import TIMEOUT_EXIT_CODE, run_command

LOGGER = logging.getLogger(__name__)

MuslProbe = Callable[[], bool]

_PLATFORM_FAMILIES: Final[dict[str, PlatformFamily]] = {
    "linux": "linux",
    "darwin": "macos",
    "win32": "windows",
    "windows": "windows",
}

# mise release assets use Node-style architecture names.
ARCH_ALIASES: Final[dict[str, str]] = {
    "arm": "armv7",
    "armv7l": "armv7",
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
}

_MUSL_MARKER: Final[str] = "musl"
MUSL_PROBE_TIMEOUT: Final[float] = 5.0


def normalize_architecture(machine: str) -> str:
    """Return the release-style architecture name for *machine*."""

    lowered = machine.lower()
    return ARCH_ALIASES.get(lowered, lowered)


def detect_musl() -> bool:
    """Return ``True`` when ``ldd`` reports a musl libc.

    ``ldd --version`` exits non-zero on most systems and musl prints its banner
    to stderr, so the exit code is ignored and both streams are inspected. A
    probe that does not answer within :data:`MUSL_PROBE_TIMEOUT` counts as glibc.
    """

    try:
        completed = run_command(
            ["ldd", "--version"],
            check=False,
            capture_output=True,
            timeout=MUSL_PROBE_TIMEOUT,
        )
    except (OSError, ValueError) as exc:
        LOGGER.debug("musl probe failed: %s", exc)
        return False
    if completed.returncode == TIMEOUT_EXIT_CODE:
        LOGGER.debug("musl probe timed out, assuming glibc")
        return False
    output = f"{completed.stderr or ''}{completed.stdout or ''}"
    return _MUSL_MARKER in output


def resolve_identity(
    platform_name: str | None = None,
    machine: str | None = None,
    *,
    probe: MuslProbe | None = None,
) -> SystemIdentity:
    """Return the :class:`SystemIdentity` for the host or the supplied values.

    Raises:
        UnsupportedPlatformError: If the platform is not linux, macOS or Windows.
    """

    raw_platform = platform_name if platform_name is not None else sys.platform
    family = _PLATFORM_FAMILIES.get(raw_platform)
    if family is None:
        raise UnsupportedPlatformError(raw_platform)

    architecture = normalize_architecture(machine if machine is not None else platform.machine())
    musl: bool | None = None
    if family == "linux":
        musl = (probe or detect_musl)()
    return SystemIdentity(platform_family=family, architecture=architecture, musl=musl)


__all__ = ["ARCH_ALIASES", "MUSL_PROBE_TIMEOUT", "detect_musl", "normalize_architecture", "resolve_identity"]
