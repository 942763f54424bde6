# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem discovery for tool configuration files."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path
from typing import Final

ALWAYS_EXCLUDE_DIRS: Final[frozenset[str]] = frozenset({".git", "node_modules"})


def _walk(base: Path, filename: str) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(base, followlinks=False):
        current = Path(dirpath)
        dirnames[:] = [name for name in dirnames if name not in ALWAYS_EXCLUDE_DIRS]
        if filename not in filenames:
            continue
        candidate = current / filename
        if candidate.is_symlink():
            continue
        yield candidate


def find_config_files(root: Path, filename: str) -> list[Path]:
    """Return every file called *filename* below *root*, sorted.

    Symbolic links are never followed, neither for directories nor for the
    matched files themselves.

    Raises:
        FileNotFoundError: If *root* does not exist.
    """

    if not root.is_dir():
        msg = f"Search root does not exist: {root}"
        raise FileNotFoundError(msg)
    return sorted(_walk(root, filename))


__all__ = ["ALWAYS_EXCLUDE_DIRS", "find_config_files"]
