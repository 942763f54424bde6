# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cache key derivation for the global and per-tool cache tiers.

Keys only change when the cached artefact would be invalid: a different
target tag, a different mise version (global tier) or a different tool
name/version (tool tier).
"""

from __future__ import annotations

from typing import Final

from .models import Tool

LATEST_VERSION: Final[str] = "latest"


def global_cache_key(prefix: str, target_tag: str, version: str | None) -> str:
    """Return ``{prefix}-{target}-{version|latest}-global``."""

    return f"{prefix}-{target_tag}-{version or LATEST_VERSION}-global"


def tool_hash(tool: Tool) -> str:
    """Return the readable ``name-version`` identifier of *tool*."""

    return f"{tool.name}-{tool.version}"


def tool_cache_key(prefix: str, target_tag: str, tool: Tool) -> str:
    """Return ``{prefix}-{target}-tool-{name}-{version}``."""

    return f"{prefix}-{target_tag}-tool-{tool_hash(tool)}"


__all__ = ["LATEST_VERSION", "global_cache_key", "tool_cache_key", "tool_hash"]
