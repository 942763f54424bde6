# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for cache key derivation."""

from __future__ import annotations

from mise_ci.keys import global_cache_key, tool_cache_key, tool_hash
from mise_ci.models import SystemIdentity, Tool, ToolSource

LINUX = SystemIdentity(platform_family="linux", architecture="x64", musl=False)
ALPINE = SystemIdentity(platform_family="linux", architecture="x64", musl=True)


def test_global_key_defaults_to_latest() -> None:
    assert global_cache_key("mise-v1", LINUX.target_tag, None) == "mise-v1-linux-x64-latest-global"
    assert global_cache_key("mise-v1", LINUX.target_tag, "2025.1.0") == "mise-v1-linux-x64-2025.1.0-global"


def test_tool_key_ignores_source() -> None:
    lock = Tool(name="node", version="20.0.0", source=ToolSource.LOCKFILE_ENTRY)
    explicit = Tool(name="node", version="20.0.0", source=ToolSource.EXPLICIT_ARGUMENTS)

    assert tool_hash(lock) == "node-20.0.0"
    assert tool_cache_key("ci", LINUX.target_tag, lock) == "ci-linux-x64-tool-node-20.0.0"
    assert tool_cache_key("ci", LINUX.target_tag, lock) == tool_cache_key("ci", LINUX.target_tag, explicit)


def test_keys_are_deterministic_and_scoped_by_target() -> None:
    tool = Tool(name="python", version="3.12.0", source=ToolSource.DECLARATIVE_CONFIG)

    first = [tool_cache_key("p", LINUX.target_tag, tool) for _ in range(3)]
    assert len(set(first)) == 1
    assert tool_cache_key("p", ALPINE.target_tag, tool) != first[0]
    assert global_cache_key("p", ALPINE.target_tag, None) == "p-linux-x64-musl-latest-global"
