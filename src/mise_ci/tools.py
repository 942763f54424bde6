# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Collect tool requirements from install arguments and config files.

Three sources are consulted independently:

* the ``install_args`` input (``name@version`` tokens),
* every ``.tool-versions`` file below the working directory,
* the ``[tools]`` table of every ``mise.toml`` below the working directory.

When the same tool is declared more than once the candidate from the highest
ranked source wins (``install_args`` > ``mise.toml`` > ``.tool-versions``).
"""

from __future__ import annotations

import string
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Final

from .discovery import find_config_files
from .logging import info, warn
from .models import Tool, ToolSource

LOCKFILE_NAME: Final[str] = ".tool-versions"
CONFIG_FILE_NAME: Final[str] = "mise.toml"
TOOLS_SECTION: Final[str] = "[tools]"

_IDENTIFIER_CHARS: Final[frozenset[str]] = frozenset(string.ascii_letters + string.digits + "_")
_QUOTES: Final[str] = "\"'"
_VERSION_KEY: Final[str] = "version"

ContentParser = Callable[[str], list[Tool]]


def _is_identifier(value: str) -> bool:
    return bool(value) and all(char in _IDENTIFIER_CHARS for char in value)


# Versions are passed on as whitespace-separated ``name@version`` tokens.
def _is_version_text(value: str) -> bool:
    return bool(value) and not any(char.isspace() or char in _QUOTES for char in value)


def parse_install_args(text: str) -> list[Tool]:
    """Return tools named by ``name@version`` tokens in *text*.

    Flags (tokens starting with ``-``) and tokens that are not exactly one
    name and one version joined by ``@`` are dropped.
    """

    tools: list[Tool] = []
    for token in text.split():
        if token.startswith("-"):
            continue
        parts = token.split("@")
        if len(parts) != 2:
            continue
        name, version = parts
        if name and version:
            tools.append(Tool(name=name, version=version, source=ToolSource.EXPLICIT_ARGUMENTS))
    return tools


def parse_tool_versions(text: str) -> list[Tool]:
    """Return tools listed in ``.tool-versions`` content.

    Only the first version on a line is used; additional fallback versions
    are ignored.
    """

    tools: list[Tool] = []
    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        fields = trimmed.split()
        if len(fields) < 2:
            continue
        name, version = fields[0], fields[1]
        if version.startswith("#"):
            continue
        tools.append(Tool(name=name, version=version, source=ToolSource.LOCKFILE_ENTRY))
    return tools


def parse_mise_toml(text: str) -> list[Tool]:
    """Return tools declared in the ``[tools]`` table of ``mise.toml`` content.

    This is a line scanner rather than a TOML parser: it only understands
    ``name = "version"`` and ``name = { version = "version", ... }`` entries
    written on a single line. Nested tables, arrays and multi-line strings are
    not supported.
    """

    tools: list[Tool] = []
    inside_tools = False
    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed == TOOLS_SECTION:
            inside_tools = True
            continue
        if trimmed.startswith("["):
            inside_tools = False
            continue
        if not inside_tools or not trimmed or trimmed.startswith("#"):
            continue
        tool = parse_tool_entry(trimmed)
        if tool is not None:
            tools.append(tool)
    return tools


def parse_tool_entry(line: str) -> Tool | None:
    """Parse one ``name = value`` line from a ``[tools]`` table."""

    key, separator, value = line.partition("=")
    if not separator:
        return None
    name = key.strip()
    value = value.strip()
    if not _is_identifier(name) or not value:
        return None
    version = _quoted_value(value)
    if version is None and value.startswith("{"):
        version = _inline_table_version(value)
    if version is None:
        return None
    return Tool(name=name, version=version, source=ToolSource.DECLARATIVE_CONFIG)


def _quoted_value(value: str) -> str | None:
    if len(value) < 3 or value[0] not in _QUOTES or value[-1] not in _QUOTES:
        return None
    inner = value[1:-1]
    return inner if _is_version_text(inner) else None


def _inline_table_version(value: str) -> str | None:
    """Return the ``version`` entry of an inline table such as ``{ version = "1.0" }``."""

    start = value.find(_VERSION_KEY)
    while start != -1:
        candidate = _read_version_pair(value, start)
        if candidate is not None:
            return candidate
        start = value.find(_VERSION_KEY, start + 1)
    return None


def _read_version_pair(value: str, start: int) -> str | None:
    if start > 0 and value[start - 1] not in "{, \t":
        return None
    cursor = start + len(_VERSION_KEY)
    cursor = _skip_blanks(value, cursor)
    if cursor >= len(value) or value[cursor] != "=":
        return None
    cursor = _skip_blanks(value, cursor + 1)
    if cursor >= len(value) or value[cursor] not in _QUOTES:
        return None
    end = cursor + 1
    while end < len(value) and value[end] not in _QUOTES:
        end += 1
    if end >= len(value):
        return None
    version = value[cursor + 1 : end]
    return version if _is_version_text(version) else None


def _skip_blanks(value: str, cursor: int) -> int:
    while cursor < len(value) and value[cursor] in " \t":
        cursor += 1
    return cursor


def deduplicate(tools: Iterable[Tool]) -> list[Tool]:
    """Keep one tool per name, preferring the highest ranked source.

    Among candidates from the same source the first one seen wins. The result
    is sorted by name.
    """

    selected: dict[str, Tool] = {}
    for tool in tools:
        existing = selected.get(tool.name)
        if existing is None or tool.source.precedence > existing.source.precedence:
            selected[tool.name] = tool
    return sorted(selected.values(), key=lambda tool: tool.name)


def _collect_from_files(root: Path, filename: str, parser: ContentParser) -> list[Tool]:
    try:
        paths = find_config_files(root, filename)
    except OSError as exc:
        warn(f"Failed to parse {filename} files: {exc}")
        return []

    tools: list[Tool] = []
    for path in paths:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            warn(f"Failed to parse {path}: {exc}")
            continue
        tools.extend(parser(content))
    return tools


def resolve_tools(install_args: str, root: Path) -> list[Tool]:
    """Return the de-duplicated tool set declared for the project at *root*.

    Never raises for unreadable or malformed sources; those are reported as
    warnings and contribute no tools.
    """

    candidates: list[Tool] = []
    candidates.extend(parse_install_args(install_args))
    candidates.extend(_collect_from_files(root, LOCKFILE_NAME, parse_tool_versions))
    candidates.extend(_collect_from_files(root, CONFIG_FILE_NAME, parse_mise_toml))

    tools = deduplicate(candidates)
    info(f"Found {len(tools)} tools to manage")
    for tool in tools:
        info(f"  - {tool.spec} (from {tool.source.value})", use_emoji=False)
    return tools


def tools_to_install_args(tools: Sequence[Tool]) -> str:
    """Render *tools* as ``name@version`` tokens for ``mise install``."""

    return " ".join(tool.spec for tool in tools)


__all__ = [
    "CONFIG_FILE_NAME",
    "LOCKFILE_NAME",
    "deduplicate",
    "parse_install_args",
    "parse_mise_toml",
    "parse_tool_entry",
    "parse_tool_versions",
    "resolve_tools",
    "tools_to_install_args",
]
