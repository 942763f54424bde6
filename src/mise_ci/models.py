# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Domain models shared by the resolver, cache engine and orchestrator."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PlatformFamily = Literal["linux", "macos", "windows"]


class ToolSource(str, Enum):
    """Enumerate the configuration origins a tool requirement may come from."""

    EXPLICIT_ARGUMENTS = "install_args"
    DECLARATIVE_CONFIG = "mise.toml"
    LOCKFILE_ENTRY = ".tool-versions"

    @property
    def precedence(self) -> int:
        """Return the rank used when the same tool is declared more than once."""

        return _SOURCE_PRECEDENCE[self]


_SOURCE_PRECEDENCE: dict[ToolSource, int] = {
    ToolSource.EXPLICIT_ARGUMENTS: 3,
    ToolSource.DECLARATIVE_CONFIG: 2,
    ToolSource.LOCKFILE_ENTRY: 1,
}


class Tool(BaseModel):
    """A runtime or tool required at a specific version."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    source: ToolSource

    @field_validator("name", "version")
    @classmethod
    def _reject_whitespace(cls, value: str) -> str:
        if any(char.isspace() for char in value):
            raise ValueError("tool names and versions must not contain whitespace")
        return value

    @property
    def spec(self) -> str:
        """Return the ``name@version`` form accepted by ``mise install``."""

        return f"{self.name}@{self.version}"

    def same_release(self, other: Tool) -> bool:
        """Return ``True`` when *other* names the same tool at the same version."""

        return self.name == other.name and self.version == other.version


class SystemIdentity(BaseModel):
    """Normalised description of the host used in every cache key."""

    model_config = ConfigDict(frozen=True)

    platform_family: PlatformFamily
    architecture: str = Field(min_length=1)
    musl: bool | None = None

    @model_validator(mode="after")
    def _musl_only_on_linux(self) -> SystemIdentity:
        if self.platform_family != "linux" and self.musl is not None:
            raise ValueError("libc variant is only meaningful on linux")
        return self

    @property
    def target_tag(self) -> str:
        """Return the composite ``{os}-{arch}[-musl]`` tag used in release names."""

        if self.platform_family == "linux":
            suffix = "-musl" if self.musl else ""
            return f"linux-{self.architecture}{suffix}"
        return f"{self.platform_family}-{self.architecture}"


class ToolCacheEntry(BaseModel):
    """Restore state recorded for a single tool."""

    model_config = ConfigDict(frozen=True)

    tool: Tool
    cache_key: str
    cache_path: Path
    is_restored: bool


class CacheResult(BaseModel):
    """Aggregate outcome of one restore pass.

    ``requested`` keeps the tools in the order they were asked for; the counts
    and ``missing_tools`` are derived from it and the recorded entries so they
    can never disagree with each other.
    """

    model_config = ConfigDict(frozen=True)

    global_cache_hit: bool = False
    requested: tuple[Tool, ...] = ()
    tool_cache_results: tuple[ToolCacheEntry, ...] = ()

    @property
    def total_tools(self) -> int:
        """Return the number of tools this pass was asked to restore."""

        return len(self.requested)

    @property
    def cached_tools(self) -> int:
        """Return how many requested tools were restored from cache."""

        return sum(1 for tool in self.requested if self._restored(tool))

    @property
    def missing_tools(self) -> tuple[Tool, ...]:
        """Return requested tools that were not restored, in request order."""

        return tuple(tool for tool in self.requested if not self._restored(tool))

    @property
    def hit_ratio(self) -> str:
        """Return the ``cached/total`` ratio published as a step output."""

        return f"{self.cached_tools}/{self.total_tools}"

    @property
    def efficiency(self) -> float:
        """Return the percentage of requested tools restored from cache."""

        if self.total_tools == 0:
            return 0.0
        return self.cached_tools / self.total_tools * 100

    def entry_for(self, tool: Tool) -> ToolCacheEntry | None:
        """Return the entry recorded for *tool* matched by name and version."""

        for entry in self.tool_cache_results:
            if entry.tool.same_release(tool):
                return entry
        return None

    def _restored(self, tool: Tool) -> bool:
        entry = self.entry_for(tool)
        return entry is not None and entry.is_restored


__all__ = [
    "CacheResult",
    "PlatformFamily",
    "SystemIdentity",
    "Tool",
    "ToolCacheEntry",
    "ToolSource",
]
