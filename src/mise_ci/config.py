# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Action inputs, host environment snapshot and mise directory layout."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from .actions import ActionsRuntime
from .models import Tool

DEFAULT_CACHE_KEY_PREFIX: Final[str] = "mise-v1"
MISE_DIR_STATE: Final[str] = "MISE_DIR"


class ActionInputs(BaseModel):
    """Inputs accepted by the action, read once at start-up."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    experimental: bool = False
    log_level: str | None = None
    github_token: str | None = None
    working_directory: Path | None = None
    install_dir: Path | None = None
    install_args: str = ""
    tool_versions: str | None = None
    mise_toml: str | None = None
    install: bool = True
    reshim: bool = False
    cache: bool = True
    cache_save: bool = True
    cache_key_prefix: str = Field(default=DEFAULT_CACHE_KEY_PREFIX, min_length=1)

    @classmethod
    def from_runtime(cls, runtime: ActionsRuntime) -> ActionInputs:
        """Build inputs from the ``INPUT_*`` variables exposed by *runtime*.

        Raises:
            ConfigurationError: If a boolean input uses an unsupported spelling.
        """

        def optional(name: str) -> str | None:
            return runtime.get_input(name) or None

        def optional_path(name: str) -> Path | None:
            value = runtime.get_input(name)
            return Path(value) if value else None

        def optional_body(name: str) -> str | None:
            value = runtime.get_multiline_input(name)
            return value if value.strip() else None

        return cls(
            version=optional("version"),
            experimental=runtime.get_boolean_input("experimental"),
            log_level=optional("log_level"),
            github_token=optional("github_token"),
            working_directory=optional_path("working_directory"),
            install_dir=optional_path("install_dir"),
            install_args=runtime.get_input("install_args"),
            tool_versions=optional_body("tool_versions"),
            mise_toml=optional_body("mise_toml"),
            install=runtime.get_boolean_input("install", default=True),
            reshim=runtime.get_boolean_input("reshim"),
            cache=runtime.get_boolean_input("cache", default=True),
            cache_save=runtime.get_boolean_input("cache_save", default=True),
            cache_key_prefix=runtime.get_input("cache_key_prefix", default=DEFAULT_CACHE_KEY_PREFIX),
        )

    def resolve_working_directory(self, cwd: Path) -> Path:
        """Return the directory mise commands run in and configs are read from."""

        return self.working_directory or self.install_dir or cwd


@dataclass(frozen=True, slots=True)
class HostEnvironment:
    """Snapshot of the ambient process state consulted while resolving paths."""

    platform: str
    home: Path
    cwd: Path
    cached_mise_dir: str | None = None
    mise_data_dir: str | None = None
    xdg_data_home: str | None = None
    local_app_data: str | None = None
    debug: bool = False

    @classmethod
    def capture(cls, runtime: ActionsRuntime) -> HostEnvironment:
        """Capture the environment once so later stages work on plain values."""

        environ: Mapping[str, str] = runtime.environ
        return cls(
            platform=sys.platform,
            home=Path.home(),
            cwd=Path.cwd(),
            cached_mise_dir=runtime.get_state(MISE_DIR_STATE) or None,
            mise_data_dir=environ.get("MISE_DATA_DIR") or None,
            xdg_data_home=environ.get("XDG_DATA_HOME") or None,
            local_app_data=environ.get("LOCALAPPDATA") or None,
            debug=runtime.is_debug(),
        )

    @property
    def is_windows(self) -> bool:
        """Return ``True`` when the host runs Windows."""

        return self.platform in {"win32", "windows"}


def resolve_manager_dir(env: HostEnvironment) -> Path:
    """Return the mise data directory for *env*.

    The lookup order is the directory cached by an earlier step, then
    ``MISE_DATA_DIR``, ``XDG_DATA_HOME/mise``, ``LOCALAPPDATA/mise`` on Windows
    and finally ``~/.local/share/mise``.
    """

    if env.cached_mise_dir:
        return Path(env.cached_mise_dir)
    if env.mise_data_dir:
        return Path(env.mise_data_dir)
    if env.xdg_data_home:
        return Path(env.xdg_data_home) / "mise"
    if env.is_windows and env.local_app_data:
        return Path(env.local_app_data) / "mise"
    return env.home / ".local" / "share" / "mise"


@dataclass(frozen=True, slots=True)
class ManagerPaths:
    """Filesystem layout of a mise data directory."""

    root: Path
    windows: bool = False

    @classmethod
    def for_host(cls, env: HostEnvironment) -> ManagerPaths:
        """Return the layout rooted at the data directory resolved for *env*."""

        return cls(root=resolve_manager_dir(env), windows=env.is_windows)

    @property
    def bin_dir(self) -> Path:
        """Return the directory holding the mise binary (the global tier)."""

        return self.root / "bin"

    @property
    def shims_dir(self) -> Path:
        return self.root / "shims"

    @property
    def installs_dir(self) -> Path:
        return self.root / "installs"

    @property
    def binary(self) -> Path:
        """Return the path of the mise executable."""

        return self.bin_dir / ("mise.exe" if self.windows else "mise")

    def install_dir(self, tool: Tool) -> Path:
        """Return ``installs/{name}/{version}`` for *tool*."""

        return self.installs_dir / tool.name / tool.version


def default_cache_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Return the directory backing the local cache store."""

    source = environ if environ is not None else os.environ
    override = source.get("MISE_CI_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".cache" / "mise-ci"


__all__ = [
    "DEFAULT_CACHE_KEY_PREFIX",
    "MISE_DIR_STATE",
    "ActionInputs",
    "HostEnvironment",
    "ManagerPaths",
    "default_cache_dir",
    "resolve_manager_dir",
]
