# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for action inputs and mise directory resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from mise_ci.actions import ActionsRuntime
from mise_ci.config import (
    DEFAULT_CACHE_KEY_PREFIX,
    ActionInputs,
    HostEnvironment,
    ManagerPaths,
    default_cache_dir,
    resolve_manager_dir,
)
from mise_ci.exceptions import ConfigurationError
from mise_ci.models import Tool, ToolSource


def _host(**overrides) -> HostEnvironment:  # noqa: ANN003
    values = {"platform": "linux", "home": Path("/home/runner"), "cwd": Path("/work")}
    values.update(overrides)
    return HostEnvironment(**values)


def test_inputs_defaults() -> None:
    inputs = ActionInputs.from_runtime(ActionsRuntime({}))

    assert inputs.install is True
    assert inputs.cache is True
    assert inputs.cache_save is True
    assert inputs.reshim is False
    assert inputs.version is None
    assert inputs.install_args == ""
    assert inputs.cache_key_prefix == DEFAULT_CACHE_KEY_PREFIX


def test_inputs_from_runtime() -> None:
    runtime = ActionsRuntime(
        {
            "INPUT_VERSION": "2025.1.0",
            "INPUT_INSTALL_ARGS": "node@20",
            "INPUT_CACHE_SAVE": "false",
            "INPUT_CACHE_KEY_PREFIX": "custom",
            "INPUT_TOOL_VERSIONS": "node 20\n",
            "INPUT_MISE_TOML": "   ",
            "INPUT_WORKING_DIRECTORY": "app",
        }
    )

    inputs = ActionInputs.from_runtime(runtime)

    assert inputs.version == "2025.1.0"
    assert inputs.install_args == "node@20"
    assert inputs.cache_save is False
    assert inputs.cache_key_prefix == "custom"
    assert inputs.tool_versions == "node 20\n"
    assert inputs.mise_toml is None
    assert inputs.working_directory == Path("app")


def test_invalid_boolean_input_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        ActionInputs.from_runtime(ActionsRuntime({"INPUT_INSTALL": "yes"}))


def test_working_directory_fallbacks() -> None:
    cwd = Path("/work")

    assert ActionInputs().resolve_working_directory(cwd) == cwd
    assert ActionInputs(install_dir=Path("/inst")).resolve_working_directory(cwd) == Path("/inst")
    both = ActionInputs(install_dir=Path("/inst"), working_directory=Path("/wd"))
    assert both.resolve_working_directory(cwd) == Path("/wd")


def test_manager_dir_fallback_chain() -> None:
    assert resolve_manager_dir(_host()) == Path("/home/runner/.local/share/mise")
    assert resolve_manager_dir(_host(xdg_data_home="/xdg")) == Path("/xdg/mise")
    assert resolve_manager_dir(_host(xdg_data_home="/xdg", mise_data_dir="/data")) == Path("/data")
    assert resolve_manager_dir(_host(mise_data_dir="/data", cached_mise_dir="/cached")) == Path("/cached")


def test_local_app_data_only_applies_on_windows() -> None:
    assert resolve_manager_dir(_host(local_app_data="/appdata")) == Path("/home/runner/.local/share/mise")
    assert resolve_manager_dir(_host(platform="win32", local_app_data="/appdata")) == Path("/appdata/mise")


def test_host_capture_reads_runtime_state() -> None:
    runtime = ActionsRuntime({"STATE_MISE_DIR": "/cached", "MISE_DATA_DIR": "/data", "RUNNER_DEBUG": "1"})

    host = HostEnvironment.capture(runtime)

    assert host.cached_mise_dir == "/cached"
    assert host.mise_data_dir == "/data"
    assert host.debug is True


def test_manager_paths_layout() -> None:
    tool = Tool(name="node", version="20.0.0", source=ToolSource.LOCKFILE_ENTRY)
    paths = ManagerPaths(root=Path("/m"))

    assert paths.bin_dir == Path("/m/bin")
    assert paths.shims_dir == Path("/m/shims")
    assert paths.binary == Path("/m/bin/mise")
    assert paths.install_dir(tool) == Path("/m/installs/node/20.0.0")
    assert ManagerPaths(root=Path("/m"), windows=True).binary == Path("/m/bin/mise.exe")
    assert ManagerPaths.for_host(_host(platform="win32", mise_data_dir="/d")) == ManagerPaths(Path("/d"), True)


def test_default_cache_dir(tmp_path: Path) -> None:
    assert default_cache_dir({"MISE_CI_CACHE_DIR": str(tmp_path)}) == tmp_path
    assert default_cache_dir({}) == Path.home() / ".cache" / "mise-ci"
