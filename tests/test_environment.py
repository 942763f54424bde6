# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for job environment preparation."""

from __future__ import annotations

from pathlib import Path

import pytest

from mise_ci.actions import ActionsRuntime
from mise_ci.config import ActionInputs, ManagerPaths
from mise_ci.environment import setup_environment, write_config_files


def test_setup_environment_exports_defaults(
    runtime: ActionsRuntime,
    runner_files: dict[str, Path],
    read_command_file,
    capsys: pytest.CaptureFixture[str],
) -> None:
    paths = ManagerPaths(root=Path("/opt/mise"))
    inputs = ActionInputs(experimental=True, log_level="info", github_token="ghs_token")

    setup_environment(inputs, runtime, paths, trusted_root=Path("/work"))

    assert read_command_file(runner_files["GITHUB_ENV"]) == {
        "MISE_EXPERIMENTAL": "1",
        "MISE_LOG_LEVEL": "info",
        "GITHUB_TOKEN": "ghs_token",
        "MISE_TRUSTED_CONFIG_PATHS": "/work",
        "MISE_YES": "1",
    }
    assert runner_files["GITHUB_PATH"].read_text(encoding="utf-8") == "/opt/mise/shims\n"
    assert "GITHUB_TOKEN" not in capsys.readouterr().out


def test_setup_environment_keeps_existing_values(runtime: ActionsRuntime, capsys: pytest.CaptureFixture[str]) -> None:
    runtime.export_variable("MISE_YES", "0")
    runtime.export_variable("MISE_LOG_LEVEL", "trace")

    setup_environment(ActionInputs(log_level="info"), runtime, ManagerPaths(root=Path("/m")), trusted_root=Path("/w"))

    assert runtime.environ["MISE_YES"] == "0"
    assert runtime.environ["MISE_LOG_LEVEL"] == "trace"
    assert "MISE_EXPERIMENTAL" not in runtime.environ
    assert "No GITHUB_TOKEN provided" in capsys.readouterr().out


def test_write_config_files(tmp_path: Path) -> None:
    inputs = ActionInputs(tool_versions="node 20.0.0\n", mise_toml='[tools]\npython = "3.12"\n')

    written = write_config_files(inputs, tmp_path / "project")

    assert written == [tmp_path / "project" / ".tool-versions", tmp_path / "project" / "mise.toml"]
    assert (tmp_path / "project" / ".tool-versions").read_text(encoding="utf-8") == "node 20.0.0\n"
    assert (tmp_path / "project" / "mise.toml").read_text(encoding="utf-8") == '[tools]\npython = "3.12"\n'


def test_write_config_files_without_bodies(tmp_path: Path) -> None:
    assert write_config_files(ActionInputs(), tmp_path) == []
    assert list(tmp_path.iterdir()) == []
