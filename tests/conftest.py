# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from mise_ci.actions import ActionsRuntime

CommandFileReader = Callable[[Path], dict[str, str]]


def parse_command_file(path: Path) -> dict[str, str]:
    """Decode ``name<<delimiter`` blocks written to a runner command file."""

    if not path.exists():
        return {}
    values: dict[str, str] = {}
    lines = path.read_text(encoding="utf-8").splitlines()
    index = 0
    while index < len(lines):
        name, _, delimiter = lines[index].partition("<<")
        body: list[str] = []
        index += 1
        while lines[index] != delimiter:
            body.append(lines[index])
            index += 1
        values[name] = "\n".join(body)
        index += 1
    return values


@pytest.fixture(autouse=True)
def _isolate_runner_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests independent of a surrounding GitHub Actions job."""

    for name in ("GITHUB_ACTIONS", "GITHUB_OUTPUT", "GITHUB_ENV", "GITHUB_PATH", "GITHUB_STATE", "RUNNER_DEBUG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def read_command_file() -> CommandFileReader:
    return parse_command_file


@pytest.fixture
def runner_files(tmp_path: Path) -> dict[str, Path]:
    """Return empty runner command files keyed by their environment variable."""

    directory = tmp_path / "runner"
    directory.mkdir()
    files = {
        "GITHUB_OUTPUT": directory / "output",
        "GITHUB_ENV": directory / "env",
        "GITHUB_PATH": directory / "path",
        "GITHUB_STATE": directory / "state",
    }
    for path in files.values():
        path.touch()
    return files


@pytest.fixture
def runtime(runner_files: dict[str, Path]) -> ActionsRuntime:
    environ = {name: str(path) for name, path in runner_files.items()}
    environ["PATH"] = "/usr/bin"
    return ActionsRuntime(environ)
