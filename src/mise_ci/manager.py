# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run mise sub-commands for the action."""

from __future__ import annotations

import os
import shlex
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from subprocess import CompletedProcess

from .config import ManagerPaths
from .logging import group, info, warn
from .models import Tool
from .process_utils import SubprocessExecutionError, run_command

Runner = Callable[..., CompletedProcess[str]]


class ManagerClient:
    """Invoke the installed mise binary inside the project working directory."""

    def __init__(
        self,
        *,
        paths: ManagerPaths,
        working_directory: Path,
        environ: Mapping[str, str] | None = None,
        debug: bool = False,
        runner: Runner = run_command,
    ) -> None:
        self._paths = paths
        self._cwd = working_directory
        self._environ = environ if environ is not None else os.environ
        self._debug = debug
        self._runner = runner

    def execute(self, args: Sequence[str]) -> int:
        """Run ``mise *args`` and return its exit code.

        Raises:
            SubprocessExecutionError: If mise exits with a non-zero status.
            FileNotFoundError: If the mise binary cannot be launched.
        """

        with group(f"Running mise {' '.join(args)}"):
            completed = self._runner(
                [str(self._paths.binary), *args],
                cwd=self._cwd,
                env=self._command_env(),
                check=True,
            )
        return completed.returncode

    def _command_env(self) -> dict[str, str]:
        env = dict(self._environ)
        search_path = os.pathsep.join(
            entry for entry in (str(self._paths.bin_dir), str(self._paths.shims_dir), env.get("PATH", "")) if entry
        )
        env["PATH"] = search_path
        if self._debug:
            env["MISE_LOG_LEVEL"] = "debug"
        return env

    def version(self) -> int:
        """Print the installed mise version."""

        return self.execute(["--version"])

    def trust(self) -> int:
        """Trust the config files in the working directory."""

        return self.execute(["trust"])

    def reshim(self) -> int:
        """Regenerate the shims for every installed tool."""

        return self.execute(["reshim", "--all"])

    def list_tools(self) -> int:
        """List the tools mise currently manages."""

        return self.execute(["ls"])

    def install_all(self, install_args: str = "") -> int:
        """Run ``mise install`` for everything configured, plus *install_args*."""

        return self.execute(["install", *shlex.split(install_args)])

    def install_tools(self, tools: Sequence[Tool]) -> list[Tool]:
        """Install *tools* one at a time and return those that succeeded.

        A failing tool is reported as a warning and does not stop the
        remaining installs.
        """

        installed: list[Tool] = []
        for tool in tools:
            info(f"Installing {tool.spec}")
            try:
                self.execute(["install", tool.spec])
            except (OSError, SubprocessExecutionError) as exc:
                warn(f"Failed to install {tool.spec}: {exc}")
                continue
            installed.append(tool)
        return installed


__all__ = ["ManagerClient", "Runner"]
