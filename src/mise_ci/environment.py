# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Prepare the job environment for mise and the tools it manages."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from .actions import ActionsRuntime
from .config import ActionInputs, ManagerPaths
from .logging import group, info, warn

TOOL_VERSIONS_FILE: Final[str] = ".tool-versions"
MISE_TOML_FILE: Final[str] = "mise.toml"


def setup_environment(
    inputs: ActionInputs,
    runtime: ActionsRuntime,
    paths: ManagerPaths,
    *,
    trusted_root: Path,
) -> None:
    """Export mise variables and put the shims directory on ``PATH``.

    Variables already present in the environment are left untouched.
    """

    with group("Setting env vars"):

        def export(name: str, value: str) -> None:
            if runtime.environ.get(name):
                return
            info(f"Setting {name}={value}")
            runtime.export_variable(name, value)

        if inputs.experimental:
            export("MISE_EXPERIMENTAL", "1")
        if inputs.log_level:
            export("MISE_LOG_LEVEL", inputs.log_level)
        if inputs.github_token:
            runtime.export_variable("GITHUB_TOKEN", inputs.github_token)
        elif not runtime.environ.get("GITHUB_TOKEN"):
            warn(
                "No GITHUB_TOKEN provided. You may hit GitHub API rate limits "
                "when installing tools from GitHub."
            )
        export("MISE_TRUSTED_CONFIG_PATHS", str(trusted_root))
        export("MISE_YES", "1")

        info(f"Adding {paths.shims_dir} to PATH")
        runtime.add_path(paths.shims_dir)


def write_config_files(inputs: ActionInputs, root: Path) -> list[Path]:
    """Materialise the ``tool_versions`` and ``mise_toml`` inputs under *root*."""

    written: list[Path] = []
    for filename, body in ((TOOL_VERSIONS_FILE, inputs.tool_versions), (MISE_TOML_FILE, inputs.mise_toml)):
        if not body:
            continue
        target = root / filename
        with group(f"Writing {target}"):
            info(f"Body:\n{body}")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(body, encoding="utf-8")
        written.append(target)
    return written


__all__ = ["setup_environment", "write_config_files"]
