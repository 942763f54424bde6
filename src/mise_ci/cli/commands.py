# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command implementations for the mise-ci CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich import box
from rich.table import Table

from ..actions import ActionsRuntime
from ..cache import create_cache_store
from ..config import DEFAULT_CACHE_KEY_PREFIX
from ..console import get_console
from ..exceptions import UnsupportedPlatformError
from ..identity import resolve_identity
from ..keys import global_cache_key, tool_cache_key
from ..logging import fail
from ..orchestrator import Orchestrator, OrchestratorDeps
from ..tools import resolve_tools

ROOT_OPTION = Annotated[
    Path,
    typer.Option("--root", "-r", help="Project root searched for .tool-versions and mise.toml files."),
]
INSTALL_ARGS_OPTION = Annotated[
    str,
    typer.Option("--install-args", help="Explicit tool arguments, e.g. 'node@20 python@3.12'."),
]
PREFIX_OPTION = Annotated[
    str,
    typer.Option("--prefix", help="Cache key namespace prefix."),
]
VERSION_OPTION = Annotated[
    str | None,
    typer.Option("--version", help="mise version used in the global cache key."),
]


def run_setup_command() -> None:
    """Run the full setup from the action's ``INPUT_*`` environment."""

    deps = OrchestratorDeps(runtime=ActionsRuntime(), store=create_cache_store())
    code = Orchestrator(deps).run()
    raise typer.Exit(code=code)


def tools_command(
    root: ROOT_OPTION = Path("."),
    install_args: INSTALL_ARGS_OPTION = "",
) -> None:
    """Print the de-duplicated tool set resolved for ``--root``."""

    resolved = resolve_tools(install_args, root.resolve())
    table = Table(title="Resolved tools", box=box.SIMPLE)
    table.add_column("Tool", style="bold")
    table.add_column("Version")
    table.add_column("Source")
    for tool in resolved:
        table.add_row(tool.name, tool.version, tool.source.value)
    get_console(color=True, emoji=True).print(table)


def keys_command(
    root: ROOT_OPTION = Path("."),
    install_args: INSTALL_ARGS_OPTION = "",
    prefix: PREFIX_OPTION = DEFAULT_CACHE_KEY_PREFIX,
    version: VERSION_OPTION = None,
) -> None:
    """Print the global and per-tool cache keys for this host."""

    try:
        identity = resolve_identity()
    except UnsupportedPlatformError as exc:
        fail(str(exc))
        raise typer.Exit(code=1) from exc

    console = get_console(color=True, emoji=True)
    console.print(f"global {global_cache_key(prefix, identity.target_tag, version)}")
    for tool in resolve_tools(install_args, root.resolve()):
        console.print(f"{tool.spec} {tool_cache_key(prefix, identity.target_tag, tool)}")


def register_commands(app: typer.Typer) -> None:
    """Register the built-in commands on ``app``."""

    app.command("run")(run_setup_command)
    app.command("tools")(tools_command)
    app.command("keys")(keys_command)


__all__ = ["keys_command", "register_commands", "run_setup_command", "tools_command"]
