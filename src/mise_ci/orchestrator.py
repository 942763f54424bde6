# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""High level orchestration of one mise setup run."""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol

from .actions import ActionsRuntime
from .cache import CacheEngine, CacheSettings, CacheStore, disabled_result
from .cache.engine import IdentityResolver, format_efficiency
from .config import MISE_DIR_STATE, ActionInputs, HostEnvironment, ManagerPaths
from .environment import setup_environment, write_config_files
from .identity import resolve_identity
from .installer import provision_manager
from .logging import fail, info, ok
from .manager import ManagerClient
from .models import CacheResult, SystemIdentity, Tool
from .tools import resolve_tools

SECONDS_SAVED_PER_TOOL: Final[int] = 30

Provisioner = Callable[[str | None, SystemIdentity, ManagerPaths], Path]
ToolResolver = Callable[[str, Path], list[Tool]]


class ManagerCommands(Protocol):
    """Subset of :class:`ManagerClient` the orchestrator drives."""

    def version(self) -> int: ...

    def trust(self) -> int: ...

    def reshim(self) -> int: ...

    def list_tools(self) -> int: ...

    def install_all(self, install_args: str = "") -> int: ...

    def install_tools(self, tools: Sequence[Tool]) -> list[Tool]: ...


ClientFactory = Callable[[ManagerPaths, Path, Mapping[str, str], bool], ManagerCommands]


def _default_client(paths: ManagerPaths, cwd: Path, environ: Mapping[str, str], debug: bool) -> ManagerCommands:
    return ManagerClient(paths=paths, working_directory=cwd, environ=environ, debug=debug)


@dataclass(frozen=True)
class OrchestratorDeps:
    """Dependencies required to construct an :class:`Orchestrator`."""

    runtime: ActionsRuntime
    store: CacheStore
    host: HostEnvironment | None = None
    identity: IdentityResolver = resolve_identity
    provisioner: Provisioner = provision_manager
    client_factory: ClientFactory = _default_client
    tool_resolver: ToolResolver = resolve_tools


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Counts reported once a run completes."""

    cache: CacheResult
    installed: tuple[Tool, ...]


class Orchestrator:
    """Drive the linear setup sequence and report a single failure signal."""

    def __init__(self, deps: OrchestratorDeps) -> None:
        self._deps = deps
        self._runtime = deps.runtime
        # Identity never changes within a run; probe the host at most once.
        self._identity: IdentityResolver = functools.cache(deps.identity)

    def run(self) -> int:
        """Execute every stage and return the process exit code.

        The first stage to raise stops the run; its message is reported as the
        only failure and ``1`` is returned.
        """

        try:
            summary = self._execute()
        except Exception as exc:
            fail(str(exc))
            return 1
        _log_summary(summary)
        return 0

    def _execute(self) -> RunSummary:
        runtime = self._runtime
        inputs = ActionInputs.from_runtime(runtime)
        host = self._deps.host or HostEnvironment.capture(runtime)
        paths = ManagerPaths.for_host(host)
        runtime.save_state(MISE_DIR_STATE, str(paths.root))
        workdir = inputs.resolve_working_directory(host.cwd)

        write_config_files(inputs, workdir)
        tools = self._deps.tool_resolver(inputs.install_args, workdir)
        info(f"Discovered {len(tools)} tools to manage")

        engine: CacheEngine | None = None
        if inputs.cache:
            engine = CacheEngine(
                store=self._deps.store,
                paths=paths,
                settings=CacheSettings(
                    prefix=inputs.cache_key_prefix,
                    version=inputs.version,
                    save_enabled=inputs.cache_save,
                ),
                identity=self._identity,
                outputs=runtime,
            )
            result = engine.restore_all(tools)
        else:
            result = disabled_result(tools, runtime)

        if result.global_cache_hit:
            info("mise binary restored from cache, skipping installation")
        else:
            self._deps.provisioner(inputs.version, self._identity(), paths)
        runtime.add_path(paths.bin_dir)

        setup_environment(inputs, runtime, paths, trusted_root=host.cwd)

        client = self._deps.client_factory(paths, workdir, runtime.environ, host.debug)
        client.trust()
        client.version()
        if inputs.reshim:
            client.reshim()

        installed: list[Tool] = []
        if inputs.install:
            installed = self._install(client, inputs, tools, result)
            if engine is not None and installed:
                engine.save_all(result, installed)

        if inputs.reshim and installed:
            client.reshim()
        client.list_tools()
        return RunSummary(cache=result, installed=tuple(installed))

    @staticmethod
    def _install(
        client: ManagerCommands,
        inputs: ActionInputs,
        tools: Sequence[Tool],
        result: CacheResult,
    ) -> list[Tool]:
        installed: list[Tool] = []
        missing = result.missing_tools
        if missing:
            info(f"Installing {len(missing)} tools that weren't found in cache")
            installed = client.install_tools(missing)
        else:
            info("All tools were restored from cache, no installation needed")

        if not tools and inputs.install_args:
            info("No tools found in configuration, falling back to install_args")
            client.install_all(inputs.install_args)
        return installed


def _log_summary(summary: RunSummary) -> None:
    result = summary.cache
    ok("mise setup complete")
    info(f"  Total tools managed: {result.total_tools}", use_emoji=False)
    info(f"  Tools restored from cache: {result.cached_tools}", use_emoji=False)
    info(f"  Tools installed: {len(summary.installed)}", use_emoji=False)
    info(f"  Cache efficiency: {format_efficiency(result)}", use_emoji=False)
    if result.cached_tools > 0:
        saved = result.cached_tools * SECONDS_SAVED_PER_TOOL
        info(
            f"  Estimated time saved: ~{saved}s (assuming {SECONDS_SAVED_PER_TOOL}s per tool)",
            use_emoji=False,
        )


__all__ = [
    "ClientFactory",
    "ManagerCommands",
    "Orchestrator",
    "OrchestratorDeps",
    "Provisioner",
    "RunSummary",
    "ToolResolver",
]
