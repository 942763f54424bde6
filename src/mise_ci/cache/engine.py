# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Two-tier cache orchestration for the mise binary and installed tools.

The *global* tier holds ``{mise_dir}/bin``; the *tool* tier holds one
``{mise_dir}/installs/{name}/{version}`` directory per tool. Every store call
is isolated: a failing lookup or save only degrades its own entry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Final, Protocol

from ..config import ManagerPaths
from ..keys import global_cache_key, tool_cache_key
from ..logging import group, info, warn
from ..models import CacheResult, SystemIdentity, Tool, ToolCacheEntry
from .store import ALREADY_EXISTS, CacheStore

LOGGER = logging.getLogger(__name__)

IdentityResolver = Callable[[], SystemIdentity]

OUTPUT_CACHE_HIT: Final[str] = "cache-hit"
OUTPUT_GLOBAL_HIT: Final[str] = "global-cache-hit"
OUTPUT_PARTIAL_HIT: Final[str] = "partial-cache-hit"
OUTPUT_HIT_RATIO: Final[str] = "tools-cache-hit-ratio"
OUTPUT_CACHED_COUNT: Final[str] = "cached-tools-count"
OUTPUT_MISSING_COUNT: Final[str] = "missing-tools-count"

_DEFAULT_WORKERS: Final[int] = 8


class OutputSink(Protocol):
    """Destination for the step outputs published after a restore."""

    def set_output(self, name: str, value: str | int | float | bool) -> None:
        """Publish *value* under the step output *name*."""

        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """Key namespace and switches controlling the cache engine."""

    prefix: str
    version: str | None = None
    save_enabled: bool = True


def publish_outputs(result: CacheResult, outputs: OutputSink) -> None:
    """Publish hit/miss signals derived from *result*."""

    all_tools_hit = result.cached_tools == result.total_tools
    outputs.set_output(OUTPUT_CACHE_HIT, result.global_cache_hit and all_tools_hit)
    outputs.set_output(OUTPUT_GLOBAL_HIT, result.global_cache_hit)
    outputs.set_output(OUTPUT_PARTIAL_HIT, result.cached_tools > 0)
    outputs.set_output(OUTPUT_HIT_RATIO, result.hit_ratio)
    outputs.set_output(OUTPUT_CACHED_COUNT, result.cached_tools)
    outputs.set_output(OUTPUT_MISSING_COUNT, len(result.missing_tools))


def disabled_result(tools: Sequence[Tool], outputs: OutputSink) -> CacheResult:
    """Return the result used when caching is switched off.

    Every tool is reported missing and the outputs describe an empty cache.
    """

    outputs.set_output(OUTPUT_CACHE_HIT, False)
    outputs.set_output(OUTPUT_GLOBAL_HIT, False)
    outputs.set_output(OUTPUT_PARTIAL_HIT, False)
    outputs.set_output(OUTPUT_HIT_RATIO, "0/0")
    return CacheResult(global_cache_hit=False, requested=tuple(tools))


def format_efficiency(result: CacheResult) -> str:
    """Return the restored share of tools as a percentage string."""

    if result.total_tools == 0:
        return "0%"
    return f"{result.efficiency:.1f}%"


class CacheEngine:
    """Restore and save the global and per-tool cache tiers."""

    def __init__(
        self,
        *,
        store: CacheStore,
        paths: ManagerPaths,
        settings: CacheSettings,
        identity: IdentityResolver,
        outputs: OutputSink,
        max_workers: int = _DEFAULT_WORKERS,
    ) -> None:
        """Create an engine bound to one store and mise data directory.

        Args:
            store: Backend used for cache lookups and saves.
            paths: Layout of the mise data directory being cached.
            settings: Key prefix, mise version and save switch.
            identity: Callable returning the host identity used in keys.
            outputs: Sink receiving the step outputs after a restore.
            max_workers: Upper bound on concurrent per-tool store calls.
        """

        self._store = store
        self._paths = paths
        self._settings = settings
        self._identity = identity
        self._outputs = outputs
        self._max_workers = max(1, max_workers)

    def global_key(self, identity: SystemIdentity) -> str:
        """Return the key of the global tier for *identity*.

        Args:
            identity: Host identity whose target tag is embedded in the key.

        Returns:
            str: ``{prefix}-{tag}-{version|latest}-global``.
        """

        return global_cache_key(self._settings.prefix, identity.target_tag, self._settings.version)

    def tool_key(self, identity: SystemIdentity, tool: Tool) -> str:
        """Return the key of the per-tool entry for *tool* on *identity*.

        Args:
            identity: Host identity whose target tag is embedded in the key.
            tool: Tool whose name and version select the entry.

        Returns:
            str: ``{prefix}-{tag}-tool-{name}-{version}``.
        """

        return tool_cache_key(self._settings.prefix, identity.target_tag, tool)

    # ------------------------------------------------------------------
    # restore

    def restore_all(self, tools: Sequence[Tool]) -> CacheResult:
        """Restore the global tier and one entry per tool.

        Never raises. Failures of individual lookups degrade only their own
        entry to a miss; an unexpected failure of the whole pass (for example
        an unsupported platform) reports every tier as missing.
        """

        requested = tuple(tools)
        with group("Restoring mise caches"):
            try:
                result = self._restore(requested)
            except Exception as exc:
                warn(f"Failed to restore mise caches: {exc}")
                result = CacheResult(global_cache_hit=False, requested=requested)
            publish_outputs(result, self._outputs)
            self._log_summary(result)
        return result

    def _restore(self, tools: tuple[Tool, ...]) -> CacheResult:
        identity = self._identity()
        global_hit = self._restore_global(identity)
        entries = self._restore_tools(identity, tools)
        return CacheResult(
            global_cache_hit=global_hit,
            requested=tools,
            tool_cache_results=tuple(entries),
        )

    def _restore_global(self, identity: SystemIdentity) -> bool:
        key = self.global_key(identity)
        try:
            matched = self._store.restore([self._paths.bin_dir], key)
        except Exception as exc:
            warn(f"Failed to restore global mise cache: {exc}")
            return False
        if matched is None:
            info(f"Global mise cache not found for {key}")
            return False
        info(f"Global mise cache restored from key: {matched}")
        return True

    def _restore_tools(self, identity: SystemIdentity, tools: Sequence[Tool]) -> list[ToolCacheEntry]:
        if not tools:
            return []
        slots: list[ToolCacheEntry | None] = [None] * len(tools)
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(tools))) as executor:
            future_map = {
                executor.submit(self._restore_tool, identity, tool): index for index, tool in enumerate(tools)
            }
            for future in as_completed(future_map):
                slots[future_map[future]] = future.result()
        return [entry for entry in slots if entry is not None]

    def _restore_tool(self, identity: SystemIdentity, tool: Tool) -> ToolCacheEntry:
        key = self.tool_key(identity, tool)
        path = self._paths.install_dir(tool)
        try:
            matched = self._store.restore([path], key)
        except Exception as exc:
            warn(f"Failed to restore cache for {tool.spec}: {exc}")
            matched = None
        return ToolCacheEntry(tool=tool, cache_key=key, cache_path=path, is_restored=matched is not None)

    def _log_summary(self, result: CacheResult) -> None:
        info("Cache Results Summary:", use_emoji=False)
        status = "✓ Hit" if result.global_cache_hit else "✗ Miss"
        info(f"  Global mise cache: {status}", use_emoji=False)
        for entry in result.tool_cache_results:
            marker = "✓ Restored" if entry.is_restored else "✗ Missing"
            info(f"    {entry.tool.spec}: {marker}", use_emoji=False)
        info(f"  Tool caches: {result.cached_tools}/{result.total_tools} restored", use_emoji=False)
        info(f"  Cache efficiency: {format_efficiency(result)}", use_emoji=False)

    # ------------------------------------------------------------------
    # save

    def save_all(self, previous: CacheResult, installed: Sequence[Tool]) -> None:
        """Persist tiers produced during this run.

        The global tier is saved only when it missed on restore. A tool is
        saved only when it was part of the restore pass, was not restored and
        appears in *installed*.
        """

        if not self._settings.save_enabled:
            info("Cache saving disabled, skipping...")
            return

        with group("Saving mise caches"):
            if previous.global_cache_hit:
                LOGGER.debug("global mise cache was restored; not saving it again")
            else:
                self._save_global()
            self._save_tools(self._pending_entries(previous, installed))

    @staticmethod
    def _pending_entries(previous: CacheResult, installed: Sequence[Tool]) -> list[ToolCacheEntry]:
        pending: list[ToolCacheEntry] = []
        for tool in installed:
            entry = previous.entry_for(tool)
            if entry is None or entry.is_restored or entry in pending:
                continue
            pending.append(entry)
        return pending

    def _save_global(self) -> None:
        path = self._paths.bin_dir
        if not path.exists():
            warn(f"Global mise path does not exist, skipping cache save: {path}")
            return
        try:
            key = self.global_key(self._identity())
            cache_id = self._store.save([path], key)
        except Exception as exc:
            warn(f"Failed to save global mise cache: {exc}")
            return
        if cache_id == ALREADY_EXISTS:
            info(f"Global mise cache already exists for key: {key}")
            return
        info(f"Global mise cache saved with key: {key}")

    def _save_tools(self, entries: Sequence[ToolCacheEntry]) -> None:
        if not entries:
            return
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(entries))) as executor:
            futures = [executor.submit(self._save_tool, entry) for entry in entries]
            for future in as_completed(futures):
                future.result()

    def _save_tool(self, entry: ToolCacheEntry) -> None:
        spec = entry.tool.spec
        if not entry.cache_path.exists():
            warn(f"Tool cache path does not exist for {spec}: {entry.cache_path}")
            return
        try:
            cache_id = self._store.save([entry.cache_path], entry.cache_key)
        except Exception as exc:
            warn(f"Failed to save cache for {spec}: {exc}")
            return
        if cache_id == ALREADY_EXISTS:
            info(f"Cache for {spec} already exists: {entry.cache_key}")
            return
        info(f"Cache saved for {spec} with key: {entry.cache_key}")


__all__ = [
    "CacheEngine",
    "CacheSettings",
    "IdentityResolver",
    "OutputSink",
    "disabled_result",
    "format_efficiency",
    "publish_outputs",
]
