# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Provide the cache store backends and the two-tier cache engine."""

from __future__ import annotations

from collections.abc import Mapping

from ..config import default_cache_dir
from .engine import CacheEngine, CacheSettings, OutputSink, disabled_result, publish_outputs
from .store import ALREADY_EXISTS, CacheStore, DirectoryCacheStore


def create_cache_store(environ: Mapping[str, str] | None = None) -> CacheStore:
    """Build the default cache store honouring ``MISE_CI_CACHE_DIR``."""

    return DirectoryCacheStore(default_cache_dir(environ))


__all__ = [
    "ALREADY_EXISTS",
    "CacheEngine",
    "CacheSettings",
    "CacheStore",
    "DirectoryCacheStore",
    "OutputSink",
    "create_cache_store",
    "disabled_result",
    "publish_outputs",
]
