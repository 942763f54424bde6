# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy raised by mise-ci."""

from __future__ import annotations


class MiseCIError(Exception):
    """Base class for errors raised by mise-ci."""


class UnsupportedPlatformError(MiseCIError):
    """Raised when the host platform has no matching mise release."""

    def __init__(self, platform_name: str) -> None:
        super().__init__(f"Unsupported platform {platform_name}")
        self.platform_name = platform_name


class ConfigurationError(MiseCIError):
    """Raised when an action input cannot be interpreted."""


class ProvisionError(MiseCIError):
    """Raised when the mise binary cannot be downloaded or installed."""


class CacheStoreError(MiseCIError):
    """Raised by cache store backends on transport or I/O failures."""


__all__ = [
    "CacheStoreError",
    "ConfigurationError",
    "MiseCIError",
    "ProvisionError",
    "UnsupportedPlatformError",
]
