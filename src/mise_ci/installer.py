# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Download and install the mise binary into ``{mise_dir}/bin``."""

from __future__ import annotations

import shutil
import stat
import tarfile
import tempfile
import urllib.error
import urllib.request
import zipfile
from pathlib import Path
from typing import Final

from .config import ManagerPaths
from .exceptions import ProvisionError
from .logging import group, info
from .models import SystemIdentity
from .process_utils import SubprocessExecutionError, run_command

VERSION_URL: Final[str] = "https://mise.jdx.dev/VERSION"
RELEASE_URL: Final[str] = "https://github.com/jdx/mise/releases/download/v{version}/mise-v{version}-{target}{ext}"
_DOWNLOAD_TIMEOUT: Final[float] = 60.0
_EXTRACT_TIMEOUT: Final[float] = 120.0
_RAW_BINARY_SERIES: Final[str] = "2024"


def latest_mise_version() -> str:
    """Return the newest released mise version."""

    with urllib.request.urlopen(VERSION_URL, timeout=_DOWNLOAD_TIMEOUT) as response:  # nosec B310
        return response.read().decode("utf-8").strip()


def archive_extension(version: str, identity: SystemIdentity) -> str:
    """Return the release asset extension to download for *version*."""

    if identity.platform_family == "windows":
        return ".zip"
    if version.startswith(_RAW_BINARY_SERIES):
        return ""
    return ".tar.zst" if shutil.which("zstd") else ".tar.gz"


def release_url(version: str, identity: SystemIdentity, ext: str) -> str:
    return RELEASE_URL.format(version=version, target=identity.target_tag, ext=ext)


def provision_manager(version: str | None, identity: SystemIdentity, paths: ManagerPaths) -> Path:
    """Install mise into ``paths.bin_dir`` unless the binary is already there.

    Raises:
        ProvisionError: If resolving, downloading or extracting the release fails.
    """

    binary = paths.binary
    if binary.exists():
        info("mise binary already exists, skipping installation")
        return binary

    with group(f"Download mise@{version}" if version else "Setup mise"):
        try:
            paths.bin_dir.mkdir(parents=True, exist_ok=True)
            resolved = (version or latest_mise_version()).removeprefix("v")
            ext = archive_extension(resolved, identity)
            url = release_url(resolved, identity, ext)
            info(f"Downloading mise from: {url}")
            _install_release(url, ext, binary)
        except (
            OSError,
            KeyError,
            urllib.error.URLError,
            tarfile.TarError,
            zipfile.BadZipFile,
            SubprocessExecutionError,
        ) as exc:
            msg = f"Failed to setup mise: {exc}"
            raise ProvisionError(msg) from exc
        info("mise installation completed successfully")
    return binary


def _install_release(url: str, ext: str, binary: Path) -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        scratch = Path(tmpdir)
        archive = scratch / f"mise{ext or '.bin'}"
        _download(url, archive)
        if not ext:
            shutil.move(archive, binary)
        else:
            member = f"mise/bin/{binary.name}"
            _extract(archive, ext, member, scratch)
            shutil.move(scratch / member, binary)
    binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _download(url: str, destination: Path) -> None:
    with urllib.request.urlopen(url, timeout=_DOWNLOAD_TIMEOUT) as response, destination.open("wb") as handle:  # nosec B310
        shutil.copyfileobj(response, handle)


def _extract(archive: Path, ext: str, member: str, destination: Path) -> None:
    if ext == ".zip":
        with zipfile.ZipFile(archive) as bundle:
            bundle.extract(member, destination)
    elif ext == ".tar.gz":
        with tarfile.open(archive, "r:gz") as bundle:
            bundle.extract(member, destination, filter="data")
    else:
        run_command(
            ["tar", "--zstd", "-xf", str(archive), "-C", str(destination), member],
            timeout=_EXTRACT_TIMEOUT,
        )
    if not (destination / member).exists():
        msg = f"mise binary not found in archive: {member}"
        raise ProvisionError(msg)


__all__ = ["archive_extension", "latest_mise_version", "provision_manager", "release_url"]
