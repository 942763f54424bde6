# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for downloading and installing the mise binary."""

from __future__ import annotations

import io
import os
import tarfile
import urllib.error
import zipfile
from pathlib import Path

import pytest

from mise_ci import installer
from mise_ci.config import ManagerPaths
from mise_ci.exceptions import ProvisionError
from mise_ci.installer import archive_extension, provision_manager, release_url
from mise_ci.models import SystemIdentity
from mise_ci.process_utils import TIMEOUT_EXIT_CODE, SubprocessExecutionError

LINUX = SystemIdentity(platform_family="linux", architecture="x64", musl=False)
WINDOWS = SystemIdentity(platform_family="windows", architecture="x64")


def test_archive_extension(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(installer.shutil, "which", lambda name: None)
    assert archive_extension("2025.1.0", WINDOWS) == ".zip"
    assert archive_extension("2024.12.0", LINUX) == ""
    assert archive_extension("2025.1.0", LINUX) == ".tar.gz"

    monkeypatch.setattr(installer.shutil, "which", lambda name: "/usr/bin/zstd")
    assert archive_extension("2025.1.0", LINUX) == ".tar.zst"


def test_release_url() -> None:
    assert release_url("2025.1.0", LINUX, ".tar.gz") == (
        "https://github.com/jdx/mise/releases/download/v2025.1.0/mise-v2025.1.0-linux-x64.tar.gz"
    )


def test_existing_binary_is_kept(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths = ManagerPaths(root=tmp_path)
    paths.bin_dir.mkdir(parents=True)
    paths.binary.write_text("existing", encoding="utf-8")

    def fail_download(url: str, destination: Path) -> None:
        raise AssertionError("download must not run")

    monkeypatch.setattr(installer, "_download", fail_download)

    assert provision_manager("2025.1.0", LINUX, paths) == paths.binary
    assert paths.binary.read_text(encoding="utf-8") == "existing"


def _tarball(destination: Path) -> None:
    payload = b"#!/bin/sh\necho mise\n"
    with tarfile.open(destination, "w:gz") as archive:
        info = tarfile.TarInfo("mise/bin/mise")
        info.size = len(payload)
        info.mode = 0o644
        archive.addfile(info, io.BytesIO(payload))


def test_tarball_release_is_extracted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    urls: list[str] = []

    def fake_download(url: str, destination: Path) -> None:
        urls.append(url)
        _tarball(destination)

    monkeypatch.setattr(installer.shutil, "which", lambda name: None)
    monkeypatch.setattr(installer, "_download", fake_download)
    paths = ManagerPaths(root=tmp_path / "mise")

    binary = provision_manager("v2025.1.0", LINUX, paths)

    assert urls == ["https://github.com/jdx/mise/releases/download/v2025.1.0/mise-v2025.1.0-linux-x64.tar.gz"]
    assert binary.read_bytes() == b"#!/bin/sh\necho mise\n"
    assert os.access(binary, os.X_OK)


def test_zip_release_is_extracted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_download(url: str, destination: Path) -> None:
        with zipfile.ZipFile(destination, "w") as bundle:
            bundle.writestr("mise/bin/mise.exe", b"MZ")

    monkeypatch.setattr(installer, "_download", fake_download)
    paths = ManagerPaths(root=tmp_path / "mise", windows=True)

    binary = provision_manager("2025.1.0", WINDOWS, paths)

    assert binary == paths.bin_dir / "mise.exe"
    assert binary.read_bytes() == b"MZ"


def test_latest_version_is_resolved(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    urls: list[str] = []

    def fake_download(url: str, destination: Path) -> None:
        urls.append(url)
        destination.write_bytes(b"bin")

    monkeypatch.setattr(installer, "latest_mise_version", lambda: "v2024.11.0")
    monkeypatch.setattr(installer, "_download", fake_download)

    provision_manager(None, LINUX, ManagerPaths(root=tmp_path))

    assert urls == ["https://github.com/jdx/mise/releases/download/v2024.11.0/mise-v2024.11.0-linux-x64"]


def test_download_failure_raises_provision_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_download(url: str, destination: Path) -> None:
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(installer.shutil, "which", lambda name: None)
    monkeypatch.setattr(installer, "_download", fake_download)

    with pytest.raises(ProvisionError, match="Failed to setup mise"):
        provision_manager("2025.1.0", LINUX, ManagerPaths(root=tmp_path))


def test_zstd_extraction_timeout_raises_provision_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    commands: list[tuple[list[str], float | None]] = []

    def fake_run_command(args, **kwargs):  # noqa: ANN001
        commands.append((list(args), kwargs.get("timeout")))
        raise SubprocessExecutionError(args, TIMEOUT_EXIT_CODE, "", "timed out after 120s")

    monkeypatch.setattr(installer.shutil, "which", lambda name: "/usr/bin/zstd")
    monkeypatch.setattr(installer, "_download", lambda url, destination: destination.write_bytes(b"zst"))
    monkeypatch.setattr(installer, "run_command", fake_run_command)

    with pytest.raises(ProvisionError, match="timed out after 120s"):
        provision_manager("2025.1.0", LINUX, ManagerPaths(root=tmp_path))

    assert commands[0][0][:3] == ["tar", "--zstd", "-xf"]
    assert commands[0][1] is not None
