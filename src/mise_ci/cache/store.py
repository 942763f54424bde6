# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Key/value stores that archive and restore directories by cache key."""

from __future__ import annotations

import io
import json
import os
import shutil
import tarfile
import tempfile
from collections.abc import Sequence
from hashlib import sha256
from pathlib import Path
from typing import Final, Protocol

from ..exceptions import CacheStoreError

ALREADY_EXISTS: Final[int] = -1
_MANIFEST: Final[str] = "manifest.json"


class CacheStore(Protocol):
    """Contract shared by cache backends.

    ``restore`` returns the key that matched, or ``None`` on a miss. ``save``
    returns an opaque cache id, or :data:`ALREADY_EXISTS` when the key is
    already present; entries are immutable once written. Either call may
    raise :class:`~mise_ci.exceptions.CacheStoreError`.
    """

    def restore(self, paths: Sequence[Path], key: str) -> str | None:
        """Restore the entry stored under *key* onto *paths*."""

        raise NotImplementedError

    def save(self, paths: Sequence[Path], key: str) -> int:
        """Store *paths* under *key* and return the new cache id."""

        raise NotImplementedError


class DirectoryCacheStore(CacheStore):
    """Persist cache entries as gzip tarballs inside a local directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        """Return the directory holding the archives."""

        return self._directory

    def restore(self, paths: Sequence[Path], key: str) -> str | None:
        """Extract the archive stored for ``key`` back onto ``paths``."""

        archive_path = self._path_for(key)
        if not archive_path.is_file():
            return None
        try:
            with tarfile.open(archive_path, "r:gz") as archive:
                manifest = self._read_manifest(archive)
                if manifest != [str(path) for path in paths]:
                    return None
                with tempfile.TemporaryDirectory(dir=self._directory) as staging:
                    archive.extractall(staging, filter="tar")
                    for index, target in enumerate(paths):
                        _place(Path(staging) / str(index), target)
        except (OSError, KeyError, tarfile.TarError, ValueError) as exc:
            msg = f"Failed to restore cache entry {key}: {exc}"
            raise CacheStoreError(msg) from exc
        return key

    def save(self, paths: Sequence[Path], key: str) -> int:
        """Archive ``paths`` under ``key`` unless the key already exists."""

        archive_path = self._path_for(key)
        if archive_path.exists():
            return ALREADY_EXISTS
        missing = [str(path) for path in paths if not path.exists()]
        if missing:
            msg = f"Path Validation Error: path(s) do not exist: {', '.join(missing)}"
            raise CacheStoreError(msg)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            handle, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".partial")
            os.close(handle)
            tmp_path = Path(tmp_name)
            try:
                with tarfile.open(tmp_path, "w:gz") as archive:
                    self._write_manifest(archive, paths)
                    for index, path in enumerate(paths):
                        archive.add(path, arcname=str(index))
                if archive_path.exists():
                    return ALREADY_EXISTS
                os.replace(tmp_path, archive_path)
            finally:
                tmp_path.unlink(missing_ok=True)
        except (OSError, tarfile.TarError) as exc:
            msg = f"Failed to save cache entry {key}: {exc}"
            raise CacheStoreError(msg) from exc
        return int(archive_path.stem.split(".", 1)[0][:8], 16)

    def _path_for(self, key: str) -> Path:
        digest = sha256(key.encode("utf-8"), usedforsecurity=False).hexdigest()
        return self._directory / f"{digest}.tar.gz"

    @staticmethod
    def _write_manifest(archive: tarfile.TarFile, paths: Sequence[Path]) -> None:
        payload = json.dumps([str(path) for path in paths]).encode("utf-8")
        info = tarfile.TarInfo(_MANIFEST)
        info.size = len(payload)
        archive.addfile(info, io.BytesIO(payload))

    @staticmethod
    def _read_manifest(archive: tarfile.TarFile) -> list[str]:
        member = archive.extractfile(_MANIFEST)
        if member is None:
            raise ValueError("cache archive has no manifest")
        data = json.loads(member.read().decode("utf-8"))
        if not isinstance(data, list):
            raise ValueError("cache archive manifest is malformed")
        return [str(entry) for entry in data]


def _place(staged: Path, target: Path) -> None:
    if not staged.exists() and not staged.is_symlink():
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    if staged.is_dir() and not staged.is_symlink():
        shutil.copytree(staged, target, symlinks=True, dirs_exist_ok=True)
    else:
        shutil.copy2(staged, target, follow_symlinks=False)


__all__ = ["ALREADY_EXISTS", "CacheStore", "DirectoryCacheStore"]
