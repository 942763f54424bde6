# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run external commands (``mise``, ``ldd``, ``tar``) with uniform failures."""

from __future__ import annotations

import logging
import shutil

# Bandit: commands are always passed as argument vectors, never through a shell.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Final

from .exceptions import MiseCIError

LOGGER = logging.getLogger(__name__)

# Exit status reported for commands killed after exceeding their timeout,
# matching coreutils ``timeout``.
TIMEOUT_EXIT_CODE: Final[int] = 124

CompletedCommand = subprocess.CompletedProcess[str]


class SubprocessExecutionError(MiseCIError):
    """Raised when a command exits non-zero and the caller asked for ``check``."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        lines = (stderr or "").strip().splitlines()
        reason = lines[-1] if lines else "no output on stderr"
        super().__init__(f"{Path(self.command[0]).name} exited with status {returncode}: {reason}")

    @property
    def timed_out(self) -> bool:
        """Return ``True`` when the command was killed by its timeout."""

        return self.returncode == TIMEOUT_EXIT_CODE


def _resolve_executable(args: Sequence[str], env: Mapping[str, str] | None) -> list[str]:
    if not args:
        msg = "a command needs at least an executable"
        raise ValueError(msg)
    head, *rest = args
    if Path(head).is_absolute():
        return [head, *rest]
    # Look the executable up on the PATH the child will see.
    resolved = shutil.which(head, path=env.get("PATH") if env is not None else None)
    if resolved is None:
        msg = f"Executable '{head}' was not found on PATH"
        raise FileNotFoundError(msg)
    return [resolved, *rest]


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value


def _timed_out(argv: list[str], exc: subprocess.TimeoutExpired) -> CompletedCommand:
    note = f"timed out after {exc.timeout:g}s"
    stderr = _as_text(exc.stderr).rstrip()
    return subprocess.CompletedProcess(
        args=argv,
        returncode=TIMEOUT_EXIT_CODE,
        stdout=_as_text(exc.stdout),
        stderr=f"{stderr}\n{note}" if stderr else note,
    )


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    capture_output: bool = False,
    timeout: float | None = None,
) -> CompletedCommand:
    """Run *args* as text and return the completed process.

    Args:
        args: Executable followed by its arguments. Relative executables are
            resolved against the ``PATH`` in ``env`` (or the current one).
        cwd: Working directory for the child.
        env: Full environment for the child; inherits ours when ``None``.
        check: Raise :class:`SubprocessExecutionError` on a non-zero exit.
        capture_output: Capture stdout and stderr instead of streaming them.
        timeout: Seconds before the child is killed. A killed child reports
            :data:`TIMEOUT_EXIT_CODE`.

    Returns:
        CompletedCommand: The finished process with text output.

    Raises:
        FileNotFoundError: If the executable cannot be found.
        SubprocessExecutionError: If ``check`` is set and the exit status is non-zero.
    """

    argv = _resolve_executable(args, env)
    LOGGER.debug("running %s", " ".join(argv))
    try:
        completed: CompletedCommand = subprocess.run(  # nosec B603
            argv,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            check=False,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        LOGGER.debug("%s timed out after %ss", argv[0], exc.timeout)
        completed = _timed_out(argv, exc)

    if check and completed.returncode != 0:
        raise SubprocessExecutionError(argv, completed.returncode, completed.stdout, completed.stderr)
    return completed


__all__ = ["TIMEOUT_EXIT_CODE", "CompletedCommand", "SubprocessExecutionError", "run_command"]
