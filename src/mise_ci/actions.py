# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""GitHub Actions input, output and environment-file surface."""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Final

from .exceptions import ConfigurationError

LOGGER = logging.getLogger(__name__)

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"true", "True", "TRUE"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"false", "False", "FALSE"})

OUTPUT_FILE_ENV: Final[str] = "GITHUB_OUTPUT"
ENV_FILE_ENV: Final[str] = "GITHUB_ENV"
PATH_FILE_ENV: Final[str] = "GITHUB_PATH"
STATE_FILE_ENV: Final[str] = "GITHUB_STATE"

OutputValue = str | int | float | bool


def _input_variable(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def _stringify(value: OutputValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_boolean(name: str, raw: str) -> bool:
    """Interpret *raw* using the YAML 1.2 core schema boolean spellings.

    Raises:
        ConfigurationError: If *raw* is not one of the accepted spellings.
    """

    value = raw.strip()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    msg = (
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )
    raise ConfigurationError(msg)


class ActionsRuntime:
    """Read action inputs and publish outputs through the runner's files.

    The runtime operates on an explicit environment mapping so tests and local
    runs can supply their own values; it defaults to :data:`os.environ`.
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    @property
    def environ(self) -> Mapping[str, str]:
        """Return the environment the runtime reads from and exports into."""

        return self._environ

    def get_input(self, name: str, *, default: str = "") -> str:
        """Return the trimmed value of input *name* or *default* when blank."""

        value = self._environ.get(_input_variable(name), "").strip()
        return value or default

    def get_multiline_input(self, name: str) -> str:
        """Return input *name* preserving inner line breaks."""

        return self._environ.get(_input_variable(name), "")

    def get_boolean_input(self, name: str, *, default: bool = False) -> bool:
        """Return input *name* parsed as a YAML 1.2 core-schema boolean.

        Raises:
            ConfigurationError: If the value is not one of the accepted spellings.
        """

        raw = self.get_input(name)
        if not raw:
            return default
        return parse_boolean(name, raw)

    def is_debug(self) -> bool:
        """Return ``True`` when the job runs with step debug logging enabled."""

        return self._environ.get("RUNNER_DEBUG") == "1"

    def set_output(self, name: str, value: OutputValue) -> None:
        """Publish *value* as step output *name*."""

        self._write_command_file(OUTPUT_FILE_ENV, name, _stringify(value))

    def export_variable(self, name: str, value: str) -> None:
        """Export *name* to this process and to subsequent job steps."""

        self._environ[name] = value
        self._write_command_file(ENV_FILE_ENV, name, value)

    def add_path(self, directory: Path) -> None:
        """Prepend *directory* to ``PATH`` for this process and later steps."""

        entry = str(directory)
        current = self._environ.get("PATH", "")
        self._environ["PATH"] = f"{entry}{os.pathsep}{current}" if current else entry
        target = self._environ.get(PATH_FILE_ENV)
        if not target:
            LOGGER.debug("%s not set; PATH entry %s not persisted", PATH_FILE_ENV, entry)
            return
        with Path(target).open("a", encoding="utf-8") as handle:
            handle.write(f"{entry}\n")

    def save_state(self, name: str, value: str) -> None:
        """Persist *value* for the post step of this action."""

        self._write_command_file(STATE_FILE_ENV, name, value)

    def get_state(self, name: str) -> str:
        """Return state saved under *name* by an earlier phase, or blank."""

        return self._environ.get(f"STATE_{name}", "")

    def _write_command_file(self, file_env: str, name: str, value: str) -> None:
        target = self._environ.get(file_env)
        if not target:
            LOGGER.debug("%s not set; dropping %s=%s", file_env, name, value)
            return
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        if delimiter in name or delimiter in value:  # pragma: no cover - uuid collision
            msg = f"Unexpected delimiter collision while writing {name}"
            raise ConfigurationError(msg)
        with Path(target).open("a", encoding="utf-8") as handle:
            handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


__all__ = ["ActionsRuntime", "OutputValue", "parse_boolean"]
