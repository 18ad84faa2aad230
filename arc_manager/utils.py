# /*
# Copyright 2026 The arc-manager Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Utility functions for running commands and translating their failures."""

from __future__ import annotations

import os
import shlex
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import sh
import yaml

from arc_manager import logger
from arc_manager.constants import COMMAND_TIMEOUT_SECONDS
from arc_manager.errors import CommandError, PrerequisiteError, WaitTimeoutError

TIMEOUT_MARKERS = (
    "timed out waiting for the condition",
    "context deadline exceeded",
    "exceeded its progress deadline",
)


def _decode(stream: bytes | str | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode(errors="replace")
    return stream


def format_command(program: str, args: tuple[str, ...] | list[str]) -> str:
    """Render a command line for logs and error messages."""
    return shlex.join([program, *args])


def command_exists(cmd: str) -> bool:
    """Whether *cmd* resolves on the system PATH."""
    return sh.which(cmd) is not None


def run(
    program: str,
    *args: str,
    timeout: float | None = COMMAND_TIMEOUT_SECONDS,
    stdin: str | None = None,
) -> str:
    """Run an external command and return its stdout.

    Args:
        program: Executable name or path.
        *args: Command arguments.
        timeout: Seconds before the process is killed, or None for no bound.
        stdin: Text fed to the process's standard input.

    Returns:
        Decoded standard output.

    Raises:
        PrerequisiteError: If the program is not installed.
        WaitTimeoutError: If the timeout expires, or the tool reports a wait timeout.
        CommandError: If the program exits non-zero.
    """
    command_line = format_command(program, args)
    logger.debug("$ %s", command_line)
    try:
        command = sh.Command(program)
    except sh.CommandNotFound as err:
        raise PrerequisiteError(f"Required command '{program}' not found. Please install it first.") from err

    try:
        return str(command(*args, _timeout=timeout, _in=stdin))
    except sh.TimeoutException as err:
        raise WaitTimeoutError(f"'{command_line}' timed out after {timeout}s") from err
    except sh.ErrorReturnCode as err:
        stderr = _decode(err.stderr)
        if any(marker in stderr.lower() for marker in TIMEOUT_MARKERS):
            raise WaitTimeoutError(f"'{command_line}' timed out: {stderr.strip()}") from err
        raise CommandError(command_line, getattr(err, "exit_code", 1), stderr) from err


def run_privileged(program: str, *args: str, **kwargs) -> str:
    """Run a command as root, prefixing ``sudo`` when not already root."""
    if os.geteuid() == 0:
        return run(program, *args, **kwargs)
    return run("sudo", program, *args, **kwargs)


@contextmanager
def yaml_tempfile(documents: list[dict] | dict) -> Iterator[Path]:
    """Write one or more YAML documents to a temporary file.

    Args:
        documents: A single mapping or a list of manifests.

    Yields:
        Path of the temporary file, removed on exit.
    """
    if isinstance(documents, dict):
        content = yaml.safe_dump(documents, default_flow_style=False, sort_keys=False)
    else:
        content = yaml.safe_dump_all(documents, default_flow_style=False, sort_keys=False)

    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".yaml")
    try:
        tmp.write(content.encode())
        tmp.flush()
        tmp.close()
        yield Path(tmp.name)
    finally:
        Path(tmp.name).unlink(missing_ok=True)
