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

"""Exception types raised by provisioning and teardown steps."""

from __future__ import annotations


class ArcError(RuntimeError):
    """Base class for every user-facing failure."""


class ConfigError(ArcError):
    """The configuration file is missing, malformed, or incomplete."""


class PrerequisiteError(ArcError):
    """A required tool is missing or the container engine is unreachable."""


class WaitTimeoutError(ArcError):
    """A readiness or rollout wait exceeded its bound."""


class CommandError(ArcError):
    """An external command exited with a non-zero status.

    Attributes:
        command: The command line that failed.
        exit_code: Process exit status.
        stderr: Decoded standard error of the process.
    """

    def __init__(self, command: str, exit_code: int, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"'{command}' failed with exit code {exit_code}{detail}")

    @property
    def not_found(self) -> bool:
        """Whether the failure reports an absent resource."""
        text = self.stderr.lower()
        return "not found" in text or "notfound" in text
