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

"""Required CLI tools and container engine checks."""

from __future__ import annotations

from arc_manager import log_info, phase
from arc_manager.constants import REQUIRED_TOOLS
from arc_manager.errors import PrerequisiteError
from arc_manager.interfaces import ContainerEngine, HostSystem
from arc_manager.reconcile import ensure


def check_prerequisites(host: HostSystem, engine: ContainerEngine) -> None:
    """Verify docker is usable and install any missing cluster tooling.

    Docker is never installed automatically; k3d, kubectl and helm are.

    Args:
        host: Local machine operations.
        engine: Container engine client.

    Raises:
        PrerequisiteError: If docker is missing or its daemon is unreachable,
            or a tool cannot be installed.
    """
    phase("Checking prerequisites")
    if not host.command_exists("docker"):
        raise PrerequisiteError("docker is not installed. Install Docker Engine first.")
    engine.ping()
    log_info("docker daemon is reachable")

    for tool in REQUIRED_TOOLS:
        if tool == "docker":
            continue
        ensure(
            "tool", tool,
            exists=lambda tool=tool: host.command_exists(tool),
            create=lambda tool=tool: host.install_tool(tool),
        )
        if not host.command_exists(tool):
            raise PrerequisiteError(f"{tool} is still not on PATH after installation")
