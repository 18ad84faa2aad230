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

"""Narrow interfaces over the external tools the workflows drive.

The orchestration code only talks to these protocols, so it can run
against the real CLI wrappers (``k3d``, ``helm``, ``kubectl``, ``host``,
``engine`` modules) or in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


class ClusterLifecycle(Protocol):
    """Local cluster and registry lifecycle (k3d)."""

    def cluster_exists(self, name: str) -> bool: ...

    def create_cluster(self, name: str, *, registry: str, volumes: list[str]) -> None: ...

    def delete_cluster(self, name: str) -> None: ...

    def merge_kubeconfig(self, name: str, output: Path) -> None: ...

    def registry_exists(self, name: str) -> bool: ...

    def create_registry(self, name: str, port: int) -> None: ...

    def delete_registry(self, name: str) -> None: ...


class ChartLifecycle(Protocol):
    """Helm release lifecycle."""

    def release_exists(self, release: str, namespace: str) -> bool: ...

    def install(
        self, release: str, chart: str, namespace: str, *,
        version: str | None = None, values_file: Path | None = None,
    ) -> None: ...

    def upgrade(
        self, release: str, chart: str, namespace: str, *,
        version: str | None = None, values_file: Path | None = None,
    ) -> None: ...

    def uninstall(self, release: str, namespace: str) -> None: ...

    def list_releases(self, namespace: str) -> list[str]: ...


class ClusterObjects(Protocol):
    """Kubernetes object CRUD and readiness waits (kubectl)."""

    def reachable(self) -> bool: ...

    def use_context(self, context: str) -> None: ...

    def namespace_exists(self, namespace: str) -> bool: ...

    def create_namespace(self, namespace: str) -> None: ...

    def delete_namespace(self, namespace: str) -> None: ...

    def secret_exists(self, name: str, namespace: str) -> bool: ...

    def create_secret(
        self, name: str, namespace: str, *,
        literals: dict[str, str], files: dict[str, Path],
    ) -> None: ...

    def delete_secret(self, name: str, namespace: str) -> None: ...

    def apply_manifests(self, documents: list[dict]) -> None: ...

    def delete_manifests(self, documents: list[dict]) -> None: ...

    def delete_labelled(self, kind: str, selector: str) -> None: ...

    def wait_nodes_ready(self, timeout: str) -> None: ...

    def rollout_status(self, deployment: str, namespace: str, timeout: str) -> None: ...


class HostSystem(Protocol):
    """Local machine: tools, accounts, and directories."""

    def command_exists(self, cmd: str) -> bool: ...

    def install_tool(self, cmd: str) -> None: ...

    def user_exists(self, user: str) -> bool: ...

    def create_system_user(self, user: str, home: Path, shell: str) -> None: ...

    def kill_user_processes(self, user: str) -> None: ...

    def delete_user(self, user: str) -> None: ...

    def group_exists(self, group: str) -> bool: ...

    def add_user_to_group(self, user: str, group: str) -> None: ...

    def directory_exists(self, path: Path) -> bool: ...

    def directory_owner(self, path: Path) -> str: ...

    def make_directory(self, path: Path, owner: str) -> None: ...

    def set_owner(self, path: Path, owner: str) -> None: ...

    def remove_directory(self, path: Path) -> None: ...


class ContainerEngine(Protocol):
    """Container engine daemon (Docker)."""

    def ping(self) -> None: ...

    def remove_images(self, repository_prefix: str) -> int: ...


@dataclass
class Toolbox:
    """The collaborators a workflow runs against."""

    cluster: ClusterLifecycle
    charts: ChartLifecycle
    objects: ClusterObjects
    host: HostSystem
    engine: ContainerEngine
