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

"""k3d cluster and registry lifecycle."""

from __future__ import annotations

import json
from pathlib import Path

from arc_manager.constants import CLUSTER_AGENTS, CLUSTER_K3S_ARGS, K3D_RESOURCE_PREFIX, dep_value
from arc_manager.errors import CommandError
from arc_manager.utils import run


def registry_reference(name: str, port: int) -> str:
    """Name k3d nodes use to reach a k3d-managed registry."""
    return f"{K3D_RESOURCE_PREFIX}{name}:{port}"


class K3dCli:
    """ClusterLifecycle backed by the ``k3d`` binary."""

    def _list(self, kind: str) -> list[dict]:
        output = run("k3d", kind, "list", "-o", "json").strip()
        if not output:
            return []
        try:
            return json.loads(output)
        except json.JSONDecodeError as err:
            raise CommandError(f"k3d {kind} list -o json", 0, f"unparseable output: {err}") from err

    def cluster_exists(self, name: str) -> bool:
        return any(item.get("name") == name for item in self._list("cluster"))

    def create_cluster(self, name: str, *, registry: str, volumes: list[str]) -> None:
        """Create a cluster and block until it is up.

        Args:
            name: Cluster name.
            registry: ``host:port`` of an existing k3d registry to attach.
            volumes: ``--volume`` specs (``src:dest@nodefilter``).
        """
        args = ["cluster", "create", name, "--agents", str(CLUSTER_AGENTS)]
        for k3s_arg in CLUSTER_K3S_ARGS:
            args += ["--k3s-arg", k3s_arg]
        image = dep_value("k3s", "image")
        if image:
            args += ["--image", image]
        args += ["--registry-use", registry]
        for volume in volumes:
            args += ["--volume", volume]
        args.append("--wait")
        run("k3d", *args)

    def delete_cluster(self, name: str) -> None:
        run("k3d", "cluster", "delete", name)

    def merge_kubeconfig(self, name: str, output: Path) -> None:
        run("k3d", "kubeconfig", "merge", name, "-o", str(output))

    def registry_exists(self, name: str) -> bool:
        wanted = {name, f"{K3D_RESOURCE_PREFIX}{name}"}
        return any(item.get("name") in wanted for item in self._list("registry"))

    def create_registry(self, name: str, port: int) -> None:
        run("k3d", "registry", "create", name, "--port", str(port))

    def delete_registry(self, name: str) -> None:
        run("k3d", "registry", "delete", f"{K3D_RESOURCE_PREFIX}{name}")
