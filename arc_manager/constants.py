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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load chart references and images from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing or empty.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None or node == "":
            return default
    return node


# -- Local service account --
RUNNER_USER = "github-runner"
RUNNER_HOME = Path("/srv/docker/github-runner")
RUNNER_CACHE_DIR = RUNNER_HOME / "cache"
DOCKER_GROUP = "docker"
NOLOGIN_SHELL = "/usr/sbin/nologin"

# -- Tool installation --
REQUIRED_TOOLS = ("docker", "k3d", "kubectl", "helm")
K3D_INSTALL_SCRIPT_URL = "https://raw.githubusercontent.com/k3d-io/k3d/main/install.sh"
HELM_INSTALL_SCRIPT_URL = "https://raw.githubusercontent.com/helm/helm/main/scripts/get-helm-3"
KUBECTL_STABLE_URL = "https://dl.k8s.io/release/stable.txt"
KUBECTL_DOWNLOAD_URL = "https://dl.k8s.io/release/{version}/bin/linux/{arch}/kubectl"
TOOL_INSTALL_DIR = "/usr/local/bin"

# -- k3d cluster --
CLUSTER_AGENTS = 2
CLUSTER_K3S_ARGS = ("--disable=traefik@server:0",)
CLUSTER_CACHE_MOUNT = "/var/cache/arc"
REGISTRY_NAME = "arc-registry"
REGISTRY_PORT = 5001
K3D_RESOURCE_PREFIX = "k3d-"

# -- Timeouts --
NODE_READY_TIMEOUT = "120s"
ROLLOUT_TIMEOUT = "300s"
HELM_TIMEOUT = "10m"
API_REACHABLE_TIMEOUT_SECONDS = 60
API_REACHABLE_POLL_SECONDS = 3
COMMAND_TIMEOUT_SECONDS = 900
USER_DELETE_MAX_RETRIES = 5
USER_DELETE_RETRY_WAIT_SECONDS = 1

# -- Namespaces --
NS_ARC_SYSTEMS = "arc-systems"
NS_CACHE_SYSTEM = "cache-system"

# -- Helm releases --
HELM_RELEASE_CONTROLLER = "arc"
ARC_CONTROLLER_CHART = dep_value("arc_controller", "chart")
ARC_SCALE_SET_CHART = dep_value("arc_scale_set", "chart")

# -- Credentials --
GITHUB_URL = "https://github.com"
SECRET_NAME = "github-app-secret"
SECRET_KEY_APP_ID = "github_app_id"
SECRET_KEY_INSTALLATION_ID = "github_app_installation_id"
SECRET_KEY_PRIVATE_KEY = "github_app_private_key"
SECRET_KEY_TOKEN = "github_token"
PRIVATE_KEY_SAFE_MODE_MASK = 0o077

# -- Cache proxy workloads --
CACHE_PART_OF_LABEL = "app.kubernetes.io/part-of"
CACHE_PART_OF_VALUE = "arc-cache-proxy"
REGISTRY_MIRROR_NAME = "registry-mirror"
REGISTRY_MIRROR_PORT = 5000
APT_CACHE_NAME = "apt-cache"
APT_CACHE_PORT = 3142
HTTP_PROXY_NAME = "http-proxy"
HTTP_PROXY_PORT = 3128
CACHE_VOLUME_SIZE = "20Gi"
NO_PROXY_HOSTS = (
    "localhost",
    "127.0.0.1",
    ".svc",
    ".svc.cluster.local",
    "10.0.0.0/8",
    "kubernetes.default",
)

# -- Config defaults --
DEFAULT_CLUSTER_NAME = "arc-cluster"
DEFAULT_RUNNER_NAMESPACE = "arc-runners"
DEFAULT_SCALE_SET_NAME = "k3d-runner"
DEFAULT_MIN_RUNNERS = 0
DEFAULT_MAX_RUNNERS = 5
