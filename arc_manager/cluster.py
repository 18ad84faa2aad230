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

"""Local registry, k3d cluster, and kubeconfig handling."""

from __future__ import annotations

import os
import pwd
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from tenacity import RetryError, retry, retry_if_result, stop_after_delay, wait_fixed

from arc_manager import log_info, log_warn, phase
from arc_manager.config import ArcConfig
from arc_manager.constants import (
    API_REACHABLE_POLL_SECONDS,
    API_REACHABLE_TIMEOUT_SECONDS,
    CLUSTER_CACHE_MOUNT,
    NODE_READY_TIMEOUT,
    REGISTRY_NAME,
    REGISTRY_PORT,
    RUNNER_CACHE_DIR,
)
from arc_manager.errors import CommandError, PrerequisiteError, WaitTimeoutError
from arc_manager.interfaces import ClusterObjects, Toolbox
from arc_manager.k3d import registry_reference
from arc_manager.reconcile import Outcome, ensure, ensure_absent

KUBECONFIG_MODE = 0o600


# ============================================================================
# Kubeconfig location
# ============================================================================

@dataclass(frozen=True)
class KubeconfigTarget:
    """Where the cluster credentials are merged.

    Attributes:
        path: kubeconfig file.
        owner: Account the file is handed back to, or None to leave it as is.
    """

    path: Path
    owner: str | None = None


def resolve_kubeconfig(environ: Mapping[str, str] | None = None) -> KubeconfigTarget:
    """Pick the kubeconfig of the invoking user.

    ``KUBECONFIG`` wins when set. Under ``sudo`` the file lives in the home of
    ``SUDO_USER`` and is chowned back to that account; otherwise it is
    ``~/.kube/config`` of the current user.

    Args:
        environ: Environment to consult, ``os.environ`` by default.

    Returns:
        The resolved target.
    """
    environ = os.environ if environ is None else environ
    sudo_user = environ.get("SUDO_USER") or None
    explicit = environ.get("KUBECONFIG")
    if explicit:
        # Only the first entry of a KUBECONFIG list is written to.
        return KubeconfigTarget(Path(explicit.split(os.pathsep)[0]), sudo_user)
    if sudo_user:
        home = Path(pwd.getpwnam(sudo_user).pw_dir)
        return KubeconfigTarget(home / ".kube" / "config", sudo_user)
    return KubeconfigTarget(Path.home() / ".kube" / "config")


def _secure_kubeconfig(tools: Toolbox, target: KubeconfigTarget) -> None:
    target.path.chmod(KUBECONFIG_MODE)
    if target.owner:
        tools.host.set_owner(target.path.parent, target.owner)
        tools.host.set_owner(target.path, target.owner)


# ============================================================================
# Registry
# ============================================================================

def provision_registry(tools: Toolbox) -> Outcome:
    """Create the local image registry the cluster pulls from."""
    return ensure(
        "registry", REGISTRY_NAME,
        exists=lambda: tools.cluster.registry_exists(REGISTRY_NAME),
        create=lambda: tools.cluster.create_registry(REGISTRY_NAME, REGISTRY_PORT),
    )


def _k3d_lookup(tools: Toolbox, kind: str, check: Callable[[], bool]) -> bool | None:
    """Run a k3d existence check for teardown.

    Returns:
        The check result, or None when k3d is missing or cannot list *kind*.
    """
    if not tools.host.command_exists("k3d"):
        log_warn(f"k3d not found, skipping {kind} removal")
        return None
    try:
        return check()
    except (CommandError, PrerequisiteError) as err:
        log_warn(f"Cannot list k3d {kind}s, skipping {kind} removal: {err}")
        return None


def remove_registry_artifacts(tools: Toolbox, *, keep_cache_dir: bool = False) -> None:
    """Delete the registry, images tagged for it, and host cache directories.

    An unusable k3d only skips the registry, an unreachable Docker daemon
    only skips the image cleanup.

    Args:
        tools: Collaborators.
        keep_cache_dir: Leave the host cache directory in place, as when the
            service account home it lives in is kept.
    """
    phase("Removing local registry")
    present = _k3d_lookup(tools, "registry", lambda: tools.cluster.registry_exists(REGISTRY_NAME))
    if present is not None:
        ensure_absent(
            "registry", REGISTRY_NAME,
            exists=lambda: present,
            delete=lambda: tools.cluster.delete_registry(REGISTRY_NAME),
        )
    prefix = f"localhost:{REGISTRY_PORT}/"
    try:
        removed = tools.engine.remove_images(prefix)
    except PrerequisiteError as err:
        log_warn(f"Skipping removal of {prefix} images: {err}")
    else:
        log_info(f"Removed {removed} image tag(s) under {prefix}")
    if keep_cache_dir:
        log_info(f"Keeping cache directory {RUNNER_CACHE_DIR}")
        return
    ensure_absent(
        "directory", str(RUNNER_CACHE_DIR),
        exists=lambda: tools.host.directory_exists(RUNNER_CACHE_DIR),
        delete=lambda: tools.host.remove_directory(RUNNER_CACHE_DIR),
    )


# ============================================================================
# Cluster
# ============================================================================

def wait_for_api(
    objects: ClusterObjects,
    timeout: float = API_REACHABLE_TIMEOUT_SECONDS,
    interval: float = API_REACHABLE_POLL_SECONDS,
) -> None:
    """Poll the API server until ``kubectl cluster-info`` succeeds.

    Raises:
        WaitTimeoutError: If the API stays unreachable for *timeout* seconds.
    """

    @retry(
        retry=retry_if_result(lambda ok: not ok),
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
    )
    def _poll() -> bool:
        return objects.reachable()

    log_info("Waiting for the Kubernetes API...")
    try:
        _poll()
    except RetryError as err:
        raise WaitTimeoutError(f"Kubernetes API not reachable after {timeout}s") from err


def cluster_volumes(cfg: ArcConfig) -> list[str]:
    """``--volume`` specs for the cluster nodes."""
    if not cfg.enable_cache_proxy:
        return []
    return [f"{RUNNER_CACHE_DIR}:{CLUSTER_CACHE_MOUNT}@all"]


def provision_cluster(cfg: ArcConfig, tools: Toolbox, kubeconfig: KubeconfigTarget) -> Outcome:
    """Bring up the registry and cluster, then point kubectl at it.

    Args:
        cfg: Loaded configuration.
        tools: Collaborators.
        kubeconfig: File the cluster credentials are merged into.

    Returns:
        Outcome of the cluster step.

    Raises:
        WaitTimeoutError: If the API or nodes do not become ready in time.
    """
    phase("Creating k3d cluster")
    name = cfg.k3d_cluster_name
    provision_registry(tools)
    outcome = ensure(
        "cluster", name,
        exists=lambda: tools.cluster.cluster_exists(name),
        create=lambda: tools.cluster.create_cluster(
            name,
            registry=registry_reference(REGISTRY_NAME, REGISTRY_PORT),
            volumes=cluster_volumes(cfg),
        ),
    )

    kubeconfig.path.parent.mkdir(parents=True, exist_ok=True)
    tools.cluster.merge_kubeconfig(name, kubeconfig.path)
    _secure_kubeconfig(tools, kubeconfig)
    tools.objects.use_context(cfg.kube_context)
    log_info(f"kubeconfig {kubeconfig.path} now uses context {cfg.kube_context}")

    wait_for_api(tools.objects)
    log_info("Waiting for nodes to be ready...")
    tools.objects.wait_nodes_ready(NODE_READY_TIMEOUT)
    log_info(f"Cluster '{name}' is ready")
    return outcome


def remove_cluster(cfg: ArcConfig, tools: Toolbox) -> Outcome:
    """Delete the k3d cluster if it exists.

    Args:
        cfg: Loaded configuration naming the cluster.
        tools: Collaborators.

    Returns:
        ``SKIPPED`` when k3d is missing or cannot list clusters, otherwise
        the removal outcome.
    """
    phase("Deleting k3d cluster")
    name = cfg.k3d_cluster_name
    present = _k3d_lookup(tools, "cluster", lambda: tools.cluster.cluster_exists(name))
    if present is None:
        return Outcome.SKIPPED
    return ensure_absent(
        "cluster", name,
        exists=lambda: present,
        delete=lambda: tools.cluster.delete_cluster(name),
    )
