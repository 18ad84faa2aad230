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

"""Orchestration functions that compose domain modules into workflows."""

from __future__ import annotations

from pathlib import Path

from arc_manager import console, log_info, log_warn, phase
from arc_manager.accounts import provision_service_account, remove_service_account
from arc_manager.cache_proxy import provision_cache_proxy, remove_cache_proxy
from arc_manager.cluster import (
    KubeconfigTarget,
    provision_cluster,
    remove_cluster,
    remove_registry_artifacts,
)
from arc_manager.components import (
    install_controller,
    install_scale_set,
    provision_credentials_secret,
    remove_controller,
    remove_scale_sets,
)
from arc_manager.config import ArcConfig, TeardownOptions, display_config, validate_for_setup
from arc_manager.engine import DockerEngine
from arc_manager.helm import HelmCli
from arc_manager.host import LocalHost
from arc_manager.interfaces import Toolbox
from arc_manager.k3d import K3dCli
from arc_manager.kubectl import KubectlCli
from arc_manager.prerequisites import check_prerequisites

# ============================================================================
# Internal helpers
# ============================================================================


def build_toolbox(cfg: ArcConfig, kubeconfig: Path | None = None) -> Toolbox:
    """Wire the real CLI and SDK collaborators for *cfg*'s cluster.

    Args:
        cfg: Loaded configuration.
        kubeconfig: kubeconfig file every kubectl and helm call uses.

    Returns:
        Collaborators targeting context ``k3d-<cluster>``.
    """
    return Toolbox(
        cluster=K3dCli(),
        charts=HelmCli(kube_context=cfg.kube_context, kubeconfig=kubeconfig),
        objects=KubectlCli(context=cfg.kube_context, kubeconfig=kubeconfig),
        host=LocalHost(),
        engine=DockerEngine(),
    )


def _cluster_accessible(tools: Toolbox) -> bool:
    """Whether cluster-side teardown phases can run at all."""
    for cmd in ("kubectl", "helm"):
        if not tools.host.command_exists(cmd):
            log_warn(f"{cmd} not found; skipping cluster resource cleanup")
            return False
    if not tools.objects.reachable():
        log_warn("Cluster not reachable; skipping cluster resource cleanup")
        return False
    return True


# ============================================================================
# Public workflows
# ============================================================================


def run_setup(cfg: ArcConfig, tools: Toolbox, kubeconfig: KubeconfigTarget) -> None:
    """Provision the whole runner stack, converging whatever already exists.

    Credentials are validated before the host or cluster is touched.

    Args:
        cfg: Loaded configuration.
        tools: Collaborators.
        kubeconfig: File the cluster credentials are merged into.

    Raises:
        ConfigError: If required credentials are missing.
        PrerequisiteError: If docker is unusable or a tool cannot be installed.
        WaitTimeoutError: If a readiness wait expires.
        CommandError: If any external command fails.
    """
    for warning in validate_for_setup(cfg):
        log_warn(warning)
    display_config(cfg)

    check_prerequisites(tools.host, tools.engine)
    provision_service_account(tools.host)
    provision_cluster(cfg, tools, kubeconfig)
    if cfg.enable_cache_proxy:
        provision_cache_proxy(tools)
    install_controller(tools)
    provision_credentials_secret(cfg, tools)
    install_scale_set(cfg, tools)

    phase("Setup complete")
    console.print(f"Use 'runs-on: {cfg.runner_scale_set_name}' in your workflows")
    console.print(f"Runners register at {cfg.github_config_url}")


def run_teardown(cfg: ArcConfig, options: TeardownOptions, tools: Toolbox) -> None:
    """Remove everything setup created, minus the phases *options* keep.

    Every phase tolerates resources that are already gone, so running
    teardown twice is harmless.

    Args:
        cfg: Loaded configuration (cluster name and runner namespace).
        options: Phases to keep.
        tools: Collaborators.

    Raises:
        CommandError: If a removal fails for a reason other than absence.
    """
    if _cluster_accessible(tools):
        remove_scale_sets(cfg, tools)
        remove_controller(tools)
        remove_cache_proxy(tools)

    if options.keep_cluster:
        log_info(f"Keeping cluster '{cfg.k3d_cluster_name}'")
    else:
        remove_cluster(cfg, tools)

    if options.keep_registry:
        log_info("Keeping local registry, images and caches")
    else:
        remove_registry_artifacts(tools, keep_cache_dir=options.keep_user)

    if options.keep_user:
        log_info("Keeping service account and home directory")
    else:
        remove_service_account(tools.host)

    phase("Teardown complete")
