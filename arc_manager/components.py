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

"""ARC controller, credentials secret, and runner scale-set installation."""

from __future__ import annotations

from pathlib import Path

from arc_manager import log_info, phase
from arc_manager.config import ArcConfig, AuthMode, validate_for_setup
from arc_manager.constants import (
    ARC_CONTROLLER_CHART,
    ARC_SCALE_SET_CHART,
    HELM_RELEASE_CONTROLLER,
    NS_ARC_SYSTEMS,
    SECRET_KEY_APP_ID,
    SECRET_KEY_INSTALLATION_ID,
    SECRET_KEY_PRIVATE_KEY,
    SECRET_KEY_TOKEN,
    SECRET_NAME,
    dep_value,
)
from arc_manager.interfaces import ChartLifecycle, ClusterObjects, Toolbox
from arc_manager.reconcile import Outcome, ensure, ensure_absent
from arc_manager.utils import yaml_tempfile
from arc_manager.values import render_scale_set_values


# ============================================================================
# Shared steps
# ============================================================================

def ensure_namespace(objects: ClusterObjects, namespace: str) -> Outcome:
    """Create *namespace* unless it already exists."""
    return ensure(
        "namespace", namespace,
        exists=lambda: objects.namespace_exists(namespace),
        create=lambda: objects.create_namespace(namespace),
    )


def remove_namespace(objects: ClusterObjects, namespace: str) -> Outcome:
    """Delete *namespace*, treating an absent one as done."""
    return ensure_absent(
        "namespace", namespace,
        exists=lambda: objects.namespace_exists(namespace),
        delete=lambda: objects.delete_namespace(namespace),
    )


def ensure_release(
    charts: ChartLifecycle,
    release: str,
    chart: str,
    namespace: str,
    *,
    version: str | None = None,
    values_file: Path | None = None,
) -> Outcome:
    """Install *release* if absent, upgrade it otherwise."""
    return ensure(
        "helm release", release,
        exists=lambda: charts.release_exists(release, namespace),
        create=lambda: charts.install(release, chart, namespace, version=version, values_file=values_file),
        update=lambda: charts.upgrade(release, chart, namespace, version=version, values_file=values_file),
    )


def remove_release(charts: ChartLifecycle, release: str, namespace: str) -> Outcome:
    """Uninstall a Helm release if it is installed.

    Args:
        charts: Helm collaborator.
        release: Release name.
        namespace: Namespace the release lives in.

    Returns:
        ``REMOVED`` or ``ABSENT``.
    """
    return ensure_absent(
        "helm release", release,
        exists=lambda: charts.release_exists(release, namespace),
        delete=lambda: charts.uninstall(release, namespace),
    )


# ============================================================================
# ARC controller
# ============================================================================

def install_controller(tools: Toolbox) -> Outcome:
    """Install or upgrade the runner-controller chart in arc-systems."""
    phase("Deploying ARC controller")
    ensure_namespace(tools.objects, NS_ARC_SYSTEMS)
    outcome = ensure_release(
        tools.charts, HELM_RELEASE_CONTROLLER, ARC_CONTROLLER_CHART, NS_ARC_SYSTEMS,
        version=dep_value("arc_controller", "version"),
    )
    log_info("ARC controller deployed")
    return outcome


def remove_controller(tools: Toolbox) -> None:
    """Uninstall the controller chart and drop its namespace."""
    phase("Removing ARC controller")
    remove_release(tools.charts, HELM_RELEASE_CONTROLLER, NS_ARC_SYSTEMS)
    remove_namespace(tools.objects, NS_ARC_SYSTEMS)
    log_info("ARC controller removed")


# ============================================================================
# Credentials secret
# ============================================================================

def secret_payload(cfg: ArcConfig) -> tuple[dict[str, str], dict[str, Path]]:
    """Split the credentials into literal and file-backed secret keys.

    Args:
        cfg: Validated configuration.

    Returns:
        Tuple of (literals, files).
    """
    if cfg.auth_mode is AuthMode.APP:
        literals = {
            SECRET_KEY_APP_ID: cfg.github_app_id,
            SECRET_KEY_INSTALLATION_ID: cfg.github_app_installation_id,
        }
        return literals, {SECRET_KEY_PRIVATE_KEY: cfg.github_app_private_key_path}
    return {SECRET_KEY_TOKEN: cfg.github_pat}, {}


def provision_credentials_secret(cfg: ArcConfig, tools: Toolbox) -> Outcome:
    """Validate credentials, then replace the secret holding them.

    Secrets are never diffed: an existing one is deleted and recreated so
    reruns always carry the current file content.

    Raises:
        ConfigError: If a required credential is missing.
    """
    phase("Creating GitHub credentials secret")
    validate_for_setup(cfg)
    namespace = cfg.runner_namespace
    literals, files = secret_payload(cfg)

    def _create() -> None:
        tools.objects.create_secret(SECRET_NAME, namespace, literals=literals, files=files)

    def _replace() -> None:
        tools.objects.delete_secret(SECRET_NAME, namespace)
        _create()

    ensure_namespace(tools.objects, namespace)
    outcome = ensure(
        "secret", SECRET_NAME,
        exists=lambda: tools.objects.secret_exists(SECRET_NAME, namespace),
        create=_create,
        update=_replace,
    )
    log_info(f"GitHub credentials secret ready in namespace {namespace}")
    return outcome


# ============================================================================
# Runner scale set
# ============================================================================

def install_scale_set(cfg: ArcConfig, tools: Toolbox) -> Outcome:
    """Render values and install or upgrade the scale-set release."""
    phase("Deploying runner scale set")
    ensure_namespace(tools.objects, cfg.runner_namespace)
    values = render_scale_set_values(cfg)
    with yaml_tempfile(values) as values_file:
        outcome = ensure_release(
            tools.charts, cfg.runner_scale_set_name, ARC_SCALE_SET_CHART, cfg.runner_namespace,
            version=dep_value("arc_scale_set", "version"),
            values_file=values_file,
        )
    log_info(f"Runner scale set '{cfg.runner_scale_set_name}' deployed")
    log_info(f"Runners will register at: {cfg.github_config_url}")
    return outcome


def remove_scale_sets(cfg: ArcConfig, tools: Toolbox) -> None:
    """Uninstall every release in the runner namespace, then the namespace."""
    phase("Removing runner scale sets")
    namespace = cfg.runner_namespace
    if tools.objects.namespace_exists(namespace):
        for release in tools.charts.list_releases(namespace):
            remove_release(tools.charts, release, namespace)
    remove_namespace(tools.objects, namespace)
    log_info("Runner scale sets removed")
