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

"""The setup subcommand."""

from __future__ import annotations

from pathlib import Path

import typer

from arc_manager import err_console, log_error
from arc_manager.cluster import resolve_kubeconfig
from arc_manager.config import load_config
from arc_manager.errors import ArcError
from arc_manager.orchestrator import build_toolbox, run_setup

USAGE = """\
Usage: arc-manager setup <config-file>

The config file holds KEY=VALUE lines.

Authentication (one mode is required):
  GITHUB_APP_ID, GITHUB_APP_INSTALLATION_ID, GITHUB_APP_PRIVATE_KEY_PATH
  GITHUB_PAT

Required:
  GITHUB_ORG                 Organization or user the runners register with

Optional:
  GITHUB_REPO                Repository for repo-level runners (default: org-level)
  RUNNER_SCALE_SET_NAME      Scale set name and runs-on label (default: k3d-runner)
  MIN_RUNNERS                Minimum idle runners (default: 0)
  MAX_RUNNERS                Maximum runners (default: 5)
  K3D_CLUSTER_NAME           k3d cluster name (default: arc-cluster)
  RUNNER_NAMESPACE           Runner namespace (default: arc-runners)
  ENABLE_CACHE_PROXY         Deploy registry, apt and HTTP caches (default: false)
"""


def setup(
    config_file: Path | None = typer.Argument(
        None, help="KEY=VALUE configuration file", show_default=False),
) -> None:
    """Provision the k3d cluster, ARC controller and runner scale set.

    Safe to re-run: existing resources are upgraded in place.
    """
    if config_file is None:
        err_console.print(USAGE, markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(1)
    try:
        cfg = load_config(config_file)
        kubeconfig = resolve_kubeconfig()
        run_setup(cfg, build_toolbox(cfg, kubeconfig.path), kubeconfig)
    except (ArcError, OSError) as err:
        log_error(str(err))
        raise typer.Exit(1) from err
