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

"""The teardown subcommand."""

from __future__ import annotations

from pathlib import Path

import typer

from arc_manager import log_error
from arc_manager.cluster import resolve_kubeconfig
from arc_manager.config import TeardownOptions, load_config
from arc_manager.errors import ArcError
from arc_manager.orchestrator import build_toolbox, run_teardown

# Unknown flags are collected into ctx.args so they can be rejected with exit 1.
CONTEXT_SETTINGS = {
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "help_option_names": ["-h", "--help"],
}


def teardown(
    ctx: typer.Context,
    keep_cluster: bool = typer.Option(
        False, "--keep-cluster", help="Keep the k3d cluster"),
    keep_registry: bool = typer.Option(
        False, "--keep-registry", help="Keep the local registry, pushed images and caches"),
    keep_user: bool = typer.Option(
        False, "--keep-user", help="Keep the github-runner account and its home directory"),
    config_file: Path | None = typer.Option(
        None, "--config", help="Config file naming the cluster and runner namespace"),
) -> None:
    """Remove runners, controller, cache proxies, cluster, registry and user."""
    if ctx.args:
        log_error(f"Unknown option: {ctx.args[0]}")
        raise typer.Exit(1)

    options = TeardownOptions(
        keep_cluster=keep_cluster,
        keep_registry=keep_registry,
        keep_user=keep_user,
    )
    try:
        cfg = load_config(config_file)
        kubeconfig = resolve_kubeconfig()
        run_teardown(cfg, options, build_toolbox(cfg, kubeconfig.path))
    except (ArcError, OSError) as err:
        log_error(str(err))
        raise typer.Exit(1) from err
