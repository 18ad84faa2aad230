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

"""
cli.py - CLI for self-hosted GitHub Actions runners on k3d.

Subcommands:
    setup      Provision cluster, ARC controller, credentials and runner scale set
    teardown   Remove everything setup created

Examples:
    # Provision (or converge) everything described by runners.env
    arc-manager setup runners.env

    # Remove everything except the cluster
    arc-manager teardown --keep-cluster --config runners.env

For detailed usage information, run: arc-manager --help
"""

from __future__ import annotations

import logging
import sys

import typer

from arc_manager import log_error
from arc_manager.commands import setup_cmd, teardown_cmd

app = typer.Typer(
    help="Self-hosted GitHub Actions runners on a local k3d cluster.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log every external command"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command("setup")(setup_cmd.setup)
app.command("teardown", context_settings=teardown_cmd.CONTEXT_SETTINGS)(teardown_cmd.teardown)


if __name__ == "__main__":
    try:
        app()
    except Exception as e:
        log_error(str(e))
        sys.exit(1)
