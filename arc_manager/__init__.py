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

"""arc_manager - self-hosted GitHub Actions runners on a local k3d cluster."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

__version__ = "0.1.0"

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("arc_manager")


def log_info(message: str) -> None:
    """Print an informational progress line to stdout."""
    console.print(f"[green]\\[INFO][/green] {escape(message)}")


def log_warn(message: str) -> None:
    """Print a warning line to stdout."""
    console.print(f"[yellow]\\[WARN][/yellow] {escape(message)}")


def log_error(message: str) -> None:
    """Print an error line to stderr."""
    err_console.print(f"[red]\\[ERROR][/red] {escape(message)}")


def phase(title: str) -> None:
    """Print a phase banner."""
    console.print(Panel.fit(title, style="bold blue"))
