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

"""Helm release lifecycle."""

from __future__ import annotations

from pathlib import Path

from arc_manager.constants import HELM_TIMEOUT
from arc_manager.errors import CommandError
from arc_manager.utils import run


class HelmCli:
    """ChartLifecycle backed by the ``helm`` binary.

    Args:
        kube_context: kubeconfig context every call targets, or None for current.
        kubeconfig: kubeconfig file, or None for helm's default.
    """

    def __init__(self, kube_context: str | None = None, kubeconfig: Path | None = None) -> None:
        self.kube_context = kube_context
        self.kubeconfig = kubeconfig

    def _helm(self, *args: str) -> str:
        global_args: list[str] = []
        if self.kube_context:
            global_args += ["--kube-context", self.kube_context]
        if self.kubeconfig:
            global_args += ["--kubeconfig", str(self.kubeconfig)]
        return run("helm", *args, *global_args)

    @staticmethod
    def _chart_args(version: str | None, values_file: Path | None) -> list[str]:
        args = ["--wait", "--timeout", HELM_TIMEOUT]
        if version:
            args += ["--version", version]
        if values_file is not None:
            args += ["-f", str(values_file)]
        return args

    def release_exists(self, release: str, namespace: str) -> bool:
        try:
            self._helm("status", release, "-n", namespace)
        except CommandError as err:
            if err.not_found:
                return False
            raise
        return True

    def install(
        self, release: str, chart: str, namespace: str, *,
        version: str | None = None, values_file: Path | None = None,
    ) -> None:
        self._helm(
            "install", release, chart,
            "--namespace", namespace,
            "--create-namespace",
            *self._chart_args(version, values_file),
        )

    def upgrade(
        self, release: str, chart: str, namespace: str, *,
        version: str | None = None, values_file: Path | None = None,
    ) -> None:
        self._helm(
            "upgrade", release, chart,
            "--namespace", namespace,
            *self._chart_args(version, values_file),
        )

    def uninstall(self, release: str, namespace: str) -> None:
        self._helm("uninstall", release, "-n", namespace, "--wait", "--timeout", HELM_TIMEOUT)

    def list_releases(self, namespace: str) -> list[str]:
        """Names of every release in *namespace*, whatever its status."""
        output = self._helm("list", "-n", namespace, "--all", "-q")
        return [line.strip() for line in output.splitlines() if line.strip()]
