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

"""Kubernetes object CRUD and readiness waits through kubectl."""

from __future__ import annotations

from pathlib import Path

from arc_manager import logger
from arc_manager.errors import CommandError, WaitTimeoutError
from arc_manager.utils import run, yaml_tempfile

REACHABILITY_TIMEOUT_SECONDS = 30


class KubectlCli:
    """ClusterObjects backed by the ``kubectl`` binary.

    Args:
        context: kubeconfig context every call targets, or None for current.
        kubeconfig: kubeconfig file, or None for kubectl's default.
    """

    def __init__(self, context: str | None = None, kubeconfig: Path | None = None) -> None:
        self.context = context
        self.kubeconfig = kubeconfig

    def _global_args(self, with_context: bool = True) -> list[str]:
        args: list[str] = []
        if self.kubeconfig:
            args += ["--kubeconfig", str(self.kubeconfig)]
        if with_context and self.context:
            args += ["--context", self.context]
        return args

    def _kubectl(self, *args: str, **kwargs) -> str:
        return run("kubectl", *self._global_args(), *args, **kwargs)

    def _exists(self, *args: str) -> bool:
        try:
            self._kubectl("get", *args, "-o", "name")
        except CommandError as err:
            if err.not_found:
                return False
            raise
        return True

    # -- Cluster --

    def reachable(self) -> bool:
        """Whether the API server answers within a short bound."""
        try:
            self._kubectl("cluster-info", timeout=REACHABILITY_TIMEOUT_SECONDS)
        except (CommandError, WaitTimeoutError) as err:
            logger.debug("cluster not reachable: %s", err)
            return False
        return True

    def use_context(self, context: str) -> None:
        run("kubectl", *self._global_args(with_context=False), "config", "use-context", context)

    # -- Namespaces --

    def namespace_exists(self, namespace: str) -> bool:
        return self._exists("namespace", namespace)

    def create_namespace(self, namespace: str) -> None:
        self._kubectl("create", "namespace", namespace)

    def delete_namespace(self, namespace: str) -> None:
        self._kubectl("delete", "namespace", namespace, "--ignore-not-found=true")

    # -- Secrets --

    def secret_exists(self, name: str, namespace: str) -> bool:
        return self._exists("secret", name, "-n", namespace)

    def create_secret(
        self, name: str, namespace: str, *,
        literals: dict[str, str], files: dict[str, Path],
    ) -> None:
        """Create an Opaque secret from literal values and file contents.

        Args:
            name: Secret name.
            namespace: Target namespace.
            literals: Keys mapped to literal string values.
            files: Keys mapped to files whose content becomes the value.
        """
        args = ["create", "secret", "generic", name, f"--namespace={namespace}"]
        args += [f"--from-literal={key}={value}" for key, value in literals.items()]
        args += [f"--from-file={key}={path}" for key, path in files.items()]
        self._kubectl(*args)

    def delete_secret(self, name: str, namespace: str) -> None:
        self._kubectl("delete", "secret", name, "-n", namespace, "--ignore-not-found=true")

    # -- Manifests --

    def apply_manifests(self, documents: list[dict]) -> None:
        with yaml_tempfile(documents) as manifest:
            self._kubectl("apply", "-f", str(manifest))

    def delete_manifests(self, documents: list[dict]) -> None:
        with yaml_tempfile(documents) as manifest:
            self._kubectl("delete", "-f", str(manifest), "--ignore-not-found=true")

    def delete_labelled(self, kind: str, selector: str) -> None:
        self._kubectl("delete", kind, "-l", selector, "--ignore-not-found=true")

    # -- Waits --

    def wait_nodes_ready(self, timeout: str) -> None:
        self._kubectl("wait", "--for=condition=Ready", "nodes", "--all", f"--timeout={timeout}")

    def rollout_status(self, deployment: str, namespace: str, timeout: str) -> None:
        self._kubectl(
            "rollout", "status", f"deployment/{deployment}",
            "-n", namespace, f"--timeout={timeout}",
        )
