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

"""Local machine operations: CLI tool installation, accounts, directories."""

from __future__ import annotations

import grp
import platform
import pwd
import tempfile
from pathlib import Path

from arc_manager.constants import (
    HELM_INSTALL_SCRIPT_URL,
    K3D_INSTALL_SCRIPT_URL,
    KUBECTL_DOWNLOAD_URL,
    KUBECTL_STABLE_URL,
    TOOL_INSTALL_DIR,
)
from arc_manager.errors import CommandError, PrerequisiteError
from arc_manager.utils import command_exists, run, run_privileged

# pkill exits 1 when no process matched.
PKILL_NO_MATCH = 1

KUBE_ARCHES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def kube_arch(machine: str | None = None) -> str:
    """Map ``platform.machine()`` to the architecture name used by dl.k8s.io.

    Raises:
        PrerequisiteError: For architectures kubectl is not published for.
    """
    machine = (machine or platform.machine()).lower()
    try:
        return KUBE_ARCHES[machine]
    except KeyError:
        raise PrerequisiteError(f"Unsupported architecture for kubectl: {machine}") from None


def _run_install_script(url: str) -> None:
    script = run("curl", "-fsSL", url)
    run("bash", stdin=script)


def _install_k3d() -> None:
    _run_install_script(K3D_INSTALL_SCRIPT_URL)


def _install_helm() -> None:
    _run_install_script(HELM_INSTALL_SCRIPT_URL)


def _install_kubectl() -> None:
    version = run("curl", "-fsSL", KUBECTL_STABLE_URL).strip()
    url = KUBECTL_DOWNLOAD_URL.format(version=version, arch=kube_arch())
    with tempfile.TemporaryDirectory() as tmp:
        binary = Path(tmp) / "kubectl"
        run("curl", "-fsSLo", str(binary), url)
        run_privileged(
            "install", "-o", "root", "-g", "root", "-m", "0755",
            str(binary), f"{TOOL_INSTALL_DIR}/kubectl",
        )


INSTALLERS = {
    "k3d": _install_k3d,
    "kubectl": _install_kubectl,
    "helm": _install_helm,
}


class LocalHost:
    """HostSystem for the machine this process runs on."""

    def command_exists(self, cmd: str) -> bool:
        return command_exists(cmd)

    def install_tool(self, cmd: str) -> None:
        installer = INSTALLERS.get(cmd)
        if installer is None:
            raise PrerequisiteError(f"{cmd} is not installed and cannot be installed automatically")
        installer()

    # -- Accounts --

    def user_exists(self, user: str) -> bool:
        try:
            pwd.getpwnam(user)
        except KeyError:
            return False
        return True

    def create_system_user(self, user: str, home: Path, shell: str) -> None:
        run_privileged(
            "useradd", "--system",
            "--shell", shell,
            "--home-dir", str(home),
            "--create-home", user,
        )

    def kill_user_processes(self, user: str) -> None:
        try:
            run_privileged("pkill", "-u", user)
        except CommandError as err:
            if err.exit_code != PKILL_NO_MATCH:
                raise

    def delete_user(self, user: str) -> None:
        run_privileged("userdel", user)

    def group_exists(self, group: str) -> bool:
        try:
            grp.getgrnam(group)
        except KeyError:
            return False
        return True

    def add_user_to_group(self, user: str, group: str) -> None:
        run_privileged("usermod", "-aG", group, user)

    # -- Directories --

    def directory_exists(self, path: Path) -> bool:
        return path.is_dir()

    def directory_owner(self, path: Path) -> str:
        uid = path.stat().st_uid
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            return str(uid)

    def make_directory(self, path: Path, owner: str) -> None:
        run_privileged("mkdir", "-p", str(path))
        self.set_owner(path, owner)

    def set_owner(self, path: Path, owner: str) -> None:
        run_privileged("chown", f"{owner}:{owner}", str(path))

    def remove_directory(self, path: Path) -> None:
        run_privileged("rm", "-rf", str(path))
