"""Unit tests for registry, cluster and kubeconfig handling."""

from __future__ import annotations

import os
import pwd
import stat
from pathlib import Path

import pytest
from fakes import FakeWorld

from arc_manager.cluster import (
    KubeconfigTarget,
    cluster_volumes,
    provision_cluster,
    remove_cluster,
    remove_registry_artifacts,
    resolve_kubeconfig,
    wait_for_api,
)
from arc_manager.config import ArcConfig
from arc_manager.constants import RUNNER_CACHE_DIR
from arc_manager.errors import CommandError, WaitTimeoutError
from arc_manager.interfaces import Toolbox
from arc_manager.reconcile import Outcome


class TestResolveKubeconfig:
    """Tests for choosing the kubeconfig of the invoking user."""

    def test_explicit_kubeconfig_wins(self) -> None:
        target = resolve_kubeconfig({"KUBECONFIG": f"/tmp/a.yaml{os.pathsep}/tmp/b.yaml"})

        assert target == KubeconfigTarget(Path("/tmp/a.yaml"))

    def test_sudo_user_home(self) -> None:
        """Under sudo the file should belong to the invoking account."""
        account = pwd.getpwuid(os.getuid())

        target = resolve_kubeconfig({"SUDO_USER": account.pw_name})

        assert target.path == Path(account.pw_dir) / ".kube" / "config"
        assert target.owner == account.pw_name

    def test_current_user_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        target = resolve_kubeconfig({})

        assert target == KubeconfigTarget(tmp_path / ".kube" / "config")


class TestProvisionCluster:
    """Tests for bringing up the registry and cluster."""

    def test_creates_registry_and_cluster(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig, kubeconfig: KubeconfigTarget,
    ) -> None:
        outcome = provision_cluster(token_config, tools, kubeconfig)

        assert outcome is Outcome.CREATED
        assert world.registries == {"arc-registry"}
        assert world.clusters == {"arc-cluster"}
        create = next(call for call in world.calls if call[0] == "create_cluster")
        assert create[2] == "k3d-arc-registry:5001"

    def test_merges_and_secures_kubeconfig(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig, kubeconfig: KubeconfigTarget,
    ) -> None:
        provision_cluster(token_config, tools, kubeconfig)

        assert stat.S_IMODE(kubeconfig.path.stat().st_mode) == 0o600
        assert ("use_context", "k3d-arc-cluster") in world.calls
        assert ("wait_nodes_ready", "120s") in world.calls

    def test_sudo_owner_gets_kubeconfig_back(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig, tmp_path: Path,
    ) -> None:
        target = KubeconfigTarget(tmp_path / ".kube" / "config", owner="alice")

        provision_cluster(token_config, tools, target)

        assert ("set_owner", target.path, "alice") in world.calls
        assert ("set_owner", target.path.parent, "alice") in world.calls

    def test_rerun_does_not_recreate(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig, kubeconfig: KubeconfigTarget,
    ) -> None:
        provision_cluster(token_config, tools, kubeconfig)
        world.calls.clear()

        outcome = provision_cluster(token_config, tools, kubeconfig)

        assert outcome is Outcome.UNCHANGED
        assert "create_cluster" not in world.call_names()
        assert "create_registry" not in world.call_names()

    def test_cache_mount_only_with_cache_proxy(self, token_config: ArcConfig) -> None:
        assert cluster_volumes(token_config) == []
        cached = token_config.model_copy(update={"enable_cache_proxy": True})
        assert cluster_volumes(cached) == [f"{RUNNER_CACHE_DIR}:/var/cache/arc@all"]


class TestWaitForApi:
    def test_returns_once_reachable(self) -> None:
        answers = iter([False, False, True])

        class _Objects:
            def reachable(self) -> bool:
                return next(answers)

        wait_for_api(_Objects(), timeout=5, interval=0)

    def test_unreachable_raises_timeout(self) -> None:
        class _Objects:
            def reachable(self) -> bool:
                return False

        with pytest.raises(WaitTimeoutError, match="not reachable"):
            wait_for_api(_Objects(), timeout=0.05, interval=0.01)


class TestRemoval:
    """Tests for cluster and registry teardown phases."""

    def test_remove_cluster_twice(self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig) -> None:
        world.clusters.add("arc-cluster")

        assert remove_cluster(token_config, tools) is Outcome.REMOVED
        assert remove_cluster(token_config, tools) is Outcome.ABSENT

    def test_registry_artifacts(self, world: FakeWorld, tools: Toolbox) -> None:
        world.registries.add("arc-registry")
        world.images = ["localhost:5001/app:1", "ubuntu:24.04"]
        world.directories[RUNNER_CACHE_DIR] = "github-runner"

        remove_registry_artifacts(tools)

        assert world.registries == set()
        assert world.images == ["ubuntu:24.04"]
        assert RUNNER_CACHE_DIR not in world.directories

    def test_unreachable_docker_skips_images(self, world: FakeWorld, tools: Toolbox) -> None:
        world.docker_up = False
        world.images = ["localhost:5001/app:1"]

        remove_registry_artifacts(tools)

        assert world.images == ["localhost:5001/app:1"]

    def test_missing_k3d_skips_cluster(self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig) -> None:
        world.clusters.add("arc-cluster")
        world.tools.discard("k3d")

        assert remove_cluster(token_config, tools) is Outcome.SKIPPED
        assert world.clusters == {"arc-cluster"}

    def test_k3d_listing_failure_skips_registry_only(
        self, world: FakeWorld, tools: Toolbox, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _docker_down(name: str) -> bool:
            raise CommandError("k3d registry list -o json", 1, "Cannot connect to the Docker daemon")

        monkeypatch.setattr(tools.cluster, "registry_exists", _docker_down)
        world.registries.add("arc-registry")
        world.directories[RUNNER_CACHE_DIR] = "github-runner"

        remove_registry_artifacts(tools)

        assert world.registries == {"arc-registry"}
        assert RUNNER_CACHE_DIR not in world.directories

    def test_keep_cache_dir(self, world: FakeWorld, tools: Toolbox) -> None:
        world.registries.add("arc-registry")
        world.directories[RUNNER_CACHE_DIR] = "github-runner"

        remove_registry_artifacts(tools, keep_cache_dir=True)

        assert world.registries == set()
        assert world.directories == {RUNNER_CACHE_DIR: "github-runner"}
