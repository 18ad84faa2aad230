"""Unit tests for the controller, credentials secret and scale-set steps."""

from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeWorld

from arc_manager.components import (
    install_controller,
    install_scale_set,
    provision_credentials_secret,
    remove_controller,
    remove_scale_sets,
    secret_payload,
)
from arc_manager.config import ArcConfig
from arc_manager.errors import ConfigError
from arc_manager.interfaces import Toolbox
from arc_manager.reconcile import Outcome


class TestInstallController:
    """Tests for the runner-controller release."""

    def test_installs_into_arc_systems(self, world: FakeWorld, tools: Toolbox) -> None:
        outcome = install_controller(tools)

        assert outcome is Outcome.CREATED
        assert "arc-systems" in world.namespaces
        release = world.releases[("arc-systems", "arc")]
        assert release["chart"].endswith("/gha-runner-scale-set-controller")

    def test_rerun_upgrades(self, world: FakeWorld, tools: Toolbox) -> None:
        install_controller(tools)
        world.calls.clear()

        outcome = install_controller(tools)

        assert outcome is Outcome.UPDATED
        assert world.call_names() == ["upgrade"]

    def test_remove_is_idempotent(self, world: FakeWorld, tools: Toolbox) -> None:
        install_controller(tools)

        remove_controller(tools)
        remove_controller(tools)

        assert ("arc-systems", "arc") not in world.releases
        assert "arc-systems" not in world.namespaces
        assert world.call_names().count("uninstall") == 1


class TestSecretPayload:
    def test_app_mode(self, app_config: ArcConfig, private_key: Path) -> None:
        literals, files = secret_payload(app_config)

        assert literals == {"github_app_id": "12345", "github_app_installation_id": "67890"}
        assert files == {"github_app_private_key": private_key}

    def test_token_mode(self, token_config: ArcConfig) -> None:
        literals, files = secret_payload(token_config)

        assert literals == {"github_token": "ghp_example"}
        assert files == {}


class TestProvisionCredentialsSecret:
    """Tests for the delete-then-recreate secret step."""

    def test_creates_secret_with_key_file_content(
        self, world: FakeWorld, tools: Toolbox, app_config: ArcConfig, private_key: Path,
    ) -> None:
        outcome = provision_credentials_secret(app_config, tools)

        assert outcome is Outcome.CREATED
        secret = world.secrets[("arc-runners", "github-app-secret")]
        assert secret["github_app_id"] == "12345"
        assert secret["github_app_private_key"] == private_key.read_text()

    def test_rerun_replaces_secret(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig,
    ) -> None:
        """A second run should carry the current credential values."""
        provision_credentials_secret(token_config, tools)
        rotated = token_config.model_copy(update={"github_pat": "ghp_rotated"})
        world.calls.clear()

        outcome = provision_credentials_secret(rotated, tools)

        assert outcome is Outcome.UPDATED
        assert world.call_names() == ["delete_secret", "create_secret"]
        assert world.secrets[("arc-runners", "github-app-secret")] == {"github_token": "ghp_rotated"}

    def test_missing_credentials_touch_nothing(self, world: FakeWorld, tools: Toolbox) -> None:
        with pytest.raises(ConfigError):
            provision_credentials_secret(ArcConfig(github_org="acme"), tools)

        assert world.calls == []


class TestScaleSet:
    """Tests for installing and removing runner scale sets."""

    def test_install_passes_rendered_values(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig,
    ) -> None:
        outcome = install_scale_set(token_config, tools)

        assert outcome is Outcome.CREATED
        release = world.releases[("arc-runners", "k3d-runner")]
        assert release["chart"].endswith("/gha-runner-scale-set")
        assert release["values"]["githubConfigUrl"] == "https://github.com/acme/widgets"

    def test_rerun_upgrades_with_new_bounds(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig,
    ) -> None:
        install_scale_set(token_config, tools)
        resized = token_config.model_copy(update={"max_runners": 9})

        outcome = install_scale_set(resized, tools)

        assert outcome is Outcome.UPDATED
        assert world.releases[("arc-runners", "k3d-runner")]["values"]["maxRunners"] == 9

    def test_remove_uninstalls_every_release(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig,
    ) -> None:
        install_scale_set(token_config, tools)
        install_scale_set(token_config.model_copy(update={"runner_scale_set_name": "gpu"}), tools)

        remove_scale_sets(token_config, tools)

        assert not [key for key in world.releases if key[0] == "arc-runners"]
        assert "arc-runners" not in world.namespaces

    def test_remove_without_namespace_is_noop(
        self, world: FakeWorld, tools: Toolbox, token_config: ArcConfig,
    ) -> None:
        remove_scale_sets(token_config, tools)

        assert world.calls == []
