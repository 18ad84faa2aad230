"""Unit tests for scale-set values rendering."""

from __future__ import annotations

import yaml

from arc_manager.config import ArcConfig
from arc_manager.values import PROXY_ENV_NAMES, proxy_env, render_scale_set_values, service_url


def _containers(values: dict) -> dict[str, dict]:
    return {container["name"]: container for container in values["template"]["spec"]["containers"]}


def _env_names(container: dict) -> set[str]:
    return {item["name"] for item in container.get("env", [])}


class TestRenderScaleSetValues:
    """Tests for the chart values document."""

    def test_core_fields(self, token_config: ArcConfig) -> None:
        cfg = token_config.model_copy(update={"min_runners": 1, "max_runners": 3})

        values = render_scale_set_values(cfg)

        assert values["githubConfigUrl"] == "https://github.com/acme/widgets"
        assert values["githubConfigSecret"] == "github-app-secret"
        assert values["runnerScaleSetName"] == "k3d-runner"
        assert values["minRunners"] == 1
        assert values["maxRunners"] == 3

    def test_org_scoped_url(self, app_config: ArcConfig) -> None:
        values = render_scale_set_values(app_config)

        assert values["githubConfigUrl"] == "https://github.com/acme"

    def test_controller_service_account_points_at_arc_release(self, token_config: ArcConfig) -> None:
        values = render_scale_set_values(token_config)

        assert values["controllerServiceAccount"] == {
            "namespace": "arc-systems",
            "name": "arc-gha-rs-controller",
        }

    def test_docker_in_docker_layout(self, token_config: ArcConfig) -> None:
        """Runner and dind containers should share the docker socket volume."""
        containers = _containers(render_scale_set_values(token_config))

        assert set(containers) == {"runner", "dind"}
        assert containers["dind"]["securityContext"] == {"privileged": True}
        assert "DOCKER_HOST" in _env_names(containers["runner"])

    def test_no_proxy_settings_without_cache_proxy(self, token_config: ArcConfig) -> None:
        """A disabled cache proxy should leave no proxy variable or mirror anywhere."""
        values = render_scale_set_values(token_config)
        rendered = yaml.safe_dump(values)

        for name in PROXY_ENV_NAMES:
            assert f"name: {name}\n" not in rendered
        assert "--registry-mirror" not in rendered

    def test_proxy_settings_with_cache_proxy(self, token_config: ArcConfig) -> None:
        cfg = token_config.model_copy(update={"enable_cache_proxy": True})

        containers = _containers(render_scale_set_values(cfg))

        for container in containers.values():
            assert set(PROXY_ENV_NAMES) <= _env_names(container)
        assert (
            "--registry-mirror=http://registry-mirror.cache-system.svc.cluster.local:5000"
            in containers["dind"]["args"]
        )

    def test_values_serialize_to_yaml(self, token_config: ArcConfig) -> None:
        values = render_scale_set_values(token_config)

        assert yaml.safe_load(yaml.safe_dump(values)) == values


class TestProxyEnv:
    def test_upper_and_lower_case_twins(self) -> None:
        env = {item["name"]: item["value"] for item in proxy_env()}

        assert env["HTTP_PROXY"] == env["http_proxy"] == service_url("http-proxy", 3128)
        assert env["NO_PROXY"] == env["no_proxy"]
        assert ".svc.cluster.local" in env["NO_PROXY"]
