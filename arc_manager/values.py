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

"""Values document for the gha-runner-scale-set chart."""

from __future__ import annotations

from arc_manager.config import ArcConfig
from arc_manager.constants import (
    HELM_RELEASE_CONTROLLER,
    HTTP_PROXY_NAME,
    HTTP_PROXY_PORT,
    NO_PROXY_HOSTS,
    NS_ARC_SYSTEMS,
    NS_CACHE_SYSTEM,
    REGISTRY_MIRROR_NAME,
    REGISTRY_MIRROR_PORT,
    SECRET_NAME,
    dep_value,
)

DOCKER_SOCKET = "unix:///var/run/docker.sock"
DOCKER_GROUP_GID = "123"
RUNNER_WORK_DIR = "/home/runner/_work"
RUNNER_EXTERNALS_DIR = "/home/runner/externals"

PROXY_ENV_NAMES = ("HTTP_PROXY", "HTTPS_PROXY", "NO_PROXY", "http_proxy", "https_proxy", "no_proxy")


def service_url(name: str, port: int) -> str:
    """In-cluster HTTP URL of a cache-proxy service."""
    return f"http://{name}.{NS_CACHE_SYSTEM}.svc.cluster.local:{port}"


def proxy_env() -> list[dict[str, str]]:
    """Proxy variables pointing at the in-cluster HTTP proxy, upper and lower case."""
    proxy = service_url(HTTP_PROXY_NAME, HTTP_PROXY_PORT)
    no_proxy = ",".join(NO_PROXY_HOSTS)
    values = {
        "HTTP_PROXY": proxy,
        "HTTPS_PROXY": proxy,
        "NO_PROXY": no_proxy,
    }
    env = [{"name": key, "value": value} for key, value in values.items()]
    env += [{"name": key.lower(), "value": value} for key, value in values.items()]
    return env


def _runner_container(image: str, cache_proxy: bool) -> dict:
    env = [{"name": "DOCKER_HOST", "value": DOCKER_SOCKET}]
    if cache_proxy:
        env += proxy_env()
    return {
        "name": "runner",
        "image": image,
        "command": ["/home/runner/run.sh"],
        "env": env,
        "volumeMounts": [
            {"name": "work", "mountPath": RUNNER_WORK_DIR},
            {"name": "dind-sock", "mountPath": "/var/run"},
        ],
    }


def _dind_container(image: str, cache_proxy: bool) -> dict:
    args = [
        "dockerd",
        f"--host={DOCKER_SOCKET}",
        "--group=$(DOCKER_GROUP_GID)",
    ]
    env = [{"name": "DOCKER_GROUP_GID", "value": DOCKER_GROUP_GID}]
    if cache_proxy:
        args.append(f"--registry-mirror={service_url(REGISTRY_MIRROR_NAME, REGISTRY_MIRROR_PORT)}")
        env += proxy_env()
    return {
        "name": "dind",
        "image": image,
        "args": args,
        "env": env,
        "securityContext": {"privileged": True},
        "volumeMounts": [
            {"name": "work", "mountPath": RUNNER_WORK_DIR},
            {"name": "dind-sock", "mountPath": "/var/run"},
            {"name": "dind-externals", "mountPath": RUNNER_EXTERNALS_DIR},
        ],
    }


def render_scale_set_values(cfg: ArcConfig) -> dict:
    """Build the scale-set chart values for *cfg*.

    The runner pod is spelled out in Docker-in-Docker form so the runner
    and ``dind`` containers can carry proxy settings. Proxy variables and
    the registry mirror are only present when the cache proxy is enabled.

    Args:
        cfg: Loaded configuration.

    Returns:
        Values mapping ready for YAML serialization.
    """
    runner_image = dep_value("runner", "image")
    dind_image = dep_value("runner", "dind_image")
    return {
        "githubConfigUrl": cfg.github_config_url,
        "githubConfigSecret": SECRET_NAME,
        "runnerScaleSetName": cfg.runner_scale_set_name,
        "minRunners": cfg.min_runners,
        "maxRunners": cfg.max_runners,
        "controllerServiceAccount": {
            "namespace": NS_ARC_SYSTEMS,
            "name": f"{HELM_RELEASE_CONTROLLER}-gha-rs-controller",
        },
        "template": {
            "spec": {
                "initContainers": [
                    {
                        "name": "init-dind-externals",
                        "image": runner_image,
                        "command": ["cp", "-r", f"{RUNNER_EXTERNALS_DIR}/.", "/home/runner/tmpDir/"],
                        "volumeMounts": [{"name": "dind-externals", "mountPath": "/home/runner/tmpDir"}],
                    },
                ],
                "containers": [
                    _runner_container(runner_image, cfg.enable_cache_proxy),
                    _dind_container(dind_image, cfg.enable_cache_proxy),
                ],
                "volumes": [
                    {"name": "work", "emptyDir": {}},
                    {"name": "dind-sock", "emptyDir": {}},
                    {"name": "dind-externals", "emptyDir": {}},
                ],
            },
        },
    }
