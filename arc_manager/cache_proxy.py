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

"""Caching proxies: Docker Hub registry mirror, apt package cache, HTTP proxy.

Each proxy is a single-replica Deployment with a Service and a hostPath
PersistentVolume under the cluster-wide cache mount, so cached content
survives pod restarts and cluster re-creation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from arc_manager import log_info, phase
from arc_manager.accounts import ensure_owned_directory
from arc_manager.components import ensure_namespace, remove_namespace
from arc_manager.constants import (
    APT_CACHE_NAME,
    APT_CACHE_PORT,
    CACHE_PART_OF_LABEL,
    CACHE_PART_OF_VALUE,
    CACHE_VOLUME_SIZE,
    CLUSTER_CACHE_MOUNT,
    HTTP_PROXY_NAME,
    HTTP_PROXY_PORT,
    NS_CACHE_SYSTEM,
    REGISTRY_MIRROR_NAME,
    REGISTRY_MIRROR_PORT,
    ROLLOUT_TIMEOUT,
    RUNNER_CACHE_DIR,
    RUNNER_USER,
    dep_value,
)
from arc_manager.interfaces import Toolbox

SQUID_CONFIG = """\
http_port 3128
acl localnet src 10.0.0.0/8
acl localnet src 172.16.0.0/12
acl localnet src 192.168.0.0/16
http_access allow localnet
http_access deny all
cache_dir ufs /var/spool/squid 10000 16 256
maximum_object_size 1 GB
coredump_dir /var/spool/squid
"""
SQUID_CONFIGMAP = "http-proxy-config"


@dataclass(frozen=True)
class CacheComponent:
    """One proxy workload.

    Attributes:
        name: Deployment, Service, PV and PVC name.
        image: Container image.
        port: Container and Service port.
        data_path: Mount path of the cache volume inside the container.
        env: Extra container environment.
        config_map: Optional ConfigMap mounted as a single file.
    """

    name: str
    image: str
    port: int
    data_path: str
    env: dict[str, str] = field(default_factory=dict)
    config_map: tuple[str, str, str] | None = None


def cache_components() -> list[CacheComponent]:
    return [
        CacheComponent(
            name=REGISTRY_MIRROR_NAME,
            image=dep_value("cache_proxy", "registry_mirror", "image"),
            port=REGISTRY_MIRROR_PORT,
            data_path="/var/lib/registry",
            env={"REGISTRY_PROXY_REMOTEURL": dep_value("cache_proxy", "registry_mirror", "upstream")},
        ),
        CacheComponent(
            name=APT_CACHE_NAME,
            image=dep_value("cache_proxy", "apt_cache", "image"),
            port=APT_CACHE_PORT,
            data_path="/var/cache/apt-cacher-ng",
        ),
        CacheComponent(
            name=HTTP_PROXY_NAME,
            image=dep_value("cache_proxy", "http_proxy", "image"),
            port=HTTP_PROXY_PORT,
            data_path="/var/spool/squid",
            config_map=(SQUID_CONFIGMAP, "squid.conf", "/etc/squid/squid.conf"),
        ),
    ]


def _labels(name: str) -> dict[str, str]:
    return {"app": name, CACHE_PART_OF_LABEL: CACHE_PART_OF_VALUE}


def _persistent_volume(component: CacheComponent) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolume",
        "metadata": {"name": component.name, "labels": _labels(component.name)},
        "spec": {
            "capacity": {"storage": CACHE_VOLUME_SIZE},
            "accessModes": ["ReadWriteOnce"],
            "persistentVolumeReclaimPolicy": "Retain",
            "storageClassName": "",
            "hostPath": {"path": f"{CLUSTER_CACHE_MOUNT}/{component.name}", "type": "DirectoryOrCreate"},
            "claimRef": {"namespace": NS_CACHE_SYSTEM, "name": component.name},
        },
    }


def _persistent_volume_claim(component: CacheComponent) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": component.name, "namespace": NS_CACHE_SYSTEM, "labels": _labels(component.name)},
        "spec": {
            "accessModes": ["ReadWriteOnce"],
            "storageClassName": "",
            "volumeName": component.name,
            "resources": {"requests": {"storage": CACHE_VOLUME_SIZE}},
        },
    }


def _deployment(component: CacheComponent) -> dict:
    mounts = [{"name": "cache", "mountPath": component.data_path}]
    volumes = [{"name": "cache", "persistentVolumeClaim": {"claimName": component.name}}]
    if component.config_map:
        map_name, key, path = component.config_map
        mounts.append({"name": "config", "mountPath": path, "subPath": key})
        volumes.append({"name": "config", "configMap": {"name": map_name}})

    container = {
        "name": component.name,
        "image": component.image,
        "ports": [{"containerPort": component.port}],
        "volumeMounts": mounts,
    }
    if component.env:
        container["env"] = [{"name": key, "value": value} for key, value in component.env.items()]

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": component.name, "namespace": NS_CACHE_SYSTEM, "labels": _labels(component.name)},
        "spec": {
            "replicas": 1,
            "strategy": {"type": "Recreate"},
            "selector": {"matchLabels": {"app": component.name}},
            "template": {
                "metadata": {"labels": _labels(component.name)},
                "spec": {"containers": [container], "volumes": volumes},
            },
        },
    }


def _service(component: CacheComponent) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": component.name, "namespace": NS_CACHE_SYSTEM, "labels": _labels(component.name)},
        "spec": {
            "selector": {"app": component.name},
            "ports": [{"port": component.port, "targetPort": component.port}],
        },
    }


def cache_proxy_manifests() -> list[dict]:
    """All cache-proxy objects, in apply order."""
    documents: list[dict] = [
        {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {
                "name": SQUID_CONFIGMAP,
                "namespace": NS_CACHE_SYSTEM,
                "labels": _labels(HTTP_PROXY_NAME),
            },
            "data": {"squid.conf": SQUID_CONFIG},
        },
    ]
    for component in cache_components():
        documents += [
            _persistent_volume(component),
            _persistent_volume_claim(component),
            _deployment(component),
            _service(component),
        ]
    return documents


def provision_cache_proxy(tools: Toolbox) -> None:
    """Create host cache directories, apply the proxies, and wait for rollout.

    Raises:
        WaitTimeoutError: If a deployment does not roll out in time.
    """
    phase("Deploying cache proxies")
    components = cache_components()
    for component in components:
        ensure_owned_directory(tools.host, RUNNER_CACHE_DIR / component.name, RUNNER_USER)
    ensure_namespace(tools.objects, NS_CACHE_SYSTEM)
    # kubectl apply creates or patches each object in place.
    tools.objects.apply_manifests(cache_proxy_manifests())
    for component in components:
        log_info(f"Waiting for {component.name} rollout...")
        tools.objects.rollout_status(component.name, NS_CACHE_SYSTEM, ROLLOUT_TIMEOUT)
    log_info("Cache proxies ready")


def remove_cache_proxy(tools: Toolbox) -> None:
    """Delete the proxies, their volumes, and the cache-system namespace."""
    phase("Removing cache proxies")
    if tools.objects.namespace_exists(NS_CACHE_SYSTEM):
        tools.objects.delete_manifests(cache_proxy_manifests())
    tools.objects.delete_labelled("persistentvolume", f"{CACHE_PART_OF_LABEL}={CACHE_PART_OF_VALUE}")
    remove_namespace(tools.objects, NS_CACHE_SYSTEM)
    log_info("Cache proxies removed")
