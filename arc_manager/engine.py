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

"""Docker Engine access through the Docker SDK."""

from __future__ import annotations

from collections.abc import Callable

import docker

from arc_manager import logger
from arc_manager.errors import ArcError, PrerequisiteError


class DockerEngine:
    """ContainerEngine backed by the local Docker daemon.

    Args:
        client_factory: Returns a connected ``docker.DockerClient``.
    """

    def __init__(self, client_factory: Callable[[], docker.DockerClient] = docker.from_env) -> None:
        self._client_factory = client_factory

    def _client(self) -> docker.DockerClient:
        try:
            return self._client_factory()
        except docker.errors.DockerException as err:
            raise PrerequisiteError(
                f"docker daemon is not running or user lacks permissions: {err}"
            ) from err

    def ping(self) -> None:
        """Raise PrerequisiteError unless the daemon answers."""
        client = self._client()
        try:
            client.ping()
        except docker.errors.DockerException as err:
            raise PrerequisiteError(
                f"docker daemon is not running or user lacks permissions: {err}"
            ) from err
        finally:
            client.close()

    def remove_images(self, repository_prefix: str) -> int:
        """Remove every local tag starting with *repository_prefix*.

        Args:
            repository_prefix: e.g. ``localhost:5001/``.

        Returns:
            Number of tags removed.
        """
        client = self._client()
        removed = 0
        try:
            for image in client.images.list():
                for tag in image.tags:
                    if not tag.startswith(repository_prefix):
                        continue
                    try:
                        client.images.remove(tag, force=True)
                    except docker.errors.ImageNotFound:
                        logger.debug("image %s already removed", tag)
                        continue
                    except docker.errors.APIError as err:
                        raise ArcError(f"Failed to remove image {tag}: {err}") from err
                    removed += 1
        finally:
            client.close()
        return removed
