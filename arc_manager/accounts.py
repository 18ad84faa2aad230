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

"""The unprivileged service account that owns runner directories."""

from __future__ import annotations

from pathlib import Path

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_fixed

from arc_manager import log_info, log_warn, logger, phase
from arc_manager.constants import (
    DOCKER_GROUP,
    NOLOGIN_SHELL,
    RUNNER_CACHE_DIR,
    RUNNER_HOME,
    RUNNER_USER,
    USER_DELETE_MAX_RETRIES,
    USER_DELETE_RETRY_WAIT_SECONDS,
)
from arc_manager.errors import CommandError
from arc_manager.interfaces import HostSystem
from arc_manager.reconcile import Outcome, ensure, ensure_absent

# userdel exits 8 while the user is still logged in or running processes.
USERDEL_USER_BUSY = 8


def ensure_owned_directory(host: HostSystem, path: Path, owner: str) -> Outcome:
    """Create *path* owned by *owner*, or fix its ownership if it drifted."""
    if host.directory_exists(path):
        current = host.directory_owner(path)
        if current != owner:
            logger.debug("%s owned by %s, expected %s", path, current, owner)
            host.set_owner(path, owner)
            log_info(f"Changed owner of {path} to {owner}")
            return Outcome.UPDATED
    return ensure(
        "directory", str(path),
        exists=lambda: host.directory_exists(path),
        create=lambda: host.make_directory(path, owner),
    )


def provision_service_account(host: HostSystem) -> None:
    """Create the runner service account, its directories and group membership.

    A failed docker-group membership is reported but does not abort setup.

    Args:
        host: Local machine operations.
    """
    phase("Creating service account")
    ensure(
        "user", RUNNER_USER,
        exists=lambda: host.user_exists(RUNNER_USER),
        create=lambda: host.create_system_user(RUNNER_USER, RUNNER_HOME, NOLOGIN_SHELL),
    )
    ensure_owned_directory(host, RUNNER_HOME, RUNNER_USER)
    ensure_owned_directory(host, RUNNER_CACHE_DIR, RUNNER_USER)

    if not host.group_exists(DOCKER_GROUP):
        log_warn(f"Group '{DOCKER_GROUP}' does not exist; skipping membership for {RUNNER_USER}")
        return
    try:
        host.add_user_to_group(RUNNER_USER, DOCKER_GROUP)
    except CommandError as err:
        log_warn(f"Could not add {RUNNER_USER} to group '{DOCKER_GROUP}': {err}")
        return
    log_info(f"{RUNNER_USER} is a member of group '{DOCKER_GROUP}'")


def _user_busy(err: BaseException) -> bool:
    return isinstance(err, CommandError) and err.exit_code == USERDEL_USER_BUSY


def _delete_user(host: HostSystem) -> None:
    @retry(
        retry=retry_if_exception(_user_busy),
        stop=stop_after_attempt(USER_DELETE_MAX_RETRIES),
        wait=wait_fixed(USER_DELETE_RETRY_WAIT_SECONDS),
        reraise=True,
    )
    def _attempt() -> None:
        host.kill_user_processes(RUNNER_USER)
        host.delete_user(RUNNER_USER)

    _attempt()


def remove_service_account(host: HostSystem) -> None:
    """Stop the account's processes, delete it, then remove its home directory.

    Raises:
        CommandError: If the account cannot be deleted.
    """
    phase("Removing service account")
    ensure_absent(
        "user", RUNNER_USER,
        exists=lambda: host.user_exists(RUNNER_USER),
        delete=lambda: _delete_user(host),
    )
    ensure_absent(
        "directory", str(RUNNER_HOME),
        exists=lambda: host.directory_exists(RUNNER_HOME),
        delete=lambda: host.remove_directory(RUNNER_HOME),
    )
