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

"""Check-then-act reconciliation shared by every provisioning step.

Each resource is observed first and only the delta is applied:

* ``ensure`` creates an absent resource, or runs ``update`` (upgrade or
  replace) on a present one, or leaves it alone when no update is given.
* ``ensure_absent`` deletes a present resource and treats absence, including
  a "not found" race during deletion, as success.
"""

from __future__ import annotations

import enum
from collections.abc import Callable

from arc_manager import log_info, logger
from arc_manager.errors import CommandError


class Outcome(str, enum.Enum):
    """What a reconciliation call did."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    REMOVED = "removed"
    ABSENT = "absent"
    SKIPPED = "skipped"


def ensure(
    kind: str,
    identity: str,
    *,
    exists: Callable[[], bool],
    create: Callable[[], None],
    update: Callable[[], None] | None = None,
) -> Outcome:
    """Converge a resource towards present.

    Args:
        kind: Human-readable resource kind (e.g. ``namespace``).
        identity: Resource name used in progress output.
        exists: Observes live state.
        create: Called when the resource is absent.
        update: Called when the resource is present, or None when presence
            alone satisfies the desired state.

    Returns:
        The outcome of the call.
    """
    if not exists():
        logger.debug("%s %s absent, creating", kind, identity)
        create()
        log_info(f"Created {kind} {identity}")
        return Outcome.CREATED
    if update is None:
        log_info(f"{kind.capitalize()} {identity} already exists")
        return Outcome.UNCHANGED
    logger.debug("%s %s present, updating", kind, identity)
    update()
    log_info(f"Updated {kind} {identity}")
    return Outcome.UPDATED


def ensure_absent(
    kind: str,
    identity: str,
    *,
    exists: Callable[[], bool],
    delete: Callable[[], None],
) -> Outcome:
    """Converge a resource towards absent.

    Args:
        kind: Human-readable resource kind.
        identity: Resource name used in progress output.
        exists: Observes live state.
        delete: Called when the resource is present.

    Returns:
        ``REMOVED`` if a deletion happened, ``ABSENT`` otherwise.

    Raises:
        CommandError: If deletion fails for a reason other than absence.
    """
    if not exists():
        log_info(f"{kind.capitalize()} {identity} does not exist")
        return Outcome.ABSENT
    try:
        delete()
    except CommandError as err:
        if not err.not_found:
            raise
        logger.debug("%s %s disappeared during deletion: %s", kind, identity, err.stderr)
        return Outcome.ABSENT
    log_info(f"Deleted {kind} {identity}")
    return Outcome.REMOVED
