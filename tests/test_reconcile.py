"""Unit tests for the check-then-act reconciliation helpers."""

from __future__ import annotations

import pytest

from arc_manager.errors import CommandError
from arc_manager.reconcile import Outcome, ensure, ensure_absent


class _Resource:
    """A single toggleable resource with a call log."""

    def __init__(self, present: bool = False) -> None:
        self.present = present
        self.calls: list[str] = []

    def exists(self) -> bool:
        return self.present

    def create(self) -> None:
        self.calls.append("create")
        self.present = True

    def update(self) -> None:
        self.calls.append("update")

    def delete(self) -> None:
        self.calls.append("delete")
        self.present = False


class TestEnsure:
    """Tests for converging towards present."""

    def test_creates_when_absent(self) -> None:
        resource = _Resource()

        outcome = ensure("namespace", "arc-runners", exists=resource.exists, create=resource.create)

        assert outcome is Outcome.CREATED
        assert resource.calls == ["create"]

    def test_leaves_present_resource_alone_without_update(self) -> None:
        resource = _Resource(present=True)

        outcome = ensure("namespace", "arc-runners", exists=resource.exists, create=resource.create)

        assert outcome is Outcome.UNCHANGED
        assert resource.calls == []

    def test_updates_present_resource(self) -> None:
        resource = _Resource(present=True)

        outcome = ensure(
            "helm release", "arc",
            exists=resource.exists, create=resource.create, update=resource.update,
        )

        assert outcome is Outcome.UPDATED
        assert resource.calls == ["update"]

    def test_second_call_does_not_create_again(self) -> None:
        resource = _Resource()

        ensure("cluster", "arc-cluster", exists=resource.exists, create=resource.create)
        outcome = ensure("cluster", "arc-cluster", exists=resource.exists, create=resource.create)

        assert outcome is Outcome.UNCHANGED
        assert resource.calls == ["create"]

    def test_create_failure_propagates(self) -> None:
        def _fail() -> None:
            raise CommandError("k3d cluster create x", 1, "boom")

        with pytest.raises(CommandError, match="boom"):
            ensure("cluster", "x", exists=lambda: False, create=_fail)


class TestEnsureAbsent:
    """Tests for converging towards absent."""

    def test_deletes_when_present(self) -> None:
        resource = _Resource(present=True)

        outcome = ensure_absent("secret", "s", exists=resource.exists, delete=resource.delete)

        assert outcome is Outcome.REMOVED
        assert resource.calls == ["delete"]

    def test_absent_is_success(self) -> None:
        resource = _Resource()

        outcome = ensure_absent("secret", "s", exists=resource.exists, delete=resource.delete)

        assert outcome is Outcome.ABSENT
        assert resource.calls == []

    def test_not_found_during_delete_is_tolerated(self) -> None:
        """A resource vanishing between check and delete should count as absent."""

        def _vanished() -> None:
            raise CommandError("kubectl delete namespace x", 1, 'namespaces "x" not found')

        outcome = ensure_absent("namespace", "x", exists=lambda: True, delete=_vanished)

        assert outcome is Outcome.ABSENT

    def test_other_delete_failures_propagate(self) -> None:
        def _forbidden() -> None:
            raise CommandError("kubectl delete namespace x", 1, "Forbidden")

        with pytest.raises(CommandError, match="Forbidden"):
            ensure_absent("namespace", "x", exists=lambda: True, delete=_forbidden)

    def test_dns_failure_is_not_absence(self) -> None:
        """Resolver errors mention "no such host" but say nothing about the resource."""

        def _dns_failure() -> None:
            raise CommandError(
                "kubectl delete namespace x", 1,
                "dial tcp: lookup k3d-arc-cluster-serverlb: no such host",
            )

        with pytest.raises(CommandError, match="no such host"):
            ensure_absent("namespace", "x", exists=lambda: True, delete=_dns_failure)
