"""Unit tests for command execution and failure translation."""

from __future__ import annotations

import pytest
import sh
import yaml

from arc_manager import utils
from arc_manager.errors import CommandError, PrerequisiteError, WaitTimeoutError


class _FakeCommand:
    """Stands in for an ``sh.Command``: returns *stdout* or raises *error*."""

    def __init__(self, stdout: str = "", error: Exception | None = None) -> None:
        self.stdout = stdout
        self.error = error
        self.calls: list[tuple[tuple, dict]] = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return self.stdout


def _patch_command(monkeypatch: pytest.MonkeyPatch, command: _FakeCommand) -> None:
    monkeypatch.setattr(utils.sh, "Command", lambda program: command)


class TestRun:
    """Tests for the sh wrapper."""

    def test_returns_stdout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        command = _FakeCommand(stdout="v1.30.0\n")
        _patch_command(monkeypatch, command)

        assert utils.run("kubectl", "version", "--client") == "v1.30.0\n"
        args, kwargs = command.calls[0]
        assert args == ("version", "--client")
        assert kwargs["_timeout"] == utils.COMMAND_TIMEOUT_SECONDS

    def test_passes_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        command = _FakeCommand()
        _patch_command(monkeypatch, command)

        utils.run("bash", stdin="echo hi\n")

        assert command.calls[0][1]["_in"] == "echo hi\n"

    def test_non_zero_exit_becomes_command_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        error = sh.ErrorReturnCode_1("kubectl get ns x", b"", b'namespaces "x" not found')
        _patch_command(monkeypatch, _FakeCommand(error=error))

        with pytest.raises(CommandError) as excinfo:
            utils.run("kubectl", "get", "ns", "x")

        assert excinfo.value.exit_code == 1
        assert excinfo.value.command == "kubectl get ns x"
        assert excinfo.value.not_found

    def test_wait_timeout_in_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        error = sh.ErrorReturnCode_1(
            "kubectl wait", b"", b"error: timed out waiting for the condition on nodes/k3d-x",
        )
        _patch_command(monkeypatch, _FakeCommand(error=error))

        with pytest.raises(WaitTimeoutError):
            utils.run("kubectl", "wait", "--for=condition=Ready", "nodes", "--all")

    def test_process_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_command(monkeypatch, _FakeCommand(error=sh.TimeoutException(-9, "helm install")))

        with pytest.raises(WaitTimeoutError, match="timed out"):
            utils.run("helm", "install", timeout=1)

    def test_missing_program(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _not_found(program: str):
            raise sh.CommandNotFound(program)

        monkeypatch.setattr(utils.sh, "Command", _not_found)

        with pytest.raises(PrerequisiteError, match="'k3d' not found"):
            utils.run("k3d", "version")


class TestRunPrivileged:
    def test_root_runs_directly(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[tuple] = []
        monkeypatch.setattr(utils.os, "geteuid", lambda: 0)
        monkeypatch.setattr(utils, "run", lambda *args, **kwargs: seen.append(args) or "")

        utils.run_privileged("userdel", "github-runner")

        assert seen == [("userdel", "github-runner")]

    def test_non_root_uses_sudo(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[tuple] = []
        monkeypatch.setattr(utils.os, "geteuid", lambda: 1000)
        monkeypatch.setattr(utils, "run", lambda *args, **kwargs: seen.append(args) or "")

        utils.run_privileged("userdel", "github-runner")

        assert seen == [("sudo", "userdel", "github-runner")]


class TestYamlTempfile:
    def test_single_document(self) -> None:
        with utils.yaml_tempfile({"minRunners": 0}) as path:
            assert yaml.safe_load(path.read_text()) == {"minRunners": 0}

        assert not path.exists()

    def test_multiple_documents(self) -> None:
        documents = [{"kind": "Namespace"}, {"kind": "Service"}]

        with utils.yaml_tempfile(documents) as path:
            assert list(yaml.safe_load_all(path.read_text())) == documents
