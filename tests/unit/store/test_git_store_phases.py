from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from repodb.store.errors import StoreError, StoreInitializeError, StorePullError
from repodb.store.git_runner import CommandResult, GitCommandError
from repodb.store.git_store import GitStore

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

pytestmark = pytest.mark.unit


class _ScriptedRunner:
    """Succeeds for every git command except those starting with ``fail_on``."""

    def __init__(self, fail_on: str) -> None:
        self.fail_on = fail_on
        self.calls: list[tuple[str, ...]] = []

    def run(self, args: Sequence[str], *, cwd: object, check: bool = True) -> CommandResult:
        command = tuple(args)
        self.calls.append(command)
        if self.fail_on in command:
            raise GitCommandError(
                command=("git", *command), returncode=128, stdout="", stderr="fatal: bad HEAD"
            )
        return CommandResult(
            command=("git", *command), cwd=str(cwd), returncode=0, stdout="", stderr=""
        )


def _store(tmp_path: Path, runner: _ScriptedRunner) -> GitStore:
    store = GitStore("docs", "https://example.invalid/docs.git", tmp_path / "work")
    store._git = runner  # type: ignore[assignment]
    return store


def test_transaction_reports_head_failure_as_pull_phase(tmp_path: Path) -> None:
    runner = _ScriptedRunner(fail_on="rev-parse")
    store = _store(tmp_path, runner)
    modified: list[bool] = []

    with pytest.raises(StorePullError) as excinfo:
        store.transaction("msg", lambda s: modified.append(True))

    assert str(excinfo.value).startswith("failed to pull repo docs")
    assert modified == []
    assert any("pull" in call for call in runner.calls)


def test_head_failure_defaults_to_generic_store_error(tmp_path: Path) -> None:
    store = _store(tmp_path, _ScriptedRunner(fail_on="rev-parse"))

    with pytest.raises(StoreError) as excinfo:
        store.head()

    assert not isinstance(excinfo.value, StoreInitializeError)
    assert type(excinfo.value) is StoreError
