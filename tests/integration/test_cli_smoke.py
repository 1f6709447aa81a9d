"""
repodb — CLI smoke contracts

File: tests/integration/test_cli_smoke.py

Purpose
- Drive `repodb` subcommands end to end against a local bare remote.
- Verify exit codes, JSON output, and the side effects in the working copy.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from repodb.main import ExitCode, cli_entrypoint
from repodb.observability import shutdown_logging

pytestmark = pytest.mark.integration

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"


def _git(repo_root: Path, *args: str) -> str:
    env = os.environ.copy()
    env.setdefault("GIT_TERMINAL_PROMPT", "0")
    env.setdefault("GIT_CONFIG_NOSYSTEM", "1")
    completed = subprocess.run(
        ["git", *args],
        cwd=repo_root,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )
    if completed.returncode != 0:
        command = "git " + " ".join(args)
        detail = completed.stderr.strip() or completed.stdout.strip()
        raise RuntimeError(f"git command failed: {command}: {detail}")
    return completed.stdout


def _write(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    for name in list(os.environ):
        if name.startswith("REPODB_"):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def _cleanup_logging() -> object:
    yield
    shutdown_logging()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    remote = tmp_path / "remote.git"
    _git(tmp_path, "init", "--quiet", "--bare", "-b", "main", str(remote))
    seed = tmp_path / "seed"
    _git(tmp_path, "init", "--quiet", "-b", "main", str(seed))
    _write(seed / "users" / "alice.json", json.dumps({"name": "alice", "age": 31}))
    _git(seed, "add", "--all")
    _git(seed, "-c", "user.name=seed", "-c", "user.email=seed@example.invalid", "commit", "-m", "seed")
    _git(seed, "remote", "add", "origin", str(remote))
    _git(seed, "push", "--quiet", "origin", "main")

    path = tmp_path / "repodb.toml"
    _write(
        path,
        "\n".join(
            [
                "[meta]",
                "schema_version = 1",
                "",
                "[observability]",
                "log_to_stderr = false",
                "",
                "[stores.docs]",
                f"url = {json.dumps(remote.as_posix())}",
                'path = "work"',
                'commit_name = "cli"',
                'commit_email = "cli@example.invalid"',
                "",
            ]
        ),
    )
    return path


def _run(capsys: pytest.CaptureFixture[str], config: Path, *args: str) -> tuple[int, str, str]:
    code = cli_entrypoint([*args, "--config", str(config)])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def _json(out: str) -> object:
    return json.loads(out.strip())


def test_document_workflow(capsys: pytest.CaptureFixture[str], config_path: Path) -> None:
    code, out, _ = _run(capsys, config_path, "init")
    assert code == ExitCode.SUCCESS
    payload = _json(out)
    assert payload["cloned"] is True
    assert payload["path"] == (config_path.parent / "work").resolve().as_posix()

    code, out, _ = _run(capsys, config_path, "get", "users/alice.json", "name")
    assert code == ExitCode.SUCCESS
    assert _json(out) == "alice"

    code, out, _ = _run(
        capsys, config_path, "set", "users/bob.json", "address.city", "Berlin", "--create"
    )
    assert code == ExitCode.SUCCESS
    assert _json(out) == {"address": {"city": "Berlin"}}

    code, out, _ = _run(capsys, config_path, "set", "users/bob.json", "age", "17")
    assert _json(out) == {"address": {"city": "Berlin"}, "age": 17}

    code, out, _ = _run(capsys, config_path, "find", "--where", "age", ">=", "18")
    assert code == ExitCode.SUCCESS
    assert _json(out) == [{"name": "alice", "age": 31}]

    code, out, _ = _run(
        capsys, config_path, "find", "--collection", "users", "--where", "name", "==", "nobody", "--one"
    )
    assert _json(out) is None

    code, out, _ = _run(capsys, config_path, "unset", "users/bob.json", "address")
    assert _json(out) == {"age": 17}

    code, out, _ = _run(capsys, config_path, "commit", "add bob")
    assert code == ExitCode.SUCCESS
    sha = _json(out)["commit"]
    work = config_path.parent / "work"
    assert _git(work, "log", "-1", "--format=%H %an").split() == [sha, "cli"]

    code, out, _ = _run(capsys, config_path, "push")
    assert code == ExitCode.SUCCESS
    assert _git(config_path.parent / "remote.git", "rev-parse", "main").strip() == sha


def test_yaml_output_and_clean(capsys: pytest.CaptureFixture[str], config_path: Path) -> None:
    assert _run(capsys, config_path, "init")[0] == ExitCode.SUCCESS
    assert _run(capsys, config_path, "set", "users/alice.json", "age", "99")[0] == 0

    code, _, _ = _run(capsys, config_path, "clean")
    assert code == ExitCode.SUCCESS

    code, out, _ = _run(capsys, config_path, "get", "users/alice.json", "--format", "yaml")
    assert code == ExitCode.SUCCESS
    assert out.splitlines() == ["age: 31", "name: alice"]


def test_config_command_redacts(capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
    config = tmp_path / "repodb.toml"
    _write(
        config,
        "[meta]\nschema_version = 1\n\n"
        '[stores.docs]\nurl = "https://bob:pw@example.invalid/docs.git"\npath = "work"\n'
        'token_env = "DOCS_TOKEN"\n',
    )

    code, out, _ = _run(capsys, config, "config")

    assert code == ExitCode.SUCCESS
    store = _json(out)["config"]["stores"]["docs"]
    assert store["url"] == "https://<redacted>@example.invalid/docs.git"
    assert store["token_env"] == "DOCS_TOKEN"
    assert store["path"] == (tmp_path / "work").resolve().as_posix()


def test_error_exit_codes(capsys: pytest.CaptureFixture[str], config_path: Path) -> None:
    code, _, err = _run(capsys, config_path, "get", "users/alice.json")
    assert code == ExitCode.DOCUMENT_ERROR
    assert "repo document not found (users/alice.json)" in err

    assert _run(capsys, config_path, "init")[0] == ExitCode.SUCCESS

    code, _, err = _run(capsys, config_path, "get", "users/alice.json", "missing")
    assert code == ExitCode.DOCUMENT_ERROR
    assert "key not found" in err

    code, _, err = _run(capsys, config_path, "get", "../escape.json")
    assert code == ExitCode.DOCUMENT_ERROR

    code, _, err = _run(capsys, config_path, "find", "--where", "age", "~", "1")
    assert code == ExitCode.CONFIG_ERROR
    assert "unsupported operator" in err

    code, _, err = _run(capsys, config_path, "init", "--store", "other")
    assert code == ExitCode.CONFIG_ERROR
    assert "store is not defined" in err


def test_store_error_exit_code(capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
    config = tmp_path / "repodb.toml"
    _write(
        config,
        "[meta]\nschema_version = 1\n\n[observability]\nlog_to_stderr = false\n\n"
        '[stores.docs]\nurl = "/nonexistent/remote.git"\npath = "work"\n',
    )

    code, _, err = _run(capsys, config, "init")

    assert code == ExitCode.STORE_ERROR
    assert "failed to clone repo docs" in err


def test_missing_config_file_is_config_error(
    capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    code, _, err = _run(capsys, tmp_path / "absent.toml", "config")

    assert code == ExitCode.CONFIG_ERROR
    assert "config file not found" in err


def test_module_entrypoint_help(tmp_path: Path) -> None:
    env = os.environ.copy()
    existing_pythonpath = env.get("PYTHONPATH")
    src_pythonpath = str(SRC_PATH)
    env["PYTHONPATH"] = (
        src_pythonpath if not existing_pythonpath else f"{src_pythonpath}:{existing_pythonpath}"
    )
    completed = subprocess.run(
        [sys.executable, "-m", "repodb", "--help"],
        cwd=tmp_path,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )

    assert completed.returncode == 0
    assert "repodb find --where" in completed.stdout
