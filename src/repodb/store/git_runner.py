"""Bounded git subprocess execution with normalized results and typed failures."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from repodb.constants import DEFAULT_GIT_TIMEOUT_SECONDS

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_REDACTED: Final[str] = "***REDACTED***"
_AUTH_HEADER_RE: Final[re.Pattern[str]] = re.compile(
    r"(?i)(authorization:\s*(?:basic|bearer)\s+)\S+"
)
_URL_CREDENTIALS_RE: Final[re.Pattern[str]] = re.compile(r"(://)[^/@\s:]+:[^/@\s]+@")


class GitError(RuntimeError):
    """Base error for git subprocess failures."""

    transient: bool = False


class GitCommandError(GitError):
    """Raised when a git subprocess command exits non-zero."""

    def __init__(
        self,
        *,
        command: Sequence[str],
        returncode: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.command = redact_command(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = redact_text(stderr)
        message = f"git command failed ({returncode}): {' '.join(self.command)}"
        if self.stderr.strip():
            message = f"{message}: {self.stderr.strip()}"
        super().__init__(message)


class GitTimeoutError(GitError):
    """Raised when a git subprocess exceeds its time budget; safe to retry."""

    transient = True

    def __init__(self, *, command: Sequence[str], timeout_seconds: float) -> None:
        self.command = redact_command(command)
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"git command timed out after {timeout_seconds:g}s: {' '.join(self.command)}"
        )


class GitNotFoundError(GitError):
    """Raised when the git executable cannot be launched."""


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Normalized subprocess result."""

    command: tuple[str, ...]
    cwd: str
    returncode: int
    stdout: str
    stderr: str


class GitRunner:
    """Run git commands with a bounded timeout and a non-interactive environment."""

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_GIT_TIMEOUT_SECONDS,
        env_overrides: Mapping[str, str] | None = None,
        executable: str = "git",
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self.timeout_seconds = timeout_seconds
        self.executable = executable
        self._env_overrides = dict(env_overrides or {})

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | str,
        check: bool = True,
        timeout_seconds: float | None = None,
    ) -> CommandResult:
        command = (self.executable, *args)
        run_cwd = Path(cwd).resolve()
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        env["GIT_EDITOR"] = "true"
        env.setdefault("GIT_CONFIG_NOSYSTEM", "1")
        env.update(self._env_overrides)

        try:
            completed = subprocess.run(
                command,
                cwd=run_cwd,
                env=env,
                text=True,
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise GitTimeoutError(command=command, timeout_seconds=timeout) from exc
        except FileNotFoundError as exc:
            if not run_cwd.is_dir():
                raise GitCommandError(
                    command=command,
                    returncode=-1,
                    stdout="",
                    stderr=f"working directory does not exist: {run_cwd}",
                ) from exc
            raise GitNotFoundError(f"git executable not found: {self.executable}") from exc

        result = CommandResult(
            command=redact_command(command),
            cwd=run_cwd.as_posix(),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

        if check and result.returncode != 0:
            raise GitCommandError(
                command=command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return result


def redact_text(text: str) -> str:
    redacted = _AUTH_HEADER_RE.sub(lambda match: f"{match.group(1)}{_REDACTED}", text)
    return _URL_CREDENTIALS_RE.sub(lambda match: f"{match.group(1)}{_REDACTED}@", redacted)


def redact_command(command: Sequence[str]) -> tuple[str, ...]:
    return tuple(redact_text(part) for part in command)


__all__ = [
    "CommandResult",
    "GitCommandError",
    "GitError",
    "GitNotFoundError",
    "GitRunner",
    "GitTimeoutError",
    "redact_command",
    "redact_text",
]
