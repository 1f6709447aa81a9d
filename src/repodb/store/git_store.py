"""
repodb — git-backed repository store

File: src/repodb/store/git_store.py

Purpose
- Own a working directory that is a checkout of a remote git repository, and
  hand out document views rooted at it.

Functional requirements
- ``initialize``: absent -> clone; present but not a checkout -> destroy and
  clone; valid checkout -> no-op.
- ``pull``/``commit``/``push``/``clean`` map every failure to the store error
  of that phase, keeping the cause.
- Author identity is store-scoped and never read from ambient config.

Non-functional requirements
- Lifecycle and synchronization calls are serialized per working directory.
- Every git subprocess runs with a bounded timeout; no internal retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, TypeVar

from repodb.constants import (
    DEFAULT_DOCUMENT_INDENT,
    DEFAULT_GIT_TIMEOUT_SECONDS,
    DEFAULT_REMOTE_NAME,
)
from repodb.document.json_document import DocumentMatch, JsonDocument, iter_matches
from repodb.store.auth import CommitIdentity, GitAuth
from repodb.store.errors import (
    StoreCleanError,
    StoreCloneError,
    StoreCommitError,
    StoreError,
    StoreInitializeError,
    StorePullError,
    StorePushError,
)
from repodb.store.git_runner import GitCommandError, GitError, GitRunner
from repodb.store.locking import lock_for
from repodb.utils.fs import remove_tree

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from repodb.query.algebra import QueryNode

T = TypeVar("T")

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InitializeResult:
    """Outcome of :meth:`GitStore.initialize`."""

    repo_path: Path
    cloned: bool
    recreated: bool


@dataclass(frozen=True, slots=True)
class TransactionResult:
    """Outcome of :meth:`GitStore.transaction`."""

    value: Any
    commit: str | None
    pushed: bool


class GitStore:
    """Document store backed by a git working copy of a remote repository."""

    def __init__(
        self,
        name: str,
        url: str,
        path: Path | str,
        *,
        branch: str | None = None,
        auth: GitAuth | None = None,
        identity: CommitIdentity | None = None,
        timeout_seconds: float = DEFAULT_GIT_TIMEOUT_SECONDS,
        indent: int | None = DEFAULT_DOCUMENT_INDENT,
        env_overrides: Mapping[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not name.strip():
            raise ValueError("store name cannot be empty")
        if not url.strip():
            raise ValueError("store url cannot be empty")
        self.name = name
        self.url = url
        self.repo_path = Path(path).expanduser().absolute()
        self.branch = branch or None
        self.auth = auth if auth is not None else GitAuth()
        self.identity = identity if identity is not None else CommitIdentity()
        self.indent = indent
        self._git = GitRunner(timeout_seconds=timeout_seconds, env_overrides=env_overrides)
        self._lock = lock_for(self.repo_path)
        self._logger = logger if logger is not None else _LOGGER

    def __repr__(self) -> str:
        return (
            f"GitStore(name={self.name!r}, path={str(self.repo_path)!r}, "
            f"branch={self.branch!r}, auth={self.auth!r})"
        )

    # -- lifecycle ----------------------------------------------------------

    def initialize(self) -> InitializeResult:
        """Ensure the working directory is a valid checkout, cloning when needed."""
        with self._lock:
            recreated = False
            try:
                present = self.repo_path.exists() or self.repo_path.is_symlink()
            except OSError as exc:
                raise StoreInitializeError(self.name, exc) from exc

            if present:
                if self.is_valid_repo():
                    self._log("store_initialize", cloned=False, recreated=False)
                    return InitializeResult(self.repo_path, cloned=False, recreated=False)
                self._logger.warning(
                    "store_invalid_working_directory",
                    extra={"store": self.name, "path": str(self.repo_path)},
                )
                try:
                    remove_tree(self.repo_path)
                except OSError as exc:
                    raise StoreInitializeError(self.name, exc) from exc
                recreated = True

            self._create_dir_and_clone()
            self._log("store_initialize", cloned=True, recreated=recreated)
            return InitializeResult(self.repo_path, cloned=True, recreated=recreated)

    def is_valid_repo(self) -> bool:
        """True iff the working directory is the top level of a git work tree."""
        if not self.repo_path.is_dir():
            return False
        try:
            result = self._git.run(
                ["rev-parse", "--is-inside-work-tree", "--show-toplevel"],
                cwd=self.repo_path,
                check=False,
            )
        except GitError:
            return False
        if result.returncode != 0:
            return False

        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if len(lines) < 2 or lines[0] != "true":
            return False
        try:
            return Path(lines[1]).resolve() == self.repo_path.resolve()
        except OSError:
            return False

    def document(self, path: str) -> JsonDocument:
        """Document view at ``path`` relative to the working directory."""
        return JsonDocument(self.repo_path, path, indent=self.indent, logger=self._logger)

    # -- synchronization ----------------------------------------------------

    def pull(self, rebase: bool = False) -> None:
        """Fetch and integrate remote changes, by rebase or by merge."""
        args = ["pull", "--rebase"] if rebase else ["pull", "--no-rebase", "--no-edit"]
        with self._lock:
            try:
                self._git.run([*self._identity_args(), *args], cwd=self.repo_path)
            except GitError as exc:
                raise StorePullError(self.name, exc) from exc
            self._log("store_pull", rebase=rebase)

    def commit(self, message: str) -> str | None:
        """
        Stage every change and commit it under the store identity.

        Returns the new commit SHA, or ``None`` when there was nothing to commit.
        """
        with self._lock:
            if not message.strip():
                raise StoreCommitError(self.name, ValueError("commit message cannot be empty"))
            try:
                self._git.run(["add", "--all"], cwd=self.repo_path)
                staged = self._git.run(
                    ["diff", "--cached", "--quiet"], cwd=self.repo_path, check=False
                )
                if staged.returncode == 0:
                    self._log("store_commit", commit=None)
                    return None
                if staged.returncode != 1:
                    raise GitCommandError(
                        command=staged.command,
                        returncode=staged.returncode,
                        stdout=staged.stdout,
                        stderr=staged.stderr,
                    )
                self._git.run(
                    [*self._identity_args(), "commit", "--no-gpg-sign", "-m", message],
                    cwd=self.repo_path,
                )
                sha = self._git.run(["rev-parse", "HEAD"], cwd=self.repo_path).stdout.strip()
            except GitError as exc:
                raise StoreCommitError(self.name, exc) from exc
            self._log("store_commit", commit=sha)
            return sha

    def push(self) -> None:
        """Publish local commits of the current branch to the remote."""
        with self._lock:
            try:
                self._git.run(["push", DEFAULT_REMOTE_NAME, "HEAD"], cwd=self.repo_path)
            except GitError as exc:
                raise StorePushError(self.name, exc) from exc
            self._log("store_push")

    def clean(self) -> None:
        """Discard uncommitted state, including untracked and ignored files."""
        self.rollback("HEAD")

    def rollback(self, ref: str = "HEAD") -> None:
        """
        Hard-reset to ``ref``, restore the tree, and remove every untracked file.

        Before the first commit there is no ``HEAD`` to reset to; the index is
        emptied instead so that every file counts as untracked and is removed.
        """
        with self._lock:
            try:
                if ref == "HEAD" and not self._has_head():
                    self._git.run(["read-tree", "--empty"], cwd=self.repo_path)
                else:
                    self._git.run(["reset", "--hard", ref], cwd=self.repo_path)
                    self._git.run(["checkout", "--", "."], cwd=self.repo_path)
                self._git.run(["clean", "-ffdx"], cwd=self.repo_path)
            except GitError as exc:
                raise StoreCleanError(self.name, exc) from exc
            self._log("store_clean", ref=ref)

    def head(self, *, error: type[StoreError] = StoreError) -> str:
        """SHA of ``HEAD``; a failure is raised as ``error`` for the calling phase."""
        try:
            return self._git.run(["rev-parse", "HEAD"], cwd=self.repo_path).stdout.strip()
        except GitError as exc:
            raise error(self.name, exc) from exc

    def transaction(
        self,
        message: str,
        modify: Callable[[GitStore], T],
        *,
        rebase: bool = True,
        push: bool = True,
    ) -> TransactionResult:
        """
        Pull, apply ``modify``, commit, and push as one unit.

        On any failure the working directory is rolled back to the commit it
        had after the pull, and the original error propagates.
        """
        with self._lock:
            self.pull(rebase=rebase)
            # The rollback point is part of the pull step.
            start = self.head(error=StorePullError)
            try:
                value = modify(self)
                sha = self.commit(message)
                pushed = False
                if push and sha is not None:
                    self.push()
                    pushed = True
            except Exception as exc:
                self._logger.warning(
                    "store_transaction_rollback",
                    extra={"store": self.name, "ref": start, "error": str(exc)},
                )
                try:
                    self.rollback(start)
                except StoreError as rollback_exc:
                    exc.add_note(f"rollback to {start} failed: {rollback_exc}")
                raise
            return TransactionResult(value=value, commit=sha, pushed=pushed)

    # -- queries ------------------------------------------------------------

    def find_one(self, query: QueryNode | None = None, *, collection: str | None = None) -> Any:
        for match in self.matches(query, collection=collection):
            return match.content
        return None

    def find_many(
        self, query: QueryNode | None = None, *, collection: str | None = None
    ) -> list[Any]:
        return [match.content for match in self.matches(query, collection=collection)]

    def matches(
        self, query: QueryNode | None = None, *, collection: str | None = None
    ) -> list[DocumentMatch]:
        """Matching documents with their relative paths, sorted by path."""
        return list(iter_matches(self.repo_path, query, collection=collection, indent=self.indent))

    # -- internals ----------------------------------------------------------

    def _create_dir_and_clone(self) -> None:
        try:
            self.repo_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreInitializeError(self.name, exc) from exc

        try:
            self._git.run(self._clone_args(), cwd=self.repo_path.parent)
        except GitError as exc:
            raise StoreCloneError(self.name, exc) from exc

        name, email = self.identity.pair()
        try:
            self._git.run(["config", "--local", "user.name", name], cwd=self.repo_path)
            self._git.run(["config", "--local", "user.email", email], cwd=self.repo_path)
        except GitError as exc:
            raise StoreInitializeError(self.name, exc) from exc

    def _clone_args(self) -> Sequence[str]:
        args = ["clone", "--quiet"]
        if self.branch is not None:
            args.extend(["--branch", self.branch])
        header = self.auth.auth_header()
        if header is not None:
            args.extend(["--config", f"http.extraHeader={header}"])
        if self.auth.insecure:
            args.extend(["--config", "http.sslVerify=false"])
        args.extend(["--", self.url, str(self.repo_path)])
        return args

    def _has_head(self) -> bool:
        result = self._git.run(
            ["rev-parse", "--verify", "--quiet", "HEAD"], cwd=self.repo_path, check=False
        )
        return result.returncode == 0

    def _identity_args(self) -> list[str]:
        name, email = self.identity.pair()
        return ["-c", f"user.name={name}", "-c", f"user.email={email}"]

    def _log(self, event: str, **fields: object) -> None:
        self._logger.info(event, extra={"store": self.name, **fields})


__all__ = ["GitStore", "InitializeResult", "TransactionResult"]
