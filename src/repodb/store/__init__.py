"""Git-backed repository store: lifecycle, synchronization, and document access."""

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
from repodb.store.git_runner import (
    CommandResult,
    GitCommandError,
    GitError,
    GitNotFoundError,
    GitRunner,
    GitTimeoutError,
)
from repodb.store.git_store import GitStore, InitializeResult, TransactionResult

__all__ = [
    "CommandResult",
    "CommitIdentity",
    "GitAuth",
    "GitCommandError",
    "GitError",
    "GitNotFoundError",
    "GitRunner",
    "GitStore",
    "GitTimeoutError",
    "InitializeResult",
    "StoreCleanError",
    "StoreCloneError",
    "StoreCommitError",
    "StoreError",
    "StoreInitializeError",
    "StorePullError",
    "StorePushError",
    "TransactionResult",
]
