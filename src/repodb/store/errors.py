"""Closed error taxonomy for repository store lifecycle and synchronization."""

from __future__ import annotations

from typing import ClassVar


class StoreError(RuntimeError):
    """Base error for store failures; names the failed phase and wraps the cause."""

    phase: ClassVar[str] = "operate on"

    def __init__(self, store: str, cause: BaseException | None = None) -> None:
        self.store = store
        self.cause = cause
        message = f"failed to {self.phase} repo {store}"
        if cause is not None:
            detail = str(cause).strip() or type(cause).__name__
            message = f"{message}: {detail}"
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def transient(self) -> bool:
        """True when the underlying failure was a timeout; callers may retry."""
        current: BaseException | None = self.cause
        seen: set[int] = set()
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            if getattr(current, "transient", False) is True:
                return True
            current = getattr(current, "cause", None) or current.__cause__
        return False


class StoreInitializeError(StoreError):
    phase = "initialize"


class StoreCloneError(StoreError):
    phase = "clone"


class StorePullError(StoreError):
    phase = "pull"


class StorePushError(StoreError):
    phase = "push"


class StoreCommitError(StoreError):
    phase = "commit"


class StoreCleanError(StoreError):
    phase = "clean"


__all__ = [
    "StoreCleanError",
    "StoreCloneError",
    "StoreCommitError",
    "StoreError",
    "StoreInitializeError",
    "StorePullError",
    "StorePushError",
]
