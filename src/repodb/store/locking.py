"""Process-wide locks keyed by resolved working directory."""

from __future__ import annotations

import threading
from pathlib import Path

_REGISTRY_LOCK = threading.Lock()
# One entry per working directory for the life of the process; stores are few
# and long-lived, and a dropped entry would let two stores race on one path.
_LOCKS: dict[str, threading.RLock] = {}


def lock_for(path: Path | str) -> threading.RLock:
    """Return the re-entrant lock shared by every store on ``path``."""
    key = Path(path).expanduser().resolve(strict=False).as_posix()
    with _REGISTRY_LOCK:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[key] = lock
        return lock


__all__ = ["lock_for"]
