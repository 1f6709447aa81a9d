"""Stable constants shared across the store, document, and query layers."""

from __future__ import annotations

from typing import Final

# Numeric model bounds (64-bit magnitude only).
U64_MAX: Final[int] = 2**64 - 1
I64_MIN: Final[int] = -(2**63)
I64_MAX: Final[int] = 2**63 - 1
I128_MIN: Final[int] = -(2**127)
I128_MAX: Final[int] = 2**127 - 1
U128_MAX: Final[int] = 2**128 - 1

# Dotted-path separator for nested document keys and query fields.
PATH_SEPARATOR: Final[str] = "."

# Document files considered by collection scans.
DOCUMENT_SUFFIX: Final[str] = ".json"
DEFAULT_DOCUMENT_INDENT: Final[int] = 2

# Git subprocess defaults.
DEFAULT_GIT_TIMEOUT_SECONDS: Final[float] = 120.0
DEFAULT_REMOTE_NAME: Final[str] = "origin"
DEFAULT_COMMIT_NAME: Final[str] = "repodb"
DEFAULT_COMMIT_EMAIL: Final[str] = "repodb@example.invalid"

CONFIG_SCHEMA_VERSION: Final[int] = 1

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_COMMIT_EMAIL",
    "DEFAULT_COMMIT_NAME",
    "DEFAULT_DOCUMENT_INDENT",
    "DEFAULT_GIT_TIMEOUT_SECONDS",
    "DEFAULT_REMOTE_NAME",
    "DOCUMENT_SUFFIX",
    "I128_MAX",
    "I128_MIN",
    "I64_MAX",
    "I64_MIN",
    "PATH_SEPARATOR",
    "U128_MAX",
    "U64_MAX",
]
