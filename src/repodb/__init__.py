"""
repodb — JSON documents in a git repository

File: src/repodb/__init__.py

Purpose
- Package root. A git working copy is the database; each ``*.json`` file is a
  document addressed by its path, edited by dotted keys, and filtered with a
  small typed query algebra.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from repodb.document import DocumentError, JsonDocument
from repodb.query import QueryLiteral, QueryTerm, ref
from repodb.store import GitAuth, GitStore, StoreError

__version__ = "0.1.0"

__all__ = [
    "DocumentError",
    "GitAuth",
    "GitStore",
    "JsonDocument",
    "QueryLiteral",
    "QueryTerm",
    "StoreError",
    "__version__",
    "ref",
]
