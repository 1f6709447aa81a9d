"""
Field resolution: bind query terms to values inside a live JSON document.

Rules
- bare terms resolve to their own literal;
- field names are dotted paths walked through JSON objects only;
- arrays are not traversed, and an array or object at the end of a path is
  not a scalar, so it does not resolve;
- a missing segment or a non-object document root does not resolve;
- JSON ``null`` resolves to the null literal, distinct from a missing field;
- numbers outside the 64-bit model do not resolve.

An unresolved operand makes every comparison false.
"""

from __future__ import annotations

from typing import Final

from repodb.query.literal import QueryLiteral
from repodb.query.term import QueryTerm
from repodb.utils.json_paths import lookup_path

_MISSING: Final[object] = object()


def resolve(document: object, term: QueryTerm) -> QueryLiteral | None:
    """Resolve ``term`` against ``document``; ``None`` means the field is unavailable."""
    if term.field_name is None:
        return term.literal

    value = lookup_path(document, term.field_name, _MISSING)
    if value is _MISSING:
        return None
    return QueryLiteral.from_python(value)


__all__ = ["resolve"]
