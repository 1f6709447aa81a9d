"""Query operand: a literal, optionally bound to a document field name."""

from __future__ import annotations

from dataclasses import dataclass, field

from repodb.query.literal import QueryLiteral
from repodb.query.number import Number
from repodb.utils.json_paths import split_path


@dataclass(frozen=True, slots=True)
class QueryTerm:
    """
    One side of a comparison.

    A bare term carries a constant. A field term names a (dotted) document
    field; its ``literal`` is the already-resolved value used when the query
    is evaluated without a document. Every accessor delegates to ``literal``.
    """

    literal: QueryLiteral = field(default_factory=QueryLiteral.null)
    field_name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.literal, QueryLiteral):
            raise TypeError(f"literal must be a QueryLiteral, got {type(self.literal).__name__}")
        if self.field_name is not None:
            split_path(self.field_name)

    @classmethod
    def of(cls, value: object) -> QueryTerm:
        """Coerce a term, literal, or JSON scalar into a bare term."""
        if isinstance(value, QueryTerm):
            return value
        literal = QueryLiteral.from_python(value)
        if literal is None:
            raise TypeError(f"cannot use {value!r} as a query literal")
        return cls(literal)

    @classmethod
    def field_ref(cls, name: str, default: object = None) -> QueryTerm:
        literal = QueryLiteral.from_python(default)
        if literal is None:
            raise TypeError(f"cannot use {default!r} as a query literal")
        return cls(literal, name)

    @property
    def is_field(self) -> bool:
        return self.field_name is not None

    def is_null(self) -> bool:
        return self.literal.is_null()

    def as_null(self) -> tuple[()] | None:
        return self.literal.as_null()

    def is_boolean(self) -> bool:
        return self.literal.is_boolean()

    def as_bool(self) -> bool | None:
        return self.literal.as_bool()

    def is_number(self) -> bool:
        return self.literal.is_number()

    def as_number(self) -> Number | None:
        return self.literal.as_number()

    def is_string(self) -> bool:
        return self.literal.is_string()

    def as_str(self) -> str | None:
        return self.literal.as_str()

    def is_i64(self) -> bool:
        return self.literal.is_i64()

    def is_u64(self) -> bool:
        return self.literal.is_u64()

    def is_f64(self) -> bool:
        return self.literal.is_f64()

    def as_i64(self) -> int | None:
        return self.literal.as_i64()

    def as_u64(self) -> int | None:
        return self.literal.as_u64()

    def as_f64(self) -> float | None:
        return self.literal.as_f64()

    def __str__(self) -> str:
        if self.field_name is None:
            return str(self.literal)
        return f"Field({self.field_name},{self.literal})"

    def __repr__(self) -> str:
        return f"QueryTerm({self})"


def ref(name: str, default: object = None) -> QueryTerm:
    """Shorthand for :meth:`QueryTerm.field_ref`."""
    return QueryTerm.field_ref(name, default)


__all__ = ["QueryTerm", "ref"]
