"""Scalar query literal: null, boolean, number, or string."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass

from repodb.query.number import Number


class LiteralKind(enum.Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"


@dataclass(frozen=True, slots=True, eq=False)
class QueryLiteral:
    """
    Immutable scalar a query can compare against.

    Ordering is partial: defined within a kind, never across kinds (every
    ordering comparison between different kinds is ``False``).
    """

    kind: LiteralKind
    value: bool | Number | str | None = None

    def __post_init__(self) -> None:
        expected: type | None = {
            LiteralKind.NULL: type(None),
            LiteralKind.BOOL: bool,
            LiteralKind.NUMBER: Number,
            LiteralKind.STRING: str,
        }[self.kind]
        if type(self.value) is not expected:
            raise TypeError(f"{self.kind.value} literal cannot hold {type(self.value).__name__}")

    @classmethod
    def null(cls) -> QueryLiteral:
        return cls(LiteralKind.NULL)

    @classmethod
    def boolean(cls, value: bool) -> QueryLiteral:
        return cls(LiteralKind.BOOL, value)

    @classmethod
    def number(cls, value: Number) -> QueryLiteral:
        return cls(LiteralKind.NUMBER, value)

    @classmethod
    def string(cls, value: str) -> QueryLiteral:
        return cls(LiteralKind.STRING, value)

    @classmethod
    def from_python(cls, value: object) -> QueryLiteral | None:
        """Convert a parsed JSON scalar; ``None`` for containers and unrepresentable numbers."""
        if isinstance(value, QueryLiteral):
            return value
        if value is None:
            return cls.null()
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, Number):
            return cls.number(value)
        if isinstance(value, (int, float)):
            number = Number.from_json(value)
            return None if number is None else cls.number(number)
        if isinstance(value, str):
            return cls.string(value)
        return None

    # -- accessors ----------------------------------------------------------

    def is_null(self) -> bool:
        return self.as_null() is not None

    def as_null(self) -> tuple[()] | None:
        return () if self.kind is LiteralKind.NULL else None

    def is_boolean(self) -> bool:
        return self.as_bool() is not None

    def as_bool(self) -> bool | None:
        return self.value if self.kind is LiteralKind.BOOL else None  # type: ignore[return-value]

    def is_number(self) -> bool:
        return self.kind is LiteralKind.NUMBER

    def as_number(self) -> Number | None:
        return self.value if self.kind is LiteralKind.NUMBER else None  # type: ignore[return-value]

    def is_string(self) -> bool:
        return self.as_str() is not None

    def as_str(self) -> str | None:
        return self.value if self.kind is LiteralKind.STRING else None  # type: ignore[return-value]

    def is_i64(self) -> bool:
        number = self.as_number()
        return number is not None and number.is_i64()

    def is_u64(self) -> bool:
        number = self.as_number()
        return number is not None and number.is_u64()

    def is_f64(self) -> bool:
        number = self.as_number()
        return number is not None and number.is_f64()

    def as_i64(self) -> int | None:
        number = self.as_number()
        return None if number is None else number.as_i64()

    def as_u64(self) -> int | None:
        number = self.as_number()
        return None if number is None else number.as_u64()

    def as_f64(self) -> float | None:
        number = self.as_number()
        return None if number is None else number.as_f64()

    def to_python(self) -> bool | int | float | str | None:
        """Plain JSON-compatible Python value."""
        number = self.as_number()
        if number is not None:
            return number.value
        return self.value  # type: ignore[return-value]

    # -- comparisons --------------------------------------------------------

    def comparable_with(self, other: QueryLiteral) -> bool:
        if self.kind is not other.kind:
            return False
        if self.kind is LiteralKind.NUMBER:
            return self.value.same_kind(other.value)  # type: ignore[union-attr,arg-type]
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryLiteral):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, QueryLiteral):
            return NotImplemented
        return not self == other

    def __lt__(self, other: QueryLiteral) -> bool:
        if not isinstance(other, QueryLiteral):
            return NotImplemented
        if not self.comparable_with(other) or self.kind is LiteralKind.NULL:
            return False
        return self.value < other.value  # type: ignore[operator]

    def __le__(self, other: QueryLiteral) -> bool:
        if not isinstance(other, QueryLiteral):
            return NotImplemented
        if not self.comparable_with(other):
            return False
        if self.kind is LiteralKind.NULL:
            return True
        return self.value <= other.value  # type: ignore[operator]

    def __gt__(self, other: QueryLiteral) -> bool:
        if not isinstance(other, QueryLiteral):
            return NotImplemented
        if not self.comparable_with(other) or self.kind is LiteralKind.NULL:
            return False
        return self.value > other.value  # type: ignore[operator]

    def __ge__(self, other: QueryLiteral) -> bool:
        if not isinstance(other, QueryLiteral):
            return NotImplemented
        if not self.comparable_with(other):
            return False
        if self.kind is LiteralKind.NULL:
            return True
        return self.value >= other.value  # type: ignore[operator]

    def __hash__(self) -> int:
        return hash((self.kind, self.value))

    # -- formatting ---------------------------------------------------------

    def __str__(self) -> str:
        if self.kind is LiteralKind.NULL:
            return "Null"
        if self.kind is LiteralKind.BOOL:
            return "Bool(true)" if self.value else "Bool(false)"
        if self.kind is LiteralKind.NUMBER:
            return repr(self.value)
        return f"String({json.dumps(self.value, ensure_ascii=False)})"

    def __repr__(self) -> str:
        return f"QueryLiteral({self})"


__all__ = ["LiteralKind", "QueryLiteral"]
