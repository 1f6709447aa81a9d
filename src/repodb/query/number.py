"""
repodb — JSON-compatible numeric value

File: src/repodb/query/number.py

Purpose
- Closed three-variant representation of a JSON number: unsigned integer,
  strictly negative signed integer, or finite float.

Functional requirements
- Lossless classification and conversion between 64-bit and 128-bit views.
- Equality and ordering only within a variant; cross-variant comparisons are
  not equal and unordered.
- ``str()`` is the minimal round-trip text for the stored variant.

Non-functional requirements
- Values wider than 64 bits of magnitude are rejected, never silently widened.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Final

from repodb.constants import I64_MAX, I64_MIN, I128_MAX, I128_MIN, U64_MAX, U128_MAX


class NumberKind(enum.Enum):
    """Stored variant of a :class:`Number`."""

    POS_INT = "pos_int"
    NEG_INT = "neg_int"
    FLOAT = "float"


_INT_KINDS: Final[frozenset[NumberKind]] = frozenset({NumberKind.POS_INT, NumberKind.NEG_INT})


@dataclass(frozen=True, slots=True, eq=False)
class Number:
    """
    Immutable JSON number.

    Use the ``from_*`` constructors; they return ``None`` when the input cannot
    be represented (non-finite float, integer outside the 64-bit model).
    """

    kind: NumberKind
    value: int | float

    def __post_init__(self) -> None:
        if self.kind is NumberKind.POS_INT:
            ok = _is_int(self.value) and 0 <= self.value <= U64_MAX
        elif self.kind is NumberKind.NEG_INT:
            ok = _is_int(self.value) and I64_MIN <= self.value < 0
        else:
            ok = isinstance(self.value, float) and math.isfinite(self.value)
        if not ok:
            raise ValueError(f"invalid {self.kind.value} payload: {self.value!r}")

    # -- constructors -------------------------------------------------------

    @classmethod
    def from_f64(cls, value: float) -> Number | None:
        """Convert a finite float; NaN and infinities are not JSON numbers."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected float, got {type(value).__name__}")
        try:
            as_float = float(value)
        except OverflowError:
            return None
        if not math.isfinite(as_float):
            return None
        return cls(NumberKind.FLOAT, as_float)

    @classmethod
    def from_i128(cls, value: int) -> Number | None:
        """Convert a signed 128-bit integer; ``None`` outside the u64/i64 ranges."""
        _require_int(value)
        if not I128_MIN <= value <= I128_MAX:
            return None
        if 0 <= value <= U64_MAX:
            return cls(NumberKind.POS_INT, value)
        if I64_MIN <= value < 0:
            return cls(NumberKind.NEG_INT, value)
        return None

    @classmethod
    def from_u128(cls, value: int) -> Number | None:
        """Convert an unsigned 128-bit integer; ``None`` above ``u64::MAX``."""
        _require_int(value)
        if not 0 <= value <= U128_MAX:
            return None
        if value <= U64_MAX:
            return cls(NumberKind.POS_INT, value)
        return None

    @classmethod
    def from_i64(cls, value: int) -> Number | None:
        _require_int(value)
        if not I64_MIN <= value <= I64_MAX:
            return None
        return cls.from_i128(value)

    @classmethod
    def from_u64(cls, value: int) -> Number | None:
        _require_int(value)
        if not 0 <= value <= U64_MAX:
            return None
        return cls(NumberKind.POS_INT, value)

    @classmethod
    def from_json(cls, value: object) -> Number | None:
        """Classify a number produced by the JSON parser (``int`` or ``float``)."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls.from_i128(value)
        if isinstance(value, float):
            return cls.from_f64(value)
        return None

    # -- classification -----------------------------------------------------

    def is_i64(self) -> bool:
        if self.kind is NumberKind.POS_INT:
            return self.value <= I64_MAX
        return self.kind is NumberKind.NEG_INT

    def is_u64(self) -> bool:
        return self.kind is NumberKind.POS_INT

    def is_f64(self) -> bool:
        return self.kind is NumberKind.FLOAT

    # -- accessors ----------------------------------------------------------

    def as_i64(self) -> int | None:
        if self.is_i64():
            return int(self.value)
        return None

    def as_u64(self) -> int | None:
        if self.kind is NumberKind.POS_INT:
            return int(self.value)
        return None

    def as_f64(self) -> float | None:
        """Float view; ``None`` for integers a double cannot hold exactly."""
        if self.kind is NumberKind.FLOAT:
            return float(self.value)
        as_float = float(self.value)
        if int(as_float) != self.value:
            return None
        return as_float

    def as_i128(self) -> int | None:
        if self.kind in _INT_KINDS:
            return int(self.value)
        return None

    def as_u128(self) -> int | None:
        return self.as_u64()

    # -- comparisons --------------------------------------------------------

    def same_kind(self, other: Number) -> bool:
        return self.kind is other.kind

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return not self == other

    def __lt__(self, other: Number) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self.kind is other.kind and self.value < other.value

    def __le__(self, other: Number) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self.kind is other.kind and self.value <= other.value

    def __gt__(self, other: Number) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self.kind is other.kind and self.value > other.value

    def __ge__(self, other: Number) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self.kind is other.kind and self.value >= other.value

    def __hash__(self) -> int:
        if self.kind is NumberKind.FLOAT and self.value == 0.0:
            # +0.0 and -0.0 compare equal.
            return hash((self.kind, 0.0))
        return hash((self.kind, self.value))

    # -- formatting ---------------------------------------------------------

    def __str__(self) -> str:
        if self.kind is NumberKind.FLOAT:
            return repr(float(self.value))
        return str(int(self.value))

    def __repr__(self) -> str:
        return f"Number({self})"


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_int(value: object) -> None:
    if not _is_int(value):
        raise TypeError(f"expected int, got {type(value).__name__}")


__all__ = ["Number", "NumberKind"]
