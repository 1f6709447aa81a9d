"""
repodb — boolean query algebra

File: src/repodb/query/algebra.py

Purpose
- Immutable expression trees of comparisons (``Eq``, ``Ne``, ``Ge``, ``Gt``,
  ``Le``, ``Lt``) combined with ``And``/``Or``/``Not``, and their evaluator.

Functional requirements
- ``Eq``/``Ne`` use literal equality; different kinds are never equal.
- Ordering comparisons need both operands of the same comparable kind,
  otherwise they evaluate to ``False`` (never an error).
- Without a document, field terms compare their embedded literal. With a
  document, field terms are resolved first (see ``repodb.query.resolver``);
  an unresolved operand makes the comparison ``False``.

Non-functional requirements
- Evaluation is pure: the same tree and document always give the same result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Final

from repodb.query.resolver import resolve
from repodb.query.term import QueryTerm

if TYPE_CHECKING:
    from repodb.query.literal import QueryLiteral


class _NoDocument:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_DOCUMENT"


NO_DOCUMENT: Final[_NoDocument] = _NoDocument()


class QueryNode:
    """Base class of every query tree node."""

    def evaluate(self, document: object = NO_DOCUMENT) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class MatchAll(QueryNode):
    """Empty query; matches every document."""

    def evaluate(self, document: object = NO_DOCUMENT) -> bool:
        return True

    def __str__(self) -> str:
        return "MatchAll"


@dataclass(frozen=True)
class Comparison(QueryNode):
    """Leaf comparison between two operands."""

    symbol: ClassVar[str] = "?"

    left: QueryTerm
    right: QueryTerm

    def __post_init__(self) -> None:
        object.__setattr__(self, "left", QueryTerm.of(self.left))
        object.__setattr__(self, "right", QueryTerm.of(self.right))

    def evaluate(self, document: object = NO_DOCUMENT) -> bool:
        left = _operand(self.left, document)
        right = _operand(self.right, document)
        if left is None or right is None:
            return False
        return self.compare(left, right)

    def compare(self, left: QueryLiteral, right: QueryLiteral) -> bool:
        raise NotImplementedError

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.left}, {self.right})"


@dataclass(frozen=True)
class Eq(Comparison):
    symbol: ClassVar[str] = "=="

    def compare(self, left: QueryLiteral, right: QueryLiteral) -> bool:
        return left == right


@dataclass(frozen=True)
class Ne(Comparison):
    symbol: ClassVar[str] = "!="

    def compare(self, left: QueryLiteral, right: QueryLiteral) -> bool:
        return left != right


@dataclass(frozen=True)
class Ge(Comparison):
    symbol: ClassVar[str] = ">="

    def compare(self, left: QueryLiteral, right: QueryLiteral) -> bool:
        return left >= right


@dataclass(frozen=True)
class Gt(Comparison):
    symbol: ClassVar[str] = ">"

    def compare(self, left: QueryLiteral, right: QueryLiteral) -> bool:
        return left > right


@dataclass(frozen=True)
class Le(Comparison):
    symbol: ClassVar[str] = "<="

    def compare(self, left: QueryLiteral, right: QueryLiteral) -> bool:
        return left <= right


@dataclass(frozen=True)
class Lt(Comparison):
    symbol: ClassVar[str] = "<"

    def compare(self, left: QueryLiteral, right: QueryLiteral) -> bool:
        return left < right


@dataclass(frozen=True)
class And(QueryNode):
    left: QueryNode
    right: QueryNode

    def __post_init__(self) -> None:
        _require_node(self.left, "And")
        _require_node(self.right, "And")

    def evaluate(self, document: object = NO_DOCUMENT) -> bool:
        left = self.left.evaluate(document)
        right = self.right.evaluate(document)
        return left and right

    def __str__(self) -> str:
        return f"And({self.left}, {self.right})"


@dataclass(frozen=True)
class Or(QueryNode):
    left: QueryNode
    right: QueryNode

    def __post_init__(self) -> None:
        _require_node(self.left, "Or")
        _require_node(self.right, "Or")

    def evaluate(self, document: object = NO_DOCUMENT) -> bool:
        left = self.left.evaluate(document)
        right = self.right.evaluate(document)
        return left or right

    def __str__(self) -> str:
        return f"Or({self.left}, {self.right})"


@dataclass(frozen=True)
class Not(QueryNode):
    operand: QueryNode

    def __post_init__(self) -> None:
        _require_node(self.operand, "Not")

    def evaluate(self, document: object = NO_DOCUMENT) -> bool:
        return not self.operand.evaluate(document)

    def __str__(self) -> str:
        return f"Not({self.operand})"


COMPARISONS: Final[dict[str, type[Comparison]]] = {
    cls.symbol: cls for cls in (Eq, Ne, Ge, Gt, Le, Lt)
}


def evaluate(node: QueryNode, document: object = NO_DOCUMENT) -> bool:
    """
    Evaluate ``node``, optionally resolving field terms against ``document``.

    Omitting ``document`` (or passing ``NO_DOCUMENT``) evaluates field terms by
    their embedded literal. ``None`` is a document whose JSON root is ``null``;
    every field term is unresolved against it.
    """
    _require_node(node, "evaluate")
    return node.evaluate(document)


def comparison(symbol: str, left: object, right: object) -> Comparison:
    """Build a comparison from its operator symbol (``==``, ``!=``, ``>=``, ...)."""
    try:
        node_type = COMPARISONS[symbol]
    except KeyError as exc:
        supported = ", ".join(sorted(COMPARISONS))
        raise ValueError(f"unsupported comparison {symbol!r}; expected one of {supported}") from exc
    return node_type(left, right)  # type: ignore[arg-type]


def all_of(*nodes: QueryNode) -> QueryNode:
    """Fold ``nodes`` with ``And``; no nodes gives ``MatchAll``."""
    if not nodes:
        return MatchAll()
    result = nodes[0]
    for node in nodes[1:]:
        result = And(result, node)
    return result


def _operand(term: QueryTerm, document: object) -> QueryLiteral | None:
    if document is NO_DOCUMENT:
        return term.literal
    return resolve(document, term)


def _require_node(value: object, owner: str) -> None:
    if not isinstance(value, QueryNode):
        raise TypeError(f"{owner} expects query nodes, got {type(value).__name__}")


__all__ = [
    "COMPARISONS",
    "NO_DOCUMENT",
    "And",
    "Comparison",
    "Eq",
    "Ge",
    "Gt",
    "Le",
    "Lt",
    "MatchAll",
    "Ne",
    "Not",
    "Or",
    "QueryNode",
    "all_of",
    "comparison",
    "evaluate",
]
