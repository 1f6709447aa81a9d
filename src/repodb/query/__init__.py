"""Typed scalar values and the boolean query algebra used to filter documents."""

from repodb.query.algebra import (
    COMPARISONS,
    NO_DOCUMENT,
    And,
    Comparison,
    Eq,
    Ge,
    Gt,
    Le,
    Lt,
    MatchAll,
    Ne,
    Not,
    Or,
    QueryNode,
    all_of,
    comparison,
    evaluate,
)
from repodb.query.literal import LiteralKind, QueryLiteral
from repodb.query.number import Number, NumberKind
from repodb.query.resolver import resolve
from repodb.query.term import QueryTerm, ref

__all__ = [
    "COMPARISONS",
    "NO_DOCUMENT",
    "And",
    "Comparison",
    "Eq",
    "Ge",
    "Gt",
    "Le",
    "LiteralKind",
    "Lt",
    "MatchAll",
    "Ne",
    "Not",
    "Number",
    "NumberKind",
    "Or",
    "QueryLiteral",
    "QueryNode",
    "QueryTerm",
    "all_of",
    "comparison",
    "evaluate",
    "ref",
    "resolve",
]
