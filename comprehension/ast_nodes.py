"""Comprehension AST node definitions.

Every node is a Python dataclass carrying ``line`` and ``col`` for
source-location tracking.  A single ``Node`` base class provides
these fields so concrete nodes only declare domain-specific data.

A ``Comprehension`` is both the root of a parse and an ordinary
expression, so comprehensions nest inside bodies and qualifiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


# ── Base ────────────────────────────────────────────────────────────────────

@dataclass
class Node:
    """Base class for every AST node."""
    line: int = 0
    col: int = 0


# ── Expressions ─────────────────────────────────────────────────────────────

@dataclass
class NumberLiteral(Node):
    value: int | float = 0


@dataclass
class StringLiteral(Node):
    value: str = ""


@dataclass
class BooleanLiteral(Node):
    value: bool = False


@dataclass
class NoneLiteral(Node):
    pass


@dataclass
class ListLiteral(Node):
    elements: list = field(default_factory=list)


@dataclass
class TupleLiteral(Node):
    elements: list = field(default_factory=list)


@dataclass
class Identifier(Node):
    name: str = ""


@dataclass
class AttributeAccess(Node):
    object: Any = None
    attribute: str = ""


@dataclass
class IndexAccess(Node):
    object: Any = None
    index: Any = None


@dataclass
class BinaryOp(Node):
    left: Any = None
    op: str = ""
    right: Any = None


@dataclass
class UnaryOp(Node):
    op: str = ""
    operand: Any = None


@dataclass
class FunctionCall(Node):
    callee: Any = None
    args: list = field(default_factory=list)


@dataclass
class RangeExpr(Node):
    """``start..end``, ``start..=end`` or the open-ended ``start..``."""
    start: Any = None
    end: Any = None
    inclusive: bool = False


# ── Patterns ────────────────────────────────────────────────────────────────

@dataclass
class NamePattern(Node):
    name: str = ""


@dataclass
class WildcardPattern(Node):
    pass


@dataclass
class TuplePattern(Node):
    elements: list = field(default_factory=list)


Pattern = Union[NamePattern, WildcardPattern, TuplePattern]


# ── Qualifiers ──────────────────────────────────────────────────────────────

@dataclass
class Generator(Node):
    pattern: Any = None
    source: Any = None


@dataclass
class LocalBinding(Node):
    pattern: Any = None
    value: Any = None


@dataclass
class Guard(Node):
    condition: Any = None


Qualifier = Union[Generator, LocalBinding, Guard]


# ── Root ────────────────────────────────────────────────────────────────────

@dataclass
class Comprehension(Node):
    body: Any = None
    qualifiers: list = field(default_factory=list)


def pattern_names(pattern) -> list[str]:
    """Return the names a pattern binds, left to right."""
    if isinstance(pattern, NamePattern):
        return [pattern.name]
    if isinstance(pattern, TuplePattern):
        names: list[str] = []
        for element in pattern.elements:
            names.extend(pattern_names(element))
        return names
    return []
