"""Up-front validation of a parsed comprehension.

Runs before any pipeline is built, so scoping mistakes and qualifiers
that can never work are reported as compile errors instead of surfacing
halfway through an iteration.
"""

from __future__ import annotations

import logging
from typing import Iterable

from comprehension.ast_nodes import (
    Comprehension,
    NumberLiteral,
    StringLiteral,
    BooleanLiteral,
    NoneLiteral,
    ListLiteral,
    TupleLiteral,
    Identifier,
    AttributeAccess,
    IndexAccess,
    BinaryOp,
    UnaryOp,
    FunctionCall,
    RangeExpr,
    Generator,
    LocalBinding,
    Guard,
    pattern_names,
)
from comprehension.errors import CompileError, ScopeError
from comprehension.evaluator import BUILTINS

logger = logging.getLogger(__name__)

ARITHMETIC_OPS = frozenset({"+", "-", "*", "/", "//", "%", "**"})
COMPARISON_OPS = frozenset({"==", "!=", "<", ">", "<=", ">=", "in", "not in"})

# Guards that can never be a bool
_NON_BOOLEAN_NODES = (
    NumberLiteral,
    StringLiteral,
    NoneLiteral,
    ListLiteral,
    TupleLiteral,
    RangeExpr,
    Comprehension,
)

# Generator sources that can never be iterated
_NON_ITERABLE_NODES = (NumberLiteral, BooleanLiteral, NoneLiteral)


class Checker:
    """Validate scoping, pattern bindings, guards and generator sources.

    *names* are the environment names the caller will supply at
    evaluation time.  With *validate_scope* off, undefined names are left
    for the evaluator to report.
    """

    def __init__(
        self,
        names: Iterable[str] = (),
        builtins: bool = True,
        validate_scope: bool = True,
    ) -> None:
        self.names = frozenset(names)
        self.builtins = builtins
        self.validate_scope = validate_scope
        # Unbound names in order of first use (only filled when not raising)
        self.free: list[str] = []

    def check(self, comprehension: Comprehension) -> Comprehension:
        """Validate *comprehension*, returning it unchanged or raising."""
        self.free = []
        scope = set(self.names)
        if self.builtins:
            scope |= BUILTINS.keys()
        self._check_comprehension(comprehension, frozenset(scope))
        logger.debug("Checked comprehension with %d qualifiers", len(comprehension.qualifiers))
        return comprehension

    # -- Qualifiers ----------------------------------------------------------

    def _check_comprehension(self, node: Comprehension, scope: frozenset) -> None:
        bound = set(scope)
        for qualifier in node.qualifiers:
            if isinstance(qualifier, Generator):
                self._check_source(qualifier.source)
                self._check_expr(qualifier.source, bound)
                bound |= self._bind(qualifier.pattern)
            elif isinstance(qualifier, LocalBinding):
                self._check_expr(qualifier.value, bound)
                bound |= self._bind(qualifier.pattern)
            elif isinstance(qualifier, Guard):
                self._check_condition(qualifier.condition)
                self._check_expr(qualifier.condition, bound)
            else:
                raise CompileError(
                    f"Unknown qualifier type: {type(qualifier).__name__}",
                    getattr(qualifier, "line", 0),
                    getattr(qualifier, "col", 0),
                )
        self._check_expr(node.body, bound)

    def _bind(self, pattern) -> set[str]:
        names = pattern_names(pattern)
        seen: set[str] = set()
        for name in names:
            if name in seen:
                raise ScopeError(
                    f"Name {name!r} is bound more than once in one pattern",
                    pattern.line,
                    pattern.col,
                )
            seen.add(name)
        return seen

    def _check_condition(self, node) -> None:
        """Reject guards that have no boolean interpretation."""
        non_boolean = isinstance(node, _NON_BOOLEAN_NODES)
        if isinstance(node, BinaryOp) and node.op in ARITHMETIC_OPS:
            non_boolean = True
        if isinstance(node, UnaryOp) and node.op in ("-", "+"):
            non_boolean = True
        if non_boolean:
            raise CompileError(
                f"Guard expression ({type(node).__name__}) is not a boolean condition",
                node.line,
                node.col,
            )

    def _check_source(self, node) -> None:
        """Reject generator sources that can never be iterated."""
        non_iterable = isinstance(node, _NON_ITERABLE_NODES)
        if isinstance(node, BinaryOp) and node.op in COMPARISON_OPS:
            non_iterable = True
        if isinstance(node, UnaryOp) and node.op == "not":
            non_iterable = True
        if non_iterable:
            raise CompileError(
                f"Generator source ({type(node).__name__}) is not iterable",
                node.line,
                node.col,
            )

    # -- Expressions ---------------------------------------------------------

    def _check_expr(self, node, bound) -> None:
        if isinstance(node, Identifier):
            if node.name in bound:
                return
            if self.validate_scope:
                raise ScopeError(f"Undefined variable {node.name!r}", node.line, node.col)
            if node.name not in self.free:
                self.free.append(node.name)
        elif isinstance(node, Comprehension):
            self._check_comprehension(node, frozenset(bound))
        elif isinstance(node, AttributeAccess):
            if node.attribute.startswith("__"):
                raise CompileError(
                    f"Access to attribute {node.attribute!r} is not allowed",
                    node.line,
                    node.col,
                )
            self._check_expr(node.object, bound)
        elif isinstance(node, IndexAccess):
            self._check_expr(node.object, bound)
            self._check_expr(node.index, bound)
        elif isinstance(node, BinaryOp):
            self._check_expr(node.left, bound)
            self._check_expr(node.right, bound)
        elif isinstance(node, UnaryOp):
            self._check_expr(node.operand, bound)
        elif isinstance(node, FunctionCall):
            self._check_expr(node.callee, bound)
            for arg in node.args:
                self._check_expr(arg, bound)
        elif isinstance(node, RangeExpr):
            self._check_expr(node.start, bound)
            if node.end is not None:
                self._check_expr(node.end, bound)
        elif isinstance(node, (ListLiteral, TupleLiteral)):
            for element in node.elements:
                self._check_expr(element, bound)


def free_names(comprehension: Comprehension, builtins: bool = False) -> list[str]:
    """Names *comprehension* reads without binding them, in order of first use."""
    checker = Checker(builtins=builtins, validate_scope=False)
    checker.check(comprehension)
    return checker.free
