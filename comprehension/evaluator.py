"""Tree-walking evaluation of host expressions over a scope dict."""

from __future__ import annotations

import builtins
import math
import operator
from typing import Callable, Iterator

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
    NamePattern,
    WildcardPattern,
    TuplePattern,
)
from comprehension_runtime.exceptions import (
    ComprehensionRuntimeError,
    EvaluationError,
    PatternMismatchError,
)
from comprehension_runtime.pipeline import span, unpack

_BUILTIN_NAMES = (
    "abs", "all", "any", "bool", "chr", "divmod", "enumerate", "float",
    "int", "len", "list", "max", "min", "ord", "pow", "range", "reversed",
    "round", "set", "sorted", "str", "sum", "tuple", "zip",
)

# Names every comprehension may use without the caller supplying them.
BUILTINS: dict[str, object] = {name: getattr(builtins, name) for name in _BUILTIN_NAMES}
BUILTINS["math"] = math

BINARY_OPS: dict[str, Callable] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
    "**": operator.pow,
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
    "in": lambda left, right: left in right,
    "not in": lambda left, right: left not in right,
}

UNARY_OPS: dict[str, Callable] = {
    "-": operator.neg,
    "+": operator.pos,
    "not": operator.not_,
}

NestedRunner = Callable[[Comprehension, dict], Iterator]


class Evaluator:
    """Evaluate expression nodes against a scope.

    *nested* runs a nested comprehension lazily in a given scope; the
    lowering layer supplies it so the evaluator never builds pipelines
    itself.
    """

    def __init__(self, nested: NestedRunner | None = None) -> None:
        self.nested = nested

    # -- Public entry points -------------------------------------------------

    def evaluate(self, node, scope: dict):
        """Evaluate *node*; user errors come back as EvaluationError."""
        try:
            return self._eval(node, scope)
        except ComprehensionRuntimeError:
            raise
        except Exception as e:
            raise EvaluationError(
                f"{type(e).__name__}: {e}",
                getattr(node, "line", 0),
                getattr(node, "col", 0),
            ) from e

    def iterable(self, node, scope: dict):
        """Evaluate a generator source; nested comprehensions stay lazy."""
        if isinstance(node, Comprehension):
            return self._run_nested(node, scope)
        return self.evaluate(node, scope)

    def bind_pattern(self, pattern, value, scope: dict) -> dict:
        """Return a new scope extending *scope* with *pattern* bound to *value*."""
        bound = dict(scope)
        try:
            self._assign(pattern, value, bound)
        except PatternMismatchError as e:
            if e.line:
                raise
            raise PatternMismatchError(e.message, pattern.line, pattern.col) from e
        return bound

    # -- Internals -----------------------------------------------------------

    def _assign(self, pattern, value, target: dict) -> None:
        if isinstance(pattern, NamePattern):
            target[pattern.name] = value
        elif isinstance(pattern, WildcardPattern):
            return
        elif isinstance(pattern, TuplePattern):
            items = unpack(value, len(pattern.elements))
            for element, item in zip(pattern.elements, items):
                self._assign(element, item, target)
        else:
            raise PatternMismatchError(f"Unknown pattern type: {type(pattern).__name__}")

    def _run_nested(self, node: Comprehension, scope: dict):
        if self.nested is None:
            raise EvaluationError("Nested comprehensions are not supported here", node.line, node.col)
        return self.nested(node, scope)

    def _eval(self, node, scope: dict):
        if isinstance(node, (NumberLiteral, StringLiteral, BooleanLiteral)):
            return node.value
        if isinstance(node, NoneLiteral):
            return None
        if isinstance(node, Identifier):
            return self._lookup(node, scope)
        if isinstance(node, ListLiteral):
            return [self.evaluate(el, scope) for el in node.elements]
        if isinstance(node, TupleLiteral):
            return tuple(self.evaluate(el, scope) for el in node.elements)
        if isinstance(node, AttributeAccess):
            return self._eval_attribute(node, scope)
        if isinstance(node, IndexAccess):
            return self.evaluate(node.object, scope)[self.evaluate(node.index, scope)]
        if isinstance(node, BinaryOp):
            return self._eval_binary_op(node, scope)
        if isinstance(node, UnaryOp):
            return UNARY_OPS[node.op](self.evaluate(node.operand, scope))
        if isinstance(node, FunctionCall):
            callee = self.evaluate(node.callee, scope)
            args = [self.evaluate(arg, scope) for arg in node.args]
            return callee(*args)
        if isinstance(node, RangeExpr):
            start = self.evaluate(node.start, scope)
            end = None if node.end is None else self.evaluate(node.end, scope)
            return span(start, end, node.inclusive)
        if isinstance(node, Comprehension):
            # Inside an expression a comprehension is a value, so collect it.
            return list(self._run_nested(node, scope))

        raise EvaluationError(
            f"Unsupported expression type: {type(node).__name__}",
            getattr(node, "line", 0),
            getattr(node, "col", 0),
        )

    def _lookup(self, node: Identifier, scope: dict):
        try:
            return scope[node.name]
        except KeyError:
            raise EvaluationError(f"Undefined variable {node.name!r}", node.line, node.col) from None

    def _eval_attribute(self, node: AttributeAccess, scope: dict):
        if node.attribute.startswith("__"):
            raise EvaluationError(
                f"Access to attribute {node.attribute!r} is not allowed",
                node.line,
                node.col,
            )
        return getattr(self.evaluate(node.object, scope), node.attribute)

    def _eval_binary_op(self, node: BinaryOp, scope: dict):
        left = self.evaluate(node.left, scope)
        if node.op == "and":
            return self.evaluate(node.right, scope) if left else left
        if node.op == "or":
            return left if left else self.evaluate(node.right, scope)
        right = self.evaluate(node.right, scope)
        return BINARY_OPS[node.op](left, right)
