"""Comprehension transpiler — walks the AST and emits Python source code.

The emitted module defines one ``pipeline`` function whose parameters are
the comprehension's free names.  Its body is the right-to-left fold of
the qualifiers into nested ``comprehension_runtime`` calls, the same
primitives the closure lowering uses.
"""

from __future__ import annotations

import keyword

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
    TuplePattern,
    Generator,
    LocalBinding,
    Guard,
)
from comprehension.checker import free_names
from comprehension.errors import TranspileError
from comprehension.evaluator import BUILTINS

RUNTIME = "comprehension_runtime"


class Transpiler:
    """Transpile a ``Comprehension`` AST into a Python module."""

    def __init__(
        self,
        comprehension: Comprehension,
        function_name: str = "pipeline",
        on_error: str = "raise",
        strict_guards: bool = True,
    ) -> None:
        self.comprehension = comprehension
        self.function_name = function_name
        self.on_error = on_error
        self.strict_guards = strict_guards
        self.needs_math_import: bool = False
        self._temp_counter: int = 0

    def transpile(self) -> str:
        """Transpile the comprehension to Python source."""
        if self.on_error != "raise":
            raise TranspileError(
                f"Transpiled pipelines are fail-fast; runtime.on_error: {self.on_error} is not supported",
                self.comprehension.line,
                self.comprehension.col,
            )
        free = free_names(self.comprehension)
        params = sorted(name for name in free if name not in BUILTINS)
        for name in params:
            self._check_name(name, self.comprehension)
        self.needs_math_import = "math" in free

        body = self._emit_pipeline(self.comprehension)

        header = [f"import {RUNTIME}"]
        if self.needs_math_import:
            header.append("import math")
        lines = header + [
            "",
            "",
            f"def {self.function_name}({', '.join(params)}):",
            f"    return {body}",
        ]
        return "\n".join(lines) + "\n"

    # -- Pipeline emission ---------------------------------------------------

    def _emit_pipeline(self, node: Comprehension) -> str:
        """Fold the qualifiers right to left around ``once(body)``."""
        code = f"{RUNTIME}.once(lambda: {self._emit_expr(node.body)})"
        for qualifier in reversed(node.qualifiers):
            code = self._emit_qualifier(qualifier, code)
        return code

    def _emit_qualifier(self, qualifier, inner: str) -> str:
        if isinstance(qualifier, Generator):
            source = self._emit_source(qualifier.source)
            binder = self._emit_binder(qualifier.pattern, inner)
            return f"{RUNTIME}.bind(lambda: {source}, {binder})"
        if isinstance(qualifier, LocalBinding):
            value = self._emit_expr(qualifier.value)
            binder = self._emit_binder(qualifier.pattern, inner)
            return f"{RUNTIME}.let(lambda: {value}, {binder})"
        if isinstance(qualifier, Guard):
            condition = self._emit_expr(qualifier.condition)
            strict = "" if self.strict_guards else ", strict=False"
            return f"{RUNTIME}.guard(lambda: {condition}, lambda: {inner}{strict})"

        raise TranspileError(
            f"Unsupported qualifier type: {type(qualifier).__name__}",
            getattr(qualifier, "line", 0),
            getattr(qualifier, "col", 0),
        )

    def _emit_source(self, node) -> str:
        # A nested comprehension feeding a generator stays lazy
        if isinstance(node, Comprehension):
            return self._emit_pipeline(node)
        return self._emit_expr(node)

    # -- Pattern emission ----------------------------------------------------

    def _emit_binder(self, pattern, inner: str) -> str:
        """Emit a one-argument lambda that binds *pattern* around *inner*."""
        param = self._param_for(pattern)
        return f"lambda {param}: {self._emit_destructure(pattern, param, inner)}"

    def _emit_destructure(self, pattern, param: str, inner: str) -> str:
        if not isinstance(pattern, TuplePattern):
            return inner
        params = [self._param_for(element) for element in pattern.elements]
        body = inner
        for element, name in zip(pattern.elements, params):
            body = self._emit_destructure(element, name, body)
        return (
            f"(lambda {', '.join(params)}: {body})"
            f"(*{RUNTIME}.unpack({param}, {len(params)}))"
        )

    def _param_for(self, pattern) -> str:
        if isinstance(pattern, NamePattern):
            self._check_name(pattern.name, pattern)
            return pattern.name
        # Wildcards and tuples get a fresh name; Python rejects repeated "_" params
        name = f"_cq_{self._temp_counter}"
        self._temp_counter += 1
        return name

    def _check_name(self, name: str, node) -> None:
        if keyword.iskeyword(name) or name.startswith("_cq_") or name == RUNTIME:
            raise TranspileError(
                f"Name {name!r} cannot be used in generated Python",
                getattr(node, "line", 0),
                getattr(node, "col", 0),
            )

    # -- Expression emission -------------------------------------------------

    def _emit_expr(self, node) -> str:
        """Emit an expression, returning a Python expression string."""
        if isinstance(node, (NumberLiteral, StringLiteral)):
            return repr(node.value)
        if isinstance(node, BooleanLiteral):
            return "True" if node.value else "False"
        if isinstance(node, NoneLiteral):
            return "None"
        if isinstance(node, Identifier):
            self._check_name(node.name, node)
            return node.name
        if isinstance(node, ListLiteral):
            return "[" + ", ".join(self._emit_expr(el) for el in node.elements) + "]"
        if isinstance(node, TupleLiteral):
            return self._emit_tuple(node)
        if isinstance(node, AttributeAccess):
            return f"{self._emit_expr(node.object)}.{node.attribute}"
        if isinstance(node, IndexAccess):
            return f"{self._emit_expr(node.object)}[{self._emit_expr(node.index)}]"
        if isinstance(node, BinaryOp):
            return f"({self._emit_expr(node.left)} {node.op} {self._emit_expr(node.right)})"
        if isinstance(node, UnaryOp):
            return self._emit_unary_op(node)
        if isinstance(node, FunctionCall):
            args = ", ".join(self._emit_expr(arg) for arg in node.args)
            return f"{self._emit_expr(node.callee)}({args})"
        if isinstance(node, RangeExpr):
            return self._emit_range(node)
        if isinstance(node, Comprehension):
            return f"list({self._emit_pipeline(node)})"

        raise TranspileError(
            f"Unsupported expression type: {type(node).__name__}",
            getattr(node, "line", 0),
            getattr(node, "col", 0),
        )

    def _emit_tuple(self, node: TupleLiteral) -> str:
        elements = [self._emit_expr(el) for el in node.elements]
        if len(elements) == 1:
            return f"({elements[0]},)"
        return "(" + ", ".join(elements) + ")"

    def _emit_unary_op(self, node: UnaryOp) -> str:
        """Emit ``(-x)`` or ``(not x)``."""
        operand = self._emit_expr(node.operand)
        if node.op == "not":
            return f"(not {operand})"
        return f"({node.op}{operand})"

    def _emit_range(self, node: RangeExpr) -> str:
        start = self._emit_expr(node.start)
        end = "None" if node.end is None else self._emit_expr(node.end)
        if node.inclusive:
            return f"{RUNTIME}.span({start}, {end}, inclusive=True)"
        return f"{RUNTIME}.span({start}, {end})"
