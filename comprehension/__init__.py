"""Haskell-style ``[body; qualifiers]`` comprehensions compiled to lazy pipelines."""

from comprehension.api import (
    parse,
    check,
    compile_comprehension,
    comprehend,
    collect,
    take,
    reduce_sum,
    reduce_product,
    transpile,
)
from comprehension.lowering import Pipeline
from comprehension.errors import (
    ComprehensionError,
    LexerError,
    ParseError,
    ScopeError,
    CompileError,
    TranspileError,
)

__all__ = [
    "parse", "check", "compile_comprehension", "comprehend", "collect",
    "take", "reduce_sum", "reduce_product", "transpile", "Pipeline",
    "ComprehensionError", "LexerError", "ParseError", "ScopeError",
    "CompileError", "TranspileError",
]
