"""Comprehension Runtime: the primitives lowered and transpiled pipelines run on."""

from comprehension_runtime.pipeline import once, bind, let, guard, span, unpack, iterate
from comprehension_runtime.consumers import collect, take, fold, reduce_sum, reduce_product
from comprehension_runtime.config import get_config
from comprehension_runtime.logging_config import configure_logging, get_logger
from comprehension_runtime.exceptions import (
    ComprehensionRuntimeError,
    PositionedError,
    EvaluationError,
    GuardTypeError,
    SourceNotIterableError,
    PatternMismatchError,
    RangeTypeError,
    ConfigError,
)

__all__ = [
    "once", "bind", "let", "guard", "span", "unpack", "iterate",
    "collect", "take", "fold", "reduce_sum", "reduce_product",
    "get_config", "configure_logging", "get_logger",
    "ComprehensionRuntimeError", "PositionedError", "EvaluationError", "GuardTypeError",
    "SourceNotIterableError", "PatternMismatchError", "RangeTypeError",
    "ConfigError",
]
