"""One-call entry points: source text in, pipeline (or its result) out."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping

from comprehension.ast_nodes import Comprehension
from comprehension.checker import Checker
from comprehension.evaluator import BUILTINS
from comprehension.lexer import Lexer
from comprehension.lowering import Lowerer, Pipeline
from comprehension.parser import Parser
from comprehension.transpiler import Transpiler
from comprehension_runtime.config import get_config, merge_config


def parse(source: str) -> Comprehension:
    """Lex and parse *source* into a ``Comprehension``."""
    tokens = Lexer(source).tokenize()
    return Parser(tokens).parse()


def _resolve_config(config: dict | None) -> dict:
    """The loaded comprehension.config, or *config* merged over the defaults."""
    if config is None:
        return get_config()
    return merge_config(config)


def check(source: str, names: Iterable[str] = (), config: dict | None = None) -> Comprehension:
    """Parse *source* and validate it against the environment *names*."""
    config = _resolve_config(config)
    tree = parse(source)
    return Checker(
        names,
        builtins=config["compiler"]["builtins"],
        validate_scope=config["compiler"]["validate_scope"],
    ).check(tree)


def compile_comprehension(
    source: str,
    env: Mapping[str, object] | None = None,
    config: dict | None = None,
) -> Pipeline:
    """Compile *source* into a reusable lazy ``Pipeline``.

    *env* supplies outer-scope values (helper functions, collections)
    the comprehension refers to.
    """
    config = _resolve_config(config)
    env = dict(env or {})
    tree = check(source, env.keys(), config)
    lowerer = Lowerer(
        on_error=config["runtime"]["on_error"],
        strict_guards=config["runtime"]["strict_guards"],
    )
    scope = dict(BUILTINS) if config["compiler"]["builtins"] else {}
    scope.update(env)
    return Pipeline(lowerer.lower(tree), scope)


def comprehend(source: str, env: Mapping[str, object] | None = None) -> Iterator:
    """Return a lazy iterator over the comprehension's items."""
    return iter(compile_comprehension(source, env))


def collect(source: str, env: Mapping[str, object] | None = None) -> list:
    return compile_comprehension(source, env).collect()


def take(source: str, n: int, env: Mapping[str, object] | None = None) -> list:
    return compile_comprehension(source, env).take(n)


def reduce_sum(source: str, env: Mapping[str, object] | None = None, result_type=int):
    return compile_comprehension(source, env).sum(result_type)


def reduce_product(source: str, env: Mapping[str, object] | None = None, result_type=int):
    return compile_comprehension(source, env).product(result_type)


def transpile(source: str, function_name: str = "pipeline", config: dict | None = None) -> str:
    """Compile *source* to a Python module defining ``function_name``.

    Transpiled pipelines are always fail-fast, so a config asking for
    ``runtime.on_error: skip`` is rejected with ``TranspileError``.
    """
    config = _resolve_config(config)
    return Transpiler(
        parse(source),
        function_name,
        on_error=config["runtime"]["on_error"],
        strict_guards=config["runtime"]["strict_guards"],
    ).transpile()
