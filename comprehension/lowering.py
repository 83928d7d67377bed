"""Lower a parsed comprehension into a lazy pipeline of closures.

The qualifier list is folded right to left.  The innermost stage yields
the body once; each qualifier wraps the stage built so far:

    Generator(p, src)     -> bind(src, item -> inner(scope + p=item))
    LocalBinding(p, val)  -> let(val, v -> inner(scope + p=v))
    Guard(pred)           -> guard(pred, () -> inner(scope))

A stage maps a scope dict to an iterator.  Scopes are copied on every
binding, so each closure sees the values current when it was created.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from comprehension.ast_nodes import Comprehension, Generator, LocalBinding, Guard
from comprehension.errors import CompileError
from comprehension.evaluator import Evaluator
from comprehension_runtime import pipeline
from comprehension_runtime.config import ERROR_POLICIES
from comprehension_runtime.consumers import collect, take, reduce_sum, reduce_product
from comprehension_runtime.exceptions import ComprehensionRuntimeError, ConfigError

logger = logging.getLogger(__name__)

Stage = Callable[[dict], Iterator]


class Lowerer:
    """Build closure pipelines from ``Comprehension`` nodes.

    *on_error* is ``"raise"`` (stop at the first failing item) or
    ``"skip"`` (drop the failing item's subtree, log it and go on).
    """

    def __init__(self, on_error: str = "raise", strict_guards: bool = True) -> None:
        if on_error not in ERROR_POLICIES:
            raise ConfigError(
                f"on_error must be one of {', '.join(ERROR_POLICIES)}, got {on_error!r}"
            )
        self.on_error = on_error
        self.strict_guards = strict_guards
        self.evaluator = Evaluator(nested=self._run_nested)
        self._nested: dict[int, tuple[Comprehension, Stage]] = {}

    def lower(self, comprehension: Comprehension) -> Stage:
        """Fold the qualifiers right to left around the body."""
        stage = self._protect(self._lower_body(comprehension.body), comprehension.body)
        for qualifier in reversed(comprehension.qualifiers):
            stage = self._protect(self._lower_qualifier(qualifier, stage), qualifier)
        logger.debug(
            "Lowered comprehension at L%d:%d with %d qualifiers",
            comprehension.line,
            comprehension.col,
            len(comprehension.qualifiers),
        )
        return stage

    # -- Stages --------------------------------------------------------------

    def _lower_qualifier(self, qualifier, inner: Stage) -> Stage:
        if isinstance(qualifier, Generator):
            return self._lower_generator(qualifier, inner)
        if isinstance(qualifier, LocalBinding):
            return self._lower_local_binding(qualifier, inner)
        if isinstance(qualifier, Guard):
            return self._lower_guard(qualifier, inner)
        raise CompileError(
            f"Unsupported qualifier type: {type(qualifier).__name__}",
            getattr(qualifier, "line", 0),
            getattr(qualifier, "col", 0),
        )

    def _lower_body(self, body) -> Stage:
        evaluate = self.evaluator.evaluate

        def run(scope: dict) -> Iterator:
            return pipeline.once(lambda: evaluate(body, scope))

        return run

    def _lower_generator(self, qualifier: Generator, inner: Stage) -> Stage:
        evaluator = self.evaluator
        skip = self.on_error == "skip"

        def each(item, scope: dict) -> Iterator:
            # Binding runs inside bind()'s loop, so a failure here would end the source.
            try:
                bound = evaluator.bind_pattern(qualifier.pattern, item, scope)
            except ComprehensionRuntimeError as e:
                if not skip:
                    raise
                self._log_skip(qualifier.pattern, e)
                return iter(())
            return inner(bound)

        def run(scope: dict) -> Iterator:
            return pipeline.bind(
                lambda: evaluator.iterable(qualifier.source, scope),
                lambda item: each(item, scope),
            )

        return run

    def _lower_local_binding(self, qualifier: LocalBinding, inner: Stage) -> Stage:
        evaluator = self.evaluator

        def run(scope: dict) -> Iterator:
            return pipeline.let(
                lambda: evaluator.evaluate(qualifier.value, scope),
                lambda value: inner(evaluator.bind_pattern(qualifier.pattern, value, scope)),
            )

        return run

    def _lower_guard(self, qualifier: Guard, inner: Stage) -> Stage:
        evaluator = self.evaluator
        strict = self.strict_guards

        def run(scope: dict) -> Iterator:
            return pipeline.guard(
                lambda: evaluator.evaluate(qualifier.condition, scope),
                lambda: inner(scope),
                strict=strict,
                line=qualifier.line,
                column=qualifier.col,
            )

        return run

    def _protect(self, stage: Stage, node) -> Stage:
        """In skip mode, turn a failing stage into an empty one."""
        if self.on_error == "raise":
            return stage

        def run(scope: dict) -> Iterator:
            try:
                yield from stage(scope)
            except ComprehensionRuntimeError as e:
                self._log_skip(node, e)

        return run

    def _log_skip(self, node, error: Exception) -> None:
        logger.warning("Skipping item (qualifier at L%d:%d): %s", node.line, node.col, error)

    def _run_nested(self, node: Comprehension, scope: dict) -> Iterator:
        entry = self._nested.get(id(node))
        if entry is None:
            entry = (node, self.lower(node))
            self._nested[id(node)] = entry
        return entry[1](scope)


class Pipeline:
    """A compiled comprehension bound to its outer scope.

    Every ``iter()`` starts a new, independent run, so a pipeline can be
    consumed any number of times.
    """

    def __init__(self, stage: Stage, scope: dict | None = None) -> None:
        self.stage = stage
        self.scope = dict(scope or {})

    def __iter__(self) -> Iterator:
        return iter(self.stage(dict(self.scope)))

    def take(self, n: int) -> list:
        return take(self, n)

    def collect(self) -> list:
        return collect(self)

    def sum(self, result_type=int):
        return reduce_sum(self, result_type)

    def product(self, result_type=int):
        return reduce_product(self, result_type)
