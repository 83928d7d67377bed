"""Terminal consumers for comprehension pipelines.

Sums and products take the accumulator type explicitly: the identity is
``result_type(0)`` or ``result_type(1)``, so ``reduce_sum(items, float)``
returns ``0.0`` for an empty pipeline.
"""

import functools
import itertools
import operator


def collect(iterable) -> list:
    """Gather a pipeline eagerly into a list."""
    return list(iterable)


def take(iterable, n: int) -> list:
    """Gather at most *n* items; safe on infinite pipelines."""
    if n < 0:
        raise ValueError(f"take() needs a non-negative count, got {n}")
    return list(itertools.islice(iterable, n))


def fold(iterable, initial, combine):
    """Left fold of *iterable* with *combine*, starting from *initial*."""
    return functools.reduce(combine, iterable, initial)


def reduce_sum(iterable, result_type=int):
    return fold(iterable, result_type(0), operator.add)


def reduce_product(iterable, result_type=int):
    return fold(iterable, result_type(1), operator.mul)
