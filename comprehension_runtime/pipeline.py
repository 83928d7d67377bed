"""Lazy pipeline primitives.

Lowered and transpiled comprehensions are nested calls to these
functions.  Every primitive is a generator function, so nothing (not
even a generator's source) is evaluated until the first item is pulled.
"""

import itertools

from comprehension_runtime.exceptions import (
    GuardTypeError,
    PatternMismatchError,
    RangeTypeError,
    SourceNotIterableError,
)

# One past the largest code point, the end of an open character range.
_MAX_CODE_POINT = 0x110000


def iterate(source):
    """Return an iterator over *source*, or raise SourceNotIterableError."""
    try:
        return iter(source)
    except TypeError as e:
        raise SourceNotIterableError(
            f"Generator source of type {type(source).__name__} is not iterable"
        ) from e


def once(value_fn):
    """Yield ``value_fn()`` exactly once."""
    yield value_fn()


def bind(source_fn, fn):
    """Flat-map: for each item of ``source_fn()``, yield everything ``fn(item)`` yields."""
    for item in iterate(source_fn()):
        yield from fn(item)


def let(value_fn, fn):
    """Evaluate ``value_fn()`` once and continue with ``fn(value)``."""
    yield from fn(value_fn())


def guard(predicate_fn, fn, strict=True, line=0, column=0):
    """Continue with ``fn()`` only when ``predicate_fn()`` holds.

    With *strict* the predicate must return a real ``bool``; *line* and
    *column* locate the guard in error messages.
    """
    result = predicate_fn()
    if strict and not isinstance(result, bool):
        raise GuardTypeError(
            f"Guard must evaluate to a bool, got {type(result).__name__}", line, column
        )
    if result:
        yield from fn()


def span(start, stop=None, inclusive=False):
    """Integer or character range; ``stop=None`` is open-ended."""
    if _is_char(start) and (stop is None or _is_char(stop)):
        low = ord(start)
        high = _MAX_CODE_POINT if stop is None else ord(stop) + (1 if inclusive else 0)
        return (chr(code) for code in range(low, high))

    if not _is_int(start) or not (stop is None or _is_int(stop)):
        raise RangeTypeError(
            f"Range bounds must be integers or single characters, "
            f"got {type(start).__name__} and {type(stop).__name__}"
        )
    if stop is None:
        return itertools.count(start)
    return range(start, stop + 1 if inclusive else stop)


def unpack(value, arity: int) -> tuple:
    """Destructure *value* into exactly *arity* items for a tuple pattern."""
    try:
        # Read one extra item so an overlong (or infinite) value is caught cheaply.
        items = tuple(itertools.islice(value, arity + 1))
    except TypeError as e:
        raise PatternMismatchError(
            f"Cannot destructure {type(value).__name__} into {arity} values"
        ) from e
    if len(items) != arity:
        raise PatternMismatchError(f"Expected {arity} values to unpack, got {len(items)}")
    return items


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_char(value) -> bool:
    return isinstance(value, str) and len(value) == 1
