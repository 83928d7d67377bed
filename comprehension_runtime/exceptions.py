"""Comprehension runtime exception types.

Compile-time problems are reported by ``comprehension.errors`` before a
pipeline exists; these are raised lazily, at the item being demanded.
"""


class ComprehensionRuntimeError(Exception):
    """Base runtime error."""
    pass


class PositionedError(ComprehensionRuntimeError):
    """A runtime error tied to a position in the comprehension source.

    Line 0 means the position is unknown (for example inside transpiled
    code), and the message is rendered without a location prefix.
    """

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        if line:
            super().__init__(f"Line {line}, Col {column}: {message}")
        else:
            super().__init__(message)


class EvaluationError(PositionedError):
    """A body, guard, binding or source expression raised while being evaluated."""
    pass


class GuardTypeError(PositionedError):
    """A guard produced something other than a bool."""
    pass


class SourceNotIterableError(ComprehensionRuntimeError):
    """A generator source cannot be iterated."""
    pass


class PatternMismatchError(PositionedError):
    """A value does not have the shape a tuple pattern expects."""
    pass


class RangeTypeError(ComprehensionRuntimeError):
    """Range bounds are neither integers nor single characters."""
    pass


class ConfigError(ComprehensionRuntimeError):
    """Configuration error."""
    pass
