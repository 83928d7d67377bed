"""Comprehension compiler error types with source location info."""


class ComprehensionError(Exception):
    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"Line {line}, Col {column}: {message}")


class LexerError(ComprehensionError):
    pass


class ParseError(ComprehensionError):
    pass


class ScopeError(ComprehensionError):
    """A name is referenced before any qualifier or environment binds it."""


class CompileError(ComprehensionError):
    """A qualifier is well-formed but can never be evaluated meaningfully."""


class TranspileError(ComprehensionError):
    pass
