"""Comprehension lexer — scans source text into a flat list of tokens."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from comprehension.errors import LexerError


# ---------------------------------------------------------------------------
# Token types
# ---------------------------------------------------------------------------

class TokenType(Enum):
    # Literals
    STRING = auto()
    NUMBER = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    LET = auto()
    TRUE = auto()
    FALSE = auto()
    NONE = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    IN = auto()

    # Operators
    BIND_ARROW = auto()       # <-
    RANGE = auto()            # ..
    RANGE_INCLUSIVE = auto()  # ..=
    PLUS = auto()             # +
    MINUS = auto()            # -
    STAR = auto()             # *
    DOUBLE_STAR = auto()      # **
    SLASH = auto()            # /
    DOUBLE_SLASH = auto()     # //
    PERCENT = auto()          # %
    DOT = auto()              # .
    EQUALS = auto()           # =
    DOUBLE_EQUALS = auto()    # ==
    NOT_EQUALS = auto()       # !=
    LT = auto()               # <
    GT = auto()               # >
    LTE = auto()              # <=
    GTE = auto()              # >=

    # Delimiters
    COMMA = auto()            # ,
    SEMICOLON = auto()        # ;
    LPAREN = auto()           # (
    RPAREN = auto()           # )
    LBRACKET = auto()         # [
    RBRACKET = auto()         # ]

    EOF = auto()


# ---------------------------------------------------------------------------
# Keyword and operator lookup
# ---------------------------------------------------------------------------

KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "none": TokenType.NONE,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "in": TokenType.IN,
}

# Longest operators first so that "..=" wins over ".." and "." etc.
OPERATORS: list[tuple[str, TokenType]] = [
    ("..=", TokenType.RANGE_INCLUSIVE),
    ("..", TokenType.RANGE),
    ("<-", TokenType.BIND_ARROW),
    ("**", TokenType.DOUBLE_STAR),
    ("//", TokenType.DOUBLE_SLASH),
    ("==", TokenType.DOUBLE_EQUALS),
    ("!=", TokenType.NOT_EQUALS),
    ("<=", TokenType.LTE),
    (">=", TokenType.GTE),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("*", TokenType.STAR),
    ("/", TokenType.SLASH),
    ("%", TokenType.PERCENT),
    (".", TokenType.DOT),
    ("=", TokenType.EQUALS),
    ("<", TokenType.LT),
    (">", TokenType.GT),
    (",", TokenType.COMMA),
    (";", TokenType.SEMICOLON),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("[", TokenType.LBRACKET),
    ("]", TokenType.RBRACKET),
]

# ASCII only; str.isdigit() also accepts superscripts and other scripts.
DIGITS = frozenset("0123456789")

ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


# ---------------------------------------------------------------------------
# Token dataclass
# ---------------------------------------------------------------------------

@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.column})"


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

class Lexer:
    """Scans comprehension source text and produces a flat list of Token objects."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos: int = 0
        self.line: int = 1
        self.col: int = 1

    # -- Character-level helpers -------------------------------------------

    def _current(self) -> str:
        """Return the character at the current position, or '' at EOF."""
        if self.pos < len(self.source):
            return self.source[self.pos]
        return ""

    def peek(self) -> str:
        """Look ahead one character without consuming it."""
        next_pos = self.pos + 1
        if next_pos < len(self.source):
            return self.source[next_pos]
        return ""

    def advance(self) -> str:
        """Consume and return the current character, advancing position."""
        ch = self._current()
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    # -- Main entry point --------------------------------------------------

    def tokenize(self) -> list[Token]:
        """Scan the entire source and return a list of tokens ending with EOF."""
        tokens: list[Token] = []

        while self.pos < len(self.source):
            ch = self._current()

            # Comprehensions may span lines; all whitespace is insignificant
            if ch.isspace():
                self.advance()
                continue

            # Comments: -- to end of line
            if ch == "-" and self.peek() == "-":
                self._skip_comment()
                continue

            if ch in ('"', "'"):
                tokens.append(self._read_string(ch))
                continue

            if ch in DIGITS:
                tokens.append(self._read_number())
                continue

            if ch.isalpha() or ch == "_":
                tokens.append(self._read_identifier())
                continue

            tokens.append(self._read_operator())

        tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return tokens

    # -- Token readers -----------------------------------------------------

    def _skip_comment(self) -> None:
        """Consume from -- to end of line (or end of source)."""
        while self.pos < len(self.source) and self._current() != "\n":
            self.advance()

    def _read_operator(self) -> Token:
        """Read the longest operator or delimiter at the current position."""
        for text, token_type in OPERATORS:
            if self.source.startswith(text, self.pos):
                tok = Token(token_type, text, self.line, self.col)
                for _ in text:
                    self.advance()
                return tok
        raise LexerError(f"Unexpected character: {self._current()!r}", self.line, self.col)

    def _read_string(self, quote: str) -> Token:
        """Read a single- or double-quoted string with backslash escapes."""
        start_line = self.line
        start_col = self.col
        self.advance()  # consume opening quote

        value_chars: list[str] = []

        while self.pos < len(self.source):
            ch = self._current()
            if ch == quote:
                self.advance()
                return Token(TokenType.STRING, "".join(value_chars), start_line, start_col)
            if ch == "\n":
                raise LexerError("Unterminated string literal", start_line, start_col)
            if ch == "\\":
                esc_line, esc_col = self.line, self.col
                self.advance()
                esc = self.advance()
                if esc not in ESCAPES:
                    raise LexerError(f"Unknown escape sequence: \\{esc}", esc_line, esc_col)
                value_chars.append(ESCAPES[esc])
                continue
            value_chars.append(ch)
            self.advance()

        raise LexerError("Unterminated string literal", start_line, start_col)

    def _read_number(self) -> Token:
        """Read an integer or float literal: [0-9]+(\\.[0-9]+)?

        A dot that is not followed by a digit is left alone, so ``1..10``
        scans as NUMBER RANGE NUMBER.
        """
        start_line = self.line
        start_col = self.col
        chars: list[str] = []

        while self.pos < len(self.source) and self._current() in DIGITS:
            chars.append(self.advance())

        if self.pos < len(self.source) and self._current() == "." and self.peek() in DIGITS:
            chars.append(self.advance())  # consume '.'
            while self.pos < len(self.source) and self._current() in DIGITS:
                chars.append(self.advance())

        return Token(TokenType.NUMBER, "".join(chars), start_line, start_col)

    def _read_identifier(self) -> Token:
        """Read an identifier or keyword: [a-zA-Z_][a-zA-Z0-9_]*"""
        start_line = self.line
        start_col = self.col
        chars: list[str] = []

        while self.pos < len(self.source) and self._is_identifier_char(self._current()):
            chars.append(self.advance())

        word = "".join(chars)
        token_type = KEYWORDS.get(word, TokenType.IDENTIFIER)
        return Token(token_type, word, start_line, start_col)

    @staticmethod
    def _is_identifier_char(ch: str) -> bool:
        return ch.isalpha() or ch in DIGITS or ch == "_"
