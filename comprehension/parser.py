"""Comprehension parser — recursive-descent parser producing an AST from tokens."""

from __future__ import annotations

import logging

from comprehension.lexer import Token, TokenType
from comprehension.errors import ParseError
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
    WildcardPattern,
    TuplePattern,
    Generator,
    LocalBinding,
    Guard,
)

logger = logging.getLogger(__name__)

# Tokens that may begin an expression; used to decide whether a range is open-ended.
EXPRESSION_START = frozenset({
    TokenType.NUMBER,
    TokenType.STRING,
    TokenType.IDENTIFIER,
    TokenType.TRUE,
    TokenType.FALSE,
    TokenType.NONE,
    TokenType.LPAREN,
    TokenType.LBRACKET,
    TokenType.MINUS,
    TokenType.PLUS,
    TokenType.NOT,
})


class Parser:
    """Recursive-descent parser for comprehension source.

    Consumes a flat list of tokens (from the Lexer) and produces an AST
    rooted at a ``Comprehension`` node.  Both ``[body; quals]`` and the
    bare ``body; quals`` forms are accepted.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos: int = 0

    # -- Navigation helpers ------------------------------------------------

    def current(self) -> Token:
        """Return the token at the current position, or an EOF token if past end."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        # Synthesise an EOF token so callers never crash
        last = self.tokens[-1] if self.tokens else Token(TokenType.EOF, "", 1, 1)
        return Token(TokenType.EOF, "", last.line, last.column)

    def peek(self, offset: int = 1) -> Token:
        """Look ahead *offset* tokens without consuming."""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        last = self.tokens[-1] if self.tokens else Token(TokenType.EOF, "", 1, 1)
        return Token(TokenType.EOF, "", last.line, last.column)

    def advance(self) -> Token:
        """Consume and return the current token, then increment pos."""
        tok = self.current()
        self.pos += 1
        return tok

    def expect(self, token_type: TokenType) -> Token:
        """Consume the current token if it matches *token_type*, else raise ParseError."""
        tok = self.current()
        if tok.type != token_type:
            raise ParseError(
                f"Expected {token_type.name} but got {tok.type.name} ({tok.value!r})",
                tok.line,
                tok.column,
            )
        return self.advance()

    def match(self, *types: TokenType) -> Token | None:
        """If the current token matches any of *types*, consume and return it; else None."""
        if self.current().type in types:
            return self.advance()
        return None

    def at_end(self) -> bool:
        """Check whether the current token is EOF."""
        return self.current().type == TokenType.EOF

    # -- Top-level ---------------------------------------------------------

    def parse(self) -> Comprehension:
        """Parse the full token stream into a ``Comprehension`` AST node."""
        first = self.current()
        body = self.parse_expression()

        # "[body; quals]" arrives as a single bracketed comprehension expression
        if self.at_end() and isinstance(body, Comprehension) and first.type == TokenType.LBRACKET:
            logger.debug("Parsed bracketed comprehension with %d qualifiers", len(body.qualifiers))
            return body

        tok = self.current()
        if tok.type != TokenType.SEMICOLON:
            raise ParseError(
                f"Expected ';' after comprehension body but got {tok.type.name} ({tok.value!r})",
                tok.line,
                tok.column,
            )
        self.advance()
        qualifiers = self.parse_qualifiers(TokenType.EOF)
        logger.debug("Parsed comprehension with %d qualifiers", len(qualifiers))
        return Comprehension(body=body, qualifiers=qualifiers, line=first.line, col=first.column)

    # -- Qualifier parsing -------------------------------------------------

    def parse_qualifiers(self, terminator: TokenType) -> list:
        """Parse a comma-separated qualifier list up to (not including) *terminator*."""
        qualifiers: list = []
        if self.current().type == terminator:
            return qualifiers

        while True:
            qualifiers.append(self.parse_qualifier())
            tok = self.current()
            if tok.type == terminator:
                return qualifiers
            if tok.type != TokenType.COMMA:
                raise ParseError(
                    f"Expected ',' between qualifiers but got {tok.type.name} ({tok.value!r})",
                    tok.line,
                    tok.column,
                )
            self.advance()
            if self.current().type == terminator:
                raise ParseError("Trailing ',' with no following qualifier", tok.line, tok.column)

    def parse_qualifier(self):
        """Parse one qualifier: generator, then ``let`` binding, then guard."""
        tok = self.current()

        generator = self._try_parse_generator()
        if generator is not None:
            return generator

        if tok.type == TokenType.LET:
            return self._parse_local_binding()

        try:
            condition = self.parse_expression()
        except ParseError as e:
            raise ParseError(
                f"Expected generator, let binding or guard: {e.message}",
                tok.line,
                tok.column,
            ) from e
        return Guard(condition=condition, line=tok.line, col=tok.column)

    def _try_parse_generator(self):
        """Speculatively parse ``pattern <- expr``.

        Restores the cursor and returns None when the tokens do not form a
        pattern followed by the binding arrow.
        """
        snapshot = self.pos
        tok = self.current()
        try:
            pattern = self.parse_pattern()
        except ParseError:
            self.pos = snapshot
            return None

        if self.current().type != TokenType.BIND_ARROW:
            self.pos = snapshot
            return None

        self.advance()  # consume '<-'
        source = self.parse_expression()
        return Generator(pattern=pattern, source=source, line=tok.line, col=tok.column)

    def _parse_local_binding(self):
        """Parse ``let pattern = expr``."""
        let_tok = self.expect(TokenType.LET)
        pattern = self.parse_pattern()
        self.expect(TokenType.EQUALS)
        value = self.parse_expression()
        return LocalBinding(pattern=pattern, value=value, line=let_tok.line, col=let_tok.column)

    # -- Pattern parsing ---------------------------------------------------

    def parse_pattern(self):
        """Parse ``_``, a name, or a parenthesised tuple of patterns."""
        tok = self.current()

        if tok.type == TokenType.IDENTIFIER:
            self.advance()
            if tok.value == "_":
                return WildcardPattern(line=tok.line, col=tok.column)
            return NamePattern(name=tok.value, line=tok.line, col=tok.column)

        if tok.type == TokenType.LPAREN:
            self.advance()
            elements = [self.parse_pattern()]
            saw_comma = False
            while self.match(TokenType.COMMA):
                saw_comma = True
                if self.current().type == TokenType.RPAREN:
                    break
                elements.append(self.parse_pattern())
            self.expect(TokenType.RPAREN)
            if len(elements) == 1 and not saw_comma:
                return elements[0]
            return TuplePattern(elements=elements, line=tok.line, col=tok.column)

        raise ParseError(
            f"Expected pattern but got {tok.type.name} ({tok.value!r})",
            tok.line,
            tok.column,
        )

    # -- Expression parsing ------------------------------------------------

    def parse_expression(self):
        """Entry point for expression parsing, lowest precedence."""
        return self.parse_range()

    def parse_range(self):
        """Parse ``a..b``, ``a..=b`` and the open-ended ``a..``."""
        start = self.parse_or()
        op_tok = self.match(TokenType.RANGE, TokenType.RANGE_INCLUSIVE)
        if op_tok is None:
            return start

        inclusive = op_tok.type == TokenType.RANGE_INCLUSIVE
        end = None
        if self.current().type in EXPRESSION_START:
            end = self.parse_or()
        elif inclusive:
            tok = self.current()
            raise ParseError("Inclusive range requires an upper bound", tok.line, tok.column)
        return RangeExpr(start=start, end=end, inclusive=inclusive, line=op_tok.line, col=op_tok.column)

    def parse_or(self):
        """Parse ``or`` expressions (lowest precedence binary)."""
        left = self.parse_and()
        while self.current().type == TokenType.OR:
            op_tok = self.advance()
            right = self.parse_and()
            left = BinaryOp(left=left, op="or", right=right, line=op_tok.line, col=op_tok.column)
        return left

    def parse_and(self):
        """Parse ``and`` expressions."""
        left = self.parse_not()
        while self.current().type == TokenType.AND:
            op_tok = self.advance()
            right = self.parse_not()
            left = BinaryOp(left=left, op="and", right=right, line=op_tok.line, col=op_tok.column)
        return left

    def parse_not(self):
        """Parse ``not`` prefix (unary)."""
        if self.current().type == TokenType.NOT:
            op_tok = self.advance()
            operand = self.parse_not()
            return UnaryOp(op="not", operand=operand, line=op_tok.line, col=op_tok.column)
        return self.parse_comparison()

    def parse_comparison(self):
        """Parse comparison operators including ``in`` and ``not in``."""
        left = self.parse_addition()

        comparison_types = {
            TokenType.DOUBLE_EQUALS: "==",
            TokenType.NOT_EQUALS: "!=",
            TokenType.LT: "<",
            TokenType.GT: ">",
            TokenType.LTE: "<=",
            TokenType.GTE: ">=",
            TokenType.IN: "in",
        }

        while True:
            tok = self.current()
            if tok.type in comparison_types:
                self.advance()
                op_str = comparison_types[tok.type]
            elif tok.type == TokenType.NOT and self.peek().type == TokenType.IN:
                self.advance()
                self.advance()
                op_str = "not in"
            else:
                return left
            right = self.parse_addition()
            left = BinaryOp(left=left, op=op_str, right=right, line=tok.line, col=tok.column)

    def parse_addition(self):
        """Parse ``+`` and ``-`` (addition-level precedence)."""
        left = self.parse_multiplication()

        while self.current().type in (TokenType.PLUS, TokenType.MINUS):
            op_tok = self.advance()
            right = self.parse_multiplication()
            left = BinaryOp(left=left, op=op_tok.value, right=right, line=op_tok.line, col=op_tok.column)
        return left

    def parse_multiplication(self):
        """Parse ``*``, ``/``, ``//``, ``%`` (multiplication-level precedence)."""
        left = self.parse_unary()

        mul_ops = (TokenType.STAR, TokenType.SLASH, TokenType.DOUBLE_SLASH, TokenType.PERCENT)

        while self.current().type in mul_ops:
            op_tok = self.advance()
            right = self.parse_unary()
            left = BinaryOp(left=left, op=op_tok.value, right=right, line=op_tok.line, col=op_tok.column)
        return left

    def parse_unary(self):
        """Parse unary ``-`` and ``+`` prefixes."""
        if self.current().type in (TokenType.MINUS, TokenType.PLUS):
            op_tok = self.advance()
            operand = self.parse_unary()
            return UnaryOp(op=op_tok.value, operand=operand, line=op_tok.line, col=op_tok.column)
        return self.parse_power()

    def parse_power(self):
        """Parse right-associative ``**``; binds tighter than unary minus on its left."""
        base = self.parse_postfix()
        op_tok = self.match(TokenType.DOUBLE_STAR)
        if op_tok is None:
            return base
        exponent = self.parse_unary()
        return BinaryOp(left=base, op="**", right=exponent, line=op_tok.line, col=op_tok.column)

    def parse_postfix(self):
        """Parse postfix operations: ``.attr`` chains, ``(args)`` calls and ``[index]``."""
        node = self.parse_primary()

        while True:
            if self.current().type == TokenType.DOT:
                self.advance()  # consume '.'
                attr_tok = self.expect(TokenType.IDENTIFIER)
                node = AttributeAccess(
                    object=node,
                    attribute=attr_tok.value,
                    line=attr_tok.line,
                    col=attr_tok.column,
                )
            elif self.current().type == TokenType.LPAREN:
                node = self._parse_call(node)
            elif self.current().type == TokenType.LBRACKET:
                lbracket = self.advance()
                index = self.parse_expression()
                self.expect(TokenType.RBRACKET)
                node = IndexAccess(object=node, index=index, line=lbracket.line, col=lbracket.column)
            else:
                break

        return node

    def _parse_call(self, callee):
        """Parse a function call ``(arg1, arg2, ...)``."""
        lparen = self.expect(TokenType.LPAREN)
        args: list = []

        if self.current().type != TokenType.RPAREN:
            args.append(self.parse_expression())
            while self.match(TokenType.COMMA):
                args.append(self.parse_expression())

        self.expect(TokenType.RPAREN)
        return FunctionCall(callee=callee, args=args, line=lparen.line, col=lparen.column)

    def parse_primary(self):
        """Parse primary (atomic) expressions."""
        tok = self.current()

        if tok.type == TokenType.NUMBER:
            self.advance()
            value = float(tok.value) if "." in tok.value else int(tok.value)
            return NumberLiteral(value=value, line=tok.line, col=tok.column)

        if tok.type == TokenType.STRING:
            self.advance()
            return StringLiteral(value=tok.value, line=tok.line, col=tok.column)

        if tok.type == TokenType.TRUE:
            self.advance()
            return BooleanLiteral(value=True, line=tok.line, col=tok.column)
        if tok.type == TokenType.FALSE:
            self.advance()
            return BooleanLiteral(value=False, line=tok.line, col=tok.column)

        if tok.type == TokenType.NONE:
            self.advance()
            return NoneLiteral(line=tok.line, col=tok.column)

        if tok.type == TokenType.IDENTIFIER:
            self.advance()
            return Identifier(name=tok.value, line=tok.line, col=tok.column)

        # Grouped expression ( expr ) or tuple ( expr, ... )
        if tok.type == TokenType.LPAREN:
            return self._parse_parenthesised()

        # List literal [ expr, ... ] or nested comprehension [ expr; quals ]
        if tok.type == TokenType.LBRACKET:
            return self._parse_bracketed()

        raise ParseError(
            f"Unexpected token {tok.type.name} ({tok.value!r})",
            tok.line,
            tok.column,
        )

    def _parse_parenthesised(self):
        """Parse ``()``, ``(expr)``, ``(expr,)`` or ``(expr, expr, ...)``."""
        lparen = self.expect(TokenType.LPAREN)
        if self.match(TokenType.RPAREN):
            return TupleLiteral(elements=[], line=lparen.line, col=lparen.column)

        first = self.parse_expression()
        if self.match(TokenType.RPAREN):
            return first

        elements = [first]
        while self.match(TokenType.COMMA):
            if self.current().type == TokenType.RPAREN:
                break
            elements.append(self.parse_expression())
        self.expect(TokenType.RPAREN)
        return TupleLiteral(elements=elements, line=lparen.line, col=lparen.column)

    def _parse_bracketed(self):
        """Parse ``[expr, expr, ...]`` or a nested ``[body; quals]``."""
        tok = self.expect(TokenType.LBRACKET)
        if self.match(TokenType.RBRACKET):
            return ListLiteral(elements=[], line=tok.line, col=tok.column)

        first = self.parse_expression()

        if self.match(TokenType.SEMICOLON):
            qualifiers = self.parse_qualifiers(TokenType.RBRACKET)
            self.expect(TokenType.RBRACKET)
            return Comprehension(body=first, qualifiers=qualifiers, line=tok.line, col=tok.column)

        elements = [first]
        while self.match(TokenType.COMMA):
            elements.append(self.parse_expression())
        self.expect(TokenType.RBRACKET)
        return ListLiteral(elements=elements, line=tok.line, col=tok.column)
