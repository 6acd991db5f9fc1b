"""
Parser for capture expressions.

Grammar:
    path    := segment ('.' segment)*
    segment := identifier | identifier '==' '"' literal '"'

A filter cannot appear on the first segment: it narrows the sequence
reached by the segments before it, so something must come first.

Parsing is pure. The same string always yields the same CaptureExpression.
"""

from nmpolicy.errors import ParseError
from nmpolicy.expression.lexer import Token, TokenKind, tokenize
from nmpolicy.expression.syntax import CaptureExpression, EqFilter, PathSegment


def parse(expression: str) -> CaptureExpression:
    """
    Parse a capture expression.

    Args:
        expression: The expression text

    Returns:
        The parsed expression

    Raises:
        ParseError: If the expression is malformed
    """
    return _Parser(expression, tokenize(expression)).parse()


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, expression: str, tokens: list[Token]) -> None:
        self.expression = expression
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind != TokenKind.EOF:
            self.index += 1
        return token

    def error(self, token: Token, reason: str) -> ParseError:
        return ParseError(
            expression=self.expression,
            position=token.position,
            reason=reason,
        )

    def parse(self) -> CaptureExpression:
        if self.current.kind == TokenKind.EOF:
            raise self.error(self.current, "empty expression")

        segments = [self.parse_segment(first=True)]
        while self.current.kind != TokenKind.EOF:
            token = self.advance()
            if token.kind != TokenKind.DOT:
                raise self.error(token, _unexpected(token))
            segments.append(self.parse_segment(first=False))

        return CaptureExpression(source=self.expression, segments=tuple(segments))

    def parse_segment(self, first: bool) -> PathSegment:
        token = self.advance()
        if token.kind in (TokenKind.DOT, TokenKind.EOF):
            raise self.error(token, "empty path segment")
        if token.kind != TokenKind.IDENTITY:
            raise self.error(token, _unexpected(token))

        if self.current.kind != TokenKind.EQFILTER:
            return PathSegment(name=token.value, position=token.position)

        operator = self.advance()
        if first:
            raise self.error(operator, "filter needs a path before it")

        literal = self.advance()
        if literal.kind != TokenKind.STRING:
            raise self.error(literal, "expected a quoted literal after '=='")

        return PathSegment(
            name=token.value,
            position=token.position,
            filter=EqFilter(field=token.value, literal=literal.value),
        )


def _unexpected(token: Token) -> str:
    if token.kind == TokenKind.IDENTITY:
        return f"unexpected identifier '{token.value}'"
    if token.kind == TokenKind.STRING:
        return "unexpected string literal"
    if token.kind == TokenKind.EQFILTER:
        return "unexpected '=='"
    return f"unexpected {token.kind.value}"
