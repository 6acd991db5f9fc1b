"""
Lexer for capture expressions.

Splits an expression into tokens, recording where each one starts so
parse errors can point at the offending character.

Token kinds:
    IDENTITY  unquoted key or field name (routes, next-hop-interface, 0)
    DOT       path separator
    EQFILTER  the == operator
    STRING    double-quoted literal, taken exactly as written
    EOF       end of input

Whitespace between tokens is skipped.
"""

from dataclasses import dataclass
from enum import Enum

from nmpolicy.errors import ParseError


class TokenKind(str, Enum):
    """Kinds of token produced by the lexer."""

    IDENTITY = "identity"
    DOT = "dot"
    EQFILTER = "eqfilter"
    STRING = "string"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A lexed token and the offset where it starts."""

    kind: TokenKind
    value: str
    position: int


# Characters that end an identifier
_DELIMITERS = frozenset('.="!')


def tokenize(expression: str) -> list[Token]:
    """
    Tokenize a capture expression.

    Args:
        expression: The expression text

    Returns:
        Tokens in order, always terminated by an EOF token

    Raises:
        ParseError: On an unterminated string or unknown operator
    """
    tokens: list[Token] = []
    pos = 0
    length = len(expression)

    while pos < length:
        char = expression[pos]

        if char.isspace():
            pos += 1
            continue

        if char == ".":
            tokens.append(Token(TokenKind.DOT, char, pos))
            pos += 1
            continue

        if char == '"':
            end = expression.find('"', pos + 1)
            if end == -1:
                raise ParseError(
                    expression=expression,
                    position=pos,
                    reason="string is not terminated",
                )
            tokens.append(Token(TokenKind.STRING, expression[pos + 1:end], pos))
            pos = end + 1
            continue

        if char in "=!":
            operator_end = pos
            while operator_end < length and expression[operator_end] in "=!":
                operator_end += 1
            operator = expression[pos:operator_end]
            if operator != "==":
                raise ParseError(
                    expression=expression,
                    position=pos,
                    reason=f"unknown operator '{operator}'",
                )
            tokens.append(Token(TokenKind.EQFILTER, operator, pos))
            pos = operator_end
            continue

        start = pos
        while (
            pos < length
            and expression[pos] not in _DELIMITERS
            and not expression[pos].isspace()
        ):
            pos += 1
        tokens.append(Token(TokenKind.IDENTITY, expression[start:pos], start))

    tokens.append(Token(TokenKind.EOF, "", length))
    return tokens
