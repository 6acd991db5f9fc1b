"""
Capture expression language.

Expressions are dot-separated paths into a state document, where any
segment but the first may filter a sequence by field equality:

    routes.running.destination=="0.0.0.0/0"

Key concepts:
    - tokenize: expression text to tokens with positions
    - parse: tokens to a CaptureExpression of PathSegments
    - ParseError: raised with the expression and failing position
"""

from nmpolicy.expression.lexer import Token, TokenKind, tokenize
from nmpolicy.expression.parser import parse
from nmpolicy.expression.syntax import CaptureExpression, EqFilter, PathSegment

__all__ = [
    "CaptureExpression",
    "EqFilter",
    "PathSegment",
    "Token",
    "TokenKind",
    "parse",
    "tokenize",
]
