"""Arithmetic expression evaluation for the 24 Game.

Turns the token sequence built by the player into a number. Rendering,
lexical validation and evaluation are separate steps so the game can show
a running result while the expression is still incomplete:

- ``render_expression()`` joins tokens into a display string.
- ``is_valid_expression()`` checks characters and parenthesis balance.
- ``evaluate_tokens()`` parses with a recursive-descent parser and
  returns ``None`` for anything that does not produce a finite number.

No string is ever executed as code.
"""

from __future__ import annotations

import enum
import logging
import math
import operator
import re
from typing import Callable

logger = logging.getLogger(__name__)


# =============================================================================
# Tokens
# =============================================================================

OPERATORS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}

PARENTHESES = ("(", ")")

# Alternate glyphs accepted from input and display layers.
_GLYPHS = {
    "×": "*",
    "x": "*",
    "X": "*",
    "÷": "/",
    "−": "-",
}

_VALID_CHARS = re.compile(r"^[0-9+\-*/().\s]+$")
_TOKEN_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+|[-+*/()]")
_NUMBER_RE = re.compile(r"^(?:\d+(?:\.\d+)?|\.\d+)$")


class TokenKind(enum.Enum):
    """Lexical category of an expression token."""
    NUMBER = enum.auto()
    OPERATOR = enum.auto()
    PARENTHESIS = enum.auto()
    UNKNOWN = enum.auto()


class ExpressionError(ValueError):
    """Raised when an expression cannot be parsed."""


def canonical_token(token: str) -> str:
    """Map alternate operator glyphs to their ASCII form.

    Args:
        token: A single expression token.

    Returns:
        ``*``, ``/`` or ``-`` for a recognised glyph, else the token
        unchanged.
    """
    return _GLYPHS.get(token, token)


def is_number_token(token: str) -> bool:
    """Whether a token is a numeric literal."""
    return bool(_NUMBER_RE.match(token))


def is_operator_token(token: str) -> bool:
    """Whether a token is one of the four binary operators."""
    return token in OPERATORS


def classify_token(token: str) -> TokenKind:
    """Classify a token for display."""
    token = canonical_token(token)
    if is_number_token(token):
        return TokenKind.NUMBER
    if is_operator_token(token):
        return TokenKind.OPERATOR
    if token in PARENTHESES:
        return TokenKind.PARENTHESIS
    return TokenKind.UNKNOWN


# =============================================================================
# Rendering & Validation
# =============================================================================

def render_expression(tokens: list[str]) -> str:
    """Join tokens into a single whitespace-separated string.

    Alternate multiplication and division glyphs are canonicalised.

    Args:
        tokens: Expression tokens in order.

    Returns:
        The expression string, e.g. ``"( 1 + 2 ) * 3"``.
    """
    return " ".join(canonical_token(t) for t in tokens)


def is_valid_expression(expr: str) -> bool:
    """Check that an expression string is lexically well formed.

    Only digits, ``+ - * / ( ) .`` and whitespace are allowed and
    parentheses must balance. Operator placement is not checked here;
    that is left to the expression builder and the parser.

    Args:
        expr: The expression string.

    Returns:
        True if the characters are allowed and parentheses balance.
    """
    if not _VALID_CHARS.match(expr):
        return False
    depth = 0
    for char in expr:
        if char == "(":
            depth += 1
        elif char == ")":
            if depth == 0:
                return False
            depth -= 1
    return depth == 0


def normalize_expression(expr: str) -> str:
    """Replace alternate operator glyphs in a string with ASCII operators.

    Args:
        expr: Raw input such as ``"3×8"`` or ``"8÷(3−8÷3)"``.

    Returns:
        The string with every glyph canonicalised, e.g. ``"3*8"``.
    """
    return "".join(canonical_token(ch) for ch in expr)


def tokenize(expr: str) -> list[str]:
    """Split an expression string into tokens.

    Args:
        expr: Expression such as ``"8/(3-8/3)"``; whitespace is optional.

    Returns:
        List of number, operator and parenthesis tokens.

    Raises:
        ExpressionError: If the string contains anything else.
    """
    tokens: list[str] = []
    pos = 0
    for match in _TOKEN_RE.finditer(expr):
        gap = expr[pos:match.start()]
        if gap.strip():
            raise ExpressionError(f"Unexpected input: {gap.strip()!r}")
        tokens.append(match.group())
        pos = match.end()
    tail = expr[pos:]
    if tail.strip():
        raise ExpressionError(f"Unexpected input: {tail.strip()!r}")
    return tokens


# =============================================================================
# Parser
# =============================================================================

class _Parser:
    """Recursive-descent parser that evaluates as it parses.

    Grammar::

        expr   := ["-"] term (("+" | "-") term)*
        term   := factor (("*" | "/") factor)*
        factor := NUMBER | "(" expr ")"

    A leading ``-`` negates the first term of an ``expr``, which covers
    a unary minus at the start of the expression or right after ``(``.
    """

    def __init__(self, tokens: list[str]) -> None:
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _consume(self) -> str:
        token = self._peek()
        if token is None:
            raise ExpressionError("Unexpected end of expression")
        self.pos += 1
        return token

    def parse(self) -> float:
        if not self.tokens:
            raise ExpressionError("Empty expression")
        value = self._expr()
        if self._peek() is not None:
            raise ExpressionError(f"Unexpected token: {self._peek()!r}")
        return value

    def _expr(self) -> float:
        negate = False
        if self._peek() == "-":
            self._consume()
            negate = True
        value = self._term()
        if negate:
            value = -value
        while self._peek() in ("+", "-"):
            op = self._consume()
            value = OPERATORS[op](value, self._term())
        return value

    def _term(self) -> float:
        value = self._factor()
        while self._peek() in ("*", "/"):
            op = self._consume()
            value = OPERATORS[op](value, self._factor())
        return value

    def _factor(self) -> float:
        token = self._consume()
        if token == "(":
            value = self._expr()
            if self._consume() != ")":
                raise ExpressionError("Expected ')'")
            return value
        if is_number_token(token):
            return float(token)
        raise ExpressionError(f"Unexpected token: {token!r}")


def evaluate_tokens(tokens: list[str]) -> float | None:
    """Evaluate an expression token sequence for display and checking.

    Args:
        tokens: Expression tokens, e.g. ``["(", "1", "+", "2", ")"]``.

    Returns:
        The finite result, or None if the expression is empty, fails
        validation, cannot be parsed, nests too deeply to parse, or
        divides by zero.
    """
    if not tokens:
        return None

    expr = render_expression(tokens)
    if not is_valid_expression(expr):
        logger.debug("Rejected invalid expression %r", expr)
        return None

    try:
        result = _Parser([canonical_token(t) for t in tokens]).parse()
    except (ExpressionError, ZeroDivisionError, RecursionError) as e:
        logger.debug("Could not evaluate %r: %s", expr, e)
        return None

    if not math.isfinite(result):
        return None
    return result


def format_result(value: float | None) -> str:
    """Format a result the way the result panel shows it.

    Two decimals, with a trailing ``.00`` dropped; ``-`` when there is
    no result.
    """
    if value is None:
        return "-"
    text = format_fixed(value)
    if text.endswith(".00"):
        text = text[:-3]
    return text


def format_fixed(value: float) -> str:
    """Format a value with exactly two decimals, never as ``-0.00``."""
    text = f"{value:.2f}"
    if text == "-0.00":
        text = "0.00"
    return text
