"""Recursive-descent parser for portable filter text.

Grammar, lowest precedence first::

    expr       := or_expr
    or_expr    := and_expr ('||' and_expr)*
    and_expr   := term ('&&' term)*
    term       := '(' expr ')' | NOT term | comparison
    comparison := IDENT ('=' | '!=' | '>' | '>=' | '<' | '<=') literal
                | IDENT 'in' '[' literal (',' literal)* ']'

Example:
    >>> parse("country in ['UK', 'NL'] && year >= 2020")
    Logical(op=<LogicalOp.AND: 'AND'>, children=(In(field='country', ...), ...))
"""

from __future__ import annotations

import re
from typing import NamedTuple

from portvec.errors import ParseError
from portvec.filters.ast import (
    Comparison,
    ComparisonOp,
    FilterExpression,
    In,
    Logical,
    LogicalOp,
    Not,
    Scalar,
)

# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

_IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_.]*"

_TOKEN_PATTERNS: list[tuple[str, str]] = [
    ("WS", r"\s+"),
    ("AND", r"&&"),
    ("OR", r"\|\|"),
    ("OP", r"==|!=|>=|<=|=|>|<"),
    ("NOT", r"!"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LBRACKET", r"\["),
    ("RBRACKET", r"\]"),
    ("COMMA", r","),
    ("NUMBER", r"-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?"),
    ("STRING", r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""),
    ("IDENT", _IDENTIFIER),
]

_IDENTIFIER_RE = re.compile(_IDENTIFIER)

# Bracket and NOT nesting allowed before parsing gives up
MAX_NESTING = 100

_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_PATTERNS))

_KEYWORDS = {
    "and": "AND",
    "or": "OR",
    "not": "NOT",
    "in": "IN",
    "true": "BOOL",
    "false": "BOOL",
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

_OPERATORS = {
    "=": ComparisonOp.EQ,
    "==": ComparisonOp.EQ,
    "!=": ComparisonOp.NE,
    ">": ComparisonOp.GT,
    ">=": ComparisonOp.GTE,
    "<": ComparisonOp.LT,
    "<=": ComparisonOp.LTE,
}


def is_identifier(name: str) -> bool:
    """True if ``name`` can appear as a field in filter text."""
    return _IDENTIFIER_RE.fullmatch(name) is not None and name.lower() not in _KEYWORDS


class Token(NamedTuple):
    kind: str
    text: str
    pos: int


def tokenize(text: str) -> list[Token]:
    """Split filter text into tokens, ending with an ``EOF`` token."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            char = text[pos]
            if char in "'\"":
                raise ParseError(pos, "Unterminated string literal")
            raise ParseError(pos, f"Unexpected character {char!r}")
        kind = match.lastgroup
        value = match.group()
        if kind == "IDENT":
            kind = _KEYWORDS.get(value.lower(), "IDENT")
        if kind != "WS":
            tokens.append(Token(kind, value, pos))
        pos = match.end()
    tokens.append(Token("EOF", "", len(text)))
    return tokens


def _unquote(raw: str) -> str:
    body = raw[1:-1]
    out: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def _literal_kind(value: Scalar) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, tokens: list[Token]):
        self._tokens = tokens
        self._index = 0
        self._depth = 0

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != "EOF":
            self._index += 1
        return token

    def _expect(self, kind: str, description: str) -> Token:
        token = self._current
        if token.kind != kind:
            raise ParseError(token.pos, f"Expected {description}, found {_describe(token)}")
        return self._advance()

    def parse(self) -> FilterExpression:
        expression = self._or_expr()
        if self._current.kind != "EOF":
            raise ParseError(self._current.pos, f"Unexpected {_describe(self._current)}")
        return expression

    def _or_expr(self) -> FilterExpression:
        operands = [self._and_expr()]
        while self._current.kind == "OR":
            self._advance()
            operands.append(self._and_expr())
        if len(operands) == 1:
            return operands[0]
        return Logical(LogicalOp.OR, tuple(operands))

    def _and_expr(self) -> FilterExpression:
        operands = [self._term()]
        while self._current.kind == "AND":
            self._advance()
            operands.append(self._term())
        if len(operands) == 1:
            return operands[0]
        return Logical(LogicalOp.AND, tuple(operands))

    def _term(self) -> FilterExpression:
        token = self._current
        if token.kind == "LPAREN":
            self._descend(token)
            inner = self._or_expr()
            self._expect("RPAREN", "')'")
            self._depth -= 1
            return inner
        if token.kind == "NOT":
            self._descend(token)
            inner = Not(self._term())
            self._depth -= 1
            return inner
        if token.kind == "IDENT":
            return self._comparison()
        raise ParseError(token.pos, f"Expected a condition, found {_describe(token)}")

    def _descend(self, token: Token) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise ParseError(token.pos, f"Filter nested too deeply (limit {MAX_NESTING})")
        self._advance()

    def _comparison(self) -> FilterExpression:
        field = self._advance().text
        token = self._current
        if token.kind == "OP":
            self._advance()
            value = self._literal()
            return Comparison(field, _OPERATORS[token.text], value)
        if token.kind == "IN":
            self._advance()
            return In(field, self._literal_list())
        raise ParseError(
            token.pos,
            f"Expected comparison operator after '{field}', found {_describe(token)}",
        )

    def _literal_list(self) -> tuple[Scalar, ...]:
        self._expect("LBRACKET", "'['")
        if self._current.kind == "RBRACKET":
            raise ParseError(self._current.pos, "IN list must not be empty")
        first_pos = self._current.pos
        values = [self._literal()]
        kind = _literal_kind(values[0])
        while self._current.kind == "COMMA":
            self._advance()
            pos = self._current.pos
            value = self._literal()
            if _literal_kind(value) != kind:
                raise ParseError(
                    pos,
                    f"IN list mixes {kind} and {_literal_kind(value)} literals "
                    f"(list starts at position {first_pos})",
                )
            values.append(value)
        self._expect("RBRACKET", "']'")
        return tuple(values)

    def _literal(self) -> Scalar:
        token = self._current
        if token.kind == "STRING":
            self._advance()
            return _unquote(token.text)
        if token.kind == "NUMBER":
            self._advance()
            if any(c in token.text for c in ".eE"):
                return float(token.text)
            return int(token.text)
        if token.kind == "BOOL":
            self._advance()
            return token.text.lower() == "true"
        raise ParseError(token.pos, f"Expected a literal value, found {_describe(token)}")


def _describe(token: Token) -> str:
    if token.kind == "EOF":
        return "end of input"
    return repr(token.text)


def parse(text: str) -> FilterExpression:
    """Parse portable filter text into an AST.

    Args:
        text: Filter expression, e.g. ``"genre = 'drama' && year >= 2020"``.

    Returns:
        The root ``FilterExpression`` node.

    Raises:
        ParseError: If the text is malformed or nests brackets and ``NOT``
            deeper than ``MAX_NESTING``. No partial tree is returned.
    """
    if not isinstance(text, str):
        raise TypeError(f"Filter text must be str, got {type(text).__name__}")
    if not text.strip():
        raise ParseError(0, "Empty filter expression")
    return _Parser(tokenize(text)).parse()
