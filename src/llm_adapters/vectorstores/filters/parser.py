"""
Parser for the portable filter text grammar.

Grammar (keywords are case-insensitive):

    expression  := or_expr
    or_expr     := and_expr (("||" | "OR") and_expr)*
    and_expr    := unary (("&&" | "AND") unary)*
    unary       := ("NOT" | "!") unary | primary
    primary     := "(" expression ")" | comparison
    comparison  := IDENT ("==" | "=" | "!=" | ">" | ">=" | "<" | "<=") literal
                 | IDENT ("IN" | "NIN" | "NOT IN") "[" literal ("," literal)* "]"
    literal     := STRING | NUMBER | "true" | "false"

Example:
    country in ['UK', 'NL'] && year >= 2020
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from ...errors import FilterSyntaxError
from .expression import Expression, ExpressionType, Group, Key, Value

_TOKEN_SPEC = [
    ("WS", r"\s+"),
    ("STRING", r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""),
    ("NUMBER", r"-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?"),
    ("OP", r"==|!=|>=|<=|>|<|="),
    ("AND", r"&&"),
    ("OR", r"\|\|"),
    ("BANG", r"!"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LBRACKET", r"\["),
    ("RBRACKET", r"\]"),
    ("COMMA", r","),
    ("WORD", r"[A-Za-z_][A-Za-z0-9_.]*"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))

_KEYWORDS = {"and": "AND", "or": "OR", "not": "NOT", "in": "IN", "nin": "NIN", "true": "BOOL", "false": "BOOL"}

_COMPARISONS = {
    "==": ExpressionType.EQ,
    "=": ExpressionType.EQ,
    "!=": ExpressionType.NE,
    ">": ExpressionType.GT,
    ">=": ExpressionType.GTE,
    "<": ExpressionType.LT,
    "<=": ExpressionType.LTE,
}

_ESCAPES = re.compile(r"\\(.)")


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise FilterSyntaxError(f"Unexpected character {text[pos]!r}", position=pos, text=text)
        kind = match.lastgroup or ""
        value = match.group()
        if kind == "WORD":
            kind = _KEYWORDS.get(value.lower(), "IDENT")
        if kind != "WS":
            tokens.append(Token(kind, value, pos))
        pos = match.end()
    tokens.append(Token("EOF", "", len(text)))
    return tokens


class FilterExpressionTextParser:
    """
    Parses filter text into an Expression tree.

    Precedence is NOT over AND over OR; AND and OR associate to the left.
    Syntax errors raise FilterSyntaxError carrying the character position.
    """

    def parse(self, text: str) -> Expression | Group:
        if not text or not text.strip():
            raise FilterSyntaxError("Empty filter expression", position=0, text=text)
        self._text = text
        self._tokens = tokenize(text)
        self._index = 0
        expr = self._or_expr()
        if self._peek().kind != "EOF":
            self._fail(f"Unexpected {self._describe(self._peek())}")
        return expr

    # === Token helpers ===

    def _peek(self, offset: int = 0) -> Token:
        return self._tokens[min(self._index + offset, len(self._tokens) - 1)]

    def _next(self) -> Token:
        token = self._peek()
        self._index += 1
        return token

    def _expect(self, kind: str, what: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            self._fail(f"Expected {what} but found {self._describe(token)}")
        return self._next()

    @staticmethod
    def _describe(token: Token) -> str:
        return "end of input" if token.kind == "EOF" else repr(token.text)

    def _fail(self, message: str, token: Token | None = None) -> None:
        token = token or self._peek()
        raise FilterSyntaxError(message, position=token.position, text=self._text)

    # === Grammar rules ===

    def _or_expr(self) -> Expression | Group:
        left = self._and_expr()
        while self._peek().kind == "OR":
            self._next()
            left = Expression(ExpressionType.OR, left, self._and_expr())
        return left

    def _and_expr(self) -> Expression | Group:
        left = self._unary()
        while self._peek().kind == "AND":
            self._next()
            left = Expression(ExpressionType.AND, left, self._unary())
        return left

    def _unary(self) -> Expression | Group:
        token = self._peek()
        if token.kind in ("NOT", "BANG"):
            self._next()
            return Expression(ExpressionType.NOT, self._unary())
        return self._primary()

    def _primary(self) -> Expression | Group:
        token = self._peek()
        if token.kind == "LPAREN":
            self._next()
            inner = self._or_expr()
            self._expect("RPAREN", "')'")
            return Group(inner)
        if token.kind == "IDENT":
            return self._comparison()
        self._fail(f"Expected a field name or '(' but found {self._describe(token)}")
        raise AssertionError("unreachable")

    def _comparison(self) -> Expression:
        key = Key(self._next().text)
        token = self._peek()

        if token.kind == "OP":
            self._next()
            return Expression(_COMPARISONS[token.text], key, Value(self._literal()))

        if token.kind == "IN":
            self._next()
            return Expression(ExpressionType.IN, key, Value(self._literal_list()))

        if token.kind == "NIN":
            self._next()
            return Expression(ExpressionType.NIN, key, Value(self._literal_list()))

        if token.kind == "NOT" and self._peek(1).kind == "IN":
            self._next()
            self._next()
            return Expression(ExpressionType.NIN, key, Value(self._literal_list()))

        self._fail(f"Expected a comparison operator after {key.key!r} but found {self._describe(token)}")
        raise AssertionError("unreachable")

    def _literal_list(self) -> list[Any]:
        self._expect("LBRACKET", "'['")
        values = [self._literal()]
        while self._peek().kind == "COMMA":
            self._next()
            values.append(self._literal())
        self._expect("RBRACKET", "']'")
        return values

    def _literal(self) -> Any:
        token = self._next()
        if token.kind == "STRING":
            return _ESCAPES.sub(r"\1", token.text[1:-1])
        if token.kind == "NUMBER":
            if any(c in token.text for c in ".eE"):
                return float(token.text)
            return int(token.text)
        if token.kind == "BOOL":
            return token.text.lower() == "true"
        self._fail(f"Expected a string, number or boolean but found {self._describe(token)}", token)
        raise AssertionError("unreachable")


def parse_filter(text: str) -> Expression | Group:
    """Parse filter text into an Expression tree."""
    return FilterExpressionTextParser().parse(text)


__all__ = ["Token", "tokenize", "FilterExpressionTextParser", "parse_filter"]
