# src/mq_kit/query/tokens.py

from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    DOT = "."
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    COLON = ":"
    PIPE = "|"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    AND = "and"
    OR = "or"
    NOT = "!"
    MINUS = "-"
    EOF = "end of query"


COMPARISONS = frozenset(
    {TokenKind.EQ, TokenKind.NE, TokenKind.LT, TokenKind.LE, TokenKind.GT, TokenKind.GE}
)

KEYWORDS = {"and": TokenKind.AND, "or": TokenKind.OR}


@dataclass(frozen=True)
class Token:
    """A lexed token. ``line`` and ``column`` are 1-based."""

    kind: TokenKind
    value: str
    line: int
    column: int

    def __str__(self) -> str:
        if self.kind is TokenKind.EOF:
            return self.kind.value
        if self.kind is TokenKind.STRING:
            return f'"{self.value}"'
        return repr(self.value)
