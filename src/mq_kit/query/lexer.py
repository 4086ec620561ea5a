# src/mq_kit/query/lexer.py

import logging

from .errors import LexError
from .tokens import KEYWORDS, Token, TokenKind

logger = logging.getLogger(__name__)

_SINGLE = {
    ".": TokenKind.DOT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    "|": TokenKind.PIPE,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    "!": TokenKind.NOT,
    "-": TokenKind.MINUS,
}

_DOUBLE = {
    "==": TokenKind.EQ,
    "!=": TokenKind.NE,
    "<=": TokenKind.LE,
    ">=": TokenKind.GE,
}


class Lexer:
    """Turns a query string into tokens terminated by EOF.

    Strings use matching single or double quotes and have no escapes.
    Numbers are unsigned; a leading ``-`` is its own token.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.text):
                tokens.append(Token(TokenKind.EOF, "", self.line, self.column))
                break
            tokens.append(self._next_token())

        logger.debug("Lexed %d tokens from %r", len(tokens), self.text)
        return tokens

    def _next_token(self) -> Token:
        line, column = self.line, self.column
        char = self.text[self.pos]

        pair = self.text[self.pos : self.pos + 2]
        if pair in _DOUBLE:
            self._advance(2)
            return Token(_DOUBLE[pair], pair, line, column)

        if char in ('"', "'"):
            return self._string(char, line, column)
        if char.isdigit():
            return self._number(line, column)
        if char.isalpha() or char == "_":
            return self._identifier(line, column)
        if char in _SINGLE:
            self._advance(1)
            return Token(_SINGLE[char], char, line, column)

        raise LexError(f"unexpected character {char!r}", line, column)

    def _string(self, quote: str, line: int, column: int) -> Token:
        end = self.text.find(quote, self.pos + 1)
        if end < 0:
            raise LexError("unterminated string", line, column)
        value = self.text[self.pos + 1 : end]
        self._advance(end + 1 - self.pos)
        return Token(TokenKind.STRING, value, line, column)

    def _number(self, line: int, column: int) -> Token:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos].isdigit():
            self._advance(1)
        # A dot only continues the number when digits follow it
        if (
            self.text[self.pos : self.pos + 1] == "."
            and self.text[self.pos + 1 : self.pos + 2].isdigit()
        ):
            self._advance(1)
            while self.pos < len(self.text) and self.text[self.pos].isdigit():
                self._advance(1)
        return Token(TokenKind.NUMBER, self.text[start : self.pos], line, column)

    def _identifier(self, line: int, column: int) -> Token:
        start = self.pos
        while self.pos < len(self.text) and (
            self.text[self.pos].isalnum() or self.text[self.pos] == "_"
        ):
            self._advance(1)
        value = self.text[start : self.pos]
        return Token(KEYWORDS.get(value, TokenKind.IDENTIFIER), value, line, column)

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self._advance(1)

    def _advance(self, count: int) -> None:
        for char in self.text[self.pos : self.pos + count]:
            if char == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += count


def tokenize(text: str) -> list[Token]:
    return Lexer(text).tokenize()
