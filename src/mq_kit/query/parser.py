# src/mq_kit/query/parser.py

"""Recursive-descent parser for MQL.

Grammar::

    Expression := Primary ( '|' Primary )*
    Primary    := Selector | FunctionCall | '(' Expression ')'
                | String | Number | Identifier
    Selector   := '.' identifier [ '(' Arguments ')' ] Index*
    Arguments  := Comparison ( ',' Comparison )*
    Comparison := Logical [ ('=='|'!='|'<'|'<='|'>'|'>=') Logical ]
    Logical    := Property ( ('and'|'or') Property )*
    Property   := ('!'|'-') Property
                | '.' identifier [ '(' Arguments ')' ] Index*
                | identifier [ '(' Arguments ')' ] Index*
                | String | Number | '(' Comparison ')'
    Index      := '[' Property ']' | '[' ':' Property ']'
                | '[' Property ':' [ Property ] ']'

Parsing is purely structural; names are resolved at evaluation time.
"""

import logging
from collections.abc import Callable

from .ast import (
    Binary,
    Filter,
    Function,
    Identifier,
    Index,
    Literal,
    Pipe,
    QueryNode,
    Selector,
    Slice,
    Unary,
)
from .errors import ParseError
from .lexer import tokenize
from .tokens import COMPARISONS, Token, TokenKind

logger = logging.getLogger(__name__)

_FILTERS = ("select", "filter")


class Parser:
    def __init__(self, tokens: list[Token]) -> None:
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            raise ValueError("token stream must end with EOF")
        self.tokens = tokens
        self.pos = 0

    def parse(self) -> QueryNode:
        node = self._guarded(self._expression)
        self._expect_end()
        return node

    def parse_predicate(self) -> QueryNode:
        """Parse a lone argument expression such as ``.level == 2``."""
        node = self._guarded(self._comparison)
        self._expect_end()
        return node

    def _guarded(self, rule: Callable[[], QueryNode]) -> QueryNode:
        try:
            return rule()
        except RecursionError:
            raise self._error("query nested too deeply") from None

    # Pipelines

    def _expression(self) -> QueryNode:
        left = self._primary()
        while self._current.kind is TokenKind.PIPE:
            self._advance()
            left = Pipe(left, self._primary())
        return left

    def _primary(self) -> QueryNode:
        token = self._current

        if token.kind is TokenKind.DOT:
            return self._selector()

        if token.kind is TokenKind.IDENTIFIER:
            if self._peek.kind is TokenKind.LPAREN:
                self._advance()
                return self._call(token, self._arguments())
            self._advance()
            return Identifier(token.value)

        if token.kind is TokenKind.LPAREN:
            self._advance()
            node = self._expression()
            self._expect(TokenKind.RPAREN)
            return node

        if token.kind in (TokenKind.STRING, TokenKind.NUMBER):
            return self._literal()

        raise self._error(f"unexpected token {token}")

    def _selector(self) -> QueryNode:
        self._expect(TokenKind.DOT)
        token = self._current
        if token.kind is not TokenKind.IDENTIFIER:
            raise self._error(f"expected identifier after '.', got {token}")
        self._advance()

        args: tuple[QueryNode, ...] = ()
        if self._current.kind is TokenKind.LPAREN:
            args = self._arguments()

        if token.value in _FILTERS:
            node = self._filter(token, args, prefix=".")
        elif token.value == "map":
            node = self._map(token, args)
        else:
            node = Selector(token.value, args)
        return self._indexes(node)

    def _call(self, name: Token, args: tuple[QueryNode, ...]) -> QueryNode:
        if name.value in _FILTERS:
            return self._filter(name, args, prefix="")
        if name.value == "map":
            return self._map(name, args)
        return Function(name.value, args)

    def _filter(self, name: Token, args: tuple[QueryNode, ...], prefix: str) -> QueryNode:
        if not args:
            raise self._error(
                f"{prefix}{name.value} requires a predicate argument",
                token=name,
                hint=f'Usage: {prefix}{name.value}(.property == "value")',
            )
        if len(args) > 1:
            raise self._error(
                f"{prefix}{name.value} takes a single predicate, got {len(args)}",
                token=name,
                hint="Combine conditions with and/or: (.a == 1) and (.b == 2)",
            )
        return Filter(args[0])

    def _map(self, name: Token, args: tuple[QueryNode, ...]) -> QueryNode:
        if not args:
            raise self._error(
                "map requires a transformation argument",
                token=name,
                hint="Usage: .collection | map(.property)",
            )
        return Function("map", args)

    # Arguments

    def _arguments(self) -> tuple[QueryNode, ...]:
        self._expect(TokenKind.LPAREN)
        args: list[QueryNode] = []
        if self._current.kind is TokenKind.RPAREN:
            self._advance()
            return ()

        while True:
            args.append(self._comparison())
            if self._current.kind is TokenKind.COMMA:
                self._advance()
                continue
            if self._current.kind is TokenKind.RPAREN:
                self._advance()
                return tuple(args)
            raise self._error(f"expected ',' or ')' in argument list, got {self._current}")

    def _comparison(self) -> QueryNode:
        left = self._logical()
        if self._current.kind in COMPARISONS:
            op = self._current.value
            self._advance()
            return Binary(left, op, self._logical())
        return left

    def _logical(self) -> QueryNode:
        left = self._property()
        while self._current.kind in (TokenKind.AND, TokenKind.OR):
            op = self._current.value
            self._advance()
            left = Binary(left, op, self._property())
        return left

    def _property(self) -> QueryNode:
        token = self._current

        if token.kind in (TokenKind.NOT, TokenKind.MINUS):
            self._advance()
            return Unary(token.value, self._property())

        if token.kind is TokenKind.DOT:
            return self._selector()

        if token.kind is TokenKind.IDENTIFIER:
            self._advance()
            if self._current.kind is TokenKind.LPAREN:
                return self._indexes(self._call(token, self._arguments()))
            return self._indexes(Identifier(token.value))

        if token.kind in (TokenKind.STRING, TokenKind.NUMBER):
            return self._literal()

        if token.kind is TokenKind.LPAREN:
            self._advance()
            node = self._comparison()
            self._expect(TokenKind.RPAREN)
            return node

        raise self._error(f"unexpected token {token}")

    # Indexing

    def _indexes(self, node: QueryNode) -> QueryNode:
        while self._current.kind is TokenKind.LBRACKET:
            node = self._index(node)
        return node

    def _index(self, obj: QueryNode) -> QueryNode:
        self._expect(TokenKind.LBRACKET)

        if self._current.kind is TokenKind.COLON:
            self._advance()
            end = self._property()
            self._expect(TokenKind.RBRACKET)
            return Slice(obj, None, end)

        start = self._property()
        if self._current.kind is TokenKind.COLON:
            self._advance()
            if self._current.kind is TokenKind.RBRACKET:
                self._advance()
                return Slice(obj, start, None)
            end = self._property()
            self._expect(TokenKind.RBRACKET)
            return Slice(obj, start, end)

        self._expect(TokenKind.RBRACKET)
        return Index(obj, start)

    # Literals

    def _literal(self) -> Literal:
        token = self._current
        self._advance()
        if token.kind is TokenKind.STRING:
            return Literal(token.value, "string")
        return Literal(self._number(token), "number")

    def _number(self, token: Token) -> int | float:
        try:
            return int(token.value)
        except ValueError:
            try:
                return float(token.value)
            except ValueError:
                raise self._error(f"invalid number: {token.value}", token=token) from None

    # Token helpers

    @property
    def _current(self) -> Token:
        return self.tokens[self.pos]

    @property
    def _peek(self) -> Token:
        return self.tokens[min(self.pos + 1, len(self.tokens) - 1)]

    def _advance(self) -> None:
        if self._current.kind is not TokenKind.EOF:
            self.pos += 1

    def _expect(self, kind: TokenKind) -> Token:
        token = self._current
        if token.kind is not kind:
            raise self._error(f"expected '{kind.value}', got {token}")
        self._advance()
        return token

    def _expect_end(self) -> None:
        if self._current.kind is not TokenKind.EOF:
            raise self._error(f"unexpected token {self._current}")

    def _error(self, message: str, token: Token | None = None, hint: str = "") -> ParseError:
        token = token or self._current
        return ParseError(message, token.line, token.column, hint)


def parse(query: str) -> QueryNode:
    """Lex and parse ``query`` into a syntax tree."""
    node = Parser(tokenize(query)).parse()
    logger.debug("Parsed query %r", query)
    return node


def parse_predicate(predicate: str) -> QueryNode:
    return Parser(tokenize(predicate)).parse_predicate()
