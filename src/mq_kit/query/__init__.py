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
    pipeline,
)
from .builder import QueryBuilder
from .compiler import FUNCTIONS, SELECTORS, Compiler, EvalContext, ExecutionPlan
from .errors import (
    AmbiguousSectionError,
    EvaluationError,
    IndexOutOfRangeError,
    LexError,
    ParseError,
    QueryError,
    QueryTypeError,
    SectionNotFoundError,
    UnknownNameError,
)
from .lexer import Lexer, tokenize
from .parser import Parser, parse, parse_predicate
from .suggest import closest_match
from .tokens import Token, TokenKind
from .values import Collection

__all__ = [
    # Syntax tree
    "Binary",
    "Filter",
    "Function",
    "Identifier",
    "Index",
    "Literal",
    "Pipe",
    "QueryNode",
    "Selector",
    "Slice",
    "Unary",
    "pipeline",
    # Lexing and parsing
    "Lexer",
    "Parser",
    "Token",
    "TokenKind",
    "parse",
    "parse_predicate",
    "tokenize",
    # Evaluation
    "Collection",
    "Compiler",
    "EvalContext",
    "ExecutionPlan",
    "FUNCTIONS",
    "QueryBuilder",
    "SELECTORS",
    "closest_match",
    # Errors
    "AmbiguousSectionError",
    "EvaluationError",
    "IndexOutOfRangeError",
    "LexError",
    "ParseError",
    "QueryError",
    "QueryTypeError",
    "SectionNotFoundError",
    "UnknownNameError",
]
