# src/mq_kit/query/ast.py

"""Query syntax tree.

Nodes are immutable; the parser builds them and the compiler only reads
them, so one tree can back any number of evaluations.
"""

from dataclasses import dataclass
from typing import Literal as LiteralKind
from typing import Union


@dataclass(frozen=True)
class Pipe:
    left: "QueryNode"
    right: "QueryNode"


@dataclass(frozen=True)
class Selector:
    name: str
    args: tuple["QueryNode", ...] = ()


@dataclass(frozen=True)
class Filter:
    predicate: "QueryNode"


@dataclass(frozen=True)
class Function:
    name: str
    args: tuple["QueryNode", ...] = ()


@dataclass(frozen=True)
class Binary:
    left: "QueryNode"
    op: str  # One of == != < <= > >= and or
    right: "QueryNode"


@dataclass(frozen=True)
class Unary:
    op: str  # "!" or "-"
    operand: "QueryNode"


@dataclass(frozen=True)
class Literal:
    value: str | int | float
    kind: LiteralKind["string", "number"]


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class Index:
    object: "QueryNode"
    index: "QueryNode"


@dataclass(frozen=True)
class Slice:
    object: "QueryNode"
    start: "QueryNode | None" = None
    end: "QueryNode | None" = None


QueryNode = Union[
    Pipe, Selector, Filter, Function, Binary, Unary, Literal, Identifier, Index, Slice
]


def pipeline(*nodes: QueryNode) -> QueryNode:
    """Chain ``nodes`` left to right with pipes."""
    if not nodes:
        raise ValueError("pipeline requires at least one node")
    result = nodes[0]
    for node in nodes[1:]:
        result = Pipe(result, node)
    return result
