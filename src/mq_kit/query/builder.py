# src/mq_kit/query/builder.py

from typing import Any

from mq_kit.document.models import Document

from .ast import Filter, Function, Literal, QueryNode, Selector, pipeline
from .compiler import Compiler, EvalContext
from .errors import EvaluationError
from .parser import parse_predicate


def _literal(value: str | int | float) -> Literal:
    return Literal(value, "string" if isinstance(value, str) else "number")


class QueryBuilder:
    """Fluent construction of a query against one document.

    Each step appends a node to a pipeline that runs through the regular
    compiler on ``execute()``:

        >>> engine.from_document(doc).where_owner("alice").section("Auth").code("python").execute()
    """

    def __init__(self, document: Document, compiler: Compiler) -> None:
        self.document = document
        self.compiler = compiler
        self._steps: list[QueryNode] = []
        self._owner: str | None = None

    def where_owner(self, owner: str) -> "QueryBuilder":
        self._owner = owner
        return self

    def headings(self, *levels: int) -> "QueryBuilder":
        return self._add(Selector("headings", tuple(_literal(level) for level in levels)))

    def section(self, title: str) -> "QueryBuilder":
        return self._add(Selector("section", (_literal(title),)))

    def sections(self) -> "QueryBuilder":
        return self._add(Selector("sections"))

    def code(self, *languages: str) -> "QueryBuilder":
        return self._add(Selector("code", tuple(_literal(lang) for lang in languages)))

    def links(self) -> "QueryBuilder":
        return self._add(Selector("links"))

    def images(self) -> "QueryBuilder":
        return self._add(Selector("images"))

    def tables(self) -> "QueryBuilder":
        return self._add(Selector("tables"))

    def text(self) -> "QueryBuilder":
        return self._add(Selector("text"))

    def where(self, predicate: str) -> "QueryBuilder":
        """Keep elements matching ``predicate``, e.g. ``'.level == 2'``."""
        return self._add(Filter(parse_predicate(predicate)))

    def map(self, transform: str) -> "QueryBuilder":
        return self._add(Function("map", (parse_predicate(transform),)))

    def execute(self) -> Any:
        if self._owner is not None and self.document.owner != self._owner:
            raise EvaluationError(
                f"owner mismatch: expected {self._owner}, got {self.document.owner or 'none'}"
            )
        if not self._steps:
            return self.document

        plan = self.compiler.compile(pipeline(*self._steps))
        return plan(EvalContext.for_document(self.document))

    def _add(self, node: QueryNode) -> "QueryBuilder":
        self._steps.append(node)
        return self
