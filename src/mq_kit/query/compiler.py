# src/mq_kit/query/compiler.py

"""Compile query trees into execution plans and evaluate them.

A plan is a plain callable over an ``EvalContext``. Evaluation walks the
tree with one ``visit_<Node>`` method per node type, rebinding
``context.current`` as pipes, filters and maps step through values.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from mq_kit.config import EngineConfig
from mq_kit.document.models import Document, Section
from mq_kit.document.search import search
from mq_kit.document.tree import TreeMode, build_section_tree, build_tree

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
from .errors import (
    AmbiguousSectionError,
    EvaluationError,
    IndexOutOfRangeError,
    QueryTypeError,
    SectionNotFoundError,
    UnknownNameError,
)
from .parser import parse
from .suggest import closest_match
from .values import (
    DISPLAY_NAMES,
    FILTERABLE,
    PROPERTIES,
    Collection,
    describe,
    is_element,
    is_number,
    kind_of,
    length_of,
    text_of,
    to_value,
    truthy,
)

logger = logging.getLogger(__name__)

SELECTORS = (
    "headings",
    "section",
    "sections",
    "code",
    "links",
    "images",
    "tables",
    "lists",
    "metadata",
    "owner",
    "tags",
    "priority",
    "text",
    "length",
    "tree",
    "search",
)

FUNCTIONS = ("map", "contains", "startswith", "endswith", "length")


@dataclass
class EvalContext:
    """Per-execution state: the document, the value in the pipeline, and bindings."""

    document: Document
    current: Any = None
    variables: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_document(cls, document: Document) -> "EvalContext":
        return cls(
            document=document,
            current=document,
            variables={"true": True, "false": False, "null": None},
        )


ExecutionPlan = Callable[[EvalContext], Any]


class Compiler:
    def __init__(self, config: EngineConfig = EngineConfig()) -> None:
        self.config = config

    def compile(self, node: QueryNode) -> ExecutionPlan:
        config = self.config

        def plan(context: EvalContext) -> Any:
            try:
                return _Evaluator(config, context).visit(node)
            except RecursionError:
                raise EvaluationError("query nested too deeply") from None

        return plan

    def compile_string(self, query: str) -> ExecutionPlan:
        return self.compile(parse(query))


class _Evaluator:
    def __init__(self, config: EngineConfig, context: EvalContext) -> None:
        self.config = config
        self.context = context

    def visit(self, node: QueryNode) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", None)
        if method is None:
            raise EvaluationError(f"unsupported query node: {type(node).__name__}")
        return method(node)

    def _visit_with(self, current: Any, node: QueryNode) -> Any:
        """Evaluate ``node`` with ``current`` bound, restoring the prior value."""
        previous = self.context.current
        self.context.current = current
        try:
            return self.visit(node)
        finally:
            self.context.current = previous

    # Pipelines

    def visit_Pipe(self, node: Pipe) -> Any:
        left = self.visit(node.left)
        return self._visit_with(left, node.right)

    def visit_Selector(self, node: Selector) -> Any:
        current = self.context.current
        if current is not None and current is not self.context.document:
            if not node.args:
                found, value = _property(current, node.name)
                if found:
                    return value
            if isinstance(current, Mapping) and not node.args and node.name not in SELECTORS:
                return to_value(current.get(node.name))
            if node.name == "code" and isinstance(current, Section):
                return Collection("code", tuple(current.get_code_blocks(*self._strings(node.args))))
            if node.name not in SELECTORS:
                _raise_unknown_property(current, node.name)
        return self._document_selector(node)

    def _document_selector(self, node: Selector) -> Any:
        document = self.context.document
        name = node.name

        if name == "headings":
            return Collection("heading", tuple(document.get_headings(*self._ints(node.args))))
        if name == "section":
            return self._section(node)
        if name == "sections":
            return Collection("section", tuple(document.get_sections()))
        if name == "code":
            return Collection("code", tuple(document.get_code_blocks(*self._strings(node.args))))
        if name == "links":
            return Collection("link", document.links)
        if name == "images":
            return Collection("image", document.images)
        if name == "tables":
            return Collection("table", document.tables)
        if name == "lists":
            ordered = None
            for arg in self._values(node.args):
                if isinstance(arg, bool):
                    ordered = arg
                    break
            return Collection("list", tuple(document.get_lists(ordered)))
        if name == "metadata":
            return document.metadata
        if name == "owner":
            return document.owner or ""
        if name == "tags":
            return Collection("string", tuple(document.tags))
        if name == "priority":
            return document.priority or ""
        if name == "text":
            return self._text(self.context.current)
        if name == "length":
            return length_of(self.context.current)
        if name == "tree":
            return self._tree(node)
        if name == "search":
            return self._search(node)

        raise UnknownNameError.for_selector(name, SELECTORS, closest_match(name, SELECTORS))

    def _section(self, node: Selector) -> Section:
        args = self._values(node.args)
        if not args:
            raise EvaluationError(
                ".section requires a title argument\n"
                'Usage: .section("Section Title")\n'
                "Hint: Use .sections to get all sections"
            )
        title = args[0]
        if not isinstance(title, str):
            raise QueryTypeError(
                f".section requires a string title, got {describe(title)}\n"
                'Usage: .section("Section Title")'
            )

        matches = self.context.document.find_sections(title)
        if not matches:
            raise SectionNotFoundError(title)
        if len(matches) > 1:
            policy = self.config.duplicate_headings
            if policy == "error":
                raise AmbiguousSectionError(title, len(matches))
            if policy == "last":
                return matches[-1]
        return matches[0]

    def _text(self, current: Any) -> Any:
        if isinstance(current, Collection):
            return Collection("string", tuple(text_of(item) for item in current))
        return text_of(current)

    def _tree(self, node: Selector) -> Any:
        args = self._values(node.args)
        mode = TreeMode.parse(args[0] if args and isinstance(args[0], str) else None)
        current = self.context.current
        if isinstance(current, Section):
            return build_section_tree(current, mode, self.config.preview_chars)
        return build_tree(self.context.document, mode, self.config.preview_chars)

    def _search(self, node: Selector) -> Any:
        args = self._values(node.args)
        if not args:
            raise EvaluationError('.search requires a query string\nUsage: .search("query")')
        if not isinstance(args[0], str):
            raise QueryTypeError(
                f".search requires a string query, got {describe(args[0])}\n"
                'Usage: .search("query")'
            )
        return search(self.context.document, args[0], self.config.snippet_context)

    # Collections

    def visit_Filter(self, node: Filter) -> Collection:
        current = self.context.current
        if current is None:
            raise EvaluationError(
                "no data to filter\n"
                "Hint: Use a selector before filter, e.g., .headings | .filter(.level == 2)"
            )
        if not isinstance(current, Collection) or current.kind not in FILTERABLE:
            raise QueryTypeError(
                f"cannot filter {describe(current)}\n"
                "Hint: filter works on collections of headings, sections, code blocks, "
                "links, images, tables and lists"
            )
        kept = tuple(
            item for item in current if truthy(self._visit_with(item, node.predicate))
        )
        return Collection(current.kind, kept)

    def _map(self, node: Function) -> Collection:
        current = self.context.current
        if current is None:
            raise EvaluationError(
                "no data to map\n"
                "Hint: Use a selector before map, e.g., .sections | map(.text)"
            )
        if not isinstance(current, Collection):
            raise QueryTypeError(
                f"map can only be applied to collections, got {describe(current)}\n"
                "Hint: map works on arrays of items, e.g., .headings | map(.text)"
            )
        transform = node.args[0]
        return Collection.of(self._visit_with(item, transform) for item in current)

    # Functions

    def visit_Function(self, node: Function) -> Any:
        name = node.name
        if name == "map":
            if not node.args:
                raise EvaluationError(
                    "map requires 1 argument\nUsage: .collection | map(.property)"
                )
            return self._map(node)

        if name in ("contains", "startswith", "endswith"):
            args = self._values(node.args)
            if len(args) == 1:
                haystack, needle = self.context.current, args[0]
            elif len(args) == 2:
                haystack, needle = args
            else:
                raise EvaluationError(
                    f"{name} requires 1 or 2 arguments\n"
                    f'Usage: .property | {name}("text") or {name}(.property, "text")'
                )
            haystack_text, needle_text = text_of(haystack), text_of(needle)
            if name == "contains":
                return needle_text in haystack_text
            if name == "startswith":
                return haystack_text.startswith(needle_text)
            return haystack_text.endswith(needle_text)

        if name == "length":
            args = self._values(node.args)
            return length_of(args[0] if args else self.context.current)

        raise UnknownNameError.for_function(name, FUNCTIONS, closest_match(name, FUNCTIONS))

    # Expressions

    def visit_Binary(self, node: Binary) -> Any:
        left = self.visit(node.left)
        if node.op == "and":
            return truthy(left) and truthy(self.visit(node.right))
        if node.op == "or":
            return truthy(left) or truthy(self.visit(node.right))

        right = self.visit(node.right)
        if node.op == "==":
            return _equals(left, right)
        if node.op == "!=":
            return not _equals(left, right)
        if node.op == "<":
            return _less_than(left, right)
        if node.op == "<=":
            return _less_than(left, right) or _equals(left, right)
        if node.op == ">":
            return not (_less_than(left, right) or _equals(left, right))
        if node.op == ">=":
            return not _less_than(left, right)
        raise EvaluationError(
            f"unknown operator: {node.op}\n"
            "Supported operators: ==, !=, <, <=, >, >=, and, or"
        )

    def visit_Unary(self, node: Unary) -> Any:
        operand = self.visit(node.operand)
        if node.op == "!":
            return not truthy(operand)
        if node.op == "-":
            if not is_number(operand):
                raise QueryTypeError(
                    f"cannot negate {describe(operand)}\n"
                    "Hint: negation (-) only works with numbers"
                )
            return -operand
        raise EvaluationError(f"unknown unary operator: {node.op}\nSupported operators: !, -")

    def visit_Literal(self, node: Literal) -> Any:
        return node.value

    def visit_Identifier(self, node: Identifier) -> Any:
        if node.name in self.context.variables:
            return self.context.variables[node.name]

        current = self.context.current
        found, value = _property(current, node.name)
        if found:
            return value
        if isinstance(current, Mapping):
            return to_value(current.get(node.name))
        if node.name in SELECTORS:
            return self._document_selector(Selector(node.name))
        if is_element(current) or (
            isinstance(current, Collection) and current.kind in PROPERTIES
        ):
            _raise_unknown_property(current, node.name)
        raise QueryTypeError(f"cannot access property .{node.name} on {describe(current)}")

    # Indexing

    def visit_Index(self, node: Index) -> Any:
        obj = self.visit(node.object)
        key = self.visit(node.index)

        if isinstance(obj, Mapping):
            try:
                return to_value(obj.get(key))
            except TypeError:
                raise QueryTypeError(f"cannot use {describe(key)} as a mapping key") from None
        if not isinstance(obj, (Collection, str)):
            raise QueryTypeError(f"cannot index {describe(obj)}")

        index = _as_int(key)
        if index is None:
            raise QueryTypeError(f"index must be an integer, got {describe(key)}")
        if index < 0 or index >= len(obj):
            raise IndexOutOfRangeError(index, len(obj))
        return to_value(obj[index])

    def visit_Slice(self, node: Slice) -> Any:
        obj = self.visit(node.object)
        if not isinstance(obj, (Collection, str)):
            raise QueryTypeError(f"cannot slice {describe(obj)}")

        length = len(obj)
        start = self._bound(node.start, 0)
        end = self._bound(node.end, length)
        start = min(max(start, 0), length)
        end = min(max(end, 0), length)
        if start > end:
            start = end
        return obj[start:end]

    def _bound(self, node: QueryNode | None, default: int) -> int:
        if node is None:
            return default
        value = self.visit(node)
        if not is_number(value):
            raise QueryTypeError(f"slice bound must be a number, got {describe(value)}")
        return int(value)

    # Argument helpers

    def _values(self, args: tuple[QueryNode, ...]) -> list[Any]:
        return [self.visit(arg) for arg in args]

    def _strings(self, args: tuple[QueryNode, ...]) -> list[str]:
        return [value for value in self._values(args) if isinstance(value, str)]

    def _ints(self, args: tuple[QueryNode, ...]) -> list[int]:
        return [int(value) for value in self._values(args) if is_number(value)]


def _property(current: Any, name: str) -> tuple[bool, Any]:
    """Property of an element, or the property projected over a collection."""
    if is_element(current):
        getter = PROPERTIES[kind_of(current)].get(name)
        if getter is not None:
            return True, getter(current)
        return False, None

    if isinstance(current, Collection):
        if name == "text":
            return True, Collection("string", tuple(text_of(item) for item in current))
        getter = PROPERTIES.get(current.kind, {}).get(name)
        if getter is not None:
            return True, Collection.of(getter(item) for item in current)
    return False, None


def _raise_unknown_property(current: Any, name: str) -> None:
    kind = current.kind if isinstance(current, Collection) else kind_of(current)
    available = tuple(PROPERTIES.get(kind, {}))
    if not available:
        return
    raise UnknownNameError.for_property(
        DISPLAY_NAMES[kind], name, available, closest_match(name, available)
    )


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _equals(left: Any, right: Any) -> bool:
    if is_number(left) and is_number(right):
        return float(left) == float(right)
    return left == right


def _less_than(left: Any, right: Any) -> bool:
    if is_number(left) and is_number(right):
        return float(left) < float(right)
    if isinstance(left, str) and isinstance(right, str):
        return left < right
    raise QueryTypeError(
        f"cannot compare {describe(left)} and {describe(right)}\n"
        "Hint: comparison operators work with numbers or strings"
    )
