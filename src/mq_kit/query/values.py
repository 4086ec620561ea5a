# src/mq_kit/query/values.py

"""Runtime values flowing through query evaluation."""

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, overload

from mq_kit.document.models import (
    CodeBlock,
    Document,
    Heading,
    Image,
    Link,
    ListBlock,
    ListItem,
    Section,
    Table,
)
from mq_kit.document.search import SearchResults
from mq_kit.document.tree import TreeResult

# Element type -> collection kind name
KINDS: dict[type, str] = {
    Heading: "heading",
    Section: "section",
    CodeBlock: "code",
    Link: "link",
    Image: "image",
    Table: "table",
    ListBlock: "list",
    ListItem: "item",
}

# Readable names for error messages
DISPLAY_NAMES = {
    "heading": "heading",
    "section": "section",
    "code": "code block",
    "link": "link",
    "image": "image",
    "table": "table",
    "list": "list",
    "item": "list item",
    "string": "string",
    "number": "number",
    "value": "value",
}

FILTERABLE = frozenset({"heading", "section", "code", "link", "image", "table", "list"})


@dataclass(frozen=True)
class Collection(Sequence[Any]):
    """An ordered, immutable run of values tagged with their element kind.

    The kind survives filtering, slicing and emptiness, so an empty result of
    ``.headings`` still reports ``"heading"``. Mixed or scalar contents use
    ``"string"``, ``"number"`` or ``"value"``.
    """

    kind: str
    items: tuple[Any, ...] = ()

    @classmethod
    def of(cls, items: Sequence[Any] | Iterator[Any], kind: str | None = None) -> "Collection":
        items = tuple(items)
        return cls(kind or infer_kind(items), items)

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> "Collection": ...

    def __getitem__(self, index: int | slice) -> Any:
        if isinstance(index, slice):
            return Collection(self.kind, self.items[index])
        return self.items[index]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)


def infer_kind(items: tuple[Any, ...]) -> str:
    kinds = {kind_of(item) for item in items}
    if len(kinds) == 1:
        return kinds.pop()
    return "value"


def kind_of(value: Any) -> str:
    kind = KINDS.get(type(value))
    if kind is not None:
        return kind
    if isinstance(value, str):
        return "string"
    if is_number(value):
        return "number"
    return "value"


def is_element(value: Any) -> bool:
    return type(value) in KINDS


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_value(value: Any) -> Any:
    """Normalize a raw Python value for evaluation; sequences become Collections."""
    if isinstance(value, (list, tuple)):
        return Collection.of(value)
    return value


# Property tables per element kind. Order is the order shown in errors.
PROPERTIES: dict[str, dict[str, Callable[[Any], Any]]] = {
    "heading": {
        "level": lambda h: h.level,
        "text": lambda h: h.text,
        "id": lambda h: h.id,
    },
    "section": {
        "heading": lambda s: s.heading,
        "text": lambda s: s.text,
        "children": lambda s: Collection("section", tuple(s.children)),
        "start": lambda s: s.start,
        "end": lambda s: s.end,
    },
    "code": {
        "language": lambda c: c.language,
        "content": lambda c: c.content,
        "text": lambda c: c.content,
        "lines": lambda c: c.lines,
    },
    "link": {
        "text": lambda link: link.text,
        "url": lambda link: link.url,
    },
    "image": {
        "text": lambda i: i.alt_text,
        "alt": lambda i: i.alt_text,
        "alttext": lambda i: i.alt_text,
        "url": lambda i: i.url,
        "title": lambda i: i.title,
    },
    "table": {
        "headers": lambda t: Collection("string", t.headers),
        "rows": lambda t: Collection("value", tuple(Collection("string", r) for r in t.rows)),
    },
    "list": {
        "ordered": lambda lst: lst.ordered,
        "items": lambda lst: Collection("item", lst.items),
    },
    "item": {
        "text": lambda i: i.text,
        "checked": lambda i: i.checked,
        "children": lambda i: Collection("item", i.children),
    },
}


def text_of(value: Any) -> str:
    """Natural text of a single value."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Document):
        return value.readable_text
    if isinstance(value, (Heading, Link, ListItem)):
        return value.text
    if isinstance(value, Section):
        return value.text
    if isinstance(value, CodeBlock):
        return value.content
    if isinstance(value, Image):
        return value.alt_text
    if isinstance(value, Table):
        return " | ".join(value.headers)
    if isinstance(value, ListBlock):
        return "\n".join(item.text for item in value.items)
    if isinstance(value, Collection):
        return "\n".join(text_of(item) for item in value)
    if isinstance(value, (TreeResult, SearchResults)):
        return value.render()
    return str(value)


def length_of(value: Any) -> int:
    """Size of a string, collection or mapping; 0 for anything else."""
    if isinstance(value, (str, Collection, Mapping, list, tuple)):
        return len(value)
    return 0


def truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0
    if isinstance(value, (str, Collection, Mapping, list, tuple)):
        return len(value) > 0
    return True


def describe(value: Any) -> str:
    """Short type name of ``value`` for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, Collection):
        return f"collection of {DISPLAY_NAMES.get(value.kind, value.kind)}"
    if isinstance(value, Document):
        return "document"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, TreeResult):
        return "tree"
    if isinstance(value, SearchResults):
        return "search results"
    kind = kind_of(value)
    return DISPLAY_NAMES.get(kind, type(value).__name__)
