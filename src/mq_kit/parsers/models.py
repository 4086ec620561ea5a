# parsers/models.py

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Format(str, Enum):
    """Declared source format of a document."""

    UNKNOWN = "unknown"
    MARKDOWN = "markdown"
    PDF = "pdf"
    JSON = "json"
    JSONL = "jsonl"
    YAML = "yaml"


class NodeKind(str, Enum):
    DOCUMENT = "document"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    LINK = "link"
    IMAGE = "image"
    TABLE = "table"
    LIST = "list"


@dataclass(frozen=True)
class ListItemNode:
    text: str
    checked: bool | None = None  # None when the item is not a task item
    children: tuple["ListItemNode", ...] = ()


@dataclass(frozen=True)
class ContentNode:
    """A node of the format-agnostic content tree.

    Only the fields relevant to ``kind`` are populated. ``offset`` is a
    document-global byte offset into ``ParsedDocument.source``; ``None``
    means the producer could not locate the node.
    """

    kind: NodeKind
    offset: int | None = None
    text: str = ""
    level: int = 0
    anchor: str = ""
    language: str = ""
    url: str = ""
    title: str = ""
    headers: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    ordered: bool = False
    items: tuple[ListItemNode, ...] = ()
    children: tuple["ContentNode", ...] = ()

    def walk(self) -> Iterator["ContentNode"]:
        """Yield this node and its descendants in document (pre-)order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class ParsedDocument:
    """Output of a format parser, input of the document indexer.

    Requirements:
    - ``source`` is the text all offsets refer to
    - ``readable_text`` is a flat plain-text projection (may be empty)
    """

    source: bytes
    path: str
    format: Format
    root: ContentNode
    metadata: dict[str, Any] | None = None
    readable_text: str = ""
    title: str = ""
