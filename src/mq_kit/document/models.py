# src/mq_kit/document/models.py

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from mq_kit.parsers.models import Format


@dataclass(frozen=True)
class Heading:
    """A heading with its level (1-6), anchor id and 1-based source line."""

    level: int
    text: str
    id: str = ""
    line: int = 0  # 0 when the producer could not locate the heading


@dataclass(frozen=True)
class CodeBlock:
    language: str
    content: str
    lines: int
    line: int = 0


@dataclass(frozen=True)
class Link:
    text: str
    url: str
    line: int = 0


@dataclass(frozen=True)
class Image:
    alt_text: str
    url: str
    title: str = ""
    line: int = 0


@dataclass(frozen=True)
class Table:
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    line: int = 0


@dataclass(frozen=True)
class ListItem:
    text: str
    checked: bool | None = None  # Task state; None for plain items
    children: tuple["ListItem", ...] = ()


@dataclass(frozen=True)
class ListBlock:
    ordered: bool
    items: tuple[ListItem, ...]
    line: int = 0


@dataclass(frozen=True)
class Paragraph:
    text: str
    line: int = 0


Element = Union[CodeBlock, Link, Image, Table, ListBlock, Paragraph]


@dataclass
class Section:
    """A heading and everything up to the next heading of equal-or-shallower level.

    ``children``, ``code_blocks`` and ``content`` are set once, when the
    indexer closes the section. ``parent`` is a
    navigation reference only; ownership runs from parent to ``children``.
    """

    heading: Heading
    start: int
    end: int = 0
    children: tuple["Section", ...] = ()
    parent: "Section | None" = field(default=None, repr=False, compare=False)
    code_blocks: tuple[CodeBlock, ...] = ()
    content: tuple[Element, ...] = ()
    source_lines: Sequence[str] = field(default=(), repr=False, compare=False)

    @property
    def text(self) -> str:
        """Raw source text of the section, heading line included.

        A start of 0 reads from the top of the document; an end of 0 reads to
        the end.
        """
        total = len(self.source_lines)
        start = self.start or 1
        if start > total:
            return ""
        end = self.end if 0 < self.end <= total else total
        if end < start:
            return ""
        return "\n".join(self.source_lines[start - 1 : end])

    def get_code_blocks(self, *languages: str) -> list[CodeBlock]:
        """Code blocks of this section and all descendants, in document order."""
        blocks = [
            block
            for block in self.code_blocks
            if not languages or block.language in languages
        ]
        for child in self.children:
            blocks.extend(child.get_code_blocks(*languages))
        return blocks


class Document:
    """An indexed, immutable document.

    Built once by ``DocumentIndexer``; every accessor only reads. All derived
    values are computed at construction so concurrent readers need no locks.
    """

    def __init__(
        self,
        *,
        source: bytes,
        path: str,
        format: Format,
        metadata: Mapping[str, Any] | None,
        headings: Sequence[Heading],
        sections: Sequence[Section],
        code_blocks: Sequence[CodeBlock],
        links: Sequence[Link],
        images: Sequence[Image],
        tables: Sequence[Table],
        lists: Sequence[ListBlock],
        headings_by_text: Mapping[str, Sequence[Heading]],
        headings_by_level: Mapping[int, Sequence[Heading]],
        sections_by_title: Mapping[str, Sequence[Section]],
        code_by_language: Mapping[str, Sequence[CodeBlock]],
        lines: Sequence[str],
        readable_text: str = "",
        title: str = "",
    ) -> None:
        self._source = source
        self._path = path
        self._format = format
        self._metadata = MappingProxyType(dict(metadata)) if metadata else None
        self._headings = tuple(headings)
        self._sections = tuple(sections)
        self._toc = tuple(section for section in sections if section.parent is None)
        self._code_blocks = tuple(code_blocks)
        self._links = tuple(links)
        self._images = tuple(images)
        self._tables = tuple(tables)
        self._lists = tuple(lists)
        self._headings_by_text = _freeze(headings_by_text)
        self._headings_by_level = _freeze(headings_by_level)
        self._sections_by_title = _freeze(sections_by_title)
        self._code_by_language = _freeze(code_by_language)
        self._lines = tuple(lines)
        self._readable_text = readable_text
        self._title = title

    def __repr__(self) -> str:
        return (
            f"Document(path={self._path!r}, format={self._format.value}, "
            f"headings={len(self._headings)}, lines={self.total_lines})"
        )

    @property
    def source(self) -> bytes:
        return self._source

    @property
    def path(self) -> str:
        return self._path

    @property
    def format(self) -> Format:
        return self._format

    @property
    def lines(self) -> tuple[str, ...]:
        return self._lines

    @property
    def total_lines(self) -> int:
        return len(self._lines)

    @property
    def metadata(self) -> Mapping[str, Any] | None:
        return self._metadata

    @property
    def code_blocks(self) -> tuple[CodeBlock, ...]:
        return self._code_blocks

    @property
    def links(self) -> tuple[Link, ...]:
        return self._links

    @property
    def images(self) -> tuple[Image, ...]:
        return self._images

    @property
    def tables(self) -> tuple[Table, ...]:
        return self._tables

    def get_headings(self, *levels: int) -> list[Heading]:
        """All headings in document order, optionally limited to ``levels``."""
        if not levels:
            return list(self._headings)
        wanted = set(levels)
        return [heading for heading in self._headings if heading.level in wanted]

    def get_heading(self, text: str) -> Heading | None:
        matches = self._headings_by_text.get(text, ())
        return matches[0] if matches else None

    def get_headings_at(self, level: int) -> tuple[Heading, ...]:
        return self._headings_by_level.get(level, ())

    def find_sections(self, title: str) -> tuple[Section, ...]:
        """Every section whose heading text equals ``title``, in document order."""
        return self._sections_by_title.get(title, ())

    def get_section(self, title: str) -> Section | None:
        matches = self.find_sections(title)
        return matches[0] if matches else None

    def get_sections(self) -> list[Section]:
        return list(self._sections)

    def get_table_of_contents(self) -> list[Section]:
        """Top-level sections (those without a parent)."""
        return list(self._toc)

    def get_code_blocks(self, *languages: str) -> list[CodeBlock]:
        if not languages:
            return list(self._code_blocks)
        blocks: list[CodeBlock] = []
        for language in languages:
            blocks.extend(self._code_by_language.get(language, ()))
        return blocks

    def get_lists(self, ordered: bool | None = None) -> list[ListBlock]:
        if ordered is None:
            return list(self._lists)
        return [block for block in self._lists if block.ordered == ordered]

    @property
    def owner(self) -> str | None:
        value = (self._metadata or {}).get("owner")
        return str(value) if value is not None else None

    @property
    def tags(self) -> list[str]:
        value = (self._metadata or {}).get("tags")
        if value is None:
            return []
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        if isinstance(value, (list, tuple)):
            return [str(tag) for tag in value]
        return [str(value)]

    @property
    def priority(self) -> str | None:
        value = (self._metadata or {}).get("priority")
        return str(value) if value is not None else None

    @property
    def title(self) -> str:
        if self._title:
            return self._title
        top = self.get_headings_at(1)
        return top[0].text if top else ""

    @property
    def readable_text(self) -> str:
        """Flat plain-text projection; falls back to the decoded source."""
        if self._readable_text:
            return self._readable_text
        return "\n".join(self._lines)


def _freeze(index: Mapping[Any, Sequence[Any]]) -> Mapping[Any, tuple[Any, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in index.items()})
