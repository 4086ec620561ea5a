# src/mq_kit/document/indexer.py

"""Single-pass builder turning a parsed content tree into an indexed Document."""

import logging
from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass, field
from time import monotonic

from mq_kit.observability import names
from mq_kit.observability.base import MetricsHook, NoOpMetricsHook
from mq_kit.parsers.base import line_starts
from mq_kit.parsers.models import ContentNode, ListItemNode, NodeKind, ParsedDocument

from .errors import IndexingError
from .models import (
    CodeBlock,
    Document,
    Element,
    Heading,
    Image,
    Link,
    ListBlock,
    ListItem,
    Paragraph,
    Section,
    Table,
)

logger = logging.getLogger(__name__)


@dataclass
class _OpenSection:
    """A section whose heading has been seen but whose extent has not ended."""

    section: Section
    children: list[Section] = field(default_factory=list)
    code_blocks: list[CodeBlock] = field(default_factory=list)
    content: list[Element] = field(default_factory=list)

    def close(self) -> Section:
        self.section.children = tuple(self.children)
        self.section.code_blocks = tuple(self.code_blocks)
        self.section.content = tuple(self.content)
        return self.section


class DocumentIndexer:
    """Builds the heading/section hierarchy and flat element indexes.

    The indexer accepts any heading sequence: skipped levels nest directly
    and duplicate heading text is kept. Errors raised while walking the
    content tree are wrapped in ``IndexingError``.
    """

    def __init__(self, metrics_hook: MetricsHook = NoOpMetricsHook()) -> None:
        self.metrics_hook = metrics_hook

    def index(self, parsed: ParsedDocument) -> Document:
        start = monotonic()
        try:
            document = _IndexPass(parsed).run()
        except IndexingError:
            raise
        except (TypeError, ValueError, AttributeError) as exc:
            raise IndexingError(parsed.path, str(exc)) from exc

        elapsed_ms = 1000 * (monotonic() - start)
        labels = {"format": parsed.format.value}
        self.metrics_hook.record_latency(names.INDEX_DURATION, elapsed_ms, labels)
        self.metrics_hook.increment(names.INDEX_DOCUMENTS_TOTAL, labels=labels)
        self.metrics_hook.record_gauge(
            names.INDEX_SECTIONS, len(document.get_sections()), labels
        )
        logger.info(
            "Indexed %s: %d headings, %d code blocks, %d lines",
            parsed.path,
            len(document.get_headings()),
            len(document.code_blocks),
            document.total_lines,
        )
        return document


class _IndexPass:
    """State of one indexing walk. Discarded once the Document is built."""

    def __init__(self, parsed: ParsedDocument) -> None:
        self.parsed = parsed
        self.line_starts = line_starts(parsed.source)
        self.lines = parsed.source.decode("utf-8", errors="replace").split("\n")

        self.stack: list[_OpenSection] = []
        self.sections: list[Section] = []
        self.headings: list[Heading] = []
        self.code_blocks: list[CodeBlock] = []
        self.links: list[Link] = []
        self.images: list[Image] = []
        self.tables: list[Table] = []
        self.lists: list[ListBlock] = []
        self.headings_by_text: dict[str, list[Heading]] = defaultdict(list)
        self.headings_by_level: dict[int, list[Heading]] = defaultdict(list)
        self.sections_by_title: dict[str, list[Section]] = defaultdict(list)
        self.code_by_language: dict[str, list[CodeBlock]] = defaultdict(list)

    def run(self) -> Document:
        root = self.parsed.root
        if not isinstance(root, ContentNode):
            raise IndexingError(self.parsed.path, "content tree root is not a ContentNode")

        for node in root.walk():
            self.visit(node)
        while self.stack:
            self.stack.pop().close()

        # Sections still open at the end run to the last line
        total_lines = len(self.line_starts)
        for section in self.sections:
            if section.end <= 0:
                section.end = total_lines

        return Document(
            source=self.parsed.source,
            path=self.parsed.path,
            format=self.parsed.format,
            metadata=self.parsed.metadata,
            headings=self.headings,
            sections=self.sections,
            code_blocks=self.code_blocks,
            links=self.links,
            images=self.images,
            tables=self.tables,
            lists=self.lists,
            headings_by_text=self.headings_by_text,
            headings_by_level=self.headings_by_level,
            sections_by_title=self.sections_by_title,
            code_by_language=self.code_by_language,
            lines=self.lines,
            readable_text=self.parsed.readable_text,
            title=self.parsed.title,
        )

    def line_of(self, node: ContentNode) -> int:
        """1-based line of the node's offset, or 0 when the offset is unknown."""
        if node.offset is None:
            return 0
        if node.offset < 0 or node.offset > len(self.parsed.source):
            raise IndexingError(
                self.parsed.path,
                f"{node.kind.value} node offset {node.offset} outside source",
            )
        return bisect_right(self.line_starts, node.offset)

    def visit(self, node: ContentNode) -> None:
        kind = node.kind
        if kind is NodeKind.HEADING:
            self.open_section(node)
        elif kind is NodeKind.CODE:
            block = CodeBlock(
                language=node.language,
                content=node.text,
                lines=len(node.text.splitlines()),
                line=self.line_of(node),
            )
            self.code_blocks.append(block)
            if block.language:
                self.code_by_language[block.language].append(block)
            if self.stack:
                self.stack[-1].code_blocks.append(block)
            self.attach(block)
        elif kind is NodeKind.LINK:
            link = Link(text=node.text, url=node.url, line=self.line_of(node))
            self.links.append(link)
            self.attach(link)
        elif kind is NodeKind.IMAGE:
            image = Image(
                alt_text=node.text, url=node.url, title=node.title, line=self.line_of(node)
            )
            self.images.append(image)
            self.attach(image)
        elif kind is NodeKind.TABLE:
            table = Table(headers=node.headers, rows=node.rows, line=self.line_of(node))
            self.tables.append(table)
            self.attach(table)
        elif kind is NodeKind.LIST:
            block = ListBlock(
                ordered=node.ordered,
                items=tuple(_list_item(item) for item in node.items),
                line=self.line_of(node),
            )
            self.lists.append(block)
            self.attach(block)
        elif kind is NodeKind.PARAGRAPH:
            self.attach(Paragraph(text=node.text, line=self.line_of(node)))
        elif kind is not NodeKind.DOCUMENT:
            raise IndexingError(self.parsed.path, f"unsupported node kind: {kind!r}")

    def open_section(self, node: ContentNode) -> None:
        if not 1 <= node.level <= 6:
            raise IndexingError(
                self.parsed.path, f"heading level {node.level} outside 1-6: {node.text!r}"
            )

        heading = Heading(
            level=node.level, text=node.text, id=node.anchor, line=self.line_of(node)
        )
        self.headings.append(heading)
        self.headings_by_text[heading.text].append(heading)
        self.headings_by_level[heading.level].append(heading)

        while self.stack and self.stack[-1].section.heading.level >= heading.level:
            closed = self.stack.pop().close()
            # Unknown heading lines leave the end for the final cleanup
            if heading.line > 0:
                closed.end = max(heading.line - 1, closed.start)

        section = Section(heading=heading, start=heading.line, source_lines=self.lines)
        if self.stack:
            section.parent = self.stack[-1].section
            self.stack[-1].children.append(section)

        self.stack.append(_OpenSection(section))
        self.sections.append(section)
        self.sections_by_title[heading.text].append(section)

    def attach(self, element: Element) -> None:
        if self.stack:
            self.stack[-1].content.append(element)


def _list_item(node: ListItemNode) -> ListItem:
    return ListItem(
        text=node.text,
        checked=node.checked,
        children=tuple(_list_item(child) for child in node.children),
    )
