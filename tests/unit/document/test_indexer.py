import pytest

from mq_kit.document.errors import IndexingError
from mq_kit.document.indexer import DocumentIndexer
from mq_kit.document.models import Document, Heading, Paragraph, Section
from mq_kit.observability import names
from mq_kit.parsers.markdown_parser import MarkdownParser
from mq_kit.parsers.models import ContentNode, Format, NodeKind, ParsedDocument


class RecordingMetricsHook:
    def __init__(self) -> None:
        self.latencies: list[tuple[str, dict[str, str] | None]] = []
        self.counters: list[tuple[str, int, dict[str, str] | None]] = []
        self.gauges: list[tuple[str, float, dict[str, str] | None]] = []

    def record_latency(
        self, name: str, value_ms: float, labels: dict[str, str] | None = None
    ) -> None:
        self.latencies.append((name, labels))

    def increment(
        self, name: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        self.counters.append((name, value, labels))

    def record_gauge(
        self, name: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        self.gauges.append((name, value, labels))


def index_markdown(text: str, indexer: DocumentIndexer | None = None) -> Document:
    parsed = MarkdownParser().parse(text.encode("utf-8"), "doc.md")
    return (indexer or DocumentIndexer()).index(parsed)


def spans(document: Document) -> list[tuple[str, int, int]]:
    return [(s.heading.text, s.start, s.end) for s in document.get_sections()]


def parsed(*children: ContentNode, source: bytes = b"# X\n") -> ParsedDocument:
    return ParsedDocument(
        source=source,
        path="built.md",
        format=Format.MARKDOWN,
        root=ContentNode(kind=NodeKind.DOCUMENT, offset=0, children=children),
    )


class TestSectionBoundaries:
    def test_sections_end_before_next_peer(self) -> None:
        document = index_markdown("# A\n\n## B\n\n\n# C\n")

        assert spans(document) == [("A", 1, 5), ("B", 3, 5), ("C", 6, 7)]

    def test_children_and_parents(self) -> None:
        document = index_markdown("# A\n\n## B\n\n\n# C\n")
        a, b, c = document.get_sections()

        assert a.children == (b,)
        assert b.parent is a
        assert c.parent is None
        assert document.get_table_of_contents() == [a, c]

    def test_skipped_levels_nest_directly(self) -> None:
        document = index_markdown("# A\n### C\n## B\n")
        a, c, b = document.get_sections()

        assert c.parent is a
        assert b.parent is a
        assert [child.heading.text for child in a.children] == ["C", "B"]
        assert (c.start, c.end) == (2, 2)

    def test_sections_are_sealed_after_indexing(self, guide: Document) -> None:
        for section in guide.get_sections():
            assert isinstance(section.children, tuple)
            assert isinstance(section.code_blocks, tuple)
            assert isinstance(section.content, tuple)

        install = guide.get_section("Install")
        assert install is not None
        with pytest.raises(AttributeError):
            install.content.append(install.content[0])  # type: ignore[attr-defined]

    def test_child_lies_within_parent(self, guide: Document) -> None:
        for section in guide.get_sections():
            for child in section.children:
                assert section.start <= child.start <= child.end <= section.end

    def test_guide_spans(self, guide: Document) -> None:
        assert spans(guide) == [
            ("Guide", 7, 32),
            ("Install", 11, 18),
            ("Usage", 19, 32),
            ("Advanced", 29, 32),
            ("Reference", 33, 41),
        ]

    def test_empty_document(self) -> None:
        document = index_markdown("")

        assert document.get_sections() == []
        assert document.get_headings() == []
        assert document.title == ""


class TestElementIndexes:
    def test_direct_code_blocks_per_section(self, guide: Document) -> None:
        install = guide.get_section("Install")
        root = guide.get_section("Guide")

        assert install is not None and root is not None
        assert [b.language for b in install.code_blocks] == ["bash"]
        assert root.code_blocks == ()
        assert len(root.get_code_blocks()) == 3
        assert len(root.get_code_blocks("python")) == 2

    def test_code_lines_and_positions(self, guide: Document) -> None:
        bash = guide.get_code_blocks("bash")[0]

        assert bash.lines == 1
        assert bash.line == 15

    def test_code_before_first_heading_has_no_section(self) -> None:
        document = index_markdown("```sh\nls\n```\n\n# A\n")

        assert len(document.code_blocks) == 1
        assert document.get_sections()[0].code_blocks == ()

    def test_untagged_code_is_not_indexed_by_language(self) -> None:
        document = index_markdown("# A\n\n```\nplain\n```\n")

        assert len(document.get_code_blocks()) == 1
        assert document.get_code_blocks("") == []

    def test_section_content_in_order(self, guide: Document) -> None:
        install = guide.get_section("Install")

        assert install is not None
        kinds = [type(element).__name__ for element in install.content]
        assert kinds == ["Paragraph", "Link", "CodeBlock"]
        assert isinstance(install.content[0], Paragraph)

    def test_headings_by_text_and_level(self, guide: Document) -> None:
        assert guide.get_heading("Usage") == Heading(level=2, text="Usage", id="usage", line=19)
        assert guide.get_heading("Missing") is None
        assert [h.text for h in guide.get_headings_at(1)] == ["Guide", "Reference"]

    def test_duplicate_titles_are_all_kept(self) -> None:
        document = index_markdown("# Notes\n\n# Notes\n")

        assert len(document.find_sections("Notes")) == 2
        assert [h.id for h in document.get_headings()] == ["notes", "notes-1"]


class TestDocumentAccessors:
    def test_frontmatter_fields(self, guide: Document) -> None:
        assert guide.owner == "alice"
        assert guide.tags == ["api", "auth"]
        assert guide.priority == "high"
        assert guide.title == "Guide"

    def test_metadata_is_read_only(self, guide: Document) -> None:
        assert guide.metadata is not None
        with pytest.raises(TypeError):
            guide.metadata["owner"] = "mallory"  # type: ignore[index]

    def test_comma_separated_tags(self) -> None:
        document = index_markdown("---\ntags: a, b ,c\n---\n# T\n")

        assert document.tags == ["a", "b", "c"]

    def test_missing_frontmatter(self) -> None:
        document = index_markdown("# Only\n")

        assert document.metadata is None
        assert document.owner is None
        assert document.tags == []
        assert document.title == "Only"

    def test_lists(self, guide: Document) -> None:
        (task_list,) = guide.get_lists()

        assert task_list.ordered is False
        assert [(i.text, i.checked) for i in task_list.items] == [
            ("done", True),
            ("todo", False),
        ]
        assert guide.get_lists(ordered=True) == []

    def test_section_text_bounds(self) -> None:
        section = Section(
            heading=Heading(level=1, text="T"),
            start=0,
            end=0,
            source_lines=("a", "b", "c"),
        )

        assert section.text == "a\nb\nc"
        section.start, section.end = 3, 2
        assert section.text == ""


class TestIndexingErrors:
    def test_heading_level_out_of_range(self) -> None:
        node = ContentNode(kind=NodeKind.HEADING, offset=0, text="X", level=7)

        with pytest.raises(IndexingError, match="heading level 7 outside 1-6"):
            DocumentIndexer().index(parsed(node))

    def test_offset_outside_source(self) -> None:
        node = ContentNode(kind=NodeKind.CODE, offset=100, text="x\n")

        with pytest.raises(IndexingError, match="outside source"):
            DocumentIndexer().index(parsed(node))

    def test_root_must_be_content_node(self) -> None:
        bad = ParsedDocument(
            source=b"", path="bad.md", format=Format.MARKDOWN, root="nope"  # type: ignore[arg-type]
        )

        with pytest.raises(IndexingError, match="bad.md"):
            DocumentIndexer().index(bad)

    def test_unknown_offset_keeps_line_zero(self) -> None:
        node = ContentNode(kind=NodeKind.HEADING, offset=None, text="Lost", level=1)

        document = DocumentIndexer().index(parsed(node))

        assert document.get_headings()[0].line == 0
        assert document.get_sections()[0].end == 2


class TestIndexerMetrics:
    def test_records_index_metrics(self) -> None:
        hook = RecordingMetricsHook()

        document = index_markdown("# A\n## B\n", DocumentIndexer(metrics_hook=hook))

        labels = {"format": "markdown"}
        assert hook.latencies == [(names.INDEX_DURATION, labels)]
        assert hook.counters == [(names.INDEX_DOCUMENTS_TOTAL, 1, labels)]
        assert hook.gauges == [(names.INDEX_SECTIONS, len(document.get_sections()), labels)]

    def test_no_metrics_on_failure(self) -> None:
        hook = RecordingMetricsHook()
        node = ContentNode(kind=NodeKind.HEADING, offset=0, text="X", level=9)

        with pytest.raises(IndexingError):
            DocumentIndexer(metrics_hook=hook).index(parsed(node))

        assert hook.counters == []
