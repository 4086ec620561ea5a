from typing import Any

import pytest

from mq_kit.config import EngineConfig
from mq_kit.document.models import CodeBlock, Document, Heading, Section
from mq_kit.document.search import SearchResults
from mq_kit.document.tree import TreeMode, TreeResult
from mq_kit.engine import Engine
from mq_kit.query.ast import QueryNode, Selector, Unary
from mq_kit.query.compiler import Compiler, EvalContext
from mq_kit.query.errors import (
    AmbiguousSectionError,
    EvaluationError,
    IndexOutOfRangeError,
    QueryTypeError,
    SectionNotFoundError,
    UnknownNameError,
)
from mq_kit.query.values import Collection

DUPLICATES_MD = """\
# Notes

first

# Notes

second
"""


def run(engine: Engine, document: Document, query: str) -> Any:
    return engine.query(document, query)


class TestSelectors:
    def test_headings(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, ".headings")

        assert isinstance(result, Collection)
        assert result.kind == "heading"
        assert [h.text for h in result] == [
            "Guide",
            "Install",
            "Usage",
            "Advanced",
            "Reference",
        ]

    def test_headings_by_level(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, ".headings(1, 3)")

        assert [h.text for h in result] == ["Guide", "Advanced", "Reference"]

    def test_section_returns_section(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, '.section("Usage")')

        assert isinstance(result, Section)
        assert (result.start, result.end) == (19, 32)

    def test_code_scoped_to_section(self, engine: Engine, guide: Document) -> None:
        """Code under a section is found; blocks elsewhere are not."""
        result = run(engine, guide, '.section("Usage") | .code("python") | map(.content)')

        assert list(result) == ['print("hi")\n', 'print("bye")\n']

    def test_section_code_includes_descendants(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, '.section("Guide") | .code | length')

        assert result == 3

    def test_document_code_by_language(self, engine: Engine, guide: Document) -> None:
        assert run(engine, guide, '.code("bash") | length') == 1
        assert run(engine, guide, ".code | length") == 3

    def test_links_images_tables(self, engine: Engine, guide: Document) -> None:
        assert list(run(engine, guide, ".links | map(.url)")) == ["https://example.com/docs"]
        assert list(run(engine, guide, ".images | .alt")) == ["diagram"]
        assert list(run(engine, guide, ".tables[0] | .headers")) == ["Name", "Value"]

    def test_lists_by_ordered_flag(self, engine: Engine, guide: Document) -> None:
        assert run(engine, guide, ".lists(false) | length") == 1
        assert run(engine, guide, ".lists(true) | length") == 0
        assert list(run(engine, guide, ".lists[0] | .items | map(.checked)")) == [
            True,
            False,
        ]

    def test_frontmatter_selectors(self, engine: Engine, guide: Document) -> None:
        assert run(engine, guide, ".owner") == "alice"
        assert run(engine, guide, ".priority") == "high"
        assert list(run(engine, guide, ".tags")) == ["api", "auth"]
        assert run(engine, guide, ".metadata | .title") == "Guide"

    def test_text_on_document_uses_readable_text(
        self, engine: Engine, guide: Document
    ) -> None:
        result = run(engine, guide, ".text")

        assert "Intro paragraph with bold text." in result

    def test_text_on_collection_preserves_order(
        self, engine: Engine, guide: Document
    ) -> None:
        result = run(engine, guide, ".headings(2) | .text")

        assert result == Collection("string", ("Install", "Usage"))

    def test_length_of_unsupported_value_is_zero(
        self, engine: Engine, guide: Document
    ) -> None:
        assert run(engine, guide, ".headings[0] | .length") == 0

    def test_tree_scopes_to_section(self, engine: Engine, guide: Document) -> None:
        whole = run(engine, guide, '.tree("compact")')
        scoped = run(engine, guide, '.section("Usage") | .tree')

        assert isinstance(whole, TreeResult)
        assert whole.mode is TreeMode.COMPACT
        assert [node.text for node in whole.root] == ["Guide", "Reference"]
        assert scoped.path == "Usage"
        assert scoped.lines == 14

    def test_search_selector(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, '.search("installer")')

        assert isinstance(result, SearchResults)
        assert [m.section for m in result.matches] == ["Guide", "Install"]


class TestWorkedExamples:
    def test_level_two_heading_texts(self, engine: Engine) -> None:
        document = engine.parse_document("# A\n## B\n## C\n### D\n", "levels.md")

        result = run(engine, document, ".headings | filter(.level == 2) | map(.text)")

        assert list(result) == ["B", "C"]

    def test_setup_section_python_block(self, engine: Engine) -> None:
        document = engine.parse_document(
            "# Intro\n\n```python\nintro()\n```\n\n"
            "# Setup\n\n```python\nsetup()\n```\n\n```bash\nmake\n```\n",
            "setup.md",
        )

        result = run(engine, document, '.section("Setup") | .code("python")')

        assert len(result) == 1
        assert result[0].content == "setup()\n"

    def test_missing_section_is_an_error(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(SectionNotFoundError, match="section not found: Missing"):
            run(engine, guide, '.section("Missing")')


class TestFilterAndMap:
    def test_filter_never_grows(self, engine: Engine, guide: Document) -> None:
        total = run(engine, guide, ".sections | length")
        kept = run(engine, guide, ".sections | filter(.start > 20) | length")

        assert kept <= total

    def test_filter_keeps_kind_when_empty(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, ".headings | filter(.level == 6)")

        assert result == Collection("heading", ())

    def test_negation_and_grouping(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, ".headings | filter(!(.level == 1)) | .text")

        assert list(result) == ["Install", "Usage", "Advanced"]

    def test_logical_with_parentheses(self, engine: Engine, guide: Document) -> None:
        result = run(
            engine, guide, ".headings | filter((.level >= 2) and (.level < 3)) | .text"
        )

        assert list(result) == ["Install", "Usage"]

    def test_numeric_coercion(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, ".headings | filter(.level == 2.0) | length")

        assert result == 2

    def test_two_argument_contains(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, '.headings | filter(contains(.text, "s")) | .text')

        assert list(result) == ["Install", "Usage"]

    def test_single_argument_string_functions(
        self, engine: Engine, guide: Document
    ) -> None:
        result = run(engine, guide, '.headings | .text | map(startswith("U"))')

        assert list(result) == [False, False, True, False, False]

    def test_map_over_sections_to_headings(self, engine: Engine, guide: Document) -> None:
        """Mapped elements keep their kind and stay filterable."""
        result = run(
            engine,
            guide,
            ".sections | map(.heading) | filter(.level == 1) | map(.text)",
        )

        assert list(result) == ["Guide", "Reference"]

    def test_section_children(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, '.section("Guide") | .children | .heading | .text')

        assert list(result) == ["Install", "Usage"]

    def test_section_text_is_raw_source(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, '.section("Install") | .text')

        assert result.startswith("## Install\n")
        assert "Run the installer." in result

    def test_filter_on_non_collection(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(QueryTypeError, match="cannot filter string"):
            run(engine, guide, ".owner | filter(.level == 1)")

    def test_map_on_non_collection(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(QueryTypeError, match="map can only be applied to collections"):
            run(engine, guide, '.section("Usage") | map(.text)')


class TestIndexing:
    def test_index(self, engine: Engine, guide: Document) -> None:
        assert run(engine, guide, ".headings[0] | .text") == "Guide"

    def test_slice(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, ".headings[1:3] | .text")

        assert list(result) == ["Install", "Usage"]

    def test_inverted_slice_is_empty(self, engine: Engine, guide: Document) -> None:
        result = run(engine, guide, ".code[5:2]")

        assert result == Collection("code", ())

    def test_negative_slice_start_clamps(self, engine: Engine, guide: Document) -> None:
        assert len(run(engine, guide, ".code[-1:]")) == 3

    def test_index_out_of_range(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(IndexOutOfRangeError, match="index out of range: 10"):
            run(engine, guide, ".headings[10]")

    def test_negative_index_is_out_of_range(
        self, engine: Engine, guide: Document
    ) -> None:
        with pytest.raises(IndexOutOfRangeError):
            run(engine, guide, ".headings[-1]")

    def test_non_integer_index(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(QueryTypeError, match="index must be an integer"):
            run(engine, guide, '.headings["a"]')

    def test_mapping_lookup(self, engine: Engine, guide: Document) -> None:
        assert run(engine, guide, '.metadata["owner"]') == "alice"
        assert run(engine, guide, '.metadata["missing"]') is None

    def test_table_rows(self, engine: Engine, guide: Document) -> None:
        assert run(engine, guide, ".tables[0] | .rows[0][1]") == "1"


class TestErrors:
    def test_unknown_selector_suggests(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(UnknownNameError) as exc_info:
            run(engine, guide, ".heading")

        assert exc_info.value.suggestion == "headings"
        assert "Did you mean: .headings?" in str(exc_info.value)

    def test_unknown_selector_lists_available(
        self, engine: Engine, guide: Document
    ) -> None:
        with pytest.raises(UnknownNameError, match="Available selectors") as exc_info:
            run(engine, guide, ".xyz")

        assert exc_info.value.suggestion is None
        assert "headings" in exc_info.value.available

    def test_unknown_property(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(UnknownNameError) as exc_info:
            run(engine, guide, ".headings | filter(.levels == 2)")

        message = str(exc_info.value)
        assert "heading has no property: .levels" in message
        assert "Did you mean: .level?" in message
        assert "Available: .level, .text, .id" in message

    def test_unknown_function(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(UnknownNameError, match="Did you mean: contains\\(\\)\\?"):
            run(engine, guide, '.headings | filter(contain(.text, "x"))')

    def test_incomparable_types(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(QueryTypeError, match="cannot compare string and number"):
            run(engine, guide, ".headings | filter(.text < 1)")

    def test_negating_a_string(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(QueryTypeError, match="cannot negate string"):
            run(engine, guide, ".headings | filter(-.text == 1)")

    def test_section_requires_title(self, engine: Engine, guide: Document) -> None:
        with pytest.raises(EvaluationError, match="requires a title argument"):
            run(engine, guide, ".section")

    def test_deeply_nested_tree_is_an_evaluation_error(self, guide: Document) -> None:
        node: QueryNode = Selector("headings")
        for _ in range(10_000):
            node = Unary("!", node)
        plan = Compiler().compile(node)

        with pytest.raises(EvaluationError, match="query nested too deeply"):
            plan(EvalContext.for_document(guide))


class TestDuplicateHeadings:
    def test_first_match_by_default(self, engine: Engine) -> None:
        document = engine.parse_document(DUPLICATES_MD, "dup.md")

        result = run(engine, document, '.section("Notes")')

        assert result.start == 1

    def test_last_match_policy(self) -> None:
        engine = Engine(EngineConfig(duplicate_headings="last"))
        document = engine.parse_document(DUPLICATES_MD, "dup.md")

        assert run(engine, document, '.section("Notes")').start == 5

    def test_error_policy(self) -> None:
        engine = Engine(EngineConfig(duplicate_headings="error"))
        document = engine.parse_document(DUPLICATES_MD, "dup.md")

        with pytest.raises(AmbiguousSectionError, match="2 sections"):
            run(engine, document, '.section("Notes")')


class TestEvaluationContext:
    def test_plans_are_reusable(self, guide: Document) -> None:
        """Running one plan twice gives identical results and leaves the document alone."""
        plan = Compiler().compile_string(".headings | filter(.level == 2) | map(.text)")
        headings_before = guide.get_headings()

        first = plan(EvalContext.for_document(guide))
        second = plan(EvalContext.for_document(guide))

        assert first == second
        assert guide.get_headings() == headings_before

    def test_pipe_restores_current(self, guide: Document) -> None:
        context = EvalContext.for_document(guide)

        Compiler().compile_string('.section("Usage") | .code')(context)

        assert context.current is guide

    def test_literal_bindings(self, guide: Document) -> None:
        context = EvalContext.for_document(guide)

        assert context.variables == {"true": True, "false": False, "null": None}

    def test_single_element_results(self, engine: Engine, guide: Document) -> None:
        assert isinstance(run(engine, guide, ".headings[0]"), Heading)
        assert isinstance(run(engine, guide, ".code[0]"), CodeBlock)
