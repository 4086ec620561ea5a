# src/mq_kit/document/directory.py

"""Search and structural summaries across a directory of documents."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

from pydantic import BaseModel, Field

from mq_kit.observability import names
from mq_kit.observability.base import MetricsHook, NoOpMetricsHook
from mq_kit.parsers.base import DocumentParseError
from mq_kit.parsers.models import Format
from mq_kit.parsers.registry import is_supported_file

from .errors import IndexingError
from .models import Document, Heading
from .search import DEFAULT_SNIPPET_CONTEXT, SearchResults, search
from .tree import DEFAULT_PREVIEW_CHARS, TreeMode, extract_preview

logger = logging.getLogger(__name__)

DocumentLoader = Callable[[Path], Document]

# Failures that mark a single file as unreadable without aborting the scan
_LOAD_ERRORS = (OSError, DocumentParseError, IndexingError)

_BRANCH = "├── "
_LAST = "└── "
_PIPE = "│   "
_SPACE = "    "


class DirHeading(BaseModel):
    text: str  # Label with level marker, e.g. "## Installation"
    preview: str = ""

    class Config:
        extra = "forbid"


class DirFileNode(BaseModel):
    name: str
    path: str
    is_dir: bool = False
    format: Format = Format.UNKNOWN
    lines: int = 0  # -1 when the file could not be loaded
    sections: int = 0
    structure: str = "sections"  # Unit counted in ``count``: sections, keys or records
    count: int = 0
    headings: list[DirHeading] = Field(default_factory=list)
    children: list["DirFileNode"] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    @property
    def parse_error(self) -> bool:
        return not self.is_dir and self.lines < 0


class DirTreeResult(BaseModel):
    path: str
    mode: TreeMode
    total_files: int = 0
    total_lines: int = 0
    root: list[DirFileNode] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    def render(self) -> str:
        out = [f"{self.path} ({self.total_files} files, {self.total_lines} lines total)"]
        for index, node in enumerate(self.root):
            self._render_node(out, node, "", index == len(self.root) - 1)
        return "\n".join(out) + "\n"

    def _render_node(self, out: list[str], node: DirFileNode, prefix: str, is_last: bool) -> None:
        connector = _LAST if is_last else _BRANCH
        child_prefix = prefix + (_SPACE if is_last else _PIPE)

        if node.is_dir:
            out.append(f"{prefix}{connector}{node.name}/")
        elif node.parse_error:
            out.append(f"{prefix}{connector}{node.name} (parse error)")
        else:
            out.append(f"{prefix}{connector}{node.name} ({node.lines} lines, {_describe(node)})")

        for index, heading in enumerate(node.headings):
            heading_is_last = index == len(node.headings) - 1 and not node.children
            out.append(f"{child_prefix}{_LAST if heading_is_last else _BRANCH}{heading.text}")
            if self.mode is TreeMode.FULL and heading.preview:
                preview_prefix = child_prefix + (_SPACE if heading_is_last else _PIPE)
                out.append(f'{preview_prefix}     "{heading.preview}"')

        for index, child in enumerate(node.children):
            self._render_node(out, child, child_prefix, index == len(node.children) - 1)


def _describe(node: DirFileNode) -> str:
    if node.count == 0:
        return f"no {node.structure}"
    if node.count == 1:
        return f"1 {node.structure.removesuffix('s')}"
    return f"{node.count} {node.structure}"


def search_dir(
    path: str | Path,
    query: str,
    load: DocumentLoader,
    context: int = DEFAULT_SNIPPET_CONTEXT,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> SearchResults:
    """Search every supported file under ``path``.

    Files that fail to load are logged and skipped. Matches are grouped per
    file in traversal order.
    """
    results = SearchResults(query=query)
    for file_path in _iter_files(Path(path)):
        try:
            document = load(file_path)
        except _LOAD_ERRORS as exc:
            logger.warning("Skipping %s: %s", file_path, exc)
            metrics_hook.increment(names.DIRECTORY_ERRORS_TOTAL)
            continue
        metrics_hook.increment(names.DIRECTORY_FILES_TOTAL)
        results.matches.extend(search(document, query, context).matches)

    logger.info("Searched %s for %r: %d matches", path, query, len(results.matches))
    return results


def build_dir_tree(
    path: str | Path,
    mode: TreeMode,
    load: DocumentLoader,
    preview_chars: int = DEFAULT_PREVIEW_CHARS,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> DirTreeResult:
    """Summarize every supported file under ``path``.

    ``preview`` and ``full`` modes list top-level headings and their
    level-2 children; ``full`` adds a prose preview under each heading.
    Raises ``NotADirectoryError`` / ``FileNotFoundError`` for a bad root.
    """
    root = Path(path)
    if not root.is_dir():
        if not root.exists():
            raise FileNotFoundError(f"No such directory: {root}")
        raise NotADirectoryError(f"Not a directory: {root}")

    result = DirTreeResult(path=str(path), mode=mode)
    builder = _DirTreeBuilder(result, load, preview_chars, metrics_hook)
    result.root = builder.children(root)

    logger.info(
        "Built directory tree for %s: %d files, %d lines",
        path,
        result.total_files,
        result.total_lines,
    )
    return result


class _DirTreeBuilder:
    def __init__(
        self,
        result: DirTreeResult,
        load: DocumentLoader,
        preview_chars: int,
        metrics_hook: MetricsHook,
    ) -> None:
        self.result = result
        self.load = load
        self.preview_chars = preview_chars
        self.metrics_hook = metrics_hook

    def children(self, directory: Path) -> list[DirFileNode]:
        nodes: list[DirFileNode] = []
        for entry in _sorted_entries(directory):
            if entry.is_dir():
                node = DirFileNode(name=entry.name, path=str(entry), is_dir=True)
                node.children = self.children(entry)
                # Directories without supported files are omitted
                if node.children:
                    nodes.append(node)
            elif is_supported_file(entry):
                nodes.append(self.file(entry))
        return nodes

    def file(self, file_path: Path) -> DirFileNode:
        node = DirFileNode(name=file_path.name, path=str(file_path))
        try:
            document = self.load(file_path)
        except _LOAD_ERRORS as exc:
            logger.warning("Could not load %s: %s", file_path, exc)
            self.metrics_hook.increment(names.DIRECTORY_ERRORS_TOTAL)
            node.lines = -1
            return node

        self.metrics_hook.increment(names.DIRECTORY_FILES_TOTAL)
        node.lines = document.total_lines
        node.sections = len(document.get_sections())
        node.format = document.format
        node.count, node.structure = describe_structure(document)

        self.result.total_files += 1
        self.result.total_lines += node.lines

        if self.result.mode in (TreeMode.PREVIEW, TreeMode.FULL):
            for section in document.get_table_of_contents():
                node.headings.append(self.heading(document, section.heading, section.text))
                for child in section.children:
                    if child.heading.level <= 2:
                        node.headings.append(
                            self.heading(document, child.heading, child.text)
                        )
        return node

    def heading(self, document: Document, heading: Heading, text: str) -> DirHeading:
        preview = ""
        if self.result.mode is TreeMode.FULL:
            preview = extract_preview(text, self.preview_chars)
        return DirHeading(text=format_heading_label(document.format, heading), preview=preview)


def _sorted_entries(directory: Path) -> list[Path]:
    """Visible entries, directories first, each group sorted by name."""
    entries = [entry for entry in directory.iterdir() if not entry.name.startswith(".")]
    return sorted(entries, key=lambda entry: (not entry.is_dir(), entry.name))


def _iter_files(directory: Path) -> Iterator[Path]:
    for entry in _sorted_entries(directory):
        if entry.is_dir():
            yield from _iter_files(entry)
        elif is_supported_file(entry):
            yield entry


def format_heading_label(format: Format, heading: Heading) -> str:
    if format is Format.MARKDOWN:
        return f"{'#' * heading.level} {heading.text}"
    if format in (Format.JSON, Format.YAML):
        return f"key {heading.text}" if heading.level <= 1 else f"subkey {heading.text}"
    if format is Format.JSONL:
        return f"field {heading.text}"
    return f"H{heading.level} {heading.text}"


def describe_structure(document: Document) -> tuple[int, str]:
    """Count of the format's natural structural unit and its plural label."""
    if document.format in (Format.JSON, Format.YAML):
        return len(document.get_sections()), "keys"
    if document.format is Format.JSONL:
        records = sum(1 for line in document.source.split(b"\n") if line.strip())
        return records, "records"
    return len(document.get_sections()), "sections"
