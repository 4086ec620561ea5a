# src/mq_kit/document/tree.py

"""Verbosity-controlled structural summaries of a document."""

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, Field

from .models import CodeBlock, Document, Section

DEFAULT_PREVIEW_CHARS = 50

_BRANCH = "├── "
_LAST = "└── "
_PIPE = "│   "
_SPACE = "    "


class TreeMode(str, Enum):
    DEFAULT = "default"  # Headings plus per-section code block summary
    COMPACT = "compact"  # Headings only
    PREVIEW = "preview"  # Headings plus first prose line
    FULL = "full"  # Same as preview for single documents

    @classmethod
    def parse(cls, value: "str | TreeMode | None") -> "TreeMode":
        """Map a user-supplied mode onto a TreeMode; anything unknown is DEFAULT."""
        if isinstance(value, TreeMode):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT


class TreeNode(BaseModel):
    type: str  # "section" or "code"
    text: str
    preview: str = ""
    start: int = 0
    end: int = 0
    level: int = 0
    meta: str = ""
    children: list["TreeNode"] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class TreeResult(BaseModel):
    path: str
    lines: int
    mode: TreeMode
    root: list[TreeNode] = Field(default_factory=list)
    metadata: list[str] = Field(default_factory=list)  # Frontmatter field names

    class Config:
        extra = "forbid"

    def render(self) -> str:
        out = [f"{self.path} ({self.lines} lines)"]
        if self.metadata:
            connector = _BRANCH if self.root else _LAST
            out.append(f"{connector}[frontmatter: {', '.join(self.metadata)}]")
        for index, node in enumerate(self.root):
            _render_node(out, node, "", index == len(self.root) - 1)
        return "\n".join(out) + "\n"


def _render_node(out: list[str], node: TreeNode, prefix: str, is_last: bool) -> None:
    connector = _LAST if is_last else _BRANCH
    child_prefix = prefix + (_SPACE if is_last else _PIPE)

    if node.type == "section":
        out.append(
            f"{prefix}{connector}{'#' * node.level} {node.text} ({node.start}-{node.end})"
        )
        if node.preview:
            out.append(f'{child_prefix}     "{node.preview}"')
    else:
        out.append(f"{prefix}{connector}[{node.type}: {node.text}, {node.meta}]")

    for index, child in enumerate(node.children):
        _render_node(out, child, child_prefix, index == len(node.children) - 1)


def build_tree(
    document: Document,
    mode: TreeMode = TreeMode.DEFAULT,
    preview_chars: int = DEFAULT_PREVIEW_CHARS,
) -> TreeResult:
    """Project the whole section hierarchy of ``document``."""
    return TreeResult(
        path=document.path,
        lines=document.total_lines,
        mode=mode,
        root=[
            _section_node(section, mode, preview_chars)
            for section in document.get_table_of_contents()
        ],
        metadata=[str(key) for key in (document.metadata or {})],
    )


def build_section_tree(
    section: Section,
    mode: TreeMode = TreeMode.DEFAULT,
    preview_chars: int = DEFAULT_PREVIEW_CHARS,
) -> TreeResult:
    """Project a single section and its descendants."""
    return TreeResult(
        path=section.heading.text,
        lines=section.end - section.start + 1,
        mode=mode,
        root=[_section_node(section, mode, preview_chars)],
    )


def _section_node(section: Section, mode: TreeMode, preview_chars: int) -> TreeNode:
    node = TreeNode(
        type="section",
        text=section.heading.text,
        start=section.start,
        end=section.end,
        level=section.heading.level,
    )
    if mode in (TreeMode.PREVIEW, TreeMode.FULL):
        node.preview = extract_preview(section.text, preview_chars)

    node.children = [_section_node(child, mode, preview_chars) for child in section.children]

    if mode is TreeMode.DEFAULT:
        for language, count in count_code_by_language(section.code_blocks).items():
            node.children.append(
                TreeNode(
                    type="code",
                    text=language,
                    meta=f"{count} block" if count == 1 else f"{count} blocks",
                )
            )
    return node


def count_code_by_language(blocks: Sequence[CodeBlock]) -> dict[str, int]:
    """Block count per language in first-seen order; untagged blocks count as "plain"."""
    counts: dict[str, int] = {}
    for block in blocks:
        language = block.language or "plain"
        counts[language] = counts.get(language, 0) + 1
    return counts


def extract_preview(text: str, max_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    """First prose line of a section body, cleaned and truncated at a word boundary.

    The heading line, blank lines, fenced code, rules, nested headings and
    lines made only of a link or image are skipped.
    """
    lines = text.split("\n")[1:]
    in_fence = False
    for raw in lines:
        line = raw.strip()
        if line.startswith(("```", "~~~")):
            in_fence = not in_fence
            continue
        if in_fence or not line or line.startswith(("---", "#")):
            continue
        if line.startswith("![") or (line.startswith("[") and "](" in line):
            continue

        for marker in ("**", "__", "`"):
            line = line.replace(marker, "")

        if len(line) > max_chars:
            truncated = line[:max_chars]
            last_space = truncated.rfind(" ")
            if last_space > max_chars // 2:
                truncated = truncated[:last_space]
            return truncated + "..."
        return line
    return ""
