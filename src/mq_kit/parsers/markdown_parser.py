# parsers/markdown_parser.py

import logging
import re
from typing import Any

import yaml
from markdown_it import MarkdownIt
from markdown_it.token import Token

from .base import DocumentParser, line_starts
from .models import ContentNode, Format, ListItemNode, NodeKind, ParsedDocument

logger = logging.getLogger(__name__)

_FRONTMATTER_FENCE = "---"
_FRONTMATTER_CLOSERS = ("---", "...")
_TASK_MARKER = re.compile(r"^\[([ xX])\]\s+")
_SLUG_DROP = re.compile(r"[^\w\- ]")


def _matching_close(tokens: list[Token], start: int) -> int:
    depth = 0
    for index in range(start, len(tokens)):
        depth += tokens[index].nesting
        if depth == 0:
            return index
    return len(tokens) - 1


class MarkdownParser(DocumentParser):
    """
    Markdown parser built on markdown-it-py.
    - CommonMark with tables and strikethrough
    - YAML frontmatter, blanked before tokenizing so line numbers hold
    - Auto-generated heading anchors
    """

    format = Format.MARKDOWN

    def __init__(self) -> None:
        self._md = MarkdownIt("commonmark", {"html": False}).enable(
            ["table", "strikethrough"]
        )

    def parse(self, source: bytes, path: str = "") -> ParsedDocument:
        text = source.decode("utf-8", errors="replace")
        metadata, text = self._split_frontmatter(text, path)

        tokens = self._md.parse(text)
        starts = line_starts(source)
        children = self._blocks(tokens, starts, slugs={})
        logger.debug("Parsed %s: %d tokens, %d blocks", path, len(tokens), len(children))

        title = ""
        if metadata and isinstance(metadata.get("title"), str):
            title = metadata["title"]
        else:
            for node in children:
                if node.kind is NodeKind.HEADING and node.level == 1:
                    title = node.text
                    break

        return ParsedDocument(
            source=source,
            path=path,
            format=self.format,
            root=ContentNode(kind=NodeKind.DOCUMENT, offset=0, children=tuple(children)),
            metadata=metadata,
            readable_text=self._readable_text(children),
            title=title,
        )

    def _split_frontmatter(
        self, text: str, path: str
    ) -> tuple[dict[str, Any] | None, str]:
        lines = text.split("\n")
        if not lines or lines[0].rstrip("\r") != _FRONTMATTER_FENCE:
            return None, text

        for end in range(1, len(lines)):
            if lines[end].rstrip("\r") in _FRONTMATTER_CLOSERS:
                break
        else:
            return None, text

        try:
            data = yaml.safe_load("\n".join(lines[1:end]))
        except yaml.YAMLError as exc:
            logger.warning("Ignoring invalid frontmatter in %s: %s", path, exc)
            return None, text

        if data is None:
            data = {}
        if not isinstance(data, dict):
            return None, text

        # Same number of lines, so token line maps still match the source
        blanked = [""] * (end + 1) + lines[end + 1 :]
        return data, "\n".join(blanked)

    def _blocks(
        self, tokens: list[Token], starts: list[int], slugs: dict[str, int]
    ) -> list[ContentNode]:
        nodes: list[ContentNode] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            offset = self._offset(token, starts)

            if token.type == "heading_open":
                inline = tokens[index + 1]
                text = self._inline_text(inline)
                nodes.append(
                    ContentNode(
                        kind=NodeKind.HEADING,
                        offset=offset,
                        text=text,
                        level=int(token.tag[1:]),
                        anchor=self._anchor(text, slugs),
                        children=tuple(self._inline_nodes(inline, offset)),
                    )
                )
                index += 3
            elif token.type == "paragraph_open":
                inline = tokens[index + 1]
                nodes.append(
                    ContentNode(
                        kind=NodeKind.PARAGRAPH,
                        offset=offset,
                        text=self._inline_text(inline),
                        children=tuple(self._inline_nodes(inline, offset)),
                    )
                )
                index += 3
            elif token.type in ("fence", "code_block"):
                nodes.append(self._code(token, offset))
                index += 1
            elif token.type == "table_open":
                end = _matching_close(tokens, index)
                nodes.append(self._table(tokens[index : end + 1], offset))
                index = end + 1
            elif token.type in ("bullet_list_open", "ordered_list_open"):
                end = _matching_close(tokens, index)
                nodes.append(self._list(tokens[index : end + 1], offset, starts))
                index = end + 1
            else:
                index += 1
        return nodes

    @staticmethod
    def _offset(token: Token, starts: list[int]) -> int | None:
        if token.map is None:
            return None
        line = token.map[0]
        if line >= len(starts):
            return None
        return starts[line]

    def _code(self, token: Token, offset: int | None) -> ContentNode:
        language = ""
        if token.type == "fence" and token.info:
            language = token.info.strip().split()[0]
        return ContentNode(
            kind=NodeKind.CODE,
            offset=offset,
            text=token.content,
            language=language,
        )

    @staticmethod
    def _anchor(text: str, slugs: dict[str, int]) -> str:
        slug = _SLUG_DROP.sub("", text.strip().lower()).replace(" ", "-")
        if not slug:
            slug = "heading"
        seen = slugs.get(slug, 0)
        slugs[slug] = seen + 1
        return slug if seen == 0 else f"{slug}-{seen}"

    @staticmethod
    def _inline_text(inline: Token) -> str:
        parts: list[str] = []
        for child in inline.children or []:
            if child.type in ("text", "code_inline"):
                parts.append(child.content)
            elif child.type == "image":
                parts.append(child.content)
            elif child.type in ("softbreak", "hardbreak"):
                parts.append(" ")
        return "".join(parts)

    @staticmethod
    def _inline_nodes(inline: Token, offset: int | None) -> list[ContentNode]:
        nodes: list[ContentNode] = []
        children = inline.children or []
        index = 0
        while index < len(children):
            child = children[index]
            if child.type == "link_open":
                url = str(child.attrGet("href") or "")
                parts: list[str] = []
                index += 1
                while index < len(children) and children[index].type != "link_close":
                    if children[index].type in ("text", "code_inline"):
                        parts.append(children[index].content)
                    index += 1
                nodes.append(
                    ContentNode(kind=NodeKind.LINK, offset=offset, text="".join(parts), url=url)
                )
            elif child.type == "image":
                nodes.append(
                    ContentNode(
                        kind=NodeKind.IMAGE,
                        offset=offset,
                        text=child.content,
                        url=str(child.attrGet("src") or ""),
                        title=str(child.attrGet("title") or ""),
                    )
                )
            index += 1
        return nodes

    def _table(self, tokens: list[Token], offset: int | None) -> ContentNode:
        headers: list[str] = []
        rows: list[tuple[str, ...]] = []
        row: list[str] = []
        inlines: list[ContentNode] = []
        in_head = False

        for token in tokens:
            if token.type == "thead_open":
                in_head = True
            elif token.type == "thead_close":
                in_head = False
            elif token.type == "tr_open":
                row = []
            elif token.type == "tr_close" and not in_head:
                rows.append(tuple(row))
            elif token.type == "inline":
                cell = self._inline_text(token)
                if in_head:
                    headers.append(cell)
                else:
                    row.append(cell)
                inlines.extend(self._inline_nodes(token, offset))

        return ContentNode(
            kind=NodeKind.TABLE,
            offset=offset,
            headers=tuple(headers),
            rows=tuple(rows),
            children=tuple(inlines),
        )

    def _list(
        self, tokens: list[Token], offset: int | None, starts: list[int]
    ) -> ContentNode:
        nested: list[ContentNode] = []
        items = self._list_items(tokens, 0, len(tokens) - 1, nested, starts)
        return ContentNode(
            kind=NodeKind.LIST,
            offset=offset,
            ordered=tokens[0].type == "ordered_list_open",
            items=tuple(items),
            children=tuple(nested),
        )

    def _list_items(
        self,
        tokens: list[Token],
        start: int,
        end: int,
        nested: list[ContentNode],
        starts: list[int],
    ) -> list[ListItemNode]:
        items: list[ListItemNode] = []
        index = start + 1
        while index < end:
            if tokens[index].type == "list_item_open":
                item_end = _matching_close(tokens, index)
                items.append(self._list_item(tokens, index, item_end, nested, starts))
                index = item_end + 1
            else:
                index += 1
        return items

    def _list_item(
        self,
        tokens: list[Token],
        start: int,
        end: int,
        nested: list[ContentNode],
        starts: list[int],
    ) -> ListItemNode:
        texts: list[str] = []
        children: list[ListItemNode] = []
        index = start + 1
        while index < end:
            token = tokens[index]
            if token.type == "inline":
                texts.append(self._inline_text(token))
                nested.extend(self._inline_nodes(token, self._offset(token, starts)))
                index += 1
            elif token.type in ("bullet_list_open", "ordered_list_open"):
                list_end = _matching_close(tokens, index)
                children.extend(self._list_items(tokens, index, list_end, nested, starts))
                index = list_end + 1
            elif token.type in ("fence", "code_block"):
                nested.append(self._code(token, self._offset(token, starts)))
                index += 1
            else:
                index += 1

        text = " ".join(texts)
        checked = None
        marker = _TASK_MARKER.match(text)
        if marker:
            checked = marker.group(1) != " "
            text = text[marker.end() :]
        return ListItemNode(text=text, checked=checked, children=tuple(children))

    @staticmethod
    def _readable_text(nodes: list[ContentNode]) -> str:
        blocks: list[str] = []
        for node in nodes:
            if node.kind in (NodeKind.HEADING, NodeKind.PARAGRAPH):
                blocks.append(node.text)
            elif node.kind is NodeKind.CODE:
                blocks.append(node.text.rstrip("\n"))
            elif node.kind is NodeKind.TABLE:
                lines = [" | ".join(node.headers)]
                lines.extend(" | ".join(row) for row in node.rows)
                blocks.append("\n".join(lines))
            elif node.kind is NodeKind.LIST:
                blocks.append("\n".join(f"- {item.text}" for item in node.items))
        return "\n\n".join(block for block in blocks if block)
