# parsers/data_parser.py

import json
import logging
import re
from typing import Any

import yaml

from .base import DocumentParseError, DocumentParser
from .models import ContentNode, Format, NodeKind, ParsedDocument

logger = logging.getLogger(__name__)

_DATA_FORMATS = (Format.JSON, Format.JSONL, Format.YAML)


class DataParser(DocumentParser):
    """
    Parser for flat data formats (JSON, JSONL, YAML).

    Structure is projected onto the document model:
    - top-level keys become level-1 headings, nested mapping keys level-2
    - arrays of uniform objects become tables
    - readable text is a YAML rendering of the loaded value
    """

    def __init__(self, format: Format) -> None:
        if format not in _DATA_FORMATS:
            raise ValueError(f"DataParser does not handle format: {format.value}")
        self.format = format

    def parse(self, source: bytes, path: str = "") -> ParsedDocument:
        data = self._load(source, path)
        locator = _KeyLocator(source, self.format)
        nodes: list[ContentNode] = []

        if isinstance(data, dict):
            for key, value in data.items():
                nodes.append(self._heading(str(key), 1, locator))
                if isinstance(value, dict):
                    for sub_key in value:
                        nodes.append(self._heading(str(sub_key), 2, locator))
                elif _is_table(value):
                    nodes.append(_table(value))
        elif _is_table(data):
            nodes.append(_table(data))

        logger.debug("Projected %s (%s) onto %d nodes", path, self.format.value, len(nodes))
        return ParsedDocument(
            source=source,
            path=path,
            format=self.format,
            root=ContentNode(kind=NodeKind.DOCUMENT, offset=0, children=tuple(nodes)),
            readable_text=_readable(data),
            title=_title(data),
        )

    def _load(self, source: bytes, path: str) -> Any:
        text = source.decode("utf-8", errors="replace")
        try:
            if self.format is Format.JSONL:
                return [json.loads(line) for line in text.splitlines() if line.strip()]
            if self.format is Format.JSON:
                return json.loads(text) if text.strip() else None
            return yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise DocumentParseError(self.format, path, str(exc)) from exc

    @staticmethod
    def _heading(key: str, level: int, locator: "_KeyLocator") -> ContentNode:
        return ContentNode(
            kind=NodeKind.HEADING,
            offset=locator.find(key),
            text=key,
            level=level,
            anchor=key,
        )


class _KeyLocator:
    """Best-effort, forward-only search for mapping keys in the raw source."""

    def __init__(self, source: bytes, format: Format) -> None:
        self._source = source
        self._format = format
        self._cursor = 0

    def find(self, key: str) -> int | None:
        if self._format is Format.YAML:
            pattern = rb"^[ \t]*['\"]?" + re.escape(key.encode("utf-8")) + rb"['\"]?[ \t]*:"
        else:
            quoted = json.dumps(key, ensure_ascii=False).encode("utf-8")
            pattern = re.escape(quoted) + rb"\s*:"
        match = re.compile(pattern, re.MULTILINE).search(self._source, self._cursor)
        if match is None:
            return None
        self._cursor = match.end()
        return match.start()


def _is_table(value: Any) -> bool:
    if not isinstance(value, list) or not value:
        return False
    if not all(isinstance(row, dict) for row in value):
        return False
    keys = list(value[0])
    return all(list(row) == keys for row in value)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _table(rows: list[dict[str, Any]]) -> ContentNode:
    headers = tuple(str(key) for key in rows[0])
    return ContentNode(
        kind=NodeKind.TABLE,
        headers=headers,
        rows=tuple(tuple(_cell(value) for value in row.values()) for row in rows),
    )


def _readable(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).strip()


def _title(data: Any) -> str:
    if isinstance(data, dict):
        for key in ("title", "name"):
            if isinstance(data.get(key), str):
                return data[key]
    return ""
