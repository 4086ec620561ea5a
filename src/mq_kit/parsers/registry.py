# parsers/registry.py

import logging
from pathlib import PurePath

from .base import DocumentParser
from .data_parser import DataParser
from .markdown_parser import MarkdownParser
from .models import Format
from .pdf_parser import PdfParser

logger = logging.getLogger(__name__)

EXTENSIONS: dict[str, Format] = {
    ".md": Format.MARKDOWN,
    ".markdown": Format.MARKDOWN,
    ".mdown": Format.MARKDOWN,
    ".mkd": Format.MARKDOWN,
    ".pdf": Format.PDF,
    ".json": Format.JSON,
    ".jsonl": Format.JSONL,
    ".ndjson": Format.JSONL,
    ".yaml": Format.YAML,
    ".yml": Format.YAML,
}


def is_supported_file(path: str | PurePath) -> bool:
    return PurePath(path).suffix.lower() in EXTENSIONS


def detect_format(path: str | PurePath, content: bytes = b"") -> Format:
    """Determine the format from the file extension, then by sniffing content.

    Unrecognized content defaults to markdown, the most permissive format.
    """
    by_extension = EXTENSIONS.get(PurePath(path).suffix.lower())
    if by_extension is not None:
        return by_extension

    if content.startswith(b"%PDF"):
        return Format.PDF

    head = content[:1024].decode("utf-8", errors="replace").strip()
    if head.startswith(("{", "[")):
        return Format.JSON
    return Format.MARKDOWN


class ParserRegistry:
    def __init__(self) -> None:
        self._parsers: dict[Format, DocumentParser] = {}

    def register(self, parser: DocumentParser) -> None:
        if parser.format in self._parsers:
            raise ValueError(f"Parser for '{parser.format.value}' already registered")

        self._parsers[parser.format] = parser
        logger.debug("Registered parser: %s", parser.format.value)

    def get(self, format: Format) -> DocumentParser:
        try:
            return self._parsers[format]
        except KeyError:
            logger.error("Parser not found: %s", format.value)
            raise KeyError(f"Parser for '{format.value}' not found")

    def list(self) -> dict[Format, DocumentParser]:
        # return a shallow copy to avoid mutation
        return dict(self._parsers)


def default_registry() -> ParserRegistry:
    registry = ParserRegistry()
    registry.register(MarkdownParser())
    registry.register(PdfParser())
    for format in (Format.JSON, Format.JSONL, Format.YAML):
        registry.register(DataParser(format))
    return registry
