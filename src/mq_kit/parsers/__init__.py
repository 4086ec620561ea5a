from .base import DocumentParseError, DocumentParser, line_starts
from .data_parser import DataParser
from .markdown_parser import MarkdownParser
from .models import ContentNode, Format, ListItemNode, NodeKind, ParsedDocument
from .pdf_parser import PdfParser
from .registry import (
    ParserRegistry,
    default_registry,
    detect_format,
    is_supported_file,
)

__all__ = [
    "ContentNode",
    "DataParser",
    "DocumentParseError",
    "DocumentParser",
    "Format",
    "ListItemNode",
    "MarkdownParser",
    "NodeKind",
    "ParsedDocument",
    "ParserRegistry",
    "PdfParser",
    "default_registry",
    "detect_format",
    "is_supported_file",
    "line_starts",
]
