# parsers/base.py

from abc import ABC, abstractmethod

from .models import Format, ParsedDocument


def line_starts(source: bytes) -> list[int]:
    """Byte offset at which each line starts; index 0 is line 1."""
    starts = [0]
    position = source.find(b"\n")
    while position != -1:
        starts.append(position + 1)
        position = source.find(b"\n", position + 1)
    return starts


class DocumentParseError(Exception):
    """A format parser failed to produce a content tree."""

    def __init__(self, format: Format, path: str, message: str) -> None:
        self.format = format
        self.path = path
        super().__init__(f"parse {path} ({format.value}): {message}")


class DocumentParser(ABC):
    format: Format = Format.UNKNOWN

    @abstractmethod
    def parse(self, source: bytes, path: str = "") -> ParsedDocument:
        """
        Parse raw content and return a format-agnostic content tree.

        Requirements:
        - Deterministic output for same input
        - Offsets are document-global byte offsets into the returned source
        - Failures are raised as DocumentParseError
        """
        raise NotImplementedError
