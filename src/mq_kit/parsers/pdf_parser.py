# parsers/pdf_parser.py

import io
import logging
from typing import Any

import pdfplumber

from .base import DocumentParseError, DocumentParser
from .models import ContentNode, Format, NodeKind, ParsedDocument

logger = logging.getLogger(__name__)


class PdfParser(DocumentParser):
    """
    Deterministic PDF parser.
    - Uses page order
    - Uses simple heading heuristics
    - The extracted text becomes the document source; offsets point into it
    """

    format = Format.PDF

    def parse(self, source: bytes, path: str = "") -> ParsedDocument:
        nodes: list[ContentNode] = []
        lines: list[str] = []
        global_offset = 0

        try:
            with pdfplumber.open(io.BytesIO(source)) as pdf:
                title = self._extract_title(pdf)

                for page in pdf.pages:
                    text = page.extract_text() or ""

                    for line in text.splitlines():
                        clean = line.strip()
                        lines.append(clean)
                        start = global_offset
                        global_offset += len(clean.encode("utf-8")) + 1
                        if not clean:
                            continue

                        if self._is_heading(clean):
                            nodes.append(
                                ContentNode(
                                    kind=NodeKind.HEADING,
                                    offset=start,
                                    text=clean,
                                    level=1 if clean.isupper() else 2,
                                )
                            )
                        else:
                            nodes.append(
                                ContentNode(kind=NodeKind.PARAGRAPH, offset=start, text=clean)
                            )
        except Exception as exc:
            raise DocumentParseError(self.format, path, str(exc)) from exc

        logger.debug("Extracted %d lines and %d blocks from %s", len(lines), len(nodes), path)
        return ParsedDocument(
            source="\n".join(lines).encode("utf-8"),
            path=path,
            format=self.format,
            root=ContentNode(kind=NodeKind.DOCUMENT, offset=0, children=tuple(nodes)),
            readable_text="\n".join(line for line in lines if line),
            title=title,
        )

    def _extract_title(self, pdf: Any) -> str:
        """
        Simple heuristic:
        - First non-empty line of first page
        """
        if not pdf.pages:
            return "Untitled Document"
        first_page = pdf.pages[0]
        text = first_page.extract_text() or ""
        for line in text.splitlines():
            if line.strip():
                return line.strip()
        return "Untitled Document"

    def _is_heading(self, line: str) -> bool:
        """
        Very conservative heading heuristic.
        """
        if len(line) > 120:
            return False
        if line.isupper():
            return True
        return line.endswith(":")
