from pathlib import Path

import pytest
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from mq_kit.parsers.models import ParsedDocument
from mq_kit.parsers.pdf_parser import PdfParser

SAMPLE_LINES = [
    "SAMPLE DOCUMENT TITLE",
    "",
    "INTRODUCTION:",
    "This is the first paragraph of the introduction.",
    "This is the second paragraph of the introduction.",
    "",
    "DETAILS:",
    "Here we describe details.",
    "Some identifiers like user_id and order_id appear here.",
    "",
    "CONCLUSION:",
    "This is the final section.",
]

MULTIPAGE_LINES = [
    [
        "MULTIPAGE DOCUMENT",
        "",
        "PAGE ONE CONTENT:",
        "This content is on page one.",
    ],
    [
        "PAGE TWO CONTENT:",
        "This content is on page two.",
    ],
]

# Long line (>120 chars) is NOT a heading; all caps and trailing colon are
EDGE_CASE_LINES = [
    "EDGE CASE DOCUMENT",
    "",
    "ALL CAPS HEADING",
    "Normal paragraph text here.",
    "",
    "HEADING WITH COLON:",
    "More normal text.",
    "",
    "A" * 130,
    "Text after long line.",
]


def _write_pdf(path: Path, pages: list[list[str]]) -> None:
    """Writes a deterministic PDF with one text block per page."""
    c = canvas.Canvas(str(path), pagesize=LETTER)
    _, height = LETTER

    for lines in pages:
        text = c.beginText(40, height - 50)
        for line in lines:
            text.textLine(line)
        c.drawText(text)
        c.showPage()

    c.save()


@pytest.fixture(scope="module")
def pdf_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Create all test PDFs once per module."""
    dir_path: Path = tmp_path_factory.mktemp("pdfs")

    _write_pdf(dir_path / "sample.pdf", [SAMPLE_LINES])
    _write_pdf(dir_path / "multipage.pdf", MULTIPAGE_LINES)
    _write_pdf(dir_path / "edge_case.pdf", [EDGE_CASE_LINES])

    return dir_path


def _parse(path: Path) -> ParsedDocument:
    return PdfParser().parse(path.read_bytes(), str(path))


@pytest.fixture(scope="module")
def parsed_sample(pdf_dir: Path) -> ParsedDocument:
    """Parse sample PDF once, reuse across tests."""
    return _parse(pdf_dir / "sample.pdf")


@pytest.fixture(scope="module")
def parsed_multipage(pdf_dir: Path) -> ParsedDocument:
    return _parse(pdf_dir / "multipage.pdf")


@pytest.fixture(scope="module")
def parsed_edge_case(pdf_dir: Path) -> ParsedDocument:
    return _parse(pdf_dir / "edge_case.pdf")
