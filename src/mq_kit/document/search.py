# src/mq_kit/document/search.py

"""Case-insensitive full-text search over document sections."""

import logging
import re

from pydantic import BaseModel, Field

from .models import Document

logger = logging.getLogger(__name__)

DEFAULT_SNIPPET_CONTEXT = 60

_WHITESPACE = re.compile(r"\s+")


class SearchMatch(BaseModel):
    file: str
    section: str
    lines: str  # "start-end", or "n/a" when located through readable text only
    snippet: str

    class Config:
        extra = "forbid"


class SearchResults(BaseModel):
    query: str
    matches: list[SearchMatch] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    def render(self) -> str:
        if not self.matches:
            return f'No matches for "{self.query}"\n'

        out = [f'Found {len(self.matches)} matches for "{self.query}":', ""]
        current_file = None
        for match in self.matches:
            if match.file != current_file:
                if current_file is not None:
                    out.append("")
                out.append(f"{match.file}:")
                current_file = match.file
            out.append(f"  ## {match.section} (lines {match.lines})")
            if match.snippet:
                out.append(f'     "{match.snippet}"')
        return "\n".join(out) + "\n"


def search(
    document: Document, query: str, context: int = DEFAULT_SNIPPET_CONTEXT
) -> SearchResults:
    """Find sections whose raw text contains ``query``, ignoring case.

    One match per section, in document order. Documents without sectioned
    text (PDF or data sources with no headings) are searched through their
    readable text instead, yielding at most one match.
    """
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    results = SearchResults(query=query)

    searched_sections = False
    for section in document.get_sections():
        text = section.text
        if not text:
            continue
        searched_sections = True
        hit = pattern.search(text)
        if hit is None:
            continue
        results.matches.append(
            SearchMatch(
                file=document.path,
                section=section.heading.text,
                lines=f"{section.start}-{section.end}",
                snippet=extract_snippet(text, hit.start(), hit.end() - hit.start(), context),
            )
        )

    if not searched_sections:
        text = document.readable_text
        hit = pattern.search(text)
        if text and hit is not None:
            results.matches.append(
                SearchMatch(
                    file=document.path,
                    section=document.title or "Document",
                    lines="n/a",
                    snippet=extract_snippet(text, hit.start(), hit.end() - hit.start(), context),
                )
            )

    logger.debug("Search %r in %s: %d matches", query, document.path, len(results.matches))
    return results


def extract_snippet(text: str, index: int, length: int, context: int = DEFAULT_SNIPPET_CONTEXT) -> str:
    """Window of ``context`` characters either side of a match, on one line.

    Whitespace runs collapse to single spaces; "..." marks each clipped side.
    """
    start = max(index - context, 0)
    end = min(index + length + context, len(text))

    snippet = _WHITESPACE.sub(" ", text[start:end]).strip()
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet
