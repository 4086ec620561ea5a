# src/mq_kit/config.py

from dataclasses import dataclass
from typing import Literal

DuplicateHeadingPolicy = Literal["first", "last", "error"]

_POLICIES = ("first", "last", "error")


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the query engine.

    Immutable. Explicit. No magic defaults from environment.
    """

    preview_chars: int = 50  # Budget for tree previews before truncation
    snippet_context: int = 60  # Characters kept on each side of a search hit
    duplicate_headings: DuplicateHeadingPolicy = "first"

    def __post_init__(self) -> None:
        if self.preview_chars <= 0:
            raise ValueError("preview_chars must be > 0")
        if self.snippet_context < 0:
            raise ValueError("snippet_context must be >= 0")
        if self.duplicate_headings not in _POLICIES:
            raise ValueError(
                f"duplicate_headings must be one of {', '.join(_POLICIES)}"
            )
