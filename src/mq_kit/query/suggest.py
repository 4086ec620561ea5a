# src/mq_kit/query/suggest.py

from collections.abc import Iterable


def closest_match(name: str, candidates: Iterable[str]) -> str | None:
    """Best-effort suggestion for a mistyped name, or None.

    Checks run in order and the first hit wins: prefix or suffix overlap,
    singular/plural toggling, then substring containment either way.
    Comparison ignores case.
    """
    needle = name.lower()
    if not needle:
        return None
    pool = [(candidate, candidate.lower()) for candidate in candidates]

    for candidate, lower in pool:
        if lower.startswith(needle) or needle.startswith(lower):
            return candidate
        if lower.endswith(needle) or needle.endswith(lower):
            return candidate

    toggled = needle[:-1] if needle.endswith("s") else needle + "s"
    for candidate, lower in pool:
        if lower == toggled:
            return candidate

    for candidate, lower in pool:
        if needle in lower or lower in needle:
            return candidate
    return None
