from dataclasses import FrozenInstanceError

import pytest

from mq_kit.config import EngineConfig


def test_defaults() -> None:
    config = EngineConfig()

    assert config.preview_chars == 50
    assert config.snippet_context == 60
    assert config.duplicate_headings == "first"


def test_is_immutable() -> None:
    config = EngineConfig()

    with pytest.raises(FrozenInstanceError):
        config.preview_chars = 10  # type: ignore[misc]


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"preview_chars": 0}, "preview_chars must be > 0"),
        ({"snippet_context": -1}, "snippet_context must be >= 0"),
        ({"duplicate_headings": "merge"}, "duplicate_headings must be one of"),
    ],
)
def test_rejects_invalid_values(kwargs: dict[str, object], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        EngineConfig(**kwargs)  # type: ignore[arg-type]


def test_zero_snippet_context_is_allowed() -> None:
    assert EngineConfig(snippet_context=0).snippet_context == 0
