"""Pytest fixtures wrapping the synthetic header generators."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from tests.fixtures.headers import TAN_CARDS, make_header_text



@pytest.fixture
def header_text() -> Callable[..., str]:
    """Factory building raw header text from keyword/value pairs."""

    def _build(cards: dict[str, Any] | None = None, **overrides: Any) -> str:
        merged = dict(TAN_CARDS if cards is None else cards)
        for key, value in overrides.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        return make_header_text(merged)

    return _build
