"""Synthetic header fixtures for resolver testing.

Generators:
- make_card: One fixed-width header record
- make_header_text: A header block from keyword/value pairs
"""

from __future__ import annotations

from tests.fixtures.headers import TAN_CARDS, make_card, make_header_text

__all__ = [
    "TAN_CARDS",
    "make_card",
    "make_header_text",
]
