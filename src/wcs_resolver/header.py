"""FITS header card parsing.

A header block is a run of fixed 80-character records ("cards"). Each
meaningful card has the shape::

    KEYWORD = VALUE / optional comment

This module turns such a block into an immutable ``HeaderSnapshot`` holding
the two axis lengths, the two axis type codes, and every other card whose
value parses as a float. String-valued cards are kept separately so the frame
resolver can read ``RADESYS``.

Failure policy:
- ``NAXIS1``/``NAXIS2`` must parse as unsigned integers; anything else raises
  ``NumericParseFailure`` (axis dimensions are structurally required).
- Any other card that does not parse as a float is skipped silently.

References:
    - Pence et al. 2010 (2010A&A...524A..42P): FITS standard 3.0, section 4
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_serializer, field_validator

from wcs_resolver.errors import MandatoryKeywordsMissing, NumericParseFailure

logger = logging.getLogger(__name__)

CARD_LENGTH = 80
VALUE_INDICATOR = "= "

_AXIS_KEYS = ("NAXIS1", "NAXIS2")
_CTYPE_KEYS = ("CTYPE1", "CTYPE2")

# Python's float() already accepts inf/nan spellings that FITS does not.
_FITS_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([EeDd][+-]?\d+)?$")
_FITS_UNSIGNED = re.compile(r"^\+?\d+$")


def normalize_key(key: str) -> str:
    """Normalize a keyword for lookup (trim padding, upper-case)."""
    return key.strip().upper()


def strip_inline_comment(value: str) -> str:
    """Drop everything from the first unquoted '/' onward, then trim."""
    in_quotes = False
    for idx, char in enumerate(value):
        if char == "'":
            in_quotes = not in_quotes
        elif char == "/" and not in_quotes:
            return value[:idx].strip()
    return value.strip()


def parse_fits_float(value: str) -> float | None:
    """Parse a FITS numeric literal, returning None when it is not one."""
    text = value.strip()
    if not _FITS_NUMBER.match(text):
        return None
    result = float(text.replace("D", "E").replace("d", "e"))
    if not math.isfinite(result):
        return None
    return result


def unquote(value: str) -> str:
    """Remove quote characters and the blank padding FITS keeps inside them."""
    return value.replace("'", "").strip()


class HeaderSnapshot(BaseModel):
    """Immutable view of one parsed header block.

    Attributes:
        naxis1: Pixel-grid width, or None when absent.
        naxis2: Pixel-grid height, or None when absent.
        ctype1: Axis-1 type code such as ``RA---TAN``; empty when absent.
        ctype2: Axis-2 type code such as ``DEC--TAN``; empty when absent.
        cards: Keyword to float value for every other numeric card.
        strings: Keyword to unquoted text for every quoted string card.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    naxis1: int | None = Field(default=None, gt=0)
    naxis2: int | None = Field(default=None, gt=0)
    ctype1: str = ""
    ctype2: str = ""
    cards: Mapping[str, float] = Field(default_factory=dict)
    strings: Mapping[str, str] = Field(default_factory=dict)

    _card_index: dict[str, float] = PrivateAttr(default_factory=dict)
    _string_index: dict[str, str] = PrivateAttr(default_factory=dict)

    @field_validator("cards", "strings", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("cards", "strings")
    def _as_dict(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

    def model_post_init(self, __context: Any) -> None:
        # Keys keep the spelling they were parsed with; lookups go through these.
        self._card_index = {normalize_key(k): v for k, v in self.cards.items()}
        self._string_index = {normalize_key(k): v for k, v in self.strings.items()}

    @classmethod
    def from_text(cls, text: str) -> HeaderSnapshot:
        return parse_header(text)

    def get_naxis(self, idx: int) -> int | None:
        if idx == 1:
            return self.naxis1
        if idx == 2:
            return self.naxis2
        return None

    def require_naxis(self, idx: int) -> int:
        value = self.get_naxis(idx)
        if value is None:
            raise MandatoryKeywordsMissing(f"NAXIS{idx}")
        return value

    def get_ctype(self, idx: int) -> str:
        """Return the axis type code, raising if the card is absent."""
        value = {1: self.ctype1, 2: self.ctype2}.get(idx, "")
        if not value:
            raise MandatoryKeywordsMissing("CTYPE")
        return value

    def has(self, key: str) -> bool:
        return normalize_key(key) in self._card_index

    def get_float(self, key: str) -> float | None:
        """Return the numeric card ``key``, or None when it is absent."""
        return self._card_index.get(normalize_key(key))

    def get_float_or(self, key: str, default: float) -> float:
        """Fetch a numeric card, falling back to ``default`` when absent."""
        value = self.get_float(key)
        return default if value is None else value

    def get_int(self, key: str) -> int | None:
        """Return a non-negative integral card as int.

        Raises:
            NumericParseFailure: If the card is present but not a non-negative
                integral value.
        """
        value = self.get_float(key)
        if value is None:
            return None
        if value < 0 or not float(value).is_integer():
            raise NumericParseFailure(normalize_key(key), value)
        return int(value)

    def get_string(self, key: str) -> str | None:
        return self._string_index.get(normalize_key(key))


def _iter_records(text: str):
    # A trailing partial record is ignored.
    for offset in range(0, len(text) - CARD_LENGTH + 1, CARD_LENGTH):
        yield text[offset : offset + CARD_LENGTH]


def _parse_unsigned(key: str, value: str) -> int:
    if not _FITS_UNSIGNED.match(value):
        raise NumericParseFailure(key, value)
    return int(value)


def parse_header(text: str) -> HeaderSnapshot:
    """Parse a raw header block into a ``HeaderSnapshot``.

    Args:
        text: Concatenated 80-character records, no line separators.

    Returns:
        The parsed snapshot. Duplicate keywords keep their last value.

    Raises:
        NumericParseFailure: If NAXIS1 or NAXIS2 is not an unsigned integer.
    """
    naxis: dict[str, int] = {}
    ctype: dict[str, str] = {}
    cards: dict[str, float] = {}
    strings: dict[str, str] = {}
    n_records = 0

    for record in _iter_records(text):
        n_records += 1
        key, sep, raw_value = record.partition(VALUE_INDICATOR)
        if not sep:
            continue

        key = key.strip()
        value = strip_inline_comment(raw_value)

        if key in _AXIS_KEYS:
            naxis[key] = _parse_unsigned(key, value)
        elif key in _CTYPE_KEYS:
            ctype[key] = unquote(value)
        else:
            number = parse_fits_float(value)
            if number is not None:
                cards[key] = number
            elif value.startswith("'"):
                strings[key] = unquote(value)

    logger.debug(
        "Parsed %s header records: %s numeric cards, %s string cards",
        n_records,
        len(cards),
        len(strings),
    )

    # A zero-length axis carries no pixel grid; treat it as absent.
    return HeaderSnapshot(
        naxis1=naxis.get("NAXIS1") or None,
        naxis2=naxis.get("NAXIS2") or None,
        ctype1=ctype.get("CTYPE1", ""),
        ctype2=ctype.get("CTYPE2", ""),
        cards=cards,
        strings=strings,
    )
