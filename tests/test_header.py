"""Tests for wcs_resolver.header card parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wcs_resolver.errors import MandatoryKeywordsMissing, NumericParseFailure
from wcs_resolver.header import (
    CARD_LENGTH,
    HeaderSnapshot,
    parse_fits_float,
    parse_header,
    strip_inline_comment,
)
from tests.fixtures.headers import make_card, make_header_text


class TestStripInlineComment:
    def test_removes_comment(self) -> None:
        assert strip_inline_comment(" 150.0 / reference RA") == "150.0"

    def test_keeps_slash_inside_quotes(self) -> None:
        assert strip_inline_comment(" 'a/b' / object name") == "'a/b'"

    def test_no_comment(self) -> None:
        assert strip_inline_comment("  42  ") == "42"


class TestParseFitsFloat:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("150.0", 150.0),
            ("-2.5E-04", -2.5e-4),
            ("1.0D+01", 10.0),
            ("2000", 2000.0),
            (".5", 0.5),
            ("+3.", 3.0),
        ],
    )
    def test_numeric_literals(self, text: str, expected: float) -> None:
        assert parse_fits_float(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["'ICRS'", "T", "", "nan", "inf", "1.0.0"])
    def test_non_numeric_literals(self, text: str) -> None:
        assert parse_fits_float(text) is None


class TestParseHeader:
    def test_axes_and_types(self, header_text) -> None:
        snap = parse_header(header_text())
        assert snap.naxis1 == 2048
        assert snap.naxis2 == 1024
        assert snap.ctype1 == "RA---TAN"
        assert snap.ctype2 == "DEC--TAN"

    def test_numeric_cards_collected(self, header_text) -> None:
        snap = parse_header(header_text())
        assert snap.get_float("CRVAL1") == 150.0
        assert snap.get_float("CD1_1") == pytest.approx(-2.5e-4)
        # NAXIS1/2 and CTYPE1/2 live in their own fields
        assert "NAXIS1" not in snap.cards
        assert "CTYPE1" not in snap.cards

    def test_string_cards_skipped_from_numeric_map(self, header_text) -> None:
        snap = parse_header(header_text(RADESYS="ICRS", OBJECT="M 31"))
        assert snap.get_float("RADESYS") is None
        assert snap.get_float("OBJECT") is None
        assert snap.get_string("RADESYS") == "ICRS"

    def test_logical_card_ignored(self, header_text) -> None:
        snap = parse_header(header_text())
        assert snap.get_float("SIMPLE") is None
        assert snap.get_string("SIMPLE") is None

    def test_records_without_value_indicator_skipped(self) -> None:
        text = (
            "COMMENT   this card has no value indicator".ljust(CARD_LENGTH)
            + " " * CARD_LENGTH
            + make_card("CRVAL1", 10.0)
            + "END".ljust(CARD_LENGTH)
        )
        snap = parse_header(text)
        assert snap.cards == {"CRVAL1": 10.0}

    def test_trailing_partial_record_ignored(self) -> None:
        text = make_card("CRVAL1", 10.0) + make_card("CRVAL2", 20.0)[:40]
        snap = parse_header(text)
        assert snap.get_float("CRVAL1") == 10.0
        assert snap.get_float("CRVAL2") is None

    def test_inline_comment_removed(self) -> None:
        snap = parse_header(make_card("EQUINOX", 2000.0, comment="epoch of the mean equator"))
        assert snap.get_float("EQUINOX") == 2000.0

    def test_duplicate_keyword_last_wins(self) -> None:
        text = make_header_text([("CRVAL1", 1.0), ("CRVAL1", 2.0)])
        assert parse_header(text).get_float("CRVAL1") == 2.0

    def test_ctype_quotes_stripped(self) -> None:
        snap = parse_header(make_header_text({"CTYPE1": "GLON-CAR", "CTYPE2": "GLAT-CAR"}))
        assert snap.ctype1 == "GLON-CAR"
        assert snap.get_ctype(2) == "GLAT-CAR"

    def test_malformed_naxis_is_fatal(self) -> None:
        text = make_header_text({"NAXIS1": "wide"})
        with pytest.raises(NumericParseFailure) as exc_info:
            parse_header(text)
        assert exc_info.value.keyword == "NAXIS1"

    def test_negative_naxis_is_fatal(self) -> None:
        with pytest.raises(NumericParseFailure):
            parse_header(make_header_text({"NAXIS2": -5}))

    def test_zero_naxis_is_absent(self) -> None:
        snap = parse_header(make_header_text({"NAXIS1": 0, "NAXIS2": 10}))
        assert snap.get_naxis(1) is None
        assert snap.get_naxis(2) == 10

    def test_parse_is_idempotent(self, header_text) -> None:
        text = header_text(RADESYS="FK5", EQUINOX=2000.0, A_ORDER=2)
        assert parse_header(text) == parse_header(text)
        assert HeaderSnapshot.from_text(text) == parse_header(text)

    def test_empty_text(self) -> None:
        snap = parse_header("")
        assert snap.naxis1 is None
        assert snap.cards == {}


class TestSnapshotAccessors:
    def test_lookup_normalizes_padding_and_case(self, header_text) -> None:
        snap = parse_header(header_text())
        assert snap.get_float("CRVAL1  ") == 150.0
        assert snap.get_float("crval1") == 150.0
        assert snap.has("CRPIX2")
        assert not snap.has("CRPIX3")

    def test_get_float_or_default(self, header_text) -> None:
        snap = parse_header(header_text())
        assert snap.get_float_or("PV_1", 0.5) == 0.5
        assert snap.get_float_or("CRVAL2", 0.5) == 2.5

    def test_get_int(self, header_text) -> None:
        snap = parse_header(header_text(A_ORDER=3, B_ORDER=2.5, C_ORDER=-1))
        assert snap.get_int("A_ORDER") == 3
        assert snap.get_int("D_ORDER") is None
        with pytest.raises(NumericParseFailure):
            snap.get_int("B_ORDER")
        with pytest.raises(NumericParseFailure):
            snap.get_int("C_ORDER")

    def test_missing_ctype_raises(self) -> None:
        snap = parse_header(make_header_text({"NAXIS1": 10}))
        with pytest.raises(MandatoryKeywordsMissing) as exc_info:
            snap.get_ctype(1)
        assert exc_info.value.keyword == "CTYPE"

    def test_require_naxis(self) -> None:
        snap = parse_header(make_header_text({"NAXIS1": 10}))
        assert snap.require_naxis(1) == 10
        with pytest.raises(MandatoryKeywordsMissing, match="NAXIS2"):
            snap.require_naxis(2)

    def test_snapshot_is_frozen(self, header_text) -> None:
        snap = parse_header(header_text())
        with pytest.raises(ValidationError):
            snap.naxis1 = 5  # type: ignore[misc]

    def test_card_maps_are_read_only(self, header_text) -> None:
        snap = parse_header(header_text(RADESYS="ICRS"))
        with pytest.raises(TypeError):
            snap.cards["CRVAL1"] = 99.0  # type: ignore[index]
        with pytest.raises(TypeError):
            snap.strings["RADESYS"] = "FK5"  # type: ignore[index]
        assert snap.get_float("CRVAL1") == 150.0
        assert snap.get_string("RADESYS") == "ICRS"

    def test_constructor_copies_input_maps(self) -> None:
        cards = {"CRVAL1": 1.0}
        snap = HeaderSnapshot(cards=cards)
        cards["CRVAL1"] = 99.0
        assert snap.get_float("CRVAL1") == 1.0

    def test_stored_keys_keep_spelling(self) -> None:
        snap = HeaderSnapshot(cards={"crval1 ": 1.0})
        assert list(snap.cards) == ["crval1 "]
        assert snap.get_float("CRVAL1") == 1.0

    def test_model_dump_gives_plain_dicts(self, header_text) -> None:
        dumped = parse_header(header_text(RADESYS="ICRS")).model_dump()
        assert dumped["cards"]["CRVAL1"] == 150.0
        assert dumped["strings"] == {"RADESYS": "ICRS"}
        assert type(dumped["cards"]) is dict
