"""Tests for the wcs_resolver.wcs facade."""

from __future__ import annotations

import json
import math

import numpy as np
import pytest

from wcs_resolver.errors import InitProjection, MandatoryKeywordsMissing, UnsupportedProjection
from wcs_resolver.frame import FrameKind, RadeSys
from wcs_resolver.header import parse_header
from wcs_resolver.wcs import (
    WcsDescription,
    angular_distance,
    axis_type,
    has_sip,
    resolve_header_text,
    resolve_wcs,
)


class TestResolveWcs:
    def test_plain_tan(self, header_text) -> None:
        desc = resolve_header_text(header_text())
        assert isinstance(desc, WcsDescription)
        assert desc.frame.kind is FrameKind.EQUATORIAL
        assert desc.projection.code == "TAN"
        assert desc.projection.center_lon == pytest.approx(math.radians(150.0))
        assert desc.linear.crpix == (1024.5, 512.5)
        assert desc.distortion is None
        assert (desc.lon_type, desc.lat_type) == ("RA", "DEC")

    def test_sip_suffix_triggers_distortion(self, header_text) -> None:
        desc = resolve_header_text(
            header_text(
                CTYPE1="RA---TAN-SIP",
                CTYPE2="DEC--TAN-SIP",
                A_ORDER=2,
                A_2_0=1e-6,
                B_ORDER=2,
                B_0_2=2e-6,
            )
        )
        assert desc.projection.code == "TAN"
        assert desc.distortion is not None
        assert desc.distortion.u_range == (-1024.5, 1023.5)
        assert desc.distortion.a.coefficient(2, 0) == 1e-6

    def test_sip_suffix_without_coefficients_fails(self, header_text) -> None:
        with pytest.raises(MandatoryKeywordsMissing, match="A_ORDER"):
            resolve_header_text(header_text(CTYPE1="RA---TAN-SIP", CTYPE2="DEC--TAN-SIP"))

    def test_custom_frame_galactic_axes(self, header_text) -> None:
        desc = resolve_header_text(
            header_text(CTYPE1="GLON-CAR", CTYPE2="GLAT-CAR", RADESYS="FK5", EQUINOX=2000.0)
        )
        assert desc.frame.radesys is RadeSys.FK5
        assert desc.projection.code == "CAR"
        assert desc.lon_type == "GLON"

    def test_missing_ctype2(self, header_text) -> None:
        with pytest.raises(MandatoryKeywordsMissing):
            resolve_header_text(header_text(CTYPE2=None))

    def test_first_failure_propagates(self, header_text) -> None:
        with pytest.raises(InitProjection):
            resolve_header_text(header_text(CTYPE1="RA---COD", CTYPE2="DEC--COD"))
        with pytest.raises(UnsupportedProjection):
            resolve_header_text(header_text(CTYPE1="RA---TSC", CTYPE2="DEC--TSC"))

    def test_narrow_zpn_dip_rejected(self, header_text) -> None:
        # (theta - 1)^2 - 1e-8 dips below zero only on (0.9999, 1.0001)
        text = header_text(
            CTYPE1="RA---ZPN", CTYPE2="DEC--ZPN", PV_0=1.0 - 1e-8, PV_1=-2.0, PV_2=1.0
        )
        with pytest.raises(InitProjection):
            resolve_wcs(parse_header(text))

    def test_to_dict_is_json_ready(self, header_text) -> None:
        desc = resolve_header_text(header_text(RADESYS="ICRS", EQUINOX=2000.0))
        payload = json.loads(json.dumps(desc.to_dict()))
        assert payload["frame"] == {"kind": "custom", "radesys": "ICRS", "equinox": 2000.0}
        assert payload["projection"]["code"] == "TAN"
        assert payload["axes"] == {"lon": "RA", "lat": "DEC"}
        assert payload["distortion"] is None


class TestHelpers:
    @pytest.mark.parametrize(
        ("ctype", "expected"),
        [("RA---TAN", "RA"), ("DEC--TAN", "DEC"), ("GLON-CAR", "GLON"), ("ELAT-ZPN", "ELAT")],
    )
    def test_axis_type(self, ctype: str, expected: str) -> None:
        assert axis_type(ctype) == expected

    def test_has_sip(self) -> None:
        assert has_sip("RA---TAN-SIP")
        assert has_sip("ra---tan-sip ")
        assert not has_sip("RA---TAN")


class TestAngularDistance:
    def test_same_point(self) -> None:
        assert angular_distance(1.0, 0.5, 1.0, 0.5) == pytest.approx(0.0, abs=1e-7)

    def test_quarter_circle(self) -> None:
        assert angular_distance(0.0, 0.0, math.pi / 2, 0.0) == pytest.approx(math.pi / 2)

    def test_pole_to_equator(self) -> None:
        assert angular_distance(0.3, math.pi / 2, 2.0, 0.0) == pytest.approx(math.pi / 2)

    def test_antipodes(self) -> None:
        assert angular_distance(0.0, 0.0, math.pi, 0.0) == pytest.approx(math.pi)

    def test_symmetric(self) -> None:
        rng = np.random.default_rng(7)
        for lon1, lat1, lon2, lat2 in rng.uniform(-1.5, 1.5, size=(10, 4)):
            assert angular_distance(lon1, lat1, lon2, lat2) == pytest.approx(
                angular_distance(lon2, lat2, lon1, lat1)
            )
