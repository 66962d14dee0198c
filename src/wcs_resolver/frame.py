"""Celestial reference frame resolution.

The frame is taken from the ``RADESYS``/``EQUINOX`` pair when both are
present and valid. Otherwise it is guessed from the first letter of the
axis-1 type code (``GLON`` -> galactic, ``ELON`` -> ecliptic, ...), with
equatorial as the fallback.

References:
    - Calabretta & Greisen 2002 (2002A&A...395.1077C): section 3.1, RADESYS
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from wcs_resolver.errors import UnrecognizedReferenceFrame
from wcs_resolver.header import HeaderSnapshot

logger = logging.getLogger(__name__)


class RadeSys(str, Enum):
    """Frame families a custom frame can declare through RADESYS."""

    ICRS = "ICRS"  # International Celestial Reference System
    FK5 = "FK5"  # mean place, new (IAU 1984) system
    FK4 = "FK4"  # mean place, old (Bessel-Newcomb) system
    FK4_NO_E = "FK4-NO-E"  # mean place, old system without e-terms
    GAPPT = "GAPPT"  # geocentric apparent place, IAU 1984 system


class FrameKind(str, Enum):
    EQUATORIAL = "equatorial"
    GALACTIC = "galactic"
    ECLIPTIC = "ecliptic"
    HELIOECLIPTIC = "helioecliptic"
    SUPERGALACTIC = "supergalactic"
    CUSTOM = "custom"


_CTYPE_PREFIX_FRAMES = {
    "G": FrameKind.GALACTIC,
    "E": FrameKind.ECLIPTIC,
    "H": FrameKind.HELIOECLIPTIC,
    "S": FrameKind.SUPERGALACTIC,
}


@dataclass(frozen=True)
class ReferenceFrame:
    """One of five fixed frames, or a custom frame with family and epoch.

    ``radesys`` and ``equinox`` are set if and only if ``kind`` is CUSTOM.
    """

    kind: FrameKind
    radesys: RadeSys | None = None
    equinox: float | None = None

    def __post_init__(self) -> None:
        is_custom = self.kind is FrameKind.CUSTOM
        has_params = self.radesys is not None and self.equinox is not None
        if is_custom != has_params:
            raise ValueError(
                "radesys and equinox must both be set for a custom frame and only then"
            )

    @classmethod
    def custom(cls, radesys: RadeSys, equinox: float) -> ReferenceFrame:
        return cls(FrameKind.CUSTOM, radesys=radesys, equinox=float(equinox))

    @property
    def is_custom(self) -> bool:
        return self.kind is FrameKind.CUSTOM

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {"kind": self.kind.value}
        if self.is_custom:
            out["radesys"] = self.radesys.value
            out["equinox"] = self.equinox
        return out


EQUATORIAL = ReferenceFrame(FrameKind.EQUATORIAL)
GALACTIC = ReferenceFrame(FrameKind.GALACTIC)
ECLIPTIC = ReferenceFrame(FrameKind.ECLIPTIC)
HELIOECLIPTIC = ReferenceFrame(FrameKind.HELIOECLIPTIC)
SUPERGALACTIC = ReferenceFrame(FrameKind.SUPERGALACTIC)


def parse_radesys(value: str) -> RadeSys:
    """Map a RADESYS string onto its frame family.

    Raises:
        UnrecognizedReferenceFrame: If the value is not in the fixed table.
    """
    try:
        return RadeSys(value.strip().upper())
    except ValueError as e:
        raise UnrecognizedReferenceFrame(value) from e


def frame_from_ctype(ctype1: str) -> ReferenceFrame:
    """Guess the frame from the first letter of the axis-1 type code."""
    kind = _CTYPE_PREFIX_FRAMES.get(ctype1[:1], FrameKind.EQUATORIAL)
    return ReferenceFrame(kind)


def resolve_reference_frame(header: HeaderSnapshot) -> ReferenceFrame:
    """Resolve the celestial reference frame declared by a header.

    A valid RADESYS together with EQUINOX always wins over the type-code
    heuristic. Either card alone, or an unrecognized RADESYS, is not an
    error: resolution falls through to the heuristic.

    Raises:
        MandatoryKeywordsMissing: If the heuristic is needed and CTYPE1 is absent.
    """
    equinox = header.get_float("EQUINOX")
    radesys_text = header.get_string("RADESYS")

    radesys: RadeSys | None = None
    if radesys_text is not None:
        try:
            radesys = parse_radesys(radesys_text)
        except UnrecognizedReferenceFrame as e:
            logger.debug("Ignoring RADESYS for frame selection: %s", e)

    if radesys is not None and equinox is not None:
        return ReferenceFrame.custom(radesys, equinox)

    if (radesys_text is None) != (equinox is None):
        logger.debug("Partial RADESYS/EQUINOX data; using the CTYPE1 heuristic")

    return frame_from_ctype(header.get_ctype(1))
