"""Full WCS resolution of one header.

Runs the independent resolvers (frame, projection, linear transform and,
for ``-SIP`` axis types, distortion) over a single snapshot and bundles the
results into a ``WcsDescription``.

Usage:
    from wcs_resolver.wcs import resolve_header_text

    desc = resolve_header_text(header_text)
    desc.frame.kind            # FrameKind.EQUATORIAL
    desc.projection.code       # "TAN"
    desc.distortion            # DistortionModel or None
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from wcs_resolver.distortion import DistortionModel, resolve_distortion
from wcs_resolver.frame import ReferenceFrame, resolve_reference_frame
from wcs_resolver.header import HeaderSnapshot, parse_header
from wcs_resolver.linear import LinearTransform, resolve_linear_transform
from wcs_resolver.projection import CenteredProjection, projection_code, resolve_projection

logger = logging.getLogger(__name__)

SIP_SUFFIX = "-SIP"


def axis_type(ctype: str) -> str:
    """The coordinate-type part of a CTYPE value (``RA---TAN`` -> ``RA``)."""
    return ctype[:4].rstrip("-").strip()


def has_sip(ctype: str) -> bool:
    return ctype.strip().upper().endswith(SIP_SUFFIX)


@dataclass(frozen=True)
class WcsDescription:
    frame: ReferenceFrame
    projection: CenteredProjection
    linear: LinearTransform
    distortion: DistortionModel | None
    lon_type: str
    lat_type: str

    def to_dict(self) -> dict[str, object]:
        return {
            "frame": self.frame.to_dict(),
            "axes": {"lon": self.lon_type, "lat": self.lat_type},
            "projection": self.projection.to_dict(),
            "linear": self.linear.to_dict(),
            "distortion": self.distortion.to_dict() if self.distortion is not None else None,
        }


def resolve_wcs(header: HeaderSnapshot) -> WcsDescription:
    """Resolve every component of the WCS described by ``header``.

    Raises:
        WcsResolverError: The first failure met by any resolver.
    """
    ctype1 = header.get_ctype(1)
    ctype2 = header.get_ctype(2)

    frame = resolve_reference_frame(header)
    projection = resolve_projection(header, projection_code(ctype1))
    linear = resolve_linear_transform(header)

    distortion = None
    if has_sip(ctype1):
        distortion = resolve_distortion(header, linear.crpix[0], linear.crpix[1])

    logger.debug(
        "Resolved WCS: frame=%s projection=%s sip=%s",
        frame.kind.value,
        projection.code,
        distortion is not None,
    )
    return WcsDescription(
        frame=frame,
        projection=projection,
        linear=linear,
        distortion=distortion,
        lon_type=axis_type(ctype1),
        lat_type=axis_type(ctype2),
    )


def resolve_header_text(text: str) -> WcsDescription:
    """Parse a raw header block and resolve its WCS."""
    return resolve_wcs(parse_header(text))


def angular_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Great-circle distance between two sky positions, all in radians."""
    cos_d = math.sin(lat1) * math.sin(lat2) + math.cos(lat1) * math.cos(lat2) * math.cos(
        abs(lon1 - lon2)
    )
    return float(np.arccos(np.clip(cos_d, -1.0, 1.0)))
