"""Resolve FITS WCS header cards into frame, projection and SIP distortion.

Components:
- header: 80-column card parsing into an immutable HeaderSnapshot.
- frame: RADESYS/EQUINOX or CTYPE-prefix reference frame selection.
- projection: one constructor per projection code (zenithal, cylindrical,
  pseudo-cylindrical, conic).
- distortion: SIP coefficient grids and their pixel domain.
- linear: reference pixel and CD matrix.
- wcs: the facade running all of the above.

Example:
    from wcs_resolver import resolve_header_text

    desc = resolve_header_text(text)
    print(desc.frame.kind, desc.projection.code)
"""

from __future__ import annotations

__version__ = "0.3.0"

from wcs_resolver.config import ResolverConfig, load_config
from wcs_resolver.distortion import CoefficientGrid, DistortionModel, resolve_distortion
from wcs_resolver.errors import (
    ErrorEnvelope,
    ErrorType,
    InitProjection,
    MandatoryKeywordsMissing,
    NumericParseFailure,
    UnrecognizedReferenceFrame,
    UnsupportedProjection,
    WcsResolverError,
)
from wcs_resolver.frame import FrameKind, RadeSys, ReferenceFrame, resolve_reference_frame
from wcs_resolver.header import HeaderSnapshot, parse_header
from wcs_resolver.linear import LinearTransform, resolve_linear_transform
from wcs_resolver.projection import (
    SUPPORTED_PROJECTIONS,
    CanonicalProjection,
    CenteredProjection,
    ProjectionFamily,
    resolve_projection,
)
from wcs_resolver.wcs import WcsDescription, angular_distance, resolve_header_text, resolve_wcs

__all__ = [
    "__version__",
    # header
    "HeaderSnapshot",
    "parse_header",
    # frame
    "FrameKind",
    "RadeSys",
    "ReferenceFrame",
    "resolve_reference_frame",
    # projection
    "SUPPORTED_PROJECTIONS",
    "CanonicalProjection",
    "CenteredProjection",
    "ProjectionFamily",
    "resolve_projection",
    # distortion
    "CoefficientGrid",
    "DistortionModel",
    "resolve_distortion",
    # linear
    "LinearTransform",
    "resolve_linear_transform",
    # facade
    "WcsDescription",
    "angular_distance",
    "resolve_header_text",
    "resolve_wcs",
    # config
    "ResolverConfig",
    "load_config",
    # errors
    "ErrorEnvelope",
    "ErrorType",
    "InitProjection",
    "MandatoryKeywordsMissing",
    "NumericParseFailure",
    "UnrecognizedReferenceFrame",
    "UnsupportedProjection",
    "WcsResolverError",
]
