"""Projection-specific keyword parsing.

Zenithal, cylindrical, pseudo-cylindrical and conic projections are
supported. Bonne, polyconic, quad-cube and HEALPix projections are not.

Each supported projection code maps to one constructor function in
``PROJECTION_PARSERS``. A constructor reads the numbered ``PV_m`` cards it
needs, applies the projection's defaults, converts degrees to radians once,
and returns a frozen parameter dataclass. ``resolve_projection`` adds the
shared preamble (``CRVAL1``/``CRVAL2`` as the projection centre) and wraps
the result in a ``CenteredProjection``.

Usage:
    from wcs_resolver.header import parse_header
    from wcs_resolver.projection import resolve_projection

    centered = resolve_projection(parse_header(text))
    centered.projection          # e.g. Tan()
    centered.center_lon          # radians

References:
    - Calabretta & Greisen 2002 (2002A&A...395.1077C): section 5 and table 13
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum
from typing import ClassVar

import numpy as np

from wcs_resolver.errors import InitProjection, UnsupportedProjection
from wcs_resolver.header import HeaderSnapshot

logger = logging.getLogger(__name__)

ZPN_MAX_DEGREE = 20
# Round-off allowed below zero where a ZPN polynomial touches the axis.
ZPN_TOLERANCE = 1e-12

UNSUPPORTED_FAMILIES: dict[str, str] = {
    "BON": "Bonne projections are not supported",
    "PCO": "polyconic projections are not supported",
    "TSC": "quad-cube projections are not supported",
    "CSC": "quad-cube projections are not supported",
    "QSC": "quad-cube projections are not supported",
    "HPX": "HEALPix projections are not supported",
    "XPH": "HEALPix projections are not supported",
}


class ProjectionFamily(str, Enum):
    ZENITHAL = "zenithal"
    CYLINDRICAL = "cylindrical"
    PSEUDO_CYLINDRICAL = "pseudo_cylindrical"
    CONIC = "conic"


def projection_code(ctype: str) -> str:
    """Extract the projection code from an axis type such as ``RA---TAN-SIP``."""
    return ctype[5:8].strip("-").strip().upper()


def pv_key(m: int) -> str:
    return f"PV_{m}"


@dataclass(frozen=True)
class CanonicalProjection:
    """Base for the projection parameter sets. Angles are in radians."""

    CODE: ClassVar[str] = ""
    NAME: ClassVar[str] = ""
    FAMILY: ClassVar[ProjectionFamily]

    def params(self) -> dict[str, object]:
        return asdict(self)


# Zenithal projections


@dataclass(frozen=True)
class Azp(CanonicalProjection):
    CODE: ClassVar[str] = "AZP"
    NAME: ClassVar[str] = "Zenithal perspective"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL

    mu: float = 0.0  # spherical radii
    gamma: float = 0.0


@dataclass(frozen=True)
class Szp(CanonicalProjection):
    CODE: ClassVar[str] = "SZP"
    NAME: ClassVar[str] = "Slant zenithal perspective"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL

    mu: float = 0.0  # spherical radii
    phi_c: float = 0.0
    theta_c: float = math.pi / 2


@dataclass(frozen=True)
class Tan(CanonicalProjection):
    CODE: ClassVar[str] = "TAN"
    NAME: ClassVar[str] = "Gnomonic"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL


@dataclass(frozen=True)
class Stg(CanonicalProjection):
    CODE: ClassVar[str] = "STG"
    NAME: ClassVar[str] = "Stereographic"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL


@dataclass(frozen=True)
class Sin(CanonicalProjection):
    CODE: ClassVar[str] = "SIN"
    NAME: ClassVar[str] = "Orthographic"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL


@dataclass(frozen=True)
class SinSlant(CanonicalProjection):
    """Slant orthographic projection.

    ``xi`` and ``eta`` are ``PV_1`` and ``PV_2`` with the header's sign.
    Projection libraries that parameterize the slant by the native pole
    direction use the opposite sign for ``xi``; pass them ``-xi``.
    """

    CODE: ClassVar[str] = "SIN"
    NAME: ClassVar[str] = "Slant orthographic"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL

    xi: float = 0.0  # dimensionless
    eta: float = 0.0  # dimensionless


@dataclass(frozen=True)
class Arc(CanonicalProjection):
    CODE: ClassVar[str] = "ARC"
    NAME: ClassVar[str] = "Zenithal equidistant"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL


@dataclass(frozen=True)
class Zpn(CanonicalProjection):
    """Zenithal polynomial; ``coeffs[m]`` multiplies the m-th power of colatitude."""

    CODE: ClassVar[str] = "ZPN"
    NAME: ClassVar[str] = "Zenithal polynomial"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL

    coeffs: tuple[float, ...] = ()

    @property
    def degree(self) -> int:
        return len(self.coeffs) - 1

    def radius(self, colatitude: np.ndarray | float) -> np.ndarray:
        """Evaluate the polynomial at native colatitude(s) in radians."""
        return np.polynomial.polynomial.polyval(colatitude, np.asarray(self.coeffs))


@dataclass(frozen=True)
class Zea(CanonicalProjection):
    CODE: ClassVar[str] = "ZEA"
    NAME: ClassVar[str] = "Zenithal equal-area"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL


@dataclass(frozen=True)
class Air(CanonicalProjection):
    CODE: ClassVar[str] = "AIR"
    NAME: ClassVar[str] = "Airy"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL

    theta_b: float = math.pi / 2


@dataclass(frozen=True)
class Ncp(CanonicalProjection):
    CODE: ClassVar[str] = "NCP"
    NAME: ClassVar[str] = "North celestial pole"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.ZENITHAL


# Cylindrical projections


@dataclass(frozen=True)
class Cyp(CanonicalProjection):
    CODE: ClassVar[str] = "CYP"
    NAME: ClassVar[str] = "Cylindrical perspective"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.CYLINDRICAL

    mu: float = 1.0  # spherical radii
    lambda_: float = 1.0  # spherical radii


@dataclass(frozen=True)
class Cea(CanonicalProjection):
    CODE: ClassVar[str] = "CEA"
    NAME: ClassVar[str] = "Cylindrical equal area"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.CYLINDRICAL

    lambda_: float = 1.0


@dataclass(frozen=True)
class Car(CanonicalProjection):
    CODE: ClassVar[str] = "CAR"
    NAME: ClassVar[str] = "Plate carree"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.CYLINDRICAL


@dataclass(frozen=True)
class Mer(CanonicalProjection):
    CODE: ClassVar[str] = "MER"
    NAME: ClassVar[str] = "Mercator"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.CYLINDRICAL


# Pseudo-cylindrical projections


@dataclass(frozen=True)
class Sfl(CanonicalProjection):
    CODE: ClassVar[str] = "SFL"
    NAME: ClassVar[str] = "Sanson-Flamsteed"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.PSEUDO_CYLINDRICAL


@dataclass(frozen=True)
class Par(CanonicalProjection):
    CODE: ClassVar[str] = "PAR"
    NAME: ClassVar[str] = "Parabolic"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.PSEUDO_CYLINDRICAL


@dataclass(frozen=True)
class Mol(CanonicalProjection):
    CODE: ClassVar[str] = "MOL"
    NAME: ClassVar[str] = "Mollweide"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.PSEUDO_CYLINDRICAL


@dataclass(frozen=True)
class Ait(CanonicalProjection):
    CODE: ClassVar[str] = "AIT"
    NAME: ClassVar[str] = "Hammer-Aitoff"
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.PSEUDO_CYLINDRICAL


# Conic projections


@dataclass(frozen=True)
class _Conic(CanonicalProjection):
    FAMILY: ClassVar[ProjectionFamily] = ProjectionFamily.CONIC

    theta_a: float
    eta: float = 0.0


@dataclass(frozen=True)
class Cop(_Conic):
    CODE: ClassVar[str] = "COP"
    NAME: ClassVar[str] = "Conic perspective"


@dataclass(frozen=True)
class Coe(_Conic):
    CODE: ClassVar[str] = "COE"
    NAME: ClassVar[str] = "Conic equal area"


@dataclass(frozen=True)
class Cod(_Conic):
    CODE: ClassVar[str] = "COD"
    NAME: ClassVar[str] = "Conic equidistant"


@dataclass(frozen=True)
class Coo(_Conic):
    CODE: ClassVar[str] = "COO"
    NAME: ClassVar[str] = "Conic orthomorphic"


@dataclass(frozen=True)
class CenteredProjection:
    """A projection together with the sky position (radians) of its centre."""

    projection: CanonicalProjection
    center_lon: float = 0.0
    center_lat: float = 0.0

    @property
    def code(self) -> str:
        return self.projection.CODE

    @property
    def family(self) -> ProjectionFamily:
        return self.projection.FAMILY

    def to_dict(self) -> dict[str, object]:
        params = {
            name: list(value) if isinstance(value, tuple) else value
            for name, value in self.projection.params().items()
        }
        return {
            "code": self.code,
            "name": self.projection.NAME,
            "family": self.family.value,
            "center_lon_deg": math.degrees(self.center_lon),
            "center_lat_deg": math.degrees(self.center_lat),
            "params": params,
        }


# Constructors


def _parse_azp(header: HeaderSnapshot) -> Azp:
    mu = header.get_float_or("PV_1", 0.0)
    gamma = header.get_float_or("PV_2", 0.0)
    return Azp(mu=mu, gamma=math.radians(gamma))


def _parse_szp(header: HeaderSnapshot) -> Szp:
    mu = header.get_float_or("PV_1", 0.0)
    phi_c = header.get_float_or("PV_2", 0.0)
    theta_c = header.get_float_or("PV_3", 90.0)
    return Szp(mu=mu, phi_c=math.radians(phi_c), theta_c=math.radians(theta_c))


def _parse_sin(header: HeaderSnapshot) -> Sin | SinSlant:
    xi = header.get_float_or("PV_1", 0.0)
    eta = header.get_float_or("PV_2", 0.0)
    if xi == 0.0 and eta == 0.0:
        return Sin()
    return SinSlant(xi=xi, eta=eta)


def zpn_coefficients(header: HeaderSnapshot) -> tuple[float, ...]:
    """Collect the ZPN polynomial coefficients from ``PV_0``..``PV_20``.

    The unbroken run of absent cards at the high-order end is not part of the
    polynomial; absent cards below the highest present one count as 0.0.
    """
    values = [header.get_float(pv_key(m)) for m in range(ZPN_MAX_DEGREE + 1)]
    while values and values[-1] is None:
        values.pop()
    return tuple(0.0 if v is None else v for v in values)


def zpn_test_points(coeffs: tuple[float, ...]) -> np.ndarray:
    """Colatitudes in [0, pi] where a ZPN polynomial can reach its minimum.

    These are the endpoints, the real parts of the roots of the polynomial and
    of its derivative that fall inside the interval, and the midpoints between
    consecutive points. Between two consecutive points the polynomial is
    monotonic, so its minimum over [0, pi] is attained at one of them.
    """
    c = np.asarray(coeffs, dtype=float)
    roots = np.concatenate(
        [
            np.polynomial.polynomial.polyroots(c),
            np.polynomial.polynomial.polyroots(np.polynomial.polynomial.polyder(c)),
        ]
    ).real
    inside = roots[(roots > 0.0) & (roots < np.pi)]
    points = np.unique(np.concatenate([[0.0, np.pi], inside]))
    midpoints = 0.5 * (points[:-1] + points[1:])
    return np.concatenate([points, midpoints])


def _zpn_is_valid(zpn: Zpn) -> bool:
    values = zpn.radius(zpn_test_points(zpn.coeffs))
    return bool(np.all(values >= -ZPN_TOLERANCE))


def _parse_zpn(header: HeaderSnapshot) -> Zpn:
    coeffs = zpn_coefficients(header)
    if not coeffs:
        raise InitProjection(Zpn.NAME, "no PV_m polynomial coefficient is defined")
    zpn = Zpn(coeffs=coeffs)
    if not _zpn_is_valid(zpn):
        raise InitProjection(Zpn.NAME, "negative polynomial in [0, pi]")
    return zpn


def _parse_air(header: HeaderSnapshot) -> Air:
    theta_b = header.get_float_or("PV_1", 90.0)
    return Air(theta_b=math.radians(theta_b))


def _parse_cyp(header: HeaderSnapshot) -> Cyp:
    mu = header.get_float_or("PV_1", 1.0)
    lambda_ = header.get_float_or("PV_2", 1.0)
    return Cyp(mu=mu, lambda_=lambda_)


def _parse_cea(header: HeaderSnapshot) -> Cea:
    return Cea(lambda_=header.get_float_or("PV_1", 1.0))


def _conic_parser(cls: type[_Conic]) -> Callable[[HeaderSnapshot], _Conic]:
    def parse(header: HeaderSnapshot) -> _Conic:
        theta_a = header.get_float("PV_1")
        if theta_a is None:
            raise InitProjection(
                cls.NAME, "PV_1 = theta_a must be defined as it has no default value"
            )
        eta = header.get_float_or("PV_2", 0.0)
        return cls(theta_a=math.radians(theta_a), eta=math.radians(eta))

    parse.__name__ = f"_parse_{cls.CODE.lower()}"
    return parse


def _no_params(cls: type[CanonicalProjection]) -> Callable[[HeaderSnapshot], CanonicalProjection]:
    def parse(_header: HeaderSnapshot) -> CanonicalProjection:
        return cls()

    parse.__name__ = f"_parse_{cls.CODE.lower()}"
    return parse


PROJECTION_PARSERS: dict[str, Callable[[HeaderSnapshot], CanonicalProjection]] = {
    # zenithal
    "AZP": _parse_azp,
    "SZP": _parse_szp,
    "TAN": _no_params(Tan),
    "STG": _no_params(Stg),
    "SIN": _parse_sin,
    "ARC": _no_params(Arc),
    "ZPN": _parse_zpn,
    "ZEA": _no_params(Zea),
    "AIR": _parse_air,
    "NCP": _no_params(Ncp),
    # cylindrical
    "CYP": _parse_cyp,
    "CEA": _parse_cea,
    "CAR": _no_params(Car),
    "MER": _no_params(Mer),
    # pseudo-cylindrical
    "SFL": _no_params(Sfl),
    "PAR": _no_params(Par),
    "MOL": _no_params(Mol),
    "AIT": _no_params(Ait),
    # conic
    "COP": _conic_parser(Cop),
    "COE": _conic_parser(Coe),
    "COD": _conic_parser(Cod),
    "COO": _conic_parser(Coo),
}

SUPPORTED_PROJECTIONS: tuple[str, ...] = tuple(PROJECTION_PARSERS)


def parse_projection_params(header: HeaderSnapshot, code: str) -> CanonicalProjection:
    """Build the parameter set for ``code`` without the projection centre.

    Raises:
        UnsupportedProjection: If ``code`` has no constructor.
        InitProjection: If the projection's parameter constraints are violated.
    """
    key = code.strip().upper()
    parser = PROJECTION_PARSERS.get(key)
    if parser is None:
        raise UnsupportedProjection(key, UNSUPPORTED_FAMILIES.get(key))
    return parser(header)


def resolve_projection(
    header: HeaderSnapshot,
    code: str | None = None,
) -> CenteredProjection:
    """Resolve the projection declared by a header.

    Args:
        header: Parsed header snapshot.
        code: Projection code; derived from CTYPE1 when omitted.

    Returns:
        The projection parameters centred on (CRVAL1, CRVAL2), in radians.

    Raises:
        MandatoryKeywordsMissing: If ``code`` is omitted and CTYPE1 is absent.
        UnsupportedProjection: If the code is not supported.
        InitProjection: If a mandatory parameter is missing or invalid.
    """
    if code is None:
        code = projection_code(header.get_ctype(1))

    crval1 = header.get_float_or("CRVAL1", 0.0)
    crval2 = header.get_float_or("CRVAL2", 0.0)

    projection = parse_projection_params(header, code)
    logger.debug("Resolved %s projection: %s", projection.CODE, projection)

    return CenteredProjection(
        projection=projection,
        center_lon=math.radians(crval1),
        center_lat=math.radians(crval2),
    )
