"""SIP polynomial distortion coefficients.

The SIP convention adds polynomial corrections to pixel offsets
``(u, v)`` measured from the reference pixel::

    u' = u + f(u, v),   f(u, v) = sum A_i_j * u**i * v**j   (i + j <= A_ORDER)
    v' = v + g(u, v),   g(u, v) = sum B_i_j * u**i * v**j   (i + j <= B_ORDER)

with optional inverse grids ``AP``/``BP`` of the same shape. Coefficient
cards that are absent inside the declared order count as zero.

References:
    - Shupe et al. 2005 (ADASS XIV, ASP Conf. Ser. 347, 491): the SIP convention
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from wcs_resolver.errors import MandatoryKeywordsMissing
from wcs_resolver.header import HeaderSnapshot

logger = logging.getLogger(__name__)

FORWARD_TAGS = ("A", "B")
INVERSE_TAGS = ("AP", "BP")


def triangular_pairs(order: int) -> list[tuple[int, int]]:
    """All ``(i, j)`` with ``i, j >= 0`` and ``i + j <= order``, i-major.

    There are ``(order + 1) * (order + 2) // 2`` of them.
    """
    return [(i, j) for i in range(order + 1) for j in range(order + 1) if i + j <= order]


@dataclass(frozen=True, eq=False)
class CoefficientGrid:
    """Triangular SIP coefficient grid.

    ``coeffs[i, j]`` multiplies ``u**i * v**j``; entries with ``i + j > order``
    are always zero. The array is read-only.
    """

    order: int
    coeffs: np.ndarray

    def __post_init__(self) -> None:
        arr = np.array(self.coeffs, dtype=np.float64)
        if arr.shape != (self.order + 1, self.order + 1):
            raise ValueError(
                f"coefficient array must have shape {(self.order + 1, self.order + 1)}, "
                f"got {arr.shape}"
            )
        i, j = np.indices(arr.shape)
        if np.any(arr[i + j > self.order] != 0.0):
            raise ValueError("coefficients above the declared order must be zero")
        arr.setflags(write=False)
        object.__setattr__(self, "coeffs", arr)

    @classmethod
    def from_pairs(cls, order: int, values: dict[tuple[int, int], float]) -> CoefficientGrid:
        arr = np.zeros((order + 1, order + 1), dtype=np.float64)
        for (i, j), value in values.items():
            arr[i, j] = value
        return cls(order=order, coeffs=arr)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoefficientGrid):
            return NotImplemented
        return self.order == other.order and np.array_equal(self.coeffs, other.coeffs)

    def __len__(self) -> int:
        return (self.order + 1) * (self.order + 2) // 2

    def coefficient(self, i: int, j: int) -> float:
        if i < 0 or j < 0 or i + j > self.order:
            return 0.0
        return float(self.coeffs[i, j])

    def items(self) -> list[tuple[tuple[int, int], float]]:
        return [((i, j), float(self.coeffs[i, j])) for i, j in triangular_pairs(self.order)]

    def evaluate(self, u, v) -> np.ndarray:
        """Evaluate the polynomial at pixel offsets ``(u, v)``."""
        return np.polynomial.polynomial.polyval2d(
            np.asarray(u, dtype=np.float64), np.asarray(v, dtype=np.float64), self.coeffs
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "order": self.order,
            "coeffs": {f"{i}_{j}": value for (i, j), value in self.items() if value != 0.0},
        }


@dataclass(frozen=True)
class DistortionModel:
    """Forward (and optionally inverse) SIP correction plus its pixel domain.

    ``u_range``/``v_range`` are the pixel offsets, relative to the reference
    pixel, over which the correction is defined.
    """

    a: CoefficientGrid
    b: CoefficientGrid
    ap: CoefficientGrid | None
    bp: CoefficientGrid | None
    u_range: tuple[float, float]
    v_range: tuple[float, float]

    def __post_init__(self) -> None:
        if (self.ap is None) != (self.bp is None):
            raise ValueError("inverse SIP grids must be both present or both absent")

    @property
    def has_inverse(self) -> bool:
        return self.ap is not None

    def contains(self, u, v) -> np.ndarray:
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        return (
            (u >= self.u_range[0])
            & (u <= self.u_range[1])
            & (v >= self.v_range[0])
            & (v <= self.v_range[1])
        )

    def apply_forward(self, u, v) -> tuple[np.ndarray, np.ndarray]:
        """Distorted pixel offsets -> corrected intermediate pixel offsets."""
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        return u + self.a.evaluate(u, v), v + self.b.evaluate(u, v)

    def apply_inverse(self, u, v) -> tuple[np.ndarray, np.ndarray]:
        """Corrected offsets -> distorted offsets, using the AP/BP grids."""
        if self.ap is None or self.bp is None:
            raise ValueError("this distortion model has no inverse (AP/BP) coefficients")
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        return u + self.ap.evaluate(u, v), v + self.bp.evaluate(u, v)

    def to_dict(self) -> dict[str, object]:
        return {
            "a": self.a.to_dict(),
            "b": self.b.to_dict(),
            "ap": self.ap.to_dict() if self.ap is not None else None,
            "bp": self.bp.to_dict() if self.bp is not None else None,
            "u_range": list(self.u_range),
            "v_range": list(self.v_range),
        }


def retrieve_sip_coeffs(header: HeaderSnapshot, tag: str) -> CoefficientGrid | None:
    """Read the ``<tag>_ORDER`` grid, or None when the order card is absent.

    Raises:
        NumericParseFailure: If ``<tag>_ORDER`` is not a non-negative integer.
    """
    order = header.get_int(f"{tag}_ORDER")
    if order is None:
        return None
    values = {
        (i, j): header.get_float_or(f"{tag}_{i}_{j}", 0.0) for i, j in triangular_pairs(order)
    }
    return CoefficientGrid.from_pairs(order, values)


def resolve_distortion(header: HeaderSnapshot, crpix1: float, crpix2: float) -> DistortionModel:
    """Resolve the SIP distortion model of a header.

    Args:
        header: Parsed header snapshot.
        crpix1: Reference pixel, axis 1.
        crpix2: Reference pixel, axis 2.

    Returns:
        DistortionModel. The inverse grids are dropped unless both AP and BP
        are declared.

    Raises:
        MandatoryKeywordsMissing: If A_ORDER, B_ORDER, NAXIS1 or NAXIS2 is absent.
        NumericParseFailure: If an order card is not a non-negative integer.
    """
    forward = {}
    for tag in FORWARD_TAGS:
        grid = retrieve_sip_coeffs(header, tag)
        if grid is None:
            raise MandatoryKeywordsMissing(f"{tag}_ORDER")
        forward[tag] = grid

    ap = retrieve_sip_coeffs(header, "AP")
    bp = retrieve_sip_coeffs(header, "BP")
    if (ap is None) != (bp is None):
        logger.debug("Only one of AP_ORDER/BP_ORDER is present; dropping the inverse model")
        ap = bp = None

    naxis1 = float(header.require_naxis(1))
    naxis2 = float(header.require_naxis(2))

    return DistortionModel(
        a=forward["A"],
        b=forward["B"],
        ap=ap,
        bp=bp,
        u_range=(-crpix1, naxis1 - crpix1),
        v_range=(-crpix2, naxis2 - crpix2),
    )
