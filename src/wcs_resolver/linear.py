"""Linear pixel -> intermediate world coordinate transform.

Three header conventions describe the same 2x2 matrix, tried in this order:

1. ``CDi_j`` cards (any present): used directly, absent entries are 0.
2. ``PCi_j`` cards (any present): scaled row-wise by ``CDELTi``; absent PC
   entries default to the identity, absent CDELT to 1.
3. ``CDELTi`` with the legacy ``CROTA2`` rotation angle (degrees, default 0).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from wcs_resolver.header import HeaderSnapshot

logger = logging.getLogger(__name__)

_MATRIX_INDICES = ((1, 1), (1, 2), (2, 1), (2, 2))


@dataclass(frozen=True, eq=False)
class LinearTransform:
    """Reference pixel and CD matrix (degrees per pixel)."""

    crpix: tuple[float, float]
    cd: np.ndarray
    source: str = "CD"

    def __post_init__(self) -> None:
        cd = np.array(self.cd, dtype=np.float64)
        if cd.shape != (2, 2):
            raise ValueError(f"CD matrix must be 2x2, got shape {cd.shape}")
        cd.setflags(write=False)
        object.__setattr__(self, "cd", cd)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinearTransform):
            return NotImplemented
        return (
            self.crpix == other.crpix
            and self.source == other.source
            and np.array_equal(self.cd, other.cd)
        )

    def pixel_to_intermediate(self, x, y) -> tuple[np.ndarray, np.ndarray]:
        """Map 1-based pixel coordinates to intermediate coordinates (degrees)."""
        u = np.asarray(x, dtype=np.float64) - self.crpix[0]
        v = np.asarray(y, dtype=np.float64) - self.crpix[1]
        return self.cd[0, 0] * u + self.cd[0, 1] * v, self.cd[1, 0] * u + self.cd[1, 1] * v

    def to_dict(self) -> dict[str, object]:
        return {"crpix": list(self.crpix), "cd": self.cd.tolist(), "source": self.source}


def _matrix_from(header: HeaderSnapshot, prefix: str, default) -> np.ndarray | None:
    if not any(header.has(f"{prefix}{i}_{j}") for i, j in _MATRIX_INDICES):
        return None
    matrix = np.empty((2, 2), dtype=np.float64)
    for i, j in _MATRIX_INDICES:
        matrix[i - 1, j - 1] = header.get_float_or(f"{prefix}{i}_{j}", default(i, j))
    return matrix


def resolve_linear_transform(header: HeaderSnapshot) -> LinearTransform:
    """Resolve the reference pixel and CD matrix of a header."""
    crpix = (header.get_float_or("CRPIX1", 0.0), header.get_float_or("CRPIX2", 0.0))

    cd = _matrix_from(header, "CD", lambda i, j: 0.0)
    if cd is not None:
        return LinearTransform(crpix=crpix, cd=cd, source="CD")

    cdelt = np.array([header.get_float_or("CDELT1", 1.0), header.get_float_or("CDELT2", 1.0)])

    pc = _matrix_from(header, "PC", lambda i, j: 1.0 if i == j else 0.0)
    if pc is not None:
        return LinearTransform(crpix=crpix, cd=cdelt[:, None] * pc, source="PC")

    rho = math.radians(header.get_float_or("CROTA2", 0.0))
    # legacy CROTA2 convention: rotate, then scale each column by its CDELT
    cd = np.array(
        [
            [cdelt[0] * math.cos(rho), -cdelt[1] * math.sin(rho)],
            [cdelt[0] * math.sin(rho), cdelt[1] * math.cos(rho)],
        ]
    )
    logger.debug("No CD/PC matrix; built CD from CDELT and CROTA2=%s", math.degrees(rho))
    return LinearTransform(crpix=crpix, cd=cd, source="CDELT")
