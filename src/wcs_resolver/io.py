"""Loading header blocks from disk.

The resolvers work on raw 80-column header text. This module produces that
text from either a FITS file (any HDU, read with astropy) or a plain-text
header dump with one card per line.
"""

from __future__ import annotations

import logging
from pathlib import Path

from astropy.io import fits
from astropy.wcs import WCS

from wcs_resolver.header import CARD_LENGTH

logger = logging.getLogger(__name__)

_FITS_SIGNATURE = b"SIMPLE  ="


def is_fits_file(path: Path) -> bool:
    with path.open("rb") as f:
        return f.read(len(_FITS_SIGNATURE)) == _FITS_SIGNATURE


def _pad_to_records(line: str) -> str:
    n_records = max(1, -(-len(line) // CARD_LENGTH))
    return line.ljust(n_records * CARD_LENGTH)


def cards_from_lines(text: str) -> str:
    """Join a line-oriented header dump into fixed-width records.

    Trailing line breaks are dropped first; text with no other line break is
    assumed to be records already and is returned unchanged. Otherwise each
    line is padded with blanks up to a whole number of records, so short card
    lines become one record and lines that already hold whole records pass
    through. Nothing is truncated.
    """
    text = text.rstrip("\r\n")
    if "\n" not in text:
        return text
    return "".join(_pad_to_records(line) for line in text.splitlines())


def read_header_text(path: str | Path, hdu: int = 0) -> str:
    """Return the header of ``path`` as 80-column records.

    Args:
        path: FITS file, or a text file holding header cards.
        hdu: HDU index to read when ``path`` is a FITS file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        IndexError: If the FITS file has no HDU ``hdu``.
    """
    path = Path(path)
    if is_fits_file(path):
        with fits.open(path) as hdul:
            header = hdul[hdu].header
            logger.debug("Read %s cards from %s[%s]", len(header), path, hdu)
            return header.tostring()
    return cards_from_lines(path.read_text(encoding="ascii", errors="replace"))


def to_astropy_wcs(text: str) -> WCS:
    """Build an astropy WCS from the same header text, for cross-checks."""
    return WCS(fits.Header.fromstring(text))
