import logging
import math
from typing import Optional, Tuple

from config import settings

from .shapes import BoundingBox

logger = logging.getLogger(__name__)

MIN_PRECISION = 1
MAX_PRECISION = 12
BITS_PER_CHAR = 5


def cell_size(precision: int) -> Tuple[float, float]:
    """
    Width and height (degrees) of a geohash cell.

    Bits alternate starting with longitude, so longitude gets the extra bit
    when the total is odd.
    """
    _check_precision(precision)
    total_bits = precision * BITS_PER_CHAR
    lon_bits = (total_bits + 1) // 2
    lat_bits = total_bits // 2
    return 360.0 / (1 << lon_bits), 180.0 / (1 << lat_bits)


def _check_precision(precision: int) -> None:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise ValueError(f"Precision must be an integer, got {precision!r}")
    if not MIN_PRECISION <= precision <= MAX_PRECISION:
        raise ValueError(
            f"Precision must be between {MIN_PRECISION} and {MAX_PRECISION}, got {precision}"
        )


def diagonal_cells(bbox: BoundingBox, precision: int) -> float:
    """Length of the bbox diagonal measured in cells of ``precision``."""
    cell_width, cell_height = cell_size(precision)
    return math.hypot(bbox.width / cell_width, bbox.height / cell_height)


def select_precision(
    bbox: BoundingBox,
    precision: Optional[int] = None,
    max_precision: Optional[int] = None,
    max_diagonal_cells: Optional[float] = None,
) -> int:
    """
    Pick the geohash length for a coverage call.

    An explicit precision wins. Otherwise the finest precision up to
    ``max_precision`` whose cells keep the bbox diagonal within
    ``max_diagonal_cells``; a degenerate bbox gets ``max_precision``.
    """
    if precision is not None:
        _check_precision(precision)
        return precision

    if max_precision is None:
        max_precision = settings.geohash_auto_precision_max
    if max_diagonal_cells is None:
        max_diagonal_cells = settings.geohash_auto_max_diagonal_cells
    _check_precision(max_precision)

    if bbox.is_degenerate:
        return max_precision

    for candidate in range(max_precision, MIN_PRECISION - 1, -1):
        if diagonal_cells(bbox, candidate) <= max_diagonal_cells:
            logger.debug("Auto-selected precision %d for bbox %s", candidate, tuple(bbox))
            return candidate

    logger.debug("Bbox %s exceeds the cell budget at every precision; using %d", tuple(bbox), MIN_PRECISION)
    return MIN_PRECISION
