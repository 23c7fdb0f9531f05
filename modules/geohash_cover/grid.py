import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

import pygeohash as pgh
from shapely.geometry import Polygon, box

from .precision import cell_size
from .shapes import BoundingBox

logger = logging.getLogger(__name__)


def encode_geohash(lon: float, lat: float, precision: int) -> str:
    # pygeohash takes (lat, lon)
    return pgh.encode(lat, lon, precision=precision)


def decode_geohash_bbox(geohash: str) -> BoundingBox:
    lat, lon, lat_err, lon_err = pgh.decode_exactly(geohash)
    return BoundingBox(lon - lon_err, lat - lat_err, lon + lon_err, lat + lat_err)


@dataclass(frozen=True)
class GridCell:
    """A geohash cell; identity is the geohash string."""
    geohash: str
    bbox: BoundingBox = field(compare=False)
    row: int = field(compare=False, default=0)
    column: int = field(compare=False, default=0)

    def to_polygon(self) -> Polygon:
        return box(*self.bbox)


def _centre(bbox: BoundingBox) -> Tuple[float, float]:
    return (bbox.min_lon + bbox.max_lon) / 2, (bbox.min_lat + bbox.max_lat) / 2


class GeohashGrid:
    """
    Geohash cells covering a bounding box at a fixed precision.

    Enumeration starts at the cell holding (min_lon, min_lat) and ends at the
    cell holding (max_lon, max_lat), so the bbox is never under-covered.
    Rows run south to north, cells within a row west to east.
    """

    def __init__(self, bbox: BoundingBox, precision: int):
        self.bbox = bbox
        self.precision = precision
        self.cell_width, self.cell_height = cell_size(precision)

        start = decode_geohash_bbox(encode_geohash(bbox.min_lon, bbox.min_lat, precision))
        end = decode_geohash_bbox(encode_geohash(bbox.max_lon, bbox.max_lat, precision))
        self._start_lon, self._start_lat = _centre(start)
        end_lon, end_lat = _centre(end)

        self.n_columns = int(round((end_lon - self._start_lon) / self.cell_width)) + 1
        self.n_rows = int(round((end_lat - self._start_lat) / self.cell_height)) + 1
        logger.debug(
            "Grid at precision %d: %d rows x %d columns for bbox %s",
            precision, self.n_rows, self.n_columns, tuple(bbox),
        )

    @property
    def shape(self) -> Tuple[int, int]:
        return self.n_rows, self.n_columns

    def __len__(self) -> int:
        return self.n_rows * self.n_columns

    def rows(self) -> Iterator[Iterator[GridCell]]:
        """Lazy rows; every call starts a fresh enumeration."""
        for row in range(self.n_rows):
            yield self._row(row)

    def _row(self, row: int) -> Iterator[GridCell]:
        lat = self._start_lat + row * self.cell_height
        for column in range(self.n_columns):
            lon = self._start_lon + column * self.cell_width
            geohash = encode_geohash(lon, lat, self.precision)
            yield GridCell(geohash, decode_geohash_bbox(geohash), row, column)

    def cells(self) -> List[GridCell]:
        return [cell for row in self.rows() for cell in row]
