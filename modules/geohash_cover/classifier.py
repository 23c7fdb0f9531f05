import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep

from .grid import GridCell, encode_geohash
from .shapes import Piece, PieceKind

logger = logging.getLogger(__name__)


class CellRelation(str, Enum):
    OUTSIDE = "outside"
    BOUNDARY = "boundary"
    INSIDE = "inside"


@dataclass(frozen=True)
class Classification:
    relation: CellRelation
    # Estimated covered fraction; only set when a threshold was evaluated.
    ratio: Optional[float] = None


_OUTSIDE = Classification(CellRelation.OUTSIDE)
_BOUNDARY = Classification(CellRelation.BOUNDARY)
_INSIDE = Classification(CellRelation.INSIDE)


def intersection_ratio(cell_polygon: Polygon, geometry: BaseGeometry) -> float:
    """Fraction of the cell area covered by ``geometry``."""
    cell_area = cell_polygon.area
    if cell_area <= 0:
        return 0.0
    return cell_polygon.intersection(geometry).area / cell_area


class CellClassifier:
    """
    Relates grid cells to one piece of a shape.

    Points are matched through the codec so a point on a shared cell edge
    lands in exactly one cell. Lines only ever touch cells (Boundary).
    Areas are Inside when they contain the cell, Boundary when the interiors
    overlap, and Outside when the cell only shares an edge or corner.
    """

    def __init__(self, piece: Piece, precision: int, min_intersect: float = 0.0):
        self.piece = piece
        self.precision = precision
        self.min_intersect = min_intersect
        self._prepared = prep(piece.geometry)
        self._point_hashes = frozenset()
        if piece.kind is PieceKind.POINTS:
            points = getattr(piece.geometry, "geoms", [piece.geometry])
            self._point_hashes = frozenset(
                encode_geohash(point.x, point.y, precision) for point in points
            )

    def classify(self, cell: GridCell) -> Classification:
        if self.piece.kind is PieceKind.POINTS:
            return _INSIDE if cell.geohash in self._point_hashes else _OUTSIDE

        cell_polygon = cell.to_polygon()
        if self.piece.kind is PieceKind.LINE:
            return _BOUNDARY if self._prepared.intersects(cell_polygon) else _OUTSIDE

        if self._prepared.contains(cell_polygon):
            return _INSIDE
        if not self._prepared.intersects(cell_polygon) or self._prepared.touches(cell_polygon):
            return _OUTSIDE
        if self.min_intersect <= 0:
            return _BOUNDARY

        ratio = intersection_ratio(cell_polygon, self.piece.geometry)
        if ratio < self.min_intersect:
            logger.debug("Cell %s below threshold (%.4f < %.4f)", cell.geohash, ratio, self.min_intersect)
            return Classification(CellRelation.OUTSIDE, ratio)
        return Classification(CellRelation.BOUNDARY, ratio)
