"""
Normalize caller-supplied shapes into tagged, validated shapely geometries.

Inputs may be bare coordinate arrays (type inferred from nesting depth),
GeoJSON geometry / Feature / FeatureCollection mappings, lists of those, or
any object exposing ``__geo_interface__``. The result is decided once here;
nothing downstream inspects coordinate nesting again.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, NamedTuple, Sequence, Tuple

from shapely.geometry import LineString, MultiPoint, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from core.exceptions import InvalidGeometryError, UnsupportedGeometryError

logger = logging.getLogger(__name__)

Position = Tuple[float, float]


class BoundingBox(NamedTuple):
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @classmethod
    def from_bounds(cls, bounds: Sequence[float]) -> "BoundingBox":
        """Build from shapely ``bounds`` (minx, miny, maxx, maxy)."""
        min_lon, min_lat, max_lon, max_lat = (float(v) for v in bounds)
        return cls(min_lon, min_lat, max_lon, max_lat)

    @classmethod
    def union(cls, boxes: Iterable["BoundingBox"]) -> "BoundingBox":
        boxes = list(boxes)
        if not boxes:
            raise ValueError("Cannot build the union of zero bounding boxes")
        return cls(
            min(b.min_lon for b in boxes),
            min(b.min_lat for b in boxes),
            max(b.max_lon for b in boxes),
            max(b.max_lat for b in boxes),
        )

    @property
    def width(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def is_degenerate(self) -> bool:
        return self.width == 0 and self.height == 0


class ShapeKind(str, Enum):
    POINT = "Point"
    MULTI_POINT = "MultiPoint"
    LINE_STRING = "LineString"
    MULTI_LINE_STRING = "MultiLineString"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"


class PieceKind(str, Enum):
    POINTS = "points"
    LINE = "line"
    AREA = "area"


@dataclass(frozen=True)
class Piece:
    """One independently classified part of a shape."""
    kind: PieceKind
    geometry: BaseGeometry

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox.from_bounds(self.geometry.bounds)


@dataclass(frozen=True)
class Shape:
    kind: ShapeKind
    pieces: Tuple[Piece, ...]
    bbox: BoundingBox


# Coordinate nesting depth of each geometry type ([lon, lat] has depth 1).
_EXPECTED_DEPTH = {
    ShapeKind.POINT: 1,
    ShapeKind.MULTI_POINT: 2,
    ShapeKind.LINE_STRING: 2,
    ShapeKind.MULTI_LINE_STRING: 3,
    ShapeKind.POLYGON: 3,
    ShapeKind.MULTI_POLYGON: 4,
}

# Bare arrays carry no tag; depth 2 defaults to a line.
_DEPTH_TO_KIND = {
    1: ShapeKind.POINT,
    2: ShapeKind.LINE_STRING,
    3: ShapeKind.POLYGON,
    4: ShapeKind.MULTI_POLYGON,
}

_UNSUPPORTED_TYPES = ("GeometryCollection",)


def _nesting_depth(coords: Any) -> int:
    if not isinstance(coords, (list, tuple)):
        return 0
    if not coords:
        raise InvalidGeometryError("Empty coordinate array")
    depths = {_nesting_depth(item) for item in coords}
    if len(depths) != 1:
        raise InvalidGeometryError(
            "Ambiguous coordinate nesting",
            payload={"depths": sorted(d + 1 for d in depths)},
        )
    return depths.pop() + 1


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _to_position(value: Any) -> Position:
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        raise InvalidGeometryError(
            "A position needs a longitude and a latitude",
            payload={"position": repr(value)[:80]},
        )
    lon, lat = value[0], value[1]
    if not (_is_number(lon) and _is_number(lat)):
        raise InvalidGeometryError(
            "Coordinates must be finite numbers",
            payload={"position": repr(value)[:80]},
        )
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        raise InvalidGeometryError(
            "Coordinates out of range",
            payload={"position": [lon, lat]},
        )
    return float(lon), float(lat)


def _ensure_closed_ring(coords: List[Position]) -> List[Position]:
    if coords[0] == coords[-1]:
        return coords
    return coords + [coords[0]]


def _ring(coords: Sequence[Any]) -> List[Position]:
    positions = [_to_position(pt) for pt in coords]
    if len(set(positions)) < 3:
        raise InvalidGeometryError(
            "A ring needs at least 3 distinct positions",
            payload={"distinct_positions": len(set(positions))},
        )
    return _ensure_closed_ring(positions)


def _line(coords: Sequence[Any]) -> LineString:
    positions = [_to_position(pt) for pt in coords]
    if len(positions) < 2:
        raise InvalidGeometryError("A line needs at least 2 positions")
    return LineString(positions)


def _polygon_parts(geometry: BaseGeometry) -> List[Polygon]:
    if isinstance(geometry, Polygon):
        return [geometry]
    # MultiPolygon or a GeometryCollection mixing polygons with lines/points
    return [part for g in getattr(geometry, "geoms", []) for part in _polygon_parts(g)]


def _repair_polygon(polygon: Polygon) -> List[Polygon]:
    if polygon.is_valid:
        return [polygon]
    # every lobe of a self-intersecting ring becomes its own part
    repaired = make_valid(polygon)
    parts = [p for p in _polygon_parts(repaired) if not p.is_empty and p.area > 0]
    if not parts:
        raise InvalidGeometryError("Polygon has no area after repair")
    logger.debug("Repaired invalid polygon into %d part(s)", len(parts))
    return parts


def _polygon_pieces(rings: Sequence[Any]) -> List[Piece]:
    exterior = _ring(rings[0])
    holes = [_ring(ring) for ring in rings[1:]]
    polygon = Polygon(exterior, holes)
    return [Piece(PieceKind.AREA, part) for part in _repair_polygon(polygon)]


def _build_shape(kind: ShapeKind, coords: Any) -> Shape:
    depth = _nesting_depth(coords)
    if depth != _EXPECTED_DEPTH[kind]:
        raise InvalidGeometryError(
            f"{kind.value} coordinates have nesting depth {depth}",
            payload={"expected_depth": _EXPECTED_DEPTH[kind], "depth": depth},
        )

    if kind is ShapeKind.POINT:
        pieces = [Piece(PieceKind.POINTS, Point(_to_position(coords)))]
    elif kind is ShapeKind.MULTI_POINT:
        points = [_to_position(pt) for pt in coords]
        pieces = [Piece(PieceKind.POINTS, MultiPoint(points))]
    elif kind is ShapeKind.LINE_STRING:
        pieces = [Piece(PieceKind.LINE, _line(coords))]
    elif kind is ShapeKind.MULTI_LINE_STRING:
        pieces = [Piece(PieceKind.LINE, _line(line)) for line in coords]
    elif kind is ShapeKind.POLYGON:
        pieces = _polygon_pieces(coords)
    else:
        pieces = [piece for rings in coords for piece in _polygon_pieces(rings)]

    bbox = BoundingBox.union(piece.bbox for piece in pieces)
    return Shape(kind=kind, pieces=tuple(pieces), bbox=bbox)


def _shape_from_mapping(value: Mapping[str, Any]) -> Shape:
    geometry_type = value.get("type")
    if geometry_type in _UNSUPPORTED_TYPES:
        raise UnsupportedGeometryError(geometry_type)
    if geometry_type == "Feature":
        geometry = value.get("geometry")
        if not isinstance(geometry, Mapping):
            raise InvalidGeometryError("Feature has no geometry")
        return _shape_from_mapping(geometry)
    if geometry_type is None:
        raise InvalidGeometryError("Geometry object has no type")
    try:
        kind = ShapeKind(geometry_type)
    except ValueError:
        raise UnsupportedGeometryError(geometry_type) from None
    if "coordinates" not in value:
        raise InvalidGeometryError(f"{geometry_type} has no coordinates")
    return _build_shape(kind, value["coordinates"])


def _is_geometry_object(value: Any) -> bool:
    return isinstance(value, Mapping) or hasattr(value, "__geo_interface__")


def normalize_shapes(value: Any) -> List[Shape]:
    """
    Normalize one shape or a collection of shapes.

    Collections are GeoJSON FeatureCollections and non-empty lists whose
    items are all geometry objects. Bare coordinate arrays always produce a
    single shape.

    Raises:
        InvalidGeometryError: malformed or ambiguous input.
        UnsupportedGeometryError: recognized but unsupported types.
    """
    if hasattr(value, "__geo_interface__"):
        value = value.__geo_interface__

    if isinstance(value, Mapping):
        if value.get("type") == "FeatureCollection":
            features = value.get("features")
            if not isinstance(features, (list, tuple)) or not features:
                raise InvalidGeometryError("FeatureCollection has no features")
            return [shape for feature in features for shape in normalize_shapes(feature)]
        return [_shape_from_mapping(value)]

    if isinstance(value, (list, tuple)):
        if value and all(_is_geometry_object(item) for item in value):
            return [shape for item in value for shape in normalize_shapes(item)]
        depth = _nesting_depth(value)
        kind = _DEPTH_TO_KIND.get(depth)
        if kind is None:
            raise InvalidGeometryError(
                f"Cannot infer a geometry type from nesting depth {depth}",
                payload={"depth": depth},
            )
        return [_build_shape(kind, value)]

    raise InvalidGeometryError(
        "Unrecognized shape input",
        payload={"input_type": type(value).__name__},
    )


def normalize_shape(value: Any) -> Shape:
    shapes = normalize_shapes(value)
    if len(shapes) != 1:
        raise InvalidGeometryError(
            "Expected a single shape",
            payload={"shape_count": len(shapes)},
        )
    return shapes[0]
