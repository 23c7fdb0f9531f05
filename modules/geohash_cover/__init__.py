from .classifier import CellClassifier, CellRelation, Classification
from .core import (
    CoveragePlan,
    ashape_to_geohashes,
    iter_geohash_rows,
    prepare_coverage,
    shape_to_geohashes,
)
from .emitter import EmitterState, GeohashListWriter, RowChannel, RowEmitter
from .grid import GeohashGrid, GridCell, decode_geohash_bbox, encode_geohash
from .precision import cell_size, select_precision
from .schemas import CoverageRequest
from .shapes import BoundingBox, Shape, ShapeKind, normalize_shape, normalize_shapes

__all__ = [
    "BoundingBox",
    "CellClassifier",
    "CellRelation",
    "Classification",
    "CoveragePlan",
    "CoverageRequest",
    "EmitterState",
    "GeohashGrid",
    "GeohashListWriter",
    "GridCell",
    "RowChannel",
    "RowEmitter",
    "Shape",
    "ShapeKind",
    "ashape_to_geohashes",
    "cell_size",
    "decode_geohash_bbox",
    "encode_geohash",
    "iter_geohash_rows",
    "normalize_shape",
    "normalize_shapes",
    "prepare_coverage",
    "select_precision",
    "shape_to_geohashes",
]
