import sys
from pathlib import Path

# Add project root to sys.path
sys.path.append(str(Path(__file__).resolve().parent.parent))

import pytest
from shapely.geometry import LineString, MultiPoint, Point, Polygon, box

from modules.geohash_cover.classifier import CellClassifier, CellRelation, intersection_ratio
from modules.geohash_cover.grid import GridCell, decode_geohash_bbox, encode_geohash
from modules.geohash_cover.shapes import Piece, PieceKind


def _cell(geohash="u336x"):
    return GridCell(geohash, decode_geohash_bbox(geohash))


def _east_neighbor(cell):
    b = cell.bbox
    geohash = encode_geohash(b.max_lon + b.width / 2, (b.min_lat + b.max_lat) / 2, len(cell.geohash))
    return _cell(geohash)


def _area(geometry):
    return Piece(PieceKind.AREA, geometry)


def test_cell_equal_to_polygon_is_inside():
    cell = _cell()
    classifier = CellClassifier(_area(box(*cell.bbox)), precision=5)
    assert classifier.classify(cell).relation is CellRelation.INSIDE


def test_edge_contact_is_outside():
    cell = _cell()
    classifier = CellClassifier(_area(box(*cell.bbox)), precision=5)
    assert classifier.classify(_east_neighbor(cell)).relation is CellRelation.OUTSIDE


def test_partial_overlap_is_boundary():
    cell = _cell()
    b = cell.bbox
    mid_lon = (b.min_lon + b.max_lon) / 2
    left_half = box(b.min_lon - 1, b.min_lat - 1, mid_lon, b.max_lat + 1)
    result = CellClassifier(_area(left_half), precision=5).classify(cell)
    assert result.relation is CellRelation.BOUNDARY
    assert result.ratio is None


def test_min_intersect_threshold():
    cell = _cell()
    b = cell.bbox
    mid_lon = (b.min_lon + b.max_lon) / 2
    left_half = _area(box(b.min_lon - 1, b.min_lat - 1, mid_lon, b.max_lat + 1))

    kept = CellClassifier(left_half, precision=5, min_intersect=0.4).classify(cell)
    assert kept.relation is CellRelation.BOUNDARY
    assert kept.ratio == pytest.approx(0.5)

    dropped = CellClassifier(left_half, precision=5, min_intersect=0.6).classify(cell)
    assert dropped.relation is CellRelation.OUTSIDE
    assert dropped.ratio == pytest.approx(0.5)


def test_inside_never_demoted_by_threshold():
    cell = _cell()
    big = _area(box(cell.bbox.min_lon - 1, cell.bbox.min_lat - 1, cell.bbox.max_lon + 1, cell.bbox.max_lat + 1))
    result = CellClassifier(big, precision=5, min_intersect=1.0).classify(cell)
    assert result.relation is CellRelation.INSIDE


def test_cell_inside_hole_is_outside():
    cell = _cell()
    b = cell.bbox
    outer = box(b.min_lon - 1, b.min_lat - 1, b.max_lon + 1, b.max_lat + 1).exterior.coords
    hole = box(b.min_lon - 0.01, b.min_lat - 0.01, b.max_lon + 0.01, b.max_lat + 0.01).exterior.coords
    classifier = CellClassifier(_area(Polygon(outer, [hole])), precision=5)
    assert classifier.classify(cell).relation is CellRelation.OUTSIDE


def test_cell_crossing_hole_edge_is_boundary():
    cell = _cell()
    b = cell.bbox
    mid_lon = (b.min_lon + b.max_lon) / 2
    outer = box(b.min_lon - 1, b.min_lat - 1, b.max_lon + 1, b.max_lat + 1).exterior.coords
    hole = box(mid_lon, b.min_lat - 0.5, b.max_lon + 0.5, b.max_lat + 0.5).exterior.coords
    result = CellClassifier(_area(Polygon(outer, [hole])), precision=5, min_intersect=0.1).classify(cell)
    assert result.relation is CellRelation.BOUNDARY
    assert result.ratio == pytest.approx(0.5)


def test_line_is_boundary_or_outside():
    cell = _cell()
    b = cell.bbox
    crossing = Piece(PieceKind.LINE, LineString([(b.min_lon - 0.1, b.min_lat - 0.1), (b.max_lon + 0.1, b.max_lat + 0.1)]))
    assert CellClassifier(crossing, precision=5).classify(cell).relation is CellRelation.BOUNDARY
    # Zero-area pieces are not thresholded.
    assert CellClassifier(crossing, precision=5, min_intersect=0.9).classify(cell).relation is CellRelation.BOUNDARY

    far = Piece(PieceKind.LINE, LineString([(b.max_lon + 1, b.min_lat), (b.max_lon + 2, b.max_lat)]))
    assert CellClassifier(far, precision=5).classify(cell).relation is CellRelation.OUTSIDE


def test_points_match_their_own_cell_only():
    cell = _cell()
    b = cell.bbox
    centre = Point((b.min_lon + b.max_lon) / 2, (b.min_lat + b.max_lat) / 2)
    classifier = CellClassifier(Piece(PieceKind.POINTS, centre), precision=5)
    assert classifier.classify(cell).relation is CellRelation.INSIDE
    assert classifier.classify(_east_neighbor(cell)).relation is CellRelation.OUTSIDE

    corner = Point(b.max_lon, b.max_lat)
    hits = [
        c for c in (cell, _east_neighbor(cell))
        if CellClassifier(Piece(PieceKind.POINTS, corner), precision=5).classify(c).relation is CellRelation.INSIDE
    ]
    assert len(hits) <= 1


def test_multipoint_piece():
    cell = _cell()
    neighbor = _east_neighbor(cell)
    points = MultiPoint([
        ((cell.bbox.min_lon + cell.bbox.max_lon) / 2, (cell.bbox.min_lat + cell.bbox.max_lat) / 2),
        ((neighbor.bbox.min_lon + neighbor.bbox.max_lon) / 2, (neighbor.bbox.min_lat + neighbor.bbox.max_lat) / 2),
    ])
    classifier = CellClassifier(Piece(PieceKind.POINTS, points), precision=5)
    assert classifier.classify(cell).relation is CellRelation.INSIDE
    assert classifier.classify(neighbor).relation is CellRelation.INSIDE


def test_intersection_ratio():
    cell_polygon = box(0, 0, 2, 2)
    assert intersection_ratio(cell_polygon, box(0, 0, 1, 2)) == pytest.approx(0.5)
    assert intersection_ratio(cell_polygon, box(5, 5, 6, 6)) == 0.0
