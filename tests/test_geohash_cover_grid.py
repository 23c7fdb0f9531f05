import sys
from pathlib import Path

# Add project root to sys.path
sys.path.append(str(Path(__file__).resolve().parent.parent))

import pytest

from modules.geohash_cover.grid import GeohashGrid, GridCell, decode_geohash_bbox, encode_geohash
from modules.geohash_cover.precision import cell_size, diagonal_cells, select_precision
from modules.geohash_cover.shapes import BoundingBox


def _sample_bbox():
    return BoundingBox(13.331187, 52.4504801, 13.4245712, 52.509027)


def test_cell_size_matches_bit_split():
    assert cell_size(1) == (45.0, 45.0)
    assert cell_size(2) == (11.25, 5.625)
    width, height = cell_size(5)
    assert width == pytest.approx(0.0439453125)
    assert height == pytest.approx(0.0439453125)


def test_cell_size_matches_codec():
    for precision in range(1, 13):
        b = decode_geohash_bbox(encode_geohash(13.4, 52.5, precision))
        width, height = cell_size(precision)
        assert b.width == pytest.approx(width)
        assert b.height == pytest.approx(height)


def test_explicit_precision_wins():
    assert select_precision(_sample_bbox(), 9) == 9
    with pytest.raises(ValueError):
        select_precision(_sample_bbox(), 0)
    with pytest.raises(ValueError):
        select_precision(_sample_bbox(), 13)


def test_auto_precision():
    point = BoundingBox(13.4, 52.5, 13.4, 52.5)
    assert select_precision(point, max_precision=6) == 6
    assert select_precision(point, max_precision=12) == 12
    assert select_precision(_sample_bbox(), max_precision=6, max_diagonal_cells=64) == 6
    assert select_precision(BoundingBox(0.0, 0.0, 12.0, 12.0), max_precision=6, max_diagonal_cells=64) == 3
    world = BoundingBox(-180.0, -90.0, 180.0, 90.0)
    assert select_precision(world, max_precision=6, max_diagonal_cells=64) == 2
    assert select_precision(world, max_precision=6, max_diagonal_cells=1) == 1


def test_auto_precision_respects_cell_budget():
    bbox = BoundingBox(100.0, 20.0, 101.5, 21.0)
    precision = select_precision(bbox, max_precision=8, max_diagonal_cells=20)
    assert diagonal_cells(bbox, precision) <= 20
    if precision < 8:
        assert diagonal_cells(bbox, precision + 1) > 20


def test_grid_rows_south_to_north_west_to_east():
    grid = GeohashGrid(_sample_bbox(), 6)
    rows = [list(row) for row in grid.rows()]
    assert len(rows) == grid.n_rows
    for row in rows:
        assert len(row) == grid.n_columns
        lons = [cell.bbox.min_lon for cell in row]
        assert lons == sorted(lons)
        assert len({cell.bbox.min_lat for cell in row}) == 1
    row_lats = [row[0].bbox.min_lat for row in rows]
    assert row_lats == sorted(row_lats)


def test_grid_covers_bbox_without_gaps_or_repeats():
    bbox = _sample_bbox()
    grid = GeohashGrid(bbox, 6)
    cells = grid.cells()
    assert len(cells) == len(grid)
    assert len({cell.geohash for cell in cells}) == len(cells)
    assert cells[0].bbox.min_lon <= bbox.min_lon
    assert cells[0].bbox.min_lat <= bbox.min_lat
    assert cells[-1].bbox.max_lon >= bbox.max_lon
    assert cells[-1].bbox.max_lat >= bbox.max_lat
    for prev, cell in zip(cells, cells[1:]):
        if prev.row == cell.row:
            assert cell.bbox.min_lon == pytest.approx(prev.bbox.max_lon)
        else:
            assert cell.bbox.min_lat == pytest.approx(prev.bbox.max_lat)


def test_grid_is_restartable():
    grid = GeohashGrid(_sample_bbox(), 6)
    first = [cell.geohash for row in grid.rows() for cell in row]
    second = [cell.geohash for row in grid.rows() for cell in row]
    assert first == second


def test_degenerate_bbox_is_one_cell():
    grid = GeohashGrid(BoundingBox(13.4, 52.5, 13.4, 52.5), 7)
    assert grid.shape == (1, 1)
    assert [cell.geohash for cell in grid.cells()] == [encode_geohash(13.4, 52.5, 7)]


def test_grid_cell_identity_is_the_geohash():
    b = decode_geohash_bbox("u336x")
    assert GridCell("u336x", b, 0, 0) == GridCell("u336x", b, 3, 4)
    assert len({GridCell("u336x", b), GridCell("u336x", b, 1, 1)}) == 1
    assert GridCell("u336x", b).to_polygon().bounds == tuple(b)
