"""Convenience exports for coverage helpers."""

from .geohash_cover import (
    ashape_to_geohashes,
    iter_geohash_rows,
    prepare_coverage,
    shape_to_geohashes,
)

__all__ = [
    "ashape_to_geohashes",
    "iter_geohash_rows",
    "prepare_coverage",
    "shape_to_geohashes",
]
