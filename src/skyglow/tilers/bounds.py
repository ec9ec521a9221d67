"""Tile addressing for the XYZ (slippy map) scheme.

Converts geographic positions and bounding boxes to tile indices and
tiles back to their geographic corners. Tiles are ``mercantile.Tile``
tuples (x, y, z) with the origin at the top-left and y growing
southward.
"""
import math
from typing import Iterator, NamedTuple, Tuple

import mercantile

# Latitude clamp applied before the Mercator y formula
TILE_LATITUDE_LIMIT = 85.0511
# An X span narrower than total_tiles / X_EXPANSION_DIVISOR is expanded to
# the full width when the bbox covers more than MIN_LAT_SPAN_DEG of latitude
X_EXPANSION_DIVISOR = 64
MIN_LAT_SPAN_DEG = 10.0


class InvalidTileError(ValueError):
    """Tile coordinates outside 0 <= x, y < 2**z."""


class TileBoundingBox(NamedTuple):
    """Geographic corners of a tile in degrees."""

    north: float
    south: float
    east: float
    west: float

    def contains(self, lon: float, lat: float, tol: float = 1e-9) -> bool:
        return (self.south - tol <= lat <= self.north + tol
                and self.west - tol <= lon <= self.east + tol)


class TileRange(NamedTuple):
    """Inclusive rectangle of tile indices at one zoom level."""

    zoom: int
    min_x: int
    max_x: int
    min_y: int
    max_y: int
    degenerate: bool = False

    def __len__(self):
        if self.degenerate or self.min_x > self.max_x or self.min_y > self.max_y:
            return 0
        return (self.max_x - self.min_x + 1) * (self.max_y - self.min_y + 1)

    def tiles(self) -> Iterator[mercantile.Tile]:
        """Iterate the tiles column by column."""
        if self.degenerate:
            return
        for x in range(self.min_x, self.max_x + 1):
            for y in range(self.min_y, self.max_y + 1):
                yield mercantile.Tile(x, y, self.zoom)


def check_tile(tile):
    """Return ``tile`` unchanged, raising InvalidTileError if out of range.

    ``tile`` may be a mercantile.Tile or a plain (x, y, z) triple.
    """
    x, y, z = tile
    if z < 0 or not (0 <= x < 2**z and 0 <= y < 2**z):
        raise InvalidTileError(f"Tile {z}/{x}/{y} is outside the zoom {z} grid")
    return tile


def lonlat_to_tile(lon: float, lat: float, zoom: int) -> Tuple[int, int]:
    """Return the (x, y) index of the tile containing a position.

    Latitude is clamped to the Web Mercator limit first. Positions on the
    poles resolve to the first or last row, and indices are clamped to
    ``[0, 2**zoom - 1]``.
    """
    n = 2**zoom
    lat_rad = math.radians(max(-TILE_LATITUDE_LIMIT, min(TILE_LATITUDE_LIMIT, lat)))
    x = math.floor((lon + 180.0) / 360.0 * n)
    lat_factor = math.asinh(math.tan(lat_rad))
    if math.isfinite(lat_factor):
        y = math.floor((1.0 - lat_factor / math.pi) / 2.0 * n)
    else:
        y = 0 if lat > 0 else n - 1
    return max(0, min(n - 1, x)), max(0, min(n - 1, y))


def compute_tile_range(bbox, zoom: int) -> TileRange:
    """Compute the tile rectangle covering a geographic bounding box.

    Parameters
    ----------
    bbox : tuple of float
        (min_lon, min_lat, max_lon, max_lat) in degrees.
    zoom : int
        Zoom level.

    Returns
    -------
    TileRange
        Covering tiles. Flagged ``degenerate`` when the bbox is not
        finite. Narrow X strips over tall boxes are expanded to the full
        width of the zoom level.
    """
    min_lon, min_lat, max_lon, max_lat = bbox
    if not all(math.isfinite(v) for v in bbox):
        return TileRange(zoom, 0, 0, 0, 0, degenerate=True)

    sw_x, sw_y = lonlat_to_tile(min_lon, min_lat, zoom)
    ne_x, ne_y = lonlat_to_tile(max_lon, max_lat, zoom)
    min_x, max_x = min(sw_x, ne_x), max(sw_x, ne_x)
    min_y, max_y = min(sw_y, ne_y), max(sw_y, ne_y)

    total_x = 2**zoom
    if ((max_x - min_x) < max(1, total_x / X_EXPANSION_DIVISOR)
            and abs(max_lat - min_lat) > MIN_LAT_SPAN_DEG):
        min_x, max_x = 0, total_x - 1
    return TileRange(zoom, min_x, max_x, min_y, max_y)


def tile_to_bounding_box(x: int, y: int, zoom: int) -> TileBoundingBox:
    """Return the geographic corners of tile (x, y) at ``zoom``."""
    check_tile((x, y, zoom))
    west, south, east, north = mercantile.bounds(x, y, zoom)
    return TileBoundingBox(north=north, south=south, east=east, west=west)
