"""Per-tile rendering by inverse mapping tile pixels onto the raster.

Each output pixel is placed at its (lon, lat) inside the tile, mapped back
to a raster pixel and given the nearest sample. No-data is never blended
into data along region edges.
"""
from dataclasses import dataclass

import mercantile
import numpy as np

from ..area_definitions import TILE_SIZE, area_for
from .bounds import check_tile, tile_to_bounding_box


@dataclass
class GeneratedTile:
    """Rendered RGBA buffer for one tile.

    Attributes
    ----------
    tile : mercantile.Tile
        Tile address.
    rgba : numpy.ndarray
        uint8 array of shape (TILE_SIZE, TILE_SIZE, 4).
    any_opaque : bool
        True when at least one pixel has a non-zero alpha.
    """

    tile: mercantile.Tile
    rgba: np.ndarray
    any_opaque: bool


class TileRasterizer:
    """Render tiles of a raster with a fixed color scale.

    Parameters
    ----------
    grid : skyglow.raster.RasterGrid
        Source samples.
    color_scale : ColorScale or FallbackColorScale
        Ramp used for every tile.
    area : GeographicArea, optional
        Pixel mapping for ``grid``; resolved from the grid when omitted.
    """

    TILE_SIZE = TILE_SIZE

    def __init__(self, grid, color_scale, area=None):
        self.grid = grid
        self.color_scale = color_scale
        self.area = area if area is not None else area_for(grid)
        self._offsets = np.arange(self.TILE_SIZE, dtype=np.float64) / self.TILE_SIZE

    def pixel_lonlats(self, tile: mercantile.Tile):
        """Return (lon, lat) grids of the top-left corner of every pixel."""
        bbox = tile_to_bounding_box(tile.x, tile.y, tile.z)
        lons = bbox.west + self._offsets * (bbox.east - bbox.west)
        lats = bbox.north - self._offsets * (bbox.north - bbox.south)
        return np.meshgrid(lons, lats)

    def sample(self, tile: mercantile.Tile) -> np.ndarray:
        """Nearest-neighbor raster values under every pixel of ``tile``.

        Pixels that fall outside the raster get 0 (no-data).
        """
        lon_grid, lat_grid = self.pixel_lonlats(tile)
        cols, rows = self.area.sample_raster_index(lon_grid, lat_grid)
        with np.errstate(invalid="ignore"):
            inside = ((cols >= 0) & (cols < self.grid.width)
                      & (rows >= 0) & (rows < self.grid.height))
        values = np.zeros(cols.shape, dtype=np.float64)
        values[inside] = self.grid.data[rows[inside].astype(np.intp),
                                        cols[inside].astype(np.intp)]
        return values

    def render(self, tile: mercantile.Tile) -> GeneratedTile:
        """Render one tile.

        Raises
        ------
        InvalidTileError
            If the tile is outside its zoom level's grid.
        """
        check_tile(tile)
        rgba = self.color_scale.to_rgba(self.sample(tile))
        return GeneratedTile(tile=tile, rgba=rgba, any_opaque=bool(rgba[..., 3].any()))
