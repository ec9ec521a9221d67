from . import config, tile
from .raster import CRSKind, InputUnavailableError, RasterGrid


def render(source=None, tile_dir=None, **options):
    """Render a raster into a tile pyramid using the current settings."""
    return tile.pyramid(source, tile_dir, **options)
