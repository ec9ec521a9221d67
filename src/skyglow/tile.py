"""Generate radiance tile pyramids.

Glue between the raster reader, the color scale and the pyramid writer,
with defaults taken from the settings.
"""
import pathlib

from .area_definitions import area_for
from .data_sources import geotiff
from .tilers.bounds import compute_tile_range
from .tilers.colorscale import ColorScaleBuilder, EmptySampleError, FallbackColorScale
from .tilers.pyramid import PyramidConfig, TilePyramidWriter
from .utils import vprint
from . import config
settings = config.settings


def build_color_scale(grid):
    """Build the quantile ramp for ``grid``, falling back to a linear ramp."""
    try:
        scale = ColorScaleBuilder().build(grid.data)
    except EmptySampleError:
        vprint("Proceeding with fallback color scale (green->red), "
               "since no positive samples were found.")
        return FallbackColorScale()
    vprint(f"Using color scale with breaks: {[round(b, 3) for b in scale.breaks]}")
    return scale


def tile_ranges(grid, zooms):
    """Return the geographic bbox of ``grid`` and its tile range per zoom."""
    bbox = area_for(grid).to_geographic_bbox()
    return bbox, [compute_tile_range(bbox, zoom) for zoom in zooms]


def pyramid(source=None, tile_dir=None, verbose=None, **options):
    """Render the full tile pyramid of one raster.

    Parameters
    ----------
    source : str or pathlib.Path, optional
        Input GeoTIFF. Defaults to the ``source`` setting.
    tile_dir : str or pathlib.Path, optional
        Output root. Defaults to the ``tile_dir`` setting or ``./tiles``.
    verbose : bool or int, optional
        Overrides the ``verbose`` setting for the duration of the call.
    **options
        ``min_zoom``, ``max_zoom``, ``skip_existing``, ``skip_empty`` and
        ``workers`` overrides for :class:`PyramidConfig`.

    Returns
    -------
    RunSummary
        Per-tile outcome of the run.

    Raises
    ------
    InputUnavailableError
        If the source raster cannot be read. No tile is written then.
    """
    source = source or settings.get("source")
    if source is None:
        raise ValueError("No source raster given and no 'source' setting configured")
    tile_dir = pathlib.Path(tile_dir or settings.get("tile_dir", "tiles"))
    run_config = PyramidConfig.from_settings(settings, **options)

    previous_verbose = settings.get("verbose", 0)
    if verbose is not None:
        settings.set("verbose", verbose)
    try:
        vprint(f"Using zoom range: {run_config.min_zoom}..{run_config.max_zoom} "
               f"(skip_existing={run_config.skip_existing}, skip_empty={run_config.skip_empty})")
        grid = geotiff.open_raster(source)
        writer = TilePyramidWriter(grid, build_color_scale(grid), tile_dir)
        summary = writer.run(run_config)
        vprint(f"Tiles saved to: {tile_dir}")
    finally:
        if verbose is not None:
            settings.set("verbose", previous_verbose)
    return summary
