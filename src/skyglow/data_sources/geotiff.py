"""GeoTIFF radiance rasters.

This module opens single-band GeoTIFFs (e.g. VIIRS night lights
composites) with rasterio and returns them as RasterGrid objects. The
projection is resolved once here and never inspected again.
"""
import pathlib

import numpy as np
import rasterio
from rasterio.errors import RasterioIOError

from ..area_definitions import resolve_crs_kind
from ..raster import InputUnavailableError, RasterGrid
from ..utils import vprint


def open_raster(path, band=1):
    """Read one band of a GeoTIFF into a RasterGrid.

    Parameters
    ----------
    path : str or pathlib.Path
        File to open.
    band : int, optional
        1-based band index, by default 1.

    Returns
    -------
    RasterGrid
        Samples as float64 with the file's nodata value replaced by 0.

    Raises
    ------
    InputUnavailableError
        If the file is missing or rasterio cannot read it.
    """
    fn = pathlib.Path(path)
    if not fn.is_file():
        raise InputUnavailableError(f"Input file {fn} not found")
    try:
        with rasterio.open(fn) as src:
            data = src.read(band).astype(np.float64)
            nodata = src.nodata
            bounds = src.bounds
            crs_kind = resolve_crs_kind(src.crs)
            width, height = src.width, src.height
    except (RasterioIOError, IndexError) as err:
        raise InputUnavailableError(f"Cannot read band {band} of {fn}: {err}") from err

    if nodata is not None and np.isfinite(nodata):
        data[data == nodata] = 0.0
    vprint(f"Image dimensions: {width}x{height}")
    vprint(f"Bounding box: [{bounds.left}, {bounds.bottom}, {bounds.right}, {bounds.top}]")
    vprint(f"Source CRS: {crs_kind.value}")
    return RasterGrid(width=width, height=height,
                      bbox=(bounds.left, bounds.bottom, bounds.right, bounds.top),
                      crs_kind=crs_kind, data=data)
