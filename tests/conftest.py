"""Shared pytest fixtures for skyglow tests."""

import tempfile
from pathlib import Path

import numpy as np
import pytest
import rasterio
from rasterio.transform import from_bounds

from skyglow import config
from skyglow.raster import CRSKind, RasterGrid
from skyglow.tilers.colorscale import ColorScale
from skyglow.tilers.utils import lonlat_to_webmercator

NORDIC_BBOX = (20.0, 59.0, 32.0, 71.0)


@pytest.fixture(autouse=True)
def quiet_settings():
    """Reset verbosity so one test's settings do not leak into the next."""
    config.settings.set("verbose", 0)
    yield
    config.settings.set("verbose", 0)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def nordic_grid():
    """Geographic 120x120 grid over [20, 59, 32, 71] with a radiance ramp."""
    lons = np.linspace(0, 1, 120)
    data = np.tile(1 + 99 * lons, (120, 1))
    return RasterGrid(width=120, height=120, bbox=NORDIC_BBOX,
                      crs_kind=CRSKind.GEOGRAPHIC, data=data)


@pytest.fixture
def mercator_grid():
    """Web Mercator 100x100 grid over lon/lat [-10, 10] filled with 50."""
    xs, ys = lonlat_to_webmercator(np.array([-10.0, 10.0]), np.array([-10.0, 10.0]))
    bbox = (float(xs[0]), float(ys[0]), float(xs[1]), float(ys[1]))
    return RasterGrid(width=100, height=100, bbox=bbox,
                      crs_kind=CRSKind.WEBMERCATOR, data=np.full(10000, 50.0))


@pytest.fixture
def simple_scale():
    """ColorScale with breaks at 10, 20, ... 60."""
    return ColorScale(breaks=(10, 20, 30, 40, 50, 60))


@pytest.fixture
def write_geotiff(temp_dir):
    """Return a helper that writes a single-band GeoTIFF into temp_dir."""
    def _write(data, bbox=NORDIC_BBOX, crs="EPSG:4326", nodata=None, name="radiance.tif"):
        data = np.asarray(data, dtype=np.float32)
        height, width = data.shape
        path = temp_dir / name
        with rasterio.open(
            path, "w", driver="GTiff", width=width, height=height, count=1,
            dtype="float32", crs=crs, nodata=nodata,
            transform=from_bounds(*bbox, width, height),
        ) as dst:
            dst.write(data, 1)
        return path
    return _write
