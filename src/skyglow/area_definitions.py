"""Source area definitions for the two supported projections.

A raster is either geographic (EPSG:4326, bounding box in degrees) or
spherical Web Mercator (EPSG:3857, bounding box in meters). The kind is
resolved once when the raster is loaded, and the matching area object
converts between raster pixel space and geographic degrees.

The widening heuristics below were calibrated against the bounding-box
quirks of one VIIRS radiance product and are not derived from geometry.
Rasters that genuinely cover a narrow longitude band across many degrees
of latitude are widened to the whole world as a false positive.
"""
import math

import numpy as np
from pyproj import CRS
from pyproj.exceptions import CRSError

from .raster import CRSKind
from .tilers.utils import lonlat_to_webmercator
from .utils import vprint

WEBMERCATOR_RADIUS = 6378137.0
TILE_SIZE = 256
# Latitude limit of the square Web Mercator world
MAX_LATITUDE = 85.05112878

# Longitudes this close to +-180 on both edges mean a wrapped bbox
ANTIMERIDIAN_TOLERANCE_DEG = 0.01
# A longitude span below this with a latitude span above WIDE_LAT_SPAN_DEG
# is treated as a collapsed bbox
COLLAPSED_LON_SPAN_DEG = 1.0
WIDE_LAT_SPAN_DEG = 10.0

WEBMERCATOR_EPSG_CODES = (3857, 3785, 900913)


def zoom_to_resolution_m(zoom: int) -> float:
    """Convert Web Mercator zoom level to resolution in meters per pixel.

    Parameters
    ----------
    zoom : int
        Web Mercator zoom level (slippy-map convention).

    Returns
    -------
    float
        Resolution in meters per pixel at the equator.
    """
    return (2 * math.pi * WEBMERCATOR_RADIUS) / (TILE_SIZE * 2**zoom)


def resolve_crs_kind(descriptor) -> CRSKind:
    """Work out which supported projection a CRS descriptor refers to.

    Parameters
    ----------
    descriptor : object
        ``None``, a :class:`CRSKind`, a GeoTIFF geokey dictionary, an EPSG
        code, a CRS string, or any CRS object pyproj accepts (including
        rasterio CRS objects).

    Returns
    -------
    CRSKind
        ``WEBMERCATOR`` for EPSG:3857 and its aliases, ``GEOGRAPHIC``
        otherwise, including when the descriptor cannot be interpreted.
    """
    if descriptor is None:
        return CRSKind.GEOGRAPHIC
    if isinstance(descriptor, CRSKind):
        return descriptor
    if isinstance(descriptor, dict):
        projected = (descriptor.get("ProjectedCSTypeGeoKey")
                     or descriptor.get("ProjectedCRSGeoKey"))
        if projected in WEBMERCATOR_EPSG_CODES:
            return CRSKind.WEBMERCATOR
        return CRSKind.GEOGRAPHIC
    try:
        epsg = CRS.from_user_input(descriptor).to_epsg()
    except CRSError:
        vprint(f"Unrecognized CRS {descriptor!r}, assuming geographic degrees")
        return CRSKind.GEOGRAPHIC
    if epsg in WEBMERCATOR_EPSG_CODES:
        return CRSKind.WEBMERCATOR
    if epsg != 4326:
        vprint(f"Unsupported CRS EPSG:{epsg}, treating bbox as geographic degrees")
    return CRSKind.GEOGRAPHIC


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180], keeping +180 as +180."""
    if not math.isfinite(lon) or -180.0 <= lon <= 180.0:
        return lon
    wrapped = math.fmod(lon + 180.0, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    if wrapped == 0.0 and lon > 0:
        return 180.0
    return wrapped - 180.0


def clamp_latitude(lat: float) -> float:
    return max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))


def widen_degenerate(min_lon, min_lat, max_lon, max_lat):
    """Widen wrapped or collapsed longitude spans to the whole world.

    The longitude range becomes [-180, 180] when both edges sit on the
    same side of the antimeridian, when the box straddles the dateline
    (``min_lon > max_lon``), or when it is under a degree wide while
    spanning more than ten degrees of latitude.

    Returns
    -------
    tuple of float
        (min_lon, min_lat, max_lon, max_lat) in degrees.
    """
    near_east = (abs(min_lon - 180) < ANTIMERIDIAN_TOLERANCE_DEG
                 and abs(max_lon - 180) < ANTIMERIDIAN_TOLERANCE_DEG)
    near_west = (abs(min_lon + 180) < ANTIMERIDIAN_TOLERANCE_DEG
                 and abs(max_lon + 180) < ANTIMERIDIAN_TOLERANCE_DEG)
    collapsed = (abs(max_lon - min_lon) < COLLAPSED_LON_SPAN_DEG
                 and abs(max_lat - min_lat) > WIDE_LAT_SPAN_DEG)
    if near_east or near_west or min_lon > max_lon or collapsed:
        return -180.0, min_lat, 180.0, max_lat
    return min_lon, min_lat, max_lon, max_lat


class GeographicArea:
    """Raster laid out on a regular lon/lat grid (EPSG:4326).

    Parameters
    ----------
    bbox : tuple of float
        (min_lon, min_lat, max_lon, max_lat) of the raster in degrees.
    width, height : int
        Raster size in pixels.
    """

    kind = CRSKind.GEOGRAPHIC

    def __init__(self, bbox, width, height):
        self.bbox = tuple(float(v) for v in bbox)
        self.width = width
        self.height = height

    def _bbox_to_degrees(self, raw_bbox):
        min_lon, min_lat, max_lon, max_lat = raw_bbox
        return (normalize_longitude(min_lon), clamp_latitude(min_lat),
                normalize_longitude(max_lon), clamp_latitude(max_lat))

    def _to_native(self, lons, lats):
        return lons, lats

    def to_geographic_bbox(self, raw_bbox=None):
        """Interpret a native bounding box as geographic degrees.

        Parameters
        ----------
        raw_bbox : tuple of float, optional
            Bounding box in native units. Defaults to the raster's own.

        Returns
        -------
        tuple of float
            (min_lon, min_lat, max_lon, max_lat), latitudes clamped to the
            Web Mercator limit and degenerate longitude spans widened.
            All NaN when the input is not finite.
        """
        raw_bbox = self.bbox if raw_bbox is None else tuple(float(v) for v in raw_bbox)
        if not all(math.isfinite(v) for v in raw_bbox):
            return (math.nan,) * 4
        return widen_degenerate(*self._bbox_to_degrees(raw_bbox))

    def sample_raster_index(self, lons, lats):
        """Map geographic positions to raster pixel indices.

        Parameters
        ----------
        lons, lats : array_like
            Positions in degrees.

        Returns
        -------
        tuple of numpy.ndarray
            Floored (column, row) indices as floats. Values outside
            ``[0, width)`` / ``[0, height)`` or non-finite values mean the
            position is not covered by the raster.
        """
        xs, ys = self._to_native(np.asarray(lons, dtype=np.float64),
                                 np.asarray(lats, dtype=np.float64))
        min_x, min_y, max_x, max_y = self.bbox
        with np.errstate(divide="ignore", invalid="ignore"):
            cols = np.floor((xs - min_x) / (max_x - min_x) * self.width)
            rows = np.floor((max_y - ys) / (max_y - min_y) * self.height)
        return cols, rows


class WebMercatorArea(GeographicArea):
    """Raster laid out on a regular spherical Mercator grid (EPSG:3857)."""

    kind = CRSKind.WEBMERCATOR

    def _bbox_to_degrees(self, raw_bbox):
        min_x, min_y, max_x, max_y = raw_bbox

        def lon_from_x(x):
            return max(-180.0, min(180.0, math.degrees(x / WEBMERCATOR_RADIUS)))

        def lat_from_y(y):
            ratio = max(-700.0, min(700.0, y / WEBMERCATOR_RADIUS))
            lat = math.degrees(2 * math.atan(math.exp(ratio)) - math.pi / 2)
            return clamp_latitude(lat)

        return lon_from_x(min_x), lat_from_y(min_y), lon_from_x(max_x), lat_from_y(max_y)

    def _to_native(self, lons, lats):
        return lonlat_to_webmercator(lons, lats)


def area_for(grid):
    """Return the area object matching a raster's resolved projection."""
    if grid.crs_kind is CRSKind.WEBMERCATOR:
        return WebMercatorArea(grid.bbox, grid.width, grid.height)
    return GeographicArea(grid.bbox, grid.width, grid.height)
