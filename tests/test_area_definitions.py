"""Tests for the skyglow.area_definitions module."""

import math

import numpy as np
import pytest
from rasterio.crs import CRS as RasterioCRS

from skyglow import area_definitions
from skyglow.area_definitions import (
    MAX_LATITUDE,
    WEBMERCATOR_RADIUS,
    GeographicArea,
    WebMercatorArea,
    area_for,
    normalize_longitude,
    resolve_crs_kind,
)
from skyglow.raster import CRSKind


class TestResolveCrsKind:
    """Tests for the resolve_crs_kind function."""

    def test_none_defaults_to_geographic(self):
        """A missing descriptor should resolve to geographic degrees."""
        assert resolve_crs_kind(None) is CRSKind.GEOGRAPHIC

    @pytest.mark.parametrize("descriptor", [3857, "EPSG:3857", 900913])
    def test_webmercator_codes(self, descriptor):
        """EPSG:3857 and its aliases should resolve to Web Mercator."""
        assert resolve_crs_kind(descriptor) is CRSKind.WEBMERCATOR

    def test_wgs84(self):
        """EPSG:4326 should resolve to geographic."""
        assert resolve_crs_kind("EPSG:4326") is CRSKind.GEOGRAPHIC

    def test_geokeys(self):
        """GeoTIFF geokey dictionaries should be understood."""
        assert resolve_crs_kind({"ProjectedCSTypeGeoKey": 3857}) is CRSKind.WEBMERCATOR
        assert resolve_crs_kind({"ProjectedCRSGeoKey": 3857}) is CRSKind.WEBMERCATOR
        assert resolve_crs_kind({"GeographicTypeGeoKey": 4326}) is CRSKind.GEOGRAPHIC
        assert resolve_crs_kind({}) is CRSKind.GEOGRAPHIC

    def test_rasterio_crs(self):
        """rasterio CRS objects should be accepted."""
        assert resolve_crs_kind(RasterioCRS.from_epsg(3857)) is CRSKind.WEBMERCATOR
        assert resolve_crs_kind(RasterioCRS.from_epsg(4326)) is CRSKind.GEOGRAPHIC

    def test_unrecognized_falls_back_to_geographic(self):
        """Garbage and unsupported projections should fall back to geographic."""
        assert resolve_crs_kind("definitely not a crs") is CRSKind.GEOGRAPHIC
        assert resolve_crs_kind(32633) is CRSKind.GEOGRAPHIC

    def test_kind_passes_through(self):
        """An already resolved kind should be returned unchanged."""
        assert resolve_crs_kind(CRSKind.WEBMERCATOR) is CRSKind.WEBMERCATOR


class TestNormalizeLongitude:
    """Tests for the normalize_longitude function."""

    def test_in_range_unchanged(self):
        """Longitudes inside [-180, 180] should be untouched."""
        for lon in (-180.0, -12.5, 0.0, 179.9, 180.0):
            assert normalize_longitude(lon) == lon

    def test_wraps_out_of_range(self):
        """Longitudes outside the range should wrap by 360 degrees."""
        assert normalize_longitude(190.0) == pytest.approx(-170.0)
        assert normalize_longitude(-190.0) == pytest.approx(170.0)
        assert normalize_longitude(540.0) == pytest.approx(180.0)


class TestGeographicBBox:
    """Tests for GeographicArea.to_geographic_bbox."""

    def _area(self, bbox):
        return GeographicArea(bbox, 10, 10)

    def test_regular_bbox_passes_through(self):
        """A well-formed bbox should come back unchanged."""
        assert self._area((20, 59, 32, 71)).to_geographic_bbox() == (20, 59, 32, 71)

    def test_clamps_latitude(self):
        """Latitudes should be clamped to the Web Mercator limit."""
        bbox = self._area((0, -89, 10, 89)).to_geographic_bbox()
        assert bbox[1] == -MAX_LATITUDE
        assert bbox[3] == MAX_LATITUDE

    def test_normalizes_longitude(self):
        """Longitudes beyond 180 should be wrapped."""
        bbox = self._area((190, 0, 200, 5)).to_geographic_bbox()
        assert bbox == pytest.approx((-170, 0, -160, 5))

    @pytest.mark.parametrize("raw", [
        (179.995, 0, 179.999, 5),
        (-179.999, 0, -179.995, 5),
        (170, -10, -170, 10),
        (20, 0, 20.5, 30),
    ])
    def test_degenerate_spans_widen_to_world(self, raw):
        """Wrapped, straddling or collapsed spans should become [-180, 180]."""
        bbox = self._area(raw).to_geographic_bbox()
        assert bbox[0] == -180.0
        assert bbox[2] == 180.0
        assert bbox[1] == raw[1]
        assert bbox[3] == raw[3]

    def test_narrow_short_span_kept(self):
        """A narrow box that is also short should not be widened."""
        assert self._area((20, 0, 20.5, 5)).to_geographic_bbox() == (20, 0, 20.5, 5)

    def test_explicit_raw_bbox(self):
        """A bbox passed explicitly should be used instead of the area's own."""
        bbox = self._area((0, 0, 1, 1)).to_geographic_bbox((5, 6, 7, 8))
        assert bbox == (5, 6, 7, 8)

    def test_non_finite_bbox(self):
        """Non-finite input should produce an all-NaN bbox."""
        bbox = self._area((math.nan, 0, 10, 10)).to_geographic_bbox()
        assert all(math.isnan(v) for v in bbox)


class TestWebMercatorBBox:
    """Tests for WebMercatorArea.to_geographic_bbox."""

    def test_inverse_mercator(self):
        """Meters should convert back to degrees with the spherical formulas."""
        x = WEBMERCATOR_RADIUS * math.radians(45)
        y = WEBMERCATOR_RADIUS * math.log(math.tan(math.pi / 4 + math.radians(30) / 2))
        bbox = WebMercatorArea((-x, -y, x, y), 10, 10).to_geographic_bbox()
        assert bbox == pytest.approx((-45, -30, 45, 30))

    def test_clamps_to_world(self):
        """Values beyond the projected world should clamp to its edges."""
        big = 3e7
        bbox = WebMercatorArea((-big, -big, big, big), 10, 10).to_geographic_bbox()
        assert bbox == pytest.approx((-180, -MAX_LATITUDE, 180, MAX_LATITUDE))

    def test_antimeridian_wrap_widens(self):
        """Both edges at +180 should widen to the whole world."""
        edge = WEBMERCATOR_RADIUS * math.pi
        bbox = WebMercatorArea((edge, 0, edge + 10, 1000), 10, 10).to_geographic_bbox()
        assert bbox[0] == -180.0
        assert bbox[2] == 180.0

    def test_dateline_straddle_widens(self):
        """min_x > max_x should widen to the whole world."""
        bbox = WebMercatorArea((1e6, 0, -1e6, 1e5), 10, 10).to_geographic_bbox()
        assert (bbox[0], bbox[2]) == (-180.0, 180.0)


class TestSampleRasterIndex:
    """Tests for sample_raster_index on both projections."""

    def test_geographic_corners(self):
        """Degrees should map linearly into pixel space, row 0 at the north."""
        area = GeographicArea((20, 59, 32, 71), 120, 120)
        cols, rows = area.sample_raster_index(np.array([20.0, 26.0, 31.99]),
                                              np.array([71.0, 65.0, 59.01]))
        np.testing.assert_array_equal(cols, [0, 60, 119])
        np.testing.assert_array_equal(rows, [0, 60, 119])

    def test_geographic_outside(self):
        """Positions outside the raster should map outside the pixel range."""
        area = GeographicArea((20, 59, 32, 71), 120, 120)
        cols, rows = area.sample_raster_index(np.array([10.0, 40.0]), np.array([80.0, 50.0]))
        assert cols[0] < 0 and rows[0] < 0
        assert cols[1] >= 120 and rows[1] >= 120

    def test_webmercator(self, mercator_grid):
        """Web Mercator grids should be indexed through projected meters."""
        area = area_for(mercator_grid)
        cols, rows = area.sample_raster_index(np.array([-9.99, 1.05]), np.array([9.99, 1.05]))
        np.testing.assert_array_equal(cols, [0, 55])
        np.testing.assert_array_equal(rows, [0, 44])

    def test_zero_width_bbox_is_not_finite(self):
        """A collapsed native bbox should yield non-finite indices, not errors."""
        area = GeographicArea((10, 10, 10, 10), 4, 4)
        cols, rows = area.sample_raster_index(np.array([12.0]), np.array([12.0]))
        assert not np.isfinite(cols[0])


class TestAreaFor:
    """Tests for the area_for function."""

    def test_picks_class_by_kind(self, nordic_grid, mercator_grid):
        """area_for should match the grid's resolved projection."""
        assert type(area_for(nordic_grid)) is GeographicArea
        assert type(area_for(mercator_grid)) is WebMercatorArea

    def test_resolution(self):
        """Zoom 0 resolution should be the equator length over 256 pixels."""
        expected = 2 * math.pi * WEBMERCATOR_RADIUS / 256
        assert area_definitions.zoom_to_resolution_m(0) == pytest.approx(expected)
