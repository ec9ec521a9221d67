"""Raster decoding collaborators.

This package contains modules that open source rasters from disk and
hand them to the tilers as :class:`skyglow.raster.RasterGrid` objects.
"""
