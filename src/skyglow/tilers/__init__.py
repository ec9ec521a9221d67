"""Tile generation for slippy map pyramids.

This package contains the tile addressing math, the color ramp, the
per-tile rasterizer and the pyramid writer that ties them together.
"""
