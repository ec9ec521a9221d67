"""Decoded source raster shared read-only by every tile operation."""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np


class InputUnavailableError(Exception):
    """The source raster is missing or cannot be decoded."""


class CRSKind(Enum):
    """Source coordinate reference systems understood by the tilers."""

    GEOGRAPHIC = "EPSG:4326"
    WEBMERCATOR = "EPSG:3857"


@dataclass(frozen=True)
class RasterGrid:
    """One band of scalar samples over a bounding box.

    Parameters
    ----------
    width : int
        Number of columns.
    height : int
        Number of rows. Row 0 is the northern edge.
    bbox : tuple of float
        (min_x, min_y, max_x, max_y) in native CRS units, degrees for
        geographic grids and meters for Web Mercator grids.
    crs_kind : CRSKind
        Resolved source projection.
    data : numpy.ndarray
        Samples, either flat with ``width * height`` values or shaped
        ``(height, width)``. Stored reshaped and read-only.
    """

    width: int
    height: int
    bbox: Tuple[float, float, float, float]
    crs_kind: CRSKind
    data: np.ndarray

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid raster size {self.width}x{self.height}")
        if len(self.bbox) != 4:
            raise ValueError(f"Bounding box needs 4 values, got {self.bbox!r}")
        data = np.asarray(self.data)
        if data.size != self.width * self.height:
            raise ValueError(
                f"Expected {self.width * self.height} samples, got {data.size}")
        data = data.reshape(self.height, self.width).view()
        data.flags.writeable = False
        object.__setattr__(self, "bbox", tuple(float(v) for v in self.bbox))
        object.__setattr__(self, "data", data)
