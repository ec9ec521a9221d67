"""Data-driven color ramp for radiance tiles.

Radiance is heavy tailed, so instead of a linear normalization the ramp
uses quantile breaks of the positive samples. Seven fixed colors run from
dark green to white with increasing opacity. Values that are zero,
negative or not finite are no-data and map to a fully transparent pixel.
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np

# Largest number of values kept for the quantile estimate
MAX_SAMPLES = 500_000
# Fraction of the grid visited by the strided sampler
SAMPLE_FRACTION = 0.02
# Lower bound on the sample count. Grids of up to this many cells are read
# in full, so their breaks are exact quantiles rather than strided estimates
MIN_SAMPLES = 10_000
QUANTILES = (0.20, 0.40, 0.60, 0.80, 0.90, 0.98)

# (r, g, b, alpha) from the lowest to the highest bin
VIIRS_RAMP = (
    (0, 80, 0, 0.35),       # dark green
    (0, 160, 0, 0.45),      # green
    (180, 220, 0, 0.55),    # yellow-green
    (255, 215, 0, 0.68),    # gold
    (255, 140, 0, 0.80),    # orange
    (255, 0, 0, 0.90),      # red
    (255, 255, 255, 0.95),  # white
)

FALLBACK_VMAX = 1000.0


class EmptySampleError(ValueError):
    """No positive finite values were found to build a ramp from."""


def _no_data_mask(values):
    with np.errstate(invalid="ignore"):
        return ~np.isfinite(values) | (values <= 0)


@dataclass(frozen=True)
class ColorScale:
    """Ordinal color ramp with quantile breaks.

    Color ``i`` applies to values in ``(breaks[i-1], breaks[i]]``; the last
    color takes everything above the final break.

    Attributes
    ----------
    breaks : tuple of float
        Ascending thresholds, one fewer than ``colors``.
    colors : tuple of tuple
        (r, g, b, alpha) entries with alpha in [0, 1].
    """

    breaks: Tuple[float, ...]
    colors: Tuple[Tuple[int, int, int, float], ...] = VIIRS_RAMP

    def __post_init__(self):
        if len(self.colors) != len(self.breaks) + 1:
            raise ValueError("ColorScale needs exactly one more color than breaks")
        object.__setattr__(self, "breaks", tuple(float(b) for b in self.breaks))
        object.__setattr__(self, "colors", tuple(tuple(c) for c in self.colors))

    def index_for(self, value):
        """Return the ramp bin of ``value``, or None for no-data."""
        if not np.isfinite(value) or value <= 0:
            return None
        return int(np.searchsorted(self.breaks, value, side="left"))

    def color_for(self, value):
        """Return the (r, g, b, a) bytes of a single value."""
        return tuple(int(c) for c in self.to_rgba(np.array([value], dtype=np.float64))[0])

    def to_rgba(self, values: np.ndarray) -> np.ndarray:
        """Color an array of values.

        Parameters
        ----------
        values : numpy.ndarray
            Samples of any shape.

        Returns
        -------
        numpy.ndarray
            uint8 array with a trailing RGBA axis of length 4.
        """
        values = np.asarray(values, dtype=np.float64)
        table = np.array([(r, g, b, np.floor(a * 255)) for r, g, b, a in self.colors],
                         dtype=np.uint8)
        idx = np.searchsorted(self.breaks, np.nan_to_num(values), side="left")
        rgba = table[np.minimum(idx, len(self.colors) - 1)]
        rgba[_no_data_mask(values)] = 0
        return rgba


@dataclass(frozen=True)
class FallbackColorScale:
    """Linear green to red ramp over [0, vmax] with alpha from 0.3 to 0.9.

    Used when a raster has no positive samples to take quantiles from.
    """

    vmax: float = FALLBACK_VMAX

    def index_for(self, value):
        """Return the red byte of ``value`` (0-255), or None for no-data."""
        if not np.isfinite(value) or value <= 0:
            return None
        return int(np.floor(255 * min(value / self.vmax, 1.0)))

    def color_for(self, value):
        return tuple(int(c) for c in self.to_rgba(np.array([value], dtype=np.float64))[0])

    def to_rgba(self, values: np.ndarray) -> np.ndarray:
        values = np.asarray(values, dtype=np.float64)
        norm = np.clip(np.nan_to_num(values) / self.vmax, 0.0, 1.0)
        rgba = np.empty(values.shape + (4,), dtype=np.uint8)
        rgba[..., 0] = np.floor(255 * norm)
        rgba[..., 1] = np.floor(255 * (1 - norm))
        rgba[..., 2] = 0
        rgba[..., 3] = np.floor((0.3 + 0.6 * norm) * 255)
        rgba[_no_data_mask(values)] = 0
        return rgba


class ColorScaleBuilder:
    """Build a :class:`ColorScale` from raster samples.

    Parameters
    ----------
    quantiles : tuple of float, optional
        Percentiles used as breaks.
    colors : tuple, optional
        Ramp colors, one more than ``quantiles``.
    """

    def __init__(self, quantiles=QUANTILES, colors=VIIRS_RAMP):
        self.quantiles = tuple(quantiles)
        self.colors = tuple(colors)

    @staticmethod
    def sample(values: np.ndarray) -> np.ndarray:
        """Return a strided subset of the positive finite values."""
        flat = np.asarray(values).ravel()
        total = flat.size
        target = min(MAX_SAMPLES, max(int(total * SAMPLE_FRACTION), MIN_SAMPLES))
        step = max(1, total // max(1, target))
        picked = flat[::step].astype(np.float64)
        with np.errstate(invalid="ignore"):
            return picked[np.isfinite(picked) & (picked > 0)]

    def build(self, values: np.ndarray) -> ColorScale:
        """Derive quantile breaks from ``values``.

        Raises
        ------
        EmptySampleError
            If no positive finite value was sampled.
        """
        samples = np.sort(self.sample(values))
        if samples.size == 0:
            raise EmptySampleError("No positive finite samples to build a color scale from")
        last = samples.size - 1
        breaks = [samples[min(last, int(np.floor(q * last)))] for q in self.quantiles]
        return ColorScale(breaks=tuple(breaks), colors=self.colors)
