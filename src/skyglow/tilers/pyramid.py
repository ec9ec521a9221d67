"""Tile pyramid writer.

Walks every zoom level, renders the tiles covering the raster and writes
them as ``{tile_dir}/{z}/{x}/{y}.png``. The tree is sparse: tiles without
a single visible pixel are not stored, and any stale file at such an
address is removed. With ``skip_existing`` an interrupted run can be
restarted and only fills the gaps.

Tiles are independent, so they can be rendered by a thread pool without
changing the output. Concurrent runs against the same directory are not
supported.
"""
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional

import mercantile
import numpy as np
from PIL import Image
from tqdm import tqdm

from .bounds import compute_tile_range
from .rasterizer import TileRasterizer
from .. import config as skyglow_config
from ..utils import vprint

logger = logging.getLogger(__name__)

MAX_ZOOM_LIMIT = 22


def _clamp_zoom(zoom):
    return max(0, min(MAX_ZOOM_LIMIT, int(zoom)))


@dataclass
class PyramidConfig:
    """Options for a pyramid run.

    Zoom levels are clamped to [0, 22] and swapped when given in the
    wrong order.
    """

    min_zoom: int = 0
    max_zoom: int = 8
    skip_existing: bool = False
    skip_empty: bool = True
    workers: int = 1

    def __post_init__(self):
        self.min_zoom = _clamp_zoom(self.min_zoom)
        self.max_zoom = _clamp_zoom(self.max_zoom)
        if self.min_zoom > self.max_zoom:
            self.min_zoom, self.max_zoom = self.max_zoom, self.min_zoom
        self.workers = max(1, int(self.workers))

    @property
    def zooms(self):
        return range(self.min_zoom, self.max_zoom + 1)

    @classmethod
    def from_settings(cls, settings, **overrides):
        """Build a config from Dynaconf settings.

        Keyword overrides that are not None take precedence over the
        ``min_zoom``, ``max_zoom``, ``skip_existing``, ``skip_empty`` and
        ``workers`` settings.
        """
        defaults = cls.__dataclass_fields__
        values = {name: settings.get(name, defaults[name].default) for name in defaults}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class TileStatus(Enum):
    WRITTEN = "written"
    SKIPPED_EXISTING = "skipped_existing"
    SKIPPED_EMPTY = "skipped_empty"
    FAILED = "failed"


class TileResult(NamedTuple):
    tile: mercantile.Tile
    status: TileStatus
    error: Optional[str] = None


@dataclass
class RunSummary:
    """Outcome of a pyramid run.

    Attributes
    ----------
    results : list of TileResult
        One entry per visited tile.
    skipped_zooms : list of int
        Zoom levels skipped because their tile range was degenerate.
    """

    results: List[TileResult] = field(default_factory=list)
    skipped_zooms: List[int] = field(default_factory=list)

    def counts(self):
        """Number of tiles per status, every status included."""
        totals = {status: 0 for status in TileStatus}
        for result in self.results:
            totals[result.status] += 1
        return totals

    def with_status(self, status):
        return [r for r in self.results if r.status is status]

    @property
    def failed(self):
        return self.with_status(TileStatus.FAILED)

    @property
    def ok(self):
        return not self.failed


def encode_png(rgba: np.ndarray) -> bytes:
    """Encode an RGBA uint8 buffer as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


class TilePyramidWriter:
    """Write the tile pyramid of one raster.

    Parameters
    ----------
    grid : skyglow.raster.RasterGrid
        Source samples, shared read-only by every tile.
    color_scale : ColorScale or FallbackColorScale
        Ramp used for every tile.
    tile_dir : str or pathlib.Path
        Output root.
    """

    def __init__(self, grid, color_scale, tile_dir):
        self.rasterizer = TileRasterizer(grid, color_scale)
        self.tile_dir = Path(tile_dir)
        self.geo_bbox = self.rasterizer.area.to_geographic_bbox()

    def tile_path(self, tile: mercantile.Tile) -> Path:
        return self.tile_dir / str(tile.z) / str(tile.x) / f"{tile.y}.png"

    def tile_range(self, zoom):
        return compute_tile_range(self.geo_bbox, zoom)

    def process_tile(self, tile: mercantile.Tile, config: PyramidConfig) -> TileResult:
        """Render and persist a single tile.

        Failures are logged and reported in the result so the rest of the
        pyramid can continue.
        """
        path = self.tile_path(tile)
        if config.skip_existing and path.is_file():
            return TileResult(tile, TileStatus.SKIPPED_EXISTING)
        try:
            generated = self.rasterizer.render(tile)
            if config.skip_empty and not generated.any_opaque:
                path.unlink(missing_ok=True)
                if tile.z <= 6 or (tile.x % 64 == 0 and tile.y % 64 == 0):
                    vprint(f"Skipped empty tile {tile.z}/{tile.x}/{tile.y}", level=1)
                return TileResult(tile, TileStatus.SKIPPED_EMPTY)
            data = encode_png(generated.rgba)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except Exception as err:
            logger.warning("Error generating tile %s/%s/%s: %s", tile.z, tile.x, tile.y, err)
            return TileResult(tile, TileStatus.FAILED, str(err))
        return TileResult(tile, TileStatus.WRITTEN)

    def run(self, config: Optional[PyramidConfig] = None) -> RunSummary:
        """Generate every zoom level of ``config``.

        Parameters
        ----------
        config : PyramidConfig, optional
            Run options, defaults to ``PyramidConfig()``.

        Returns
        -------
        RunSummary
            Per-tile results and the zoom levels that were skipped.
        """
        config = config or PyramidConfig()
        summary = RunSummary()
        vprint(f"Raster bbox in degrees: {self.geo_bbox}")

        ranges = []
        for zoom in config.zooms:
            tile_range = self.tile_range(zoom)
            if tile_range.degenerate or len(tile_range) == 0:
                vprint(f"Skipping zoom level {zoom} due to invalid bounds")
                summary.skipped_zooms.append(zoom)
                continue
            ranges.append(tile_range)

        total_tiles = sum(len(r) for r in ranges)
        with tqdm(total=total_tiles, desc="Rendering tiles", unit="tile",
                  disable=not skyglow_config.settings.get("verbose", False)) as pbar:
            for tile_range in ranges:
                vprint(f"\nGenerating tiles for zoom level {tile_range.zoom}: "
                       f"x {tile_range.min_x}..{tile_range.max_x}, "
                       f"y {tile_range.min_y}..{tile_range.max_y} (~{len(tile_range)} tiles)")
                if config.workers > 1:
                    with ThreadPoolExecutor(max_workers=config.workers) as exe:
                        results = list(exe.map(
                            lambda t: self.process_tile(t, config), tile_range.tiles()))
                    pbar.update(len(results))
                else:
                    results = []
                    for tile in tile_range.tiles():
                        results.append(self.process_tile(tile, config))
                        pbar.update(1)
                summary.results.extend(results)
                written = sum(r.status is TileStatus.WRITTEN for r in results)
                vprint(f"Completed zoom level {tile_range.zoom}: {written} tiles written")
        return summary