"""Command-line interface for skyglow.

This module provides CLI commands for rendering radiance rasters into
slippy map tile pyramids using the Typer framework.
"""
from typing import Optional

import typer

from . import config, tile
from .area_definitions import zoom_to_resolution_m
from .data_sources import geotiff
from .raster import InputUnavailableError
from .tilers.pyramid import PyramidConfig, TileStatus

app = typer.Typer()


@app.callback()
def callback():
    """
    Render radiance rasters (night lights) into slippy tiles.
    """


@app.command()
def render(
        source: Optional[str] = typer.Argument(None, help="Input GeoTIFF, defaults to the 'source' setting"),
        tile_dir: Optional[str] = typer.Option(None, help="Output root for {z}/{x}/{y}.png"),
        min_zoom: Optional[int] = typer.Option(None, help="Lowest zoom level (0-22)"),
        max_zoom: Optional[int] = typer.Option(None, help="Highest zoom level (0-22)"),
        skip_existing: Optional[bool] = typer.Option(None, "--skip-existing/--no-skip-existing",
                                                     help="Keep tiles that are already on disk"),
        skip_empty: Optional[bool] = typer.Option(None, "--skip-empty/--no-skip-empty",
                                                  help="Do not store fully transparent tiles"),
        workers: Optional[int] = typer.Option(None, help="Render threads"),
        env: str = typer.Option("DEFAULT", help="Settings environment"),
        verbose: bool = typer.Option(False, "--verbose", "-v")):
    """
    Render the tile pyramid of a raster.
    """
    if env != "DEFAULT":
        config.change_env(env)
    try:
        summary = tile.pyramid(source, tile_dir, verbose=verbose or None,
                               min_zoom=min_zoom, max_zoom=max_zoom,
                               skip_existing=skip_existing, skip_empty=skip_empty,
                               workers=workers)
    except (InputUnavailableError, ValueError) as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)

    for status, count in summary.counts().items():
        typer.echo(f"{status.value}: {count}")
    if summary.skipped_zooms:
        typer.echo(f"skipped zoom levels: {summary.skipped_zooms}")
    for result in summary.with_status(TileStatus.FAILED):
        t = result.tile
        typer.echo(f"failed {t.z}/{t.x}/{t.y}: {result.error}", err=True)
    if not summary.ok:
        raise typer.Exit(code=2)


@app.command()
def bounds(
        source: Optional[str] = typer.Argument(None, help="Input GeoTIFF, defaults to the 'source' setting"),
        min_zoom: Optional[int] = typer.Option(None, help="Lowest zoom level (0-22)"),
        max_zoom: Optional[int] = typer.Option(None, help="Highest zoom level (0-22)")):
    """
    Show the tile ranges a raster covers without rendering.
    """
    source = source or config.settings.get("source")
    if source is None:
        typer.echo("Error: no source raster given", err=True)
        raise typer.Exit(code=1)
    try:
        grid = geotiff.open_raster(source)
    except InputUnavailableError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)

    zooms = PyramidConfig.from_settings(config.settings, min_zoom=min_zoom, max_zoom=max_zoom).zooms
    bbox, ranges = tile.tile_ranges(grid, zooms)
    typer.echo(f"bbox (degrees): {', '.join(f'{v:.6f}' for v in bbox)}")
    for r in ranges:
        if r.degenerate:
            typer.echo(f"z{r.zoom}: degenerate")
            continue
        typer.echo(f"z{r.zoom}: x {r.min_x}..{r.max_x} y {r.min_y}..{r.max_y} "
                   f"({len(r)} tiles, {zoom_to_resolution_m(r.zoom):.1f} m/px)")
