"""Command-line entry point for sdpraster."""

from __future__ import annotations

import logging
from pathlib import Path

import click
import geopandas as gpd

from sdpraster.backends.base import BackendError
from sdpraster.catalog import DOMAINS, TIMESERIES_TYPES, TYPES, load_catalog
from sdpraster.errors import SDPError
from sdpraster.extraction import extract
from sdpraster.raster import get_raster
from sdpraster.templates import expand
from sdpraster.temporal import TemporalSelection, resolve


@click.group()
@click.option("--catalog", "catalog_location", default=None, help="Catalog CSV path or URL (default: $SDPRASTER_CATALOG).")
@click.option("--verbose", is_flag=True, help="Log debug output.")
@click.pass_context
def main(ctx: click.Context, catalog_location: str | None, verbose: bool) -> None:
    """
    Browse the dataset catalog and sample rasters at vector features.
    """

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = {"catalog_location": catalog_location}


def _catalog(ctx: click.Context):
    try:
        return load_catalog(ctx.obj["catalog_location"])
    except SDPError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command("catalog")
@click.option("--domain", "domains", multiple=True, type=click.Choice(DOMAINS), help="Spatial domain; repeatable.")
@click.option("--type", "types", multiple=True, type=click.Choice(TYPES), help="Product type; repeatable.")
@click.option("--timeseries-type", "timeseries_types", multiple=True, type=click.Choice(TIMESERIES_TYPES))
@click.option("--deprecated/--current", default=False, help="List deprecated products instead of current ones.")
@click.pass_context
def catalog_command(ctx: click.Context, domains, types, timeseries_types, deprecated: bool) -> None:
    """List catalog entries."""

    catalog = _catalog(ctx)
    filters = {}
    if domains:
        filters["domains"] = domains
    if types:
        filters["types"] = types
    if timeseries_types:
        filters["timeseries_types"] = timeseries_types
    frame = catalog.filter(deprecated=deprecated, **filters)
    columns = [name for name in ("CatalogID", "Product", "Domain", "Type", "TimeSeriesType") if name in frame]
    click.echo(frame[columns].to_string(index=False))


def _selection_options(func):
    func = click.option("--year", "years", multiple=True, type=int, help="Year to include; repeatable.")(func)
    func = click.option("--month", "months", multiple=True, type=int, help="Month to include; repeatable.")(func)
    func = click.option("--start", "date_start", default=None, help="First date (YYYY-MM-DD).")(func)
    func = click.option("--end", "date_end", default=None, help="Last date (YYYY-MM-DD).")(func)
    return func


@main.command("layers")
@click.argument("catalog_id")
@_selection_options
@click.pass_context
def layers_command(ctx: click.Context, catalog_id: str, years, months, date_start, date_end) -> None:
    """Print the label and locator of each layer a dataset resolves to."""

    catalog = _catalog(ctx)
    try:
        record = catalog.record(catalog_id)
        selection = TemporalSelection.build(
            years=years or None, months=months or None, date_start=date_start, date_end=date_end
        )
        resolution = resolve(record, selection)
        locators = expand(record.template, resolution.labels, record.cadence)
    except SDPError as exc:
        raise click.ClickException(str(exc)) from exc
    for label, locator in zip(resolution.labels, locators):
        click.echo(f"{label}\t{locator}")
    if resolution.unmatched:
        click.echo(f"Unavailable: {', '.join(resolution.unmatched)}", err=True)


@main.command("extract")
@click.argument("catalog_id")
@click.argument("features_path", type=click.Path(exists=True, path_type=Path))
@_selection_options
@click.option("--summary", default=None, help="mean, min, max, sum, median, or pNN (e.g. p90).")
@click.option("--bilinear", is_flag=True, help="Interpolate point values bilinearly.")
@click.option("--weights", is_flag=True, help="Report polygon coverage fractions per cell.")
@click.option("--id-column", default=None, help="Feature attribute identifying each feature.")
@click.option("--download-dir", type=click.Path(path_type=Path), default=None, help="Download files here first.")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="CSV output (default: stdout).")
@click.pass_context
def extract_command(
    ctx: click.Context,
    catalog_id: str,
    features_path: Path,
    years,
    months,
    date_start,
    date_end,
    summary: str | None,
    bilinear: bool,
    weights: bool,
    id_column: str | None,
    download_dir: Path | None,
    output: Path | None,
) -> None:
    """Extract dataset values at the features in FEATURES_PATH."""

    catalog = _catalog(ctx)
    features = gpd.read_file(features_path)
    try:
        handle = get_raster(
            catalog_id,
            catalog=catalog,
            years=years or None,
            months=months or None,
            date_start=date_start,
            date_end=date_end,
            download_files=download_dir is not None,
            download_path=download_dir,
        )
        table = extract(
            handle,
            features,
            interpolation="bilinear" if bilinear else "nearest",
            summary=summary,
            weight_by_coverage=weights,
            id_column=id_column,
        )
    except (SDPError, BackendError) as exc:
        raise click.ClickException(str(exc)) from exc

    if output is None:
        click.echo(table.to_csv(index=False), nl=False)
    else:
        table.to_csv(output, index=False)
        click.echo(f"Wrote {len(table)} rows to {output}")
