"""Extract raster values at point, line, and polygon features."""

from __future__ import annotations

import logging
import warnings

import geopandas as gpd
import numpy as np
import pandas as pd

from sdpraster.backends.base import RasterHandle
from sdpraster.errors import IncompatibleExtractionPolicy, UsageError
from sdpraster.extraction.geometry import covered_cells, geometry_kind, to_raster_crs
from sdpraster.extraction.policy import ExtractionPolicy, Summary
from sdpraster.temporal import filter_labels

LOGGER = logging.getLogger("sdpraster.extraction")

DEFAULT_ID_COLUMN = "ID"
CELL_COLUMN = "cell"
COVERAGE_COLUMN = "coverage_fraction"


def _feature_ids(features: gpd.GeoDataFrame, id_column: str | None) -> pd.Series:
    if id_column is None:
        ids = pd.Series(features.index, index=features.index, name=DEFAULT_ID_COLUMN)
    elif id_column in features.columns:
        ids = features[id_column]
    else:
        raise UsageError(f"Features have no column {id_column!r}")
    if not ids.is_unique:
        raise UsageError("Feature identifiers must be unique")
    return ids


def _advise(advisories: list[str], message: str, category: type[Warning] | None = None) -> None:
    LOGGER.warning(message)
    advisories.append(message)
    if category is not None:
        warnings.warn(message, category, stacklevel=3)


def _extract_points(
    handle: RasterHandle,
    features: gpd.GeoDataFrame,
    ids: pd.Series,
    id_name: str,
    interpolation: str,
) -> pd.DataFrame:
    exploded = features.geometry.explode(index_parts=False)
    point_ids = ids.loc[exploded.index].to_numpy()
    xs = exploded.x.to_numpy(dtype=float)
    ys = exploded.y.to_numpy(dtype=float)
    values = np.full((handle.nlayers, len(xs)), np.nan)
    valid = ~(np.isnan(xs) | np.isnan(ys))
    if valid.any():
        values[:, valid] = handle.sample_points(xs[valid], ys[valid], interpolation)
    table = pd.DataFrame({id_name: point_ids})
    for index, label in enumerate(handle.labels):
        table[label] = values[index]
    return table


def _extract_areal(
    handle: RasterHandle,
    features: gpd.GeoDataFrame,
    ids: pd.Series,
    id_name: str,
    kind: str,
    summary: Summary | None,
    weight_by_coverage: bool,
) -> pd.DataFrame:
    labels = list(handle.labels)
    columns = [id_name] + ([] if summary else [CELL_COLUMN]) + ([COVERAGE_COLUMN] if weight_by_coverage else [])
    records: list[dict[str, object]] = []
    transform, shape = handle.transform, handle.shape

    for feature_id, geom in zip(ids, features.geometry):
        cells = covered_cells(geom, transform, shape, kind=kind, weight_by_coverage=weight_by_coverage)
        if cells is None or len(cells) == 0:
            if summary is not None:
                records.append({id_name: feature_id, **{label: np.nan for label in labels}})
            else:
                LOGGER.warning("Feature %s covers no raster cells", feature_id)
            continue

        block = handle.read(cells.row_slice, cells.col_slice)
        values = block[:, cells.rows, cells.cols]
        if summary is not None:
            reduced = {label: summary(values[index]) for index, label in enumerate(labels)}
            records.append({id_name: feature_id, **reduced})
            continue
        for position in range(len(cells)):
            record: dict[str, object] = {id_name: feature_id, CELL_COLUMN: int(cells.cell_ids[position])}
            if weight_by_coverage:
                record[COVERAGE_COLUMN] = float(cells.fractions[position])
            for index, label in enumerate(labels):
                record[label] = float(values[index, position])
            records.append(record)

    return pd.DataFrame.from_records(records, columns=columns + labels)


def _bind(
    features: gpd.GeoDataFrame,
    table: pd.DataFrame,
    id_name: str,
    id_column: str | None,
) -> gpd.GeoDataFrame:
    if id_column is None:
        return features.join(table.set_index(id_name), rsuffix="_extracted")
    return features.merge(table, on=id_column, how="left", suffixes=("", "_extracted"))


def extract(
    handle: RasterHandle,
    features: gpd.GeoDataFrame,
    policy: ExtractionPolicy | None = None,
    **options: object,
) -> pd.DataFrame:
    """
    Return values of ``handle`` for each feature, one column per layer.

    Options may be given as an :class:`ExtractionPolicy` or as its fields
    in keyword form. Point features are never summarized. Features in a
    different CRS are reprojected to the raster's CRS first. Facts about how
    the request was honored are recorded in ``result.attrs``.
    """

    if policy is None:
        policy = ExtractionPolicy(**options)
    elif options:
        raise UsageError("Pass either a policy or keyword options, not both")
    advisories: list[str] = []

    if policy.temporal_filter is not None and not policy.temporal_filter.is_empty:
        handle = handle.select(filter_labels(handle.labels, policy.temporal_filter))

    kind = geometry_kind(features)
    summary = policy.summary
    summary_overridden = False
    if kind == "points" and summary is not None:
        _advise(advisories, f"Summary {summary.name!r} ignored for point features; returning point values")
        summary = None
        summary_overridden = True

    weight_by_coverage = policy.weight_by_coverage
    if weight_by_coverage and (kind != "polygons" or summary is not None):
        _advise(advisories, "Coverage weighting applies only to unsummarized polygon extraction; ignored")
        weight_by_coverage = False

    features, reprojected = to_raster_crs(features, handle.crs)
    ids = _feature_ids(features, policy.id_column)
    id_name = policy.id_column or DEFAULT_ID_COLUMN

    LOGGER.info("Extracting %d layers at %d %s", handle.nlayers, len(features), kind)
    if kind == "points":
        table = _extract_points(handle, features, ids, id_name, policy.interpolation)
    else:
        table = _extract_areal(handle, features, ids, id_name, kind, summary, weight_by_coverage)

    bound = False
    if policy.bind:
        one_row_per_feature = (
            (kind == "points" or summary is not None)
            and table[id_name].is_unique
            and len(table) == len(features)
        )
        if one_row_per_feature:
            table = _bind(features, table, id_name, policy.id_column)
            bound = True
        else:
            _advise(
                advisories,
                "Cannot bind extracted values to features: some features produced several rows. "
                "Returning the unbound table; set a summary to get one row per feature",
                IncompatibleExtractionPolicy,
            )

    table.attrs.update(
        {
            "layers": list(handle.labels),
            "geometry_kind": kind,
            "summary": summary.name if summary is not None else None,
            "summary_overridden": summary_overridden,
            "weight_by_coverage": weight_by_coverage,
            "reprojected": reprojected,
            "bound": bound,
            "advisories": advisories,
        }
    )
    return table
