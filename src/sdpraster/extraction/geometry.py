"""Geometry helpers: feature kinds, CRS reconciliation, and raster cell coverage."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import geopandas as gpd
import numpy as np
import shapely
from affine import Affine
from pyproj import CRS
from rasterio.features import geometry_mask
from rasterio.windows import Window
from rasterio.windows import transform as window_transform
from shapely.geometry import mapping
from shapely.geometry.base import BaseGeometry

from sdpraster.errors import UsageError

LOGGER = logging.getLogger("sdpraster.extraction")

GEOMETRY_KINDS = {
    "Point": "points",
    "MultiPoint": "points",
    "LineString": "lines",
    "LinearRing": "lines",
    "MultiLineString": "lines",
    "Polygon": "polygons",
    "MultiPolygon": "polygons",
}


def geometry_kind(features: gpd.GeoDataFrame) -> str:
    """Return ``points``, ``lines`` or ``polygons`` for a homogeneous feature set."""

    if features.empty:
        raise UsageError("No features to extract")
    types = set(features.geometry.dropna().geom_type.unique())
    if not types:
        raise UsageError("Features have no geometries")
    unknown = types - set(GEOMETRY_KINDS)
    if unknown:
        raise UsageError(f"Unsupported geometry types: {', '.join(sorted(unknown))}")
    kinds = {GEOMETRY_KINDS[name] for name in types}
    if len(kinds) > 1:
        raise UsageError(f"Features mix geometry kinds ({', '.join(sorted(kinds))}); extract each kind separately")
    return kinds.pop()


def to_raster_crs(features: gpd.GeoDataFrame, raster_crs: object) -> tuple[gpd.GeoDataFrame, bool]:
    """Reproject ``features`` into the raster's CRS; the raster is never reprojected."""

    if raster_crs is None:
        raise UsageError("The raster has no coordinate reference system")
    if features.crs is None:
        raise UsageError("Features have no coordinate reference system")
    target = CRS.from_user_input(raster_crs)
    if features.crs.equals(target):
        return features, False
    LOGGER.info("Reprojecting features from %s to %s", features.crs.to_string(), target.to_string())
    return features.to_crs(target), True


@dataclass(frozen=True)
class CellCoverage:
    """Raster cells covered by one feature, relative to a window of the grid."""

    row_slice: slice
    col_slice: slice
    rows: np.ndarray
    cols: np.ndarray
    cell_ids: np.ndarray
    fractions: np.ndarray | None = None

    def __len__(self) -> int:
        return len(self.rows)


def _bounding_window(geom: BaseGeometry, transform: Affine, shape: tuple[int, int]) -> Window | None:
    height, width = shape
    minx, miny, maxx, maxy = geom.bounds
    inverse = ~transform
    corners = [inverse * (x, y) for x in (minx, maxx) for y in (miny, maxy)]
    cols = [col for col, _ in corners]
    rows = [row for _, row in corners]
    col_start = max(int(math.floor(min(cols))), 0)
    col_stop = min(int(math.floor(max(cols))) + 1, width)
    row_start = max(int(math.floor(min(rows))), 0)
    row_stop = min(int(math.floor(max(rows))) + 1, height)
    if col_start >= col_stop or row_start >= row_stop:
        return None
    return Window(col_start, row_start, col_stop - col_start, row_stop - row_start)


def _coverage_fractions(
    geom: BaseGeometry,
    transform: Affine,
    rows: np.ndarray,
    cols: np.ndarray,
) -> np.ndarray:
    x0 = transform.c + cols * transform.a + rows * transform.b
    y0 = transform.f + cols * transform.d + rows * transform.e
    x1 = x0 + transform.a + transform.b
    y1 = y0 + transform.d + transform.e
    cells = shapely.box(np.minimum(x0, x1), np.minimum(y0, y1), np.maximum(x0, x1), np.maximum(y0, y1))
    covered = shapely.area(shapely.intersection(cells, geom))
    return np.clip(covered / shapely.area(cells), 0.0, 1.0)


def covered_cells(
    geom: BaseGeometry | None,
    transform: Affine,
    shape: tuple[int, int],
    *,
    kind: str,
    weight_by_coverage: bool = False,
) -> CellCoverage | None:
    """
    Return the cells a line or polygon covers.

    Polygons take the cells whose centres fall inside them, or with
    ``weight_by_coverage`` every cell they overlap by a positive area along with
    the covered fraction. Lines take every cell they touch.
    """

    if geom is None or geom.is_empty:
        return None
    window = _bounding_window(geom, transform, shape)
    if window is None:
        return None

    local_transform = window_transform(window, transform)
    all_touched = kind == "lines" or weight_by_coverage
    inside = geometry_mask(
        [mapping(geom)],
        out_shape=(int(window.height), int(window.width)),
        transform=local_transform,
        all_touched=all_touched,
        invert=True,
    )
    rows, cols = np.nonzero(inside)
    fractions = None
    if weight_by_coverage:
        fractions = _coverage_fractions(geom, local_transform, rows, cols)
        positive = fractions > 0
        rows, cols, fractions = rows[positive], cols[positive], fractions[positive]

    row_offset, col_offset = int(window.row_off), int(window.col_off)
    cell_ids = (rows + row_offset) * shape[1] + (cols + col_offset)
    return CellCoverage(
        row_slice=slice(row_offset, row_offset + int(window.height)),
        col_slice=slice(col_offset, col_offset + int(window.width)),
        rows=rows,
        cols=cols,
        cell_ids=cell_ids,
        fractions=fractions,
    )
