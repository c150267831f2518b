from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import rasterio
from rasterio.transform import from_origin

from sdpraster.catalog import Catalog

ORIGIN_X = 300000.0
ORIGIN_Y = 4300000.0
CELL = 10.0
RASTER_CRS = "EPSG:32613"
YEARS = tuple(range(2000, 2006))


def cell_center(row: int, col: int) -> tuple[float, float]:
    return ORIGIN_X + CELL * col + CELL / 2, ORIGIN_Y - CELL * row - CELL / 2


def layer_grid(index: int, shape: tuple[int, int] = (10, 10)) -> np.ndarray:
    """Cell (r, c) of layer k holds 100k + 10r + c."""

    rows, cols = np.indices(shape)
    return (100.0 * index + 10.0 * rows + cols).astype("float32")


def write_geotiff(
    path: Path,
    array: np.ndarray,
    *,
    crs: str = RASTER_CRS,
    origin: tuple[float, float] = (ORIGIN_X, ORIGIN_Y),
    nodata: float = -9999.0,
) -> Path:
    height, width = array.shape
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype="float32",
        crs=crs,
        transform=from_origin(origin[0], origin[1], CELL, CELL),
        nodata=nodata,
    ) as dst:
        dst.write(array.astype("float32"), 1)
    return path


def catalog_rows(yearly_template: str = "https://ex/data_{year}.tif") -> list[dict[str, object]]:
    common = {"Domain": "UG", "Release": "Release4", "Metadata.URL": None}
    return [
        {
            **common,
            "CatalogID": "R4D003",
            "Type": "Snow",
            "Product": "Snow persistence",
            "TimeSeriesType": "Yearly",
            "Data.URL": yearly_template,
            "MinYear": 2000,
            "MaxYear": 2005,
            "MinDate": None,
            "MaxDate": None,
            "Deprecated": False,
        },
        {
            **common,
            "CatalogID": "R4D004",
            "Type": "Snow",
            "Product": "Daily snow cover",
            "TimeSeriesType": "Daily",
            "Data.URL": "https://ex/daily/{year}/snow_{year}_{day}.tif",
            "MinYear": None,
            "MaxYear": None,
            "MinDate": "01/01/20",
            "MaxDate": "12/31/21",
            "Deprecated": False,
        },
        {
            **common,
            "CatalogID": "R4D008",
            "Type": "Climate",
            "Product": "Monthly maximum temperature",
            "TimeSeriesType": "Monthly",
            "Data.URL": "https://ex/monthly/tmax_{year}_{month}.tif",
            "MinYear": None,
            "MaxYear": None,
            "MinDate": "09/01/02",
            "MaxDate": "08/31/06",
            "Deprecated": False,
        },
        {
            **common,
            "CatalogID": "R1D014",
            "Type": "Topo",
            "Release": "Release1",
            "Product": "Digital elevation model",
            "TimeSeriesType": "Single",
            "Data.URL": "https://ex/topo/dem_1m.tif",
            "MinYear": None,
            "MaxYear": None,
            "MinDate": None,
            "MaxDate": None,
            "Deprecated": False,
        },
        {
            **common,
            "CatalogID": "R1D001",
            "Type": "Vegetation",
            "Release": "Release1",
            "Product": "Basic landcover (v1)",
            "TimeSeriesType": "Single",
            "Data.URL": "https://ex/veg/landcover_v1.tif",
            "MinYear": None,
            "MaxYear": None,
            "MinDate": None,
            "MaxDate": None,
            "Deprecated": True,
        },
    ]


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in (
        "SDPRASTER_CATALOG",
        "SDPRASTER_CRS",
        "SDPRASTER_DOWNLOAD_DIR",
        "SDPRASTER_DAILY_DEFAULT_DAYS",
        "SDPRASTER_HTTP_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def catalog() -> Catalog:
    return Catalog(pd.DataFrame(catalog_rows()))


@pytest.fixture
def yearly_rasters(tmp_path) -> dict[int, Path]:
    folder = tmp_path / "rasters"
    folder.mkdir()
    return {year: write_geotiff(folder / f"data_{year}.tif", layer_grid(index)) for index, year in enumerate(YEARS)}


@pytest.fixture
def local_catalog(yearly_rasters) -> Catalog:
    folder = next(iter(yearly_rasters.values())).parent
    return Catalog(pd.DataFrame(catalog_rows(str(folder / "data_{year}.tif"))))
