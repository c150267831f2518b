"""Example runner that samples a yearly snow dataset at a few sites."""

from __future__ import annotations

import geopandas as gpd
from shapely.geometry import Point

from sdpraster import extract, get_raster, load_catalog


def run_example() -> None:
    """
    Open two years of snow persistence remotely and print values at three sites.

    Reads the catalog from $SDPRASTER_CATALOG.
    """

    catalog = load_catalog()
    handle = get_raster("R4D003", catalog=catalog, years=[2018, 2019])
    sites = gpd.GeoDataFrame(
        {"site": ["Gothic", "Schofield Pass", "Crested Butte"]},
        geometry=[Point(-106.989, 38.958), Point(-107.046, 39.015), Point(-106.987, 38.870)],
        crs="EPSG:4326",
    )
    table = extract(handle, sites, id_column="site", bind=True)
    print(table.drop(columns="geometry"))


if __name__ == "__main__":
    run_example()
