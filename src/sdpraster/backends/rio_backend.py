"""rioxarray-backed implementation of :class:`RasterBackend`."""

from __future__ import annotations

import logging
from typing import Sequence

import pandas as pd
from rasterio.errors import RasterioIOError
import rioxarray
import xarray as xr

from sdpraster.backends.base import LAYER_DIM, BackendOpenError, RasterBackend

LOGGER = logging.getLogger("sdpraster.backends")

VSICURL_PREFIX = "/vsicurl/"


def to_gdal_path(locator: str) -> str:
    """Route HTTP(S) locators through GDAL's streaming file system."""

    if locator.startswith(("https://", "http://")):
        return f"{VSICURL_PREFIX}{locator}"
    return locator


def _split_bands(array: xr.DataArray, label: str) -> list[tuple[str, xr.DataArray]]:
    if "band" not in array.dims:
        return [(label, array)]
    count = array.sizes["band"]
    if count == 1:
        return [(label, array.isel(band=0, drop=True))]
    return [(f"{label}_{index + 1}", array.isel(band=index, drop=True)) for index in range(count)]


class RioxarrayBackend(RasterBackend):
    """
    Open GeoTIFFs and cloud-optimized GeoTIFFs through rioxarray.

    Arrays are dask-backed, so only headers are read when a handle is built
    and pixel blocks are fetched when a caller reads or samples them.
    """

    def __init__(self, *, chunks: bool | dict | None = True, **open_kwargs: object) -> None:
        self.chunks = chunks
        self.open_kwargs = open_kwargs

    def _open_one(self, path: str) -> xr.DataArray:
        try:
            array = rioxarray.open_rasterio(path, masked=True, chunks=self.chunks, **self.open_kwargs)
        except (RasterioIOError, OSError, ValueError) as exc:
            raise BackendOpenError(f"Could not open raster {path}: {exc}") from exc
        if not isinstance(array, xr.DataArray):
            raise BackendOpenError(f"{path} holds several subdatasets; open one of them directly")
        return array

    def open(self, locators: Sequence[str], labels: Sequence[str], *, remote: bool) -> xr.DataArray:
        if len(locators) != len(labels):
            raise BackendOpenError(f"Got {len(locators)} locators for {len(labels)} labels")
        if not locators:
            raise BackendOpenError("No locators to open")

        layers: list[tuple[str, xr.DataArray]] = []
        for locator, label in zip(locators, labels):
            path = to_gdal_path(locator) if remote else locator
            LOGGER.debug("Opening %s as layer %s", path, label)
            layers.extend(_split_bands(self._open_one(path), label))

        names = [name for name, _ in layers]
        if len(set(names)) != len(names):
            raise BackendOpenError(f"Duplicate layer names: {', '.join(names)}")
        try:
            stacked = xr.concat(
                [array for _, array in layers],
                dim=pd.Index(names, name=LAYER_DIM),
                coords="minimal",
                compat="override",
                join="exact",
                combine_attrs="drop_conflicts",
            )
        except ValueError as exc:
            raise BackendOpenError(f"Layers do not share a common grid: {exc}") from exc
        return stacked.transpose(LAYER_DIM, "y", "x")
