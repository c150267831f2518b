"""Core interfaces for raster and download backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Sequence

import numpy as np
import rioxarray  # noqa: F401  registers the .rio accessor
import xarray as xr

from sdpraster.errors import UsageError
from sdpraster.temporal import Resolution

LAYER_DIM = "layer"


class BackendError(Exception):
    """Raised when a backend cannot satisfy a request."""


class BackendOpenError(BackendError):
    """Raised when one or more locators cannot be opened as rasters."""


class DownloadIncomplete(BackendError):
    """Raised when any file of a local materialization failed to download."""

    def __init__(self, message: str, failures: Sequence["DownloadResult"] = ()) -> None:
        super().__init__(message)
        self.failures = list(failures)


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of fetching one locator."""

    locator: str
    local_path: Path
    success: bool
    status_code: int | None = None
    skipped: bool = False


@dataclass(frozen=True)
class RasterHandle:
    """
    An opened multi-layer raster.

    ``data`` has dims ``(layer, y, x)`` and its ``layer`` coordinate is the
    authoritative layer-to-label mapping. Stored cell values are never
    rewritten; ``scale`` and ``offset`` are applied whenever values are read.
    """

    data: xr.DataArray
    locators: tuple[str, ...]
    scale: float = 1.0
    offset: float = 0.0
    resolution: Resolution | None = None

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(str(label) for label in self.data[LAYER_DIM].values)

    @property
    def nlayers(self) -> int:
        return int(self.data.sizes[LAYER_DIM])

    @property
    def crs(self):
        return self.data.rio.crs

    @property
    def transform(self):
        return self.data.rio.transform(recalc=True)

    @property
    def shape(self) -> tuple[int, int]:
        return int(self.data.sizes["y"]), int(self.data.sizes["x"])

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return tuple(self.data.rio.bounds(recalc=True))

    def select(self, labels: Sequence[str]) -> "RasterHandle":
        """Return a handle restricted to ``labels``, in the order given."""

        unknown = [label for label in labels if label not in self.labels]
        if unknown:
            raise UsageError(f"Unknown layers: {', '.join(unknown)}")
        return replace(self, data=self.data.sel({LAYER_DIM: list(labels)}))

    def crop(self, bounds: tuple[float, float, float, float]) -> "RasterHandle":
        """Return a handle clipped to ``(minx, miny, maxx, maxy)`` in the raster CRS."""

        minx, miny, maxx, maxy = bounds
        return replace(self, data=self.data.rio.clip_box(minx=minx, miny=miny, maxx=maxx, maxy=maxy))

    def _physical(self, values: np.ndarray) -> np.ndarray:
        return np.asarray(values, dtype=float) * self.scale + self.offset

    def read(self, rows: slice, cols: slice) -> np.ndarray:
        """Read a ``(layer, rows, cols)`` block in physical units."""

        block = self.data.isel(y=rows, x=cols).transpose(LAYER_DIM, "y", "x")
        return self._physical(block.values)

    def sample_points(self, xs: Sequence[float], ys: Sequence[float], method: str = "nearest") -> np.ndarray:
        """
        Sample every layer at each point; returns a ``(layer, point)`` array.

        Bilinear sampling interpolates between cell centres. Within half a cell
        of the raster edge, coordinates are clamped to the outermost centres, so
        the edge value is held rather than extrapolated. Points outside the
        raster extent are NaN for either method.
        """

        x_values = np.asarray(xs, dtype=float)
        y_values = np.asarray(ys, dtype=float)
        if method == "bilinear":
            x_coords = self.data["x"].values
            y_coords = self.data["y"].values
            x = xr.DataArray(np.clip(x_values, x_coords.min(), x_coords.max()), dims="point")
            y = xr.DataArray(np.clip(y_values, y_coords.min(), y_coords.max()), dims="point")
            sampled = self.data.sortby("x").sortby("y").interp(x=x, y=y, method="linear")
        elif method == "nearest":
            x = xr.DataArray(x_values, dims="point")
            y = xr.DataArray(y_values, dims="point")
            sampled = self.data.sel(x=x, y=y, method="nearest")
        else:
            raise UsageError(f"Unsupported interpolation method: {method}")
        values = self._physical(sampled.transpose(LAYER_DIM, "point").values)
        minx, miny, maxx, maxy = self.bounds
        outside = (x_values < minx) | (x_values > maxx) | (y_values < miny) | (y_values > maxy)
        values[:, outside] = np.nan
        return values


class RasterBackend(ABC):
    """Abstract base class for raster providers."""

    @abstractmethod
    def open(self, locators: Sequence[str], labels: Sequence[str], *, remote: bool) -> xr.DataArray:
        """
        Open ``locators`` as one ``(layer, y, x)`` array named by ``labels``.

        Remote locators must be opened without transferring pixel data.
        """


class DownloadService(ABC):
    """Abstract base class for local materialization of remote files."""

    @abstractmethod
    def download(
        self,
        locators: Sequence[str],
        destination: Path,
        *,
        overwrite: bool,
        resume: bool,
    ) -> list[DownloadResult]:
        """Fetch each locator into ``destination`` and report per-file outcomes."""
