"""Backend implementations for opening and downloading rasters."""

from __future__ import annotations

from .base import (
    BackendError,
    BackendOpenError,
    DownloadIncomplete,
    DownloadResult,
    DownloadService,
    RasterBackend,
    RasterHandle,
)
from .download import HttpDownloader
from .rio_backend import RioxarrayBackend

__all__ = [
    "BackendError",
    "BackendOpenError",
    "DownloadIncomplete",
    "DownloadResult",
    "DownloadService",
    "HttpDownloader",
    "RasterBackend",
    "RasterHandle",
    "RioxarrayBackend",
]
