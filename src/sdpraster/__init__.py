"""Discover, open, and sample cloud-hosted raster datasets from a tabular catalog."""

from __future__ import annotations

from .backends.base import BackendError, BackendOpenError, DownloadIncomplete, RasterHandle
from .catalog import Catalog, CatalogRecord, load_catalog
from .errors import (
    IncompatibleExtractionPolicy,
    InvalidTemplate,
    NoMatchingLayers,
    NoOverlap,
    PartialOverlap,
    SDPError,
    UnsupportedSelection,
    UsageError,
)
from .extraction import ExtractionPolicy, Summary, extract
from .raster import ByCatalogId, ByUrl, assemble, get_raster, source_from_args
from .templates import expand
from .temporal import Resolution, TemporalSelection, filter_labels, resolve

__all__ = [
    "BackendError",
    "BackendOpenError",
    "ByCatalogId",
    "ByUrl",
    "Catalog",
    "CatalogRecord",
    "DownloadIncomplete",
    "ExtractionPolicy",
    "IncompatibleExtractionPolicy",
    "InvalidTemplate",
    "NoMatchingLayers",
    "NoOverlap",
    "PartialOverlap",
    "RasterHandle",
    "Resolution",
    "SDPError",
    "Summary",
    "TemporalSelection",
    "UnsupportedSelection",
    "UsageError",
    "assemble",
    "expand",
    "extract",
    "filter_labels",
    "get_raster",
    "load_catalog",
    "resolve",
    "source_from_args",
]
