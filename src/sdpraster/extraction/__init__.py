"""Extraction of raster values at vector features."""

from __future__ import annotations

from .engine import extract
from .geometry import covered_cells, geometry_kind, to_raster_crs
from .policy import ExtractionPolicy, Summary, as_summary

__all__ = [
    "ExtractionPolicy",
    "Summary",
    "as_summary",
    "covered_cells",
    "extract",
    "geometry_kind",
    "to_raster_crs",
]
