"""Catalog index of cloud-hosted datasets."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

import pandas as pd

from sdpraster.config import get_catalog_location
from sdpraster.errors import UsageError

LOGGER = logging.getLogger("sdpraster.catalog")

DOMAINS = ("UG", "UER", "GT")
TYPES = (
    "Mask",
    "Topo",
    "Vegetation",
    "Hydro",
    "Planning",
    "Radiation",
    "Snow",
    "Climate",
    "Imagery",
    "Supplemental",
)
RELEASES = ("Basemaps", "Release1", "Release2", "Release3", "Release4")
TIMESERIES_TYPES = ("Single", "Yearly", "Seasonal", "Monthly", "Daily")

REQUIRED_COLUMNS = (
    "CatalogID",
    "Domain",
    "Type",
    "Release",
    "TimeSeriesType",
    "Data.URL",
    "Deprecated",
)
DATE_FORMATS = ("%m/%d/%y", "%Y-%m-%d", "%m/%d/%Y")


@dataclass(frozen=True)
class CatalogRecord:
    """One dataset entry, with the fields needed to resolve it to locators."""

    catalog_id: str
    cadence: str
    template: str
    domain: str = ""
    type: str = ""
    release: str = ""
    product: str = ""
    metadata_url: str | None = None
    min_year: int | None = None
    max_year: int | None = None
    min_date: date | None = None
    max_date: date | None = None
    scale: float = 1.0
    offset: float = 0.0
    deprecated: bool = False

    def __post_init__(self) -> None:
        has_years = self.min_year is not None and self.max_year is not None
        has_dates = self.min_date is not None and self.max_date is not None
        any_years = self.min_year is not None or self.max_year is not None
        any_dates = self.min_date is not None or self.max_date is not None
        if self.cadence == "Yearly" and not has_years:
            raise UsageError(f"Yearly dataset {self.catalog_id} is missing MinYear/MaxYear")
        if self.cadence in ("Daily", "Monthly") and not has_dates:
            raise UsageError(f"{self.cadence} dataset {self.catalog_id} is missing MinDate/MaxDate")
        if self.cadence == "Single" and (any_years or any_dates):
            raise UsageError(f"Single dataset {self.catalog_id} must not carry year or date bounds")
        if any_years and any_dates:
            raise UsageError(f"Dataset {self.catalog_id} carries both year and date bounds")

    @property
    def is_timeseries(self) -> bool:
        return self.cadence != "Single"


def _missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT or (isinstance(value, str) and not value.strip())


def parse_catalog_date(value: object) -> date | None:
    """Parse a catalog date cell written as ``%m/%d/%y`` or ISO ``YYYY-MM-DD``."""

    if _missing(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise UsageError(f"Unrecognized catalog date: {text!r}")


def _optional_int(value: object) -> int | None:
    if _missing(value):
        return None
    return int(float(value))


def _optional_float(value: object, default: float) -> float:
    if _missing(value):
        return default
    return float(value)


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "t", "yes", "1"}
    if _missing(value):
        return False
    return bool(value)


def _validate_choices(name: str, values: Iterable[str], allowed: Iterable[str]) -> list[str]:
    chosen = [values] if isinstance(values, str) else list(values)
    allowed = tuple(allowed)
    unknown = [value for value in chosen if value not in allowed]
    if unknown:
        raise UsageError(f"Invalid {name}: {', '.join(map(str, unknown))}. Valid values are {', '.join(allowed)}")
    return chosen


class Catalog:
    """Read-only table of catalog records.

    The catalog is passed explicitly to everything that needs it; tests can
    inject any in-memory ``DataFrame`` carrying the catalog columns.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
        if missing:
            raise UsageError(f"Catalog table is missing columns: {', '.join(missing)}")
        self._frame = frame.copy()
        self._frame["Deprecated"] = self._frame["Deprecated"].map(_as_bool)
        for column in ("MinDate", "MaxDate"):
            if column in self._frame:
                self._frame[column] = self._frame[column].map(parse_catalog_date)

    @classmethod
    def from_csv(cls, location: str) -> "Catalog":
        """Load a catalog from a CSV path or URL."""

        LOGGER.debug("Reading catalog table from %s", location)
        return cls(pd.read_csv(location))

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    def __len__(self) -> int:
        return len(self._frame)

    def filter(
        self,
        domains: Iterable[str] = DOMAINS,
        types: Iterable[str] = TYPES,
        releases: Iterable[str] = RELEASES,
        timeseries_types: Iterable[str] = TIMESERIES_TYPES,
        deprecated: bool | Iterable[bool] = False,
    ) -> pd.DataFrame:
        """Return catalog rows matching every filter."""

        domains = _validate_choices("domains", domains, DOMAINS)
        types = _validate_choices("types", types, TYPES)
        releases = _validate_choices("releases", releases, RELEASES)
        timeseries_types = _validate_choices("timeseries_types", timeseries_types, TIMESERIES_TYPES)
        if isinstance(deprecated, bool):
            deprecated = [deprecated]
        else:
            deprecated = list(deprecated)
            if not deprecated or not all(isinstance(flag, bool) for flag in deprecated):
                raise UsageError("deprecated must be a bool or a collection of bools")

        frame = self._frame
        selected = frame[
            frame["Domain"].isin(domains)
            & frame["Type"].isin(types)
            & frame["Release"].isin(releases)
            & frame["TimeSeriesType"].isin(timeseries_types)
            & frame["Deprecated"].isin(deprecated)
        ]
        return selected.reset_index(drop=True)

    def record(self, catalog_id: str) -> CatalogRecord:
        """Return the record for ``catalog_id``, searching current and deprecated rows."""

        if not isinstance(catalog_id, str) or len(catalog_id) != 6:
            raise UsageError(f"Catalog ids are 6-character codes, got {catalog_id!r}")
        rows = self._frame[self._frame["CatalogID"] == catalog_id]
        if rows.empty:
            raise UsageError(f"No catalog entry with id {catalog_id}")
        if len(rows) > 1:
            LOGGER.warning("Catalog id %s appears %d times; using the first entry", catalog_id, len(rows))
        return self._to_record(rows.iloc[0])

    def _to_record(self, row: pd.Series) -> CatalogRecord:
        return CatalogRecord(
            catalog_id=str(row["CatalogID"]),
            cadence=str(row["TimeSeriesType"]),
            template=str(row["Data.URL"]),
            domain=str(row["Domain"]),
            type=str(row["Type"]),
            release=str(row["Release"]),
            product=str(row.get("Product", "")),
            metadata_url=None if _missing(row.get("Metadata.URL")) else str(row.get("Metadata.URL")),
            min_year=_optional_int(row.get("MinYear")),
            max_year=_optional_int(row.get("MaxYear")),
            min_date=parse_catalog_date(row.get("MinDate")),
            max_date=parse_catalog_date(row.get("MaxDate")),
            scale=_optional_float(row.get("DataScaleFactor"), 1.0),
            offset=_optional_float(row.get("DataOffset"), 0.0),
            deprecated=bool(row["Deprecated"]),
        )


def load_catalog(location: str | None = None) -> Catalog:
    """Load the catalog from ``location`` or the configured default."""

    location = location or get_catalog_location()
    if not location:
        raise UsageError("No catalog location given; pass one or set SDPRASTER_CATALOG")
    return Catalog.from_csv(location)
