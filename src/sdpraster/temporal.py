"""Resolve a dataset's cadence and a caller's temporal selection into layer labels."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import PurePosixPath
from urllib.parse import urlparse

import pandas as pd

from sdpraster.catalog import CatalogRecord
from sdpraster.config import get_daily_default_days
from sdpraster.errors import NoMatchingLayers, NoOverlap, PartialOverlap, UnsupportedSelection, UsageError

LOGGER = logging.getLogger("sdpraster.temporal")

ALL_MONTHS = tuple(range(1, 13))


def _as_date(value: date | str | None, name: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise UsageError(f"{name} must be an ISO 8601 date, got {value!r}") from exc


def _as_ints(values: Iterable[int] | int | str | None, name: str) -> tuple[int, ...] | None:
    if values is None:
        return None
    if isinstance(values, (int, str)):
        values = [values]
    try:
        parsed = tuple(sorted({int(value) for value in values}))
    except (TypeError, ValueError) as exc:
        raise UsageError(f"{name} must be integers") from exc
    if not parsed:
        raise UsageError(f"{name} must not be empty")
    return parsed


@dataclass(frozen=True)
class TemporalSelection:
    """Caller-supplied temporal filter: years and/or months, or a date range."""

    years: tuple[int, ...] | None = None
    months: tuple[int, ...] | None = None
    date_start: date | None = None
    date_end: date | None = None

    @classmethod
    def build(
        cls,
        years: Iterable[int] | int | None = None,
        months: Iterable[int] | int | None = None,
        date_start: date | str | None = None,
        date_end: date | str | None = None,
    ) -> "TemporalSelection":
        """Normalize and validate raw caller arguments."""

        years = _as_ints(years, "years")
        months = _as_ints(months, "months")
        start = _as_date(date_start, "date_start")
        end = _as_date(date_end, "date_end")

        if (start is None) != (end is None):
            raise UsageError("date_start and date_end must be given together")
        if start is not None and (years is not None or months is not None):
            raise UsageError("Specify either years/months or a date range, not both")
        if start is not None and start > end:
            raise UsageError(f"date_start {start} is after date_end {end}")
        if months is not None and any(month < 1 or month > 12 for month in months):
            raise UsageError("months must be between 1 and 12")
        return cls(years=years, months=months, date_start=start, date_end=end)

    @property
    def is_empty(self) -> bool:
        return self.years is None and self.months is None and self.date_start is None

    @property
    def has_dates(self) -> bool:
        return self.date_start is not None


@dataclass(frozen=True)
class Resolution:
    """Ordered time labels retained for a dataset, plus what was requested but unavailable."""

    cadence: str
    labels: tuple[str, ...]
    dates: tuple[date | None, ...]
    unmatched: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.labels)


def year_label(year: int) -> str:
    return f"{year:04d}"


def month_label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def day_label(day: date) -> str:
    return day.isoformat()


def single_label(template: str) -> str:
    """Return the implicit label of a non-time-series dataset: its file stem."""

    path = urlparse(template).path or template
    return PurePosixPath(path).stem or "layer"


def day_sequence(start: date, end: date) -> list[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""

    return [stamp.date() for stamp in pd.date_range(start, end, freq="D")]


def month_sequence(start: date, end: date) -> list[tuple[int, int]]:
    """Every ``(year, month)`` touched by the range ``start`` to ``end``."""

    return [(period.year, period.month) for period in pd.period_range(start, end, freq="M")]


def _report_partial(matched: Sequence[str], unmatched: Sequence[str]) -> None:
    message = (
        f"No dataset available for some requested time steps ({', '.join(unmatched)}). "
        f"Returning data for {', '.join(matched)}"
    )
    LOGGER.warning(message)
    warnings.warn(message, PartialOverlap, stacklevel=4)


def _resolve_single(record: CatalogRecord, selection: TemporalSelection) -> Resolution:
    if not selection.is_empty:
        raise UnsupportedSelection(
            f"Dataset {record.catalog_id} is not a time series; years, months and dates are not supported"
        )
    return Resolution(cadence="Single", labels=(single_label(record.template),), dates=(None,))


def _resolve_yearly(record: CatalogRecord, selection: TemporalSelection) -> Resolution:
    if selection.months is not None:
        raise UsageError(f"Dataset {record.catalog_id} is Yearly; months cannot be selected")

    available = range(record.min_year, record.max_year + 1)
    if selection.has_dates:
        requested = list(range(selection.date_start.year, selection.date_end.year + 1))
    elif selection.years is not None:
        requested = list(selection.years)
    else:
        requested = list(available)

    matched = [year for year in requested if year in available]
    unmatched = [year_label(year) for year in requested if year not in available]
    if not matched:
        raise NoOverlap(
            "No dataset available for any specified years. Available years are "
            + " ".join(year_label(year) for year in available)
        )
    labels = tuple(year_label(year) for year in matched)
    if unmatched:
        _report_partial(labels, unmatched)
    return Resolution(
        cadence="Yearly",
        labels=labels,
        dates=tuple(date(year, 1, 1) for year in matched),
        unmatched=tuple(unmatched),
    )


def _resolve_monthly(record: CatalogRecord, selection: TemporalSelection) -> Resolution:
    available = month_sequence(record.min_date, record.max_date)
    available_set = set(available)

    unmatched: list[tuple[int, int]] = []
    if selection.has_dates:
        requested = month_sequence(selection.date_start, selection.date_end)
        unmatched = [step for step in requested if step not in available_set]
    elif selection.years is not None:
        months = selection.months or ALL_MONTHS
        requested = [(year, month) for year in selection.years for month in months]
        unmatched = [step for step in requested if step not in available_set]
    elif selection.months is not None:
        requested = [step for step in available if step[1] in selection.months]
    else:
        requested = available

    matched = [step for step in requested if step in available_set]
    if not matched:
        raise NoOverlap(
            f"No dataset available for the requested months. Available months are "
            f"{month_label(*available[0])} to {month_label(*available[-1])}"
        )
    labels = tuple(month_label(*step) for step in matched)
    if unmatched:
        _report_partial(labels, [month_label(*step) for step in unmatched])
    return Resolution(
        cadence="Monthly",
        labels=labels,
        dates=tuple(date(year, month, 1) for year, month in matched),
        unmatched=tuple(month_label(*step) for step in unmatched),
    )


def _resolve_daily(record: CatalogRecord, selection: TemporalSelection) -> Resolution:
    if selection.years is not None or selection.months is not None:
        raise UsageError(f"Dataset {record.catalog_id} is Daily; select days with date_start and date_end")

    if selection.has_dates:
        requested = day_sequence(selection.date_start, selection.date_end)
    else:
        days = get_daily_default_days()
        end = min(record.min_date + timedelta(days=days - 1), record.max_date)
        requested = day_sequence(record.min_date, end)
        LOGGER.warning(
            "No dates specified for Daily dataset %s; returning the first %d days (%s to %s)",
            record.catalog_id,
            len(requested),
            day_label(record.min_date),
            day_label(end),
        )

    matched = [day for day in requested if record.min_date <= day <= record.max_date]
    unmatched = [day_label(day) for day in requested if not record.min_date <= day <= record.max_date]
    if not matched:
        raise NoOverlap(
            f"No dataset available for any specified dates. Available dates are "
            f"{day_label(record.min_date)} to {day_label(record.max_date)}"
        )
    labels = tuple(day_label(day) for day in matched)
    if unmatched:
        _report_partial(labels, unmatched)
    return Resolution(cadence="Daily", labels=labels, dates=tuple(matched), unmatched=tuple(unmatched))


CADENCE_RESOLVERS = {
    "Single": _resolve_single,
    "Yearly": _resolve_yearly,
    "Monthly": _resolve_monthly,
    "Daily": _resolve_daily,
}


def resolve(record: CatalogRecord, selection: TemporalSelection | None = None) -> Resolution:
    """Return the ordered labels that are both requested and available for ``record``."""

    resolver = CADENCE_RESOLVERS.get(record.cadence)
    if resolver is None:
        raise UsageError(f"Unsupported time-series type {record.cadence!r} for dataset {record.catalog_id}")
    return resolver(record, selection or TemporalSelection())


def parse_label(label: str) -> tuple[str, date]:
    """Return the cadence implied by a label and the date it starts on."""

    try:
        if len(label) == 4:
            return "Yearly", date(int(label), 1, 1)
        if len(label) == 7:
            return "Monthly", date(int(label[:4]), int(label[5:7]), 1)
        return "Daily", date.fromisoformat(label)
    except ValueError as exc:
        raise UnsupportedSelection(f"Layer {label!r} carries no time label") from exc


def _label_matches(cadence: str, start: date, selection: TemporalSelection) -> bool:
    if selection.has_dates:
        if cadence == "Yearly":
            return selection.date_start.year <= start.year <= selection.date_end.year
        if cadence == "Monthly":
            return (
                (selection.date_start.year, selection.date_start.month)
                <= (start.year, start.month)
                <= (selection.date_end.year, selection.date_end.month)
            )
        return selection.date_start <= start <= selection.date_end
    if selection.years is not None and start.year not in selection.years:
        return False
    if selection.months is not None:
        if cadence == "Yearly":
            raise UsageError("Yearly layers cannot be filtered by month")
        return start.month in selection.months
    return True


def filter_labels(labels: Sequence[str], selection: TemporalSelection) -> tuple[str, ...]:
    """Return the subset of already-resolved ``labels`` matching ``selection``."""

    if selection.is_empty:
        return tuple(labels)
    kept = []
    for label in labels:
        cadence, start = parse_label(label)
        if _label_matches(cadence, start, selection):
            kept.append(label)
    if not kept:
        raise NoMatchingLayers(f"No layers match the temporal filter. Available layers are {', '.join(labels)}")
    return tuple(kept)
