import warnings
from datetime import date

import pytest

from sdpraster.catalog import CatalogRecord
from sdpraster.errors import NoMatchingLayers, NoOverlap, PartialOverlap, UnsupportedSelection, UsageError
from sdpraster.temporal import TemporalSelection, filter_labels, resolve


def test_yearly_partial_overlap_reports_unmatched(catalog):
    record = catalog.record("R4D003")
    with pytest.warns(PartialOverlap):
        resolution = resolve(record, TemporalSelection.build(years=[2003, 2004, 2010]))
    assert resolution.labels == ("2003", "2004")
    assert resolution.unmatched == ("2010",)
    assert resolution.dates == (date(2003, 1, 1), date(2004, 1, 1))


def test_yearly_labels_sorted_and_deduplicated(catalog):
    record = catalog.record("R4D003")
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        resolution = resolve(record, TemporalSelection.build(years=[2004, 2001, 2004]))
    assert resolution.labels == ("2001", "2004")
    assert resolution.unmatched == ()


def test_yearly_without_selection_returns_full_range(catalog):
    resolution = resolve(catalog.record("R4D003"))
    assert resolution.labels == ("2000", "2001", "2002", "2003", "2004", "2005")


def test_yearly_no_overlap(catalog):
    with pytest.raises(NoOverlap):
        resolve(catalog.record("R4D003"), TemporalSelection.build(years=[2050]))


def test_yearly_date_range_selects_spanned_years(catalog):
    selection = TemporalSelection.build(date_start="2002-09-15", date_end="2003-11-15")
    assert resolve(catalog.record("R4D003"), selection).labels == ("2002", "2003")


def test_yearly_rejects_months(catalog):
    with pytest.raises(UsageError):
        resolve(catalog.record("R4D003"), TemporalSelection.build(months=[1]))


def test_daily_default_is_first_thirty_days(catalog):
    resolution = resolve(catalog.record("R4D004"))
    assert len(resolution.labels) == 30
    assert resolution.labels[0] == "2020-01-01"
    assert resolution.labels[-1] == "2020-01-30"
    assert resolution.unmatched == ()


def test_daily_default_window_is_configurable(catalog, monkeypatch):
    monkeypatch.setenv("SDPRASTER_DAILY_DEFAULT_DAYS", "5")
    assert len(resolve(catalog.record("R4D004")).labels) == 5


def test_daily_range_in_non_leap_year(catalog):
    selection = TemporalSelection.build(date_start=date(2021, 2, 28), date_end=date(2021, 3, 2))
    resolution = resolve(catalog.record("R4D004"), selection)
    assert resolution.labels == ("2021-02-28", "2021-03-01", "2021-03-02")


def test_daily_range_in_leap_year_includes_february_29(catalog):
    selection = TemporalSelection.build(date_start="2020-02-28", date_end="2020-03-01")
    resolution = resolve(catalog.record("R4D004"), selection)
    assert resolution.labels == ("2020-02-28", "2020-02-29", "2020-03-01")


def test_daily_range_past_the_end_is_partial(catalog):
    selection = TemporalSelection.build(date_start="2021-12-30", date_end="2022-01-02")
    with pytest.warns(PartialOverlap):
        resolution = resolve(catalog.record("R4D004"), selection)
    assert resolution.labels == ("2021-12-30", "2021-12-31")
    assert resolution.unmatched == ("2022-01-01", "2022-01-02")


def test_daily_no_overlap(catalog):
    selection = TemporalSelection.build(date_start="2019-01-01", date_end="2019-01-05")
    with pytest.raises(NoOverlap):
        resolve(catalog.record("R4D004"), selection)


def test_daily_rejects_years(catalog):
    with pytest.raises(UsageError):
        resolve(catalog.record("R4D004"), TemporalSelection.build(years=[2020]))


def test_monthly_months_only_spans_available_years(catalog):
    resolution = resolve(catalog.record("R4D008"), TemporalSelection.build(months=[1, 2]))
    assert resolution.labels == (
        "2003-01",
        "2003-02",
        "2004-01",
        "2004-02",
        "2005-01",
        "2005-02",
        "2006-01",
        "2006-02",
    )


def test_monthly_months_and_years(catalog):
    selection = TemporalSelection.build(months=[6, 7], years=[2003, 2004, 2005])
    resolution = resolve(catalog.record("R4D008"), selection)
    assert resolution.labels == ("2003-06", "2003-07", "2004-06", "2004-07", "2005-06", "2005-07")


def test_monthly_years_before_availability_are_unmatched(catalog):
    selection = TemporalSelection.build(months=[1], years=[2002, 2003])
    with pytest.warns(PartialOverlap):
        resolution = resolve(catalog.record("R4D008"), selection)
    assert resolution.labels == ("2003-01",)
    assert resolution.unmatched == ("2002-01",)


def test_monthly_date_range(catalog):
    selection = TemporalSelection.build(date_start="2002-09-15", date_end="2002-11-15")
    resolution = resolve(catalog.record("R4D008"), selection)
    assert resolution.labels == ("2002-09", "2002-10", "2002-11")


def test_single_rejects_any_selection(catalog):
    record = catalog.record("R1D014")
    assert resolve(record).labels == ("dem_1m",)
    with pytest.raises(UnsupportedSelection):
        resolve(record, TemporalSelection.build(years=[2020]))


def test_selection_validation():
    with pytest.raises(UsageError):
        TemporalSelection.build(date_start="2020-01-01")
    with pytest.raises(UsageError):
        TemporalSelection.build(date_start="2020-02-01", date_end="2020-01-01")
    with pytest.raises(UsageError):
        TemporalSelection.build(years=[2020], date_start="2020-01-01", date_end="2020-01-02")
    with pytest.raises(UsageError):
        TemporalSelection.build(months=[13])
    with pytest.raises(UsageError):
        TemporalSelection.build(date_start="not a date", date_end="2020-01-01")


def test_filter_labels_by_year_and_dates():
    labels = ("2002", "2003", "2004")
    assert filter_labels(labels, TemporalSelection.build(years=[2004, 2002])) == ("2002", "2004")
    daily = ("2020-01-01", "2020-01-02", "2020-01-03")
    selection = TemporalSelection.build(date_start="2020-01-02", date_end="2020-01-10")
    assert filter_labels(daily, selection) == ("2020-01-02", "2020-01-03")


def test_filter_labels_without_match():
    with pytest.raises(NoMatchingLayers):
        filter_labels(("2002", "2003"), TemporalSelection.build(years=[1990]))


def test_filter_labels_requires_time_labels():
    with pytest.raises(UnsupportedSelection):
        filter_labels(("dem_1m",), TemporalSelection.build(years=[2020]))


def test_unsupported_cadence_is_a_usage_error():
    record = CatalogRecord(catalog_id="R4D099", cadence="Seasonal", template="https://ex/{year}.tif")
    with pytest.raises(UsageError):
        resolve(record)


def test_selection_accepts_a_single_year_as_text(catalog):
    selection = TemporalSelection.build(years="2003", months="6")
    assert selection.years == (2003,)
    assert selection.months == (6,)
    assert resolve(catalog.record("R4D003"), TemporalSelection.build(years="2003")).labels == ("2003",)
    with pytest.raises(UsageError):
        TemporalSelection.build(years="20x3")
