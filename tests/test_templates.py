import pytest

from sdpraster.errors import InvalidTemplate
from sdpraster.templates import expand
from sdpraster.temporal import TemporalSelection, resolve


def test_yearly_expansion_follows_resolved_labels(catalog):
    record = catalog.record("R4D003")
    with pytest.warns(UserWarning):
        resolution = resolve(record, TemporalSelection.build(years=[2003, 2004, 2010]))
    assert expand(record.template, resolution.labels) == [
        "https://ex/data_2003.tif",
        "https://ex/data_2004.tif",
    ]


def test_expansion_is_repeatable():
    labels = ["2001", "2002"]
    assert expand("https://ex/{year}.tif", labels) == expand("https://ex/{year}.tif", labels)


def test_daily_expansion_uses_day_of_year():
    template = "https://ex/{year}/snow_{day}.tif"
    locators = expand(template, ["2021-02-28", "2021-03-01", "2021-03-02"], "Daily")
    assert locators == [
        "https://ex/2021/snow_059.tif",
        "https://ex/2021/snow_060.tif",
        "https://ex/2021/snow_061.tif",
    ]


def test_monthly_expansion_pads_month():
    assert expand("https://ex/tmax_{year}_{month}.tif", ["2003-06"]) == ["https://ex/tmax_2003_06.tif"]


def test_repeated_tokens_are_all_replaced():
    locators = expand("https://ex/{year}/data_{year}_{day}.tif", ["2020-12-31"])
    assert locators == ["https://ex/2020/data_2020_366.tif"]


def test_daily_template_needs_day_token():
    with pytest.raises(InvalidTemplate):
        expand("https://ex/data_{year}.tif", ["2020-01-01"])


def test_yearly_template_needs_year_token():
    with pytest.raises(InvalidTemplate):
        expand("https://ex/data.tif", ["2020"], "Yearly")


def test_single_template_is_unchanged():
    assert expand("https://ex/dem_1m.tif", ["dem_1m"], "Single") == ["https://ex/dem_1m.tif"]


def test_unknown_tokens_are_left_alone():
    assert expand("https://ex/{region}/{year}.tif", ["2001"]) == ["https://ex/{region}/2001.tif"]
