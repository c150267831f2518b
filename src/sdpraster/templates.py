"""Helper utilities for expanding locator templates into concrete URLs."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from sdpraster.errors import InvalidTemplate, UsageError
from sdpraster.temporal import parse_label

LOGGER = logging.getLogger("sdpraster.templates")

YEAR_TOKEN = "{year}"
MONTH_TOKEN = "{month}"
DAY_TOKEN = "{day}"

REQUIRED_TOKENS = {
    "Single": (),
    "Yearly": (YEAR_TOKEN,),
    "Monthly": (YEAR_TOKEN, MONTH_TOKEN),
    "Daily": (YEAR_TOKEN, DAY_TOKEN),
}


def _substitute(template: str, replacements: dict[str, str]) -> str:
    result = template
    for token, value in replacements.items():
        result = result.replace(token, value)
    return result


def build_yearly_url(template: str, start: date) -> str:
    """Return the locator for one year."""

    return _substitute(template, {YEAR_TOKEN: f"{start.year:04d}"})


def build_monthly_url(template: str, start: date) -> str:
    """Return the locator for one calendar month."""

    return _substitute(template, {YEAR_TOKEN: f"{start.year:04d}", MONTH_TOKEN: f"{start.month:02d}"})


def build_daily_url(template: str, start: date) -> str:
    """Return the locator for one day, addressed by year and day-of-year."""

    day_of_year = start.timetuple().tm_yday
    return _substitute(template, {YEAR_TOKEN: f"{start.year:04d}", DAY_TOKEN: f"{day_of_year:03d}"})


CADENCE_URL_BUILDERS = {
    "Yearly": build_yearly_url,
    "Monthly": build_monthly_url,
    "Daily": build_daily_url,
}


def check_template(template: str, cadence: str) -> None:
    """Raise :class:`InvalidTemplate` if ``template`` lacks a token ``cadence`` needs."""

    required = REQUIRED_TOKENS.get(cadence)
    if required is None:
        raise UsageError(f"Unsupported time-series type {cadence!r}")
    missing = [token for token in required if token not in template]
    if missing:
        raise InvalidTemplate(f"{cadence} template {template!r} is missing {', '.join(missing)}")


def expand(template: str, labels: Sequence[str], cadence: str | None = None) -> list[str]:
    """
    Return one locator per label, in label order.

    ``cadence`` is inferred from the label format when omitted. Single datasets
    map every label to the unchanged template.
    """

    if cadence == "Single":
        return [template for _ in labels]

    locators: list[str] = []
    checked: set[str] = set()
    for label in labels:
        label_cadence, start = parse_label(label)
        if cadence is not None and label_cadence != cadence:
            raise UsageError(f"Label {label!r} does not match {cadence} cadence")
        if label_cadence not in checked:
            check_template(template, label_cadence)
            checked.add(label_cadence)
        locator = CADENCE_URL_BUILDERS[label_cadence](template, start)
        LOGGER.debug("Expanded %s -> %s", label, locator)
        locators.append(locator)
    return locators
