"""Tests for SiteRecord construction and validation."""

from __future__ import annotations

import math

import pytest

from sales_forecaster.errors import InvalidSiteRecord
from sales_forecaster.models.site import SiteRecord

GOOD = [(1.0, 2.0, 3.0, 4.0)] * 5


def test_coerces_id_and_series() -> None:
    site = SiteRecord(site_id=101, series=[list(obs) for obs in GOOD])
    assert site.site_id == "101"
    assert isinstance(site.series, tuple)
    assert len(site) == 5


def test_frozen() -> None:
    site = SiteRecord("A", GOOD)
    with pytest.raises(AttributeError):
        site.site_id = "B"  # type: ignore[misc]


def test_valid_record_passes() -> None:
    SiteRecord("A", GOOD).validate(expected_length=5)


def test_wrong_length_raises_with_site_id() -> None:
    with pytest.raises(InvalidSiteRecord, match="Expected 366") as exc_info:
        SiteRecord("A", GOOD).validate()
    assert exc_info.value.site_id == "A"


@pytest.mark.parametrize(
    "bad",
    [
        (1.0, 2.0, 3.0),
        (1.0, 2.0, 3.0, math.nan),
        (1.0, math.inf, 3.0, 4.0),
        (1.0, "2", 3.0, 4.0),
        None,
    ],
)
def test_malformed_day_raises(bad) -> None:
    series = list(GOOD)
    series[3] = bad
    with pytest.raises(InvalidSiteRecord, match="Day 3"):
        SiteRecord("A", series).validate(expected_length=5)


def test_reports_first_bad_day() -> None:
    series = list(GOOD)
    series[1] = (math.nan,) * 4
    series[4] = (1.0,)
    with pytest.raises(InvalidSiteRecord, match="Day 1"):
        SiteRecord("A", series).validate(expected_length=5)
