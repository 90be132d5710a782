"""
Tests for the evaluation aggregator.

What we test
------------
1. Zero error: when the model IS the data-generating process, every RMSE is 0.
2. Output keys: one entry per (series, window_length).
3. A hand-computable scenario on a short series.
4. Prefix days contribute no error: a longer window never hurts under an
   intercept-only model on flat data.
5. Fail-fast validation: EmptySiteSet, InvalidWindow, InvalidSiteRecord
   (with site context), and no partial results.
6. Parallel and sequential runs produce identical results.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from sales_forecaster.backtest.evaluator import (
    EvaluationReport,
    evaluate,
    evaluate_report,
    evaluate_site,
    run_site_backtests,
)
from sales_forecaster.errors import EmptySiteSet, InvalidSiteRecord, InvalidWindow
from sales_forecaster.models.site import SiteRecord
from sales_forecaster.series import SERIES_NAMES
from sales_forecaster.var.model import LinearTransitionModel


@pytest.fixture
def constant_two() -> LinearTransitionModel:
    """A = 0, b = 2: every forecast day is (2, 2, 2, 2)."""
    return LinearTransitionModel(coefficients=((0.0,) * 4,) * 4, intercept=(2.0,) * 4)


# ── Correctness ────────────────────────────────────────────────────────────────

def test_zero_error_under_true_process(true_model, sample_sites) -> None:
    result = evaluate(true_model, sample_sites, [14, 21])
    assert set(result) == {(name, w) for name in SERIES_NAMES for w in (14, 21)}
    for value in result.values():
        assert value == pytest.approx(0.0, abs=1e-6)


def test_hand_computed_short_series(constant_two) -> None:
    """
    Length 5, w=1: reconstruction = [a0, a1(seed), 2, 2, 2].
      site A (all 1s): predicted 1+1+2+2+2 = 8,  actual 5  → error +3
      site B (all 3s): predicted 3+3+2+2+2 = 12, actual 15 → error -3
    RMSE = 3 for every series.
    """
    sites = [
        SiteRecord("A", [(1.0,) * 4] * 5),
        SiteRecord("B", [(3.0,) * 4] * 5),
    ]
    result = evaluate(constant_two, sites, [1], series_length=5)
    assert result == {(name, 1): pytest.approx(3.0) for name in SERIES_NAMES}


def test_evaluate_site_totals(constant_two) -> None:
    site = SiteRecord("A", [(1.0, 2.0, 3.0, 4.0)] * 6)
    r = evaluate_site(constant_two, site, 2)
    # days 0..2 actual, days 3..5 forecast = 2
    assert r.actual_sums == (6.0, 12.0, 18.0, 24.0)
    assert r.predicted_sums == (3.0 + 6.0, 6.0 + 6.0, 9.0 + 6.0, 12.0 + 6.0)
    assert r.site_id == "A" and r.window_length == 2


def test_more_known_days_reduce_error(constant_two) -> None:
    sites = [SiteRecord("A", [(1.0,) * 4] * 366), SiteRecord("B", [(4.0,) * 4] * 366)]
    result = evaluate(constant_two, sites, [14, 21])
    for name in SERIES_NAMES:
        assert result[(name, 21)] < result[(name, 14)]


def test_report_carries_per_site_results(true_model, sample_sites) -> None:
    report = evaluate_report(true_model, sample_sites, [21, 14, 14])
    assert isinstance(report, EvaluationReport)
    assert len(report.site_results) == 2 * len(sample_sites)
    assert [r.window_length for r in report.site_results[:len(sample_sites)]] == [14] * len(sample_sites)
    assert [r.site_id for r in report.site_results[:len(sample_sites)]] == [s.site_id for s in sample_sites]
    assert report.rmse == evaluate(true_model, sample_sites, [14, 21])
    assert report.metrics[("diesel", 14)].n_sites == len(sample_sites)


def test_actual_sums_match_input(true_model, sample_sites) -> None:
    results = run_site_backtests(true_model, sample_sites[:1], [14])
    expected = tuple(sum(obs[i] for obs in sample_sites[0].series) for i in range(4))
    assert results[0].actual_sums == pytest.approx(expected)


# ── Parallel map ───────────────────────────────────────────────────────────────

def test_parallel_matches_sequential(noisy_sites, constant_two) -> None:
    sequential = run_site_backtests(constant_two, noisy_sites, [14, 21], max_workers=1)
    parallel = run_site_backtests(constant_two, noisy_sites, [14, 21], max_workers=4)
    assert parallel == sequential


# ── Validation ─────────────────────────────────────────────────────────────────

def test_empty_sites_raises(true_model) -> None:
    with pytest.raises(EmptySiteSet):
        evaluate(true_model, [], [14])


@pytest.mark.parametrize("windows", [[0], [14, 366], [-3]])
def test_out_of_range_window_raises(true_model, sample_sites, windows) -> None:
    with pytest.raises(InvalidWindow):
        evaluate(true_model, sample_sites, windows)


def test_no_windows_raises(true_model, sample_sites) -> None:
    with pytest.raises(InvalidWindow):
        evaluate(true_model, sample_sites, [])


def test_wrong_length_site_raises_with_site_id(true_model, sample_sites) -> None:
    short = SiteRecord("SHORT", sample_sites[0].series[:365])
    with pytest.raises(InvalidSiteRecord) as exc_info:
        evaluate(true_model, [*sample_sites, short], [14])
    assert exc_info.value.site_id == "SHORT"
    assert "SHORT" in str(exc_info.value)


@pytest.mark.parametrize("bad", [
    (1.0, 2.0, math.nan, 4.0),
    (1.0, 2.0, 3.0),
    ("1", 2.0, 3.0, 4.0),
    (1.0, math.inf, 3.0, 4.0),
])
def test_malformed_entry_raises(true_model, sample_sites, bad) -> None:
    series = list(sample_sites[0].series)
    series[100] = bad
    broken = SiteRecord("BROKEN", series)
    with pytest.raises(InvalidSiteRecord, match="Day 100"):
        evaluate(true_model, [broken, *sample_sites], [14, 21])


def test_first_violation_is_reported(true_model, sample_sites) -> None:
    a = SiteRecord("A", sample_sites[0].series[:10])
    b = SiteRecord("B", sample_sites[1].series[:10])
    with pytest.raises(InvalidSiteRecord) as exc_info:
        evaluate(true_model, [a, b], [14])
    assert exc_info.value.site_id == "A"


# ── numpy inputs ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("dtype", [np.float32, np.int64])
def test_numpy_site_rows(constant_two, dtype) -> None:
    sites = [
        SiteRecord("A", np.ones((5, 4), dtype=dtype)),
        SiteRecord("B", np.full((5, 4), 3, dtype=dtype)),
    ]
    result = evaluate(constant_two, sites, [np.int64(1)], series_length=5)
    assert result == {(name, 1): pytest.approx(3.0) for name in SERIES_NAMES}


def test_numpy_site_with_nan_raises(constant_two) -> None:
    series = np.ones((5, 4))
    series[2, 1] = np.nan
    with pytest.raises(InvalidSiteRecord, match="Day 2"):
        evaluate(constant_two, [SiteRecord("A", series)], [1], series_length=5)
