"""
Tests for VAR(1) fitting.

What we test
------------
1. Noise-free data from a known model is recovered exactly by pooled OLS.
2. Noisy data is recovered approximately.
3. Lag pairs never straddle two sites.
4. The statsmodels single-site fit and the pooled fit on that one site agree,
   which pins down the orientation of the name → index mapping.
5. Degenerate inputs raise EmptySiteSet / InvalidModel.
"""

from __future__ import annotations

import pytest

from sales_forecaster.errors import EmptySiteSet, InvalidModel
from sales_forecaster.models.site import SiteRecord
from sales_forecaster.var.fitting import (
    fit_site_var,
    fit_transition_model,
    lag_pairs,
)
from sales_forecaster.var.model import LinearTransitionModel


def _assert_models_close(a: LinearTransitionModel, b: LinearTransitionModel, tol: float) -> None:
    for row_a, row_b in zip(a.coefficients, b.coefficients):
        assert row_a == pytest.approx(row_b, abs=tol)
    assert a.intercept == pytest.approx(b.intercept, abs=tol * 1000)


def test_lag_pairs_shapes() -> None:
    series = [(float(t),) * 4 for t in range(5)]
    x, y = lag_pairs(series)
    assert x.shape == (4, 4) and y.shape == (4, 4)
    assert x[0, 0] == 0.0 and y[0, 0] == 1.0
    assert x[-1, 0] == 3.0 and y[-1, 0] == 4.0


def test_lag_pairs_rejects_wrong_arity() -> None:
    with pytest.raises(InvalidModel):
        lag_pairs([(1.0, 2.0, 3.0)] * 5)


def test_noise_free_recovery(true_model, sample_sites) -> None:
    fitted = fit_transition_model(sample_sites)
    _assert_models_close(fitted, true_model, tol=1e-6)


def test_noisy_recovery(true_model, noisy_sites) -> None:
    fitted = fit_transition_model(noisy_sites)
    for row_fit, row_true in zip(fitted.coefficients, true_model.coefficients):
        assert row_fit == pytest.approx(row_true, abs=0.1)


def test_pairs_do_not_cross_site_boundaries(true_model, site_factory) -> None:
    """Two sites whose concatenation would imply a wild jump still fit exactly."""
    low = site_factory("low", true_model, opening=(10.0, 20.0, 30.0, 40.0), length=40)
    high = site_factory("high", true_model, opening=(9000.0, 50.0, 7000.0, 20.0), length=40)
    other = site_factory("mid", true_model, opening=(400.0, 8000.0, 100.0, 5000.0), length=40)
    fitted = fit_transition_model([low, high, other])
    _assert_models_close(fitted, true_model, tol=1e-6)


def test_site_var_matches_pooled_fit_on_one_site(noisy_sites) -> None:
    site = noisy_sites[0]
    via_statsmodels = fit_site_var(site)
    via_lstsq = fit_transition_model([site])
    _assert_models_close(via_statsmodels, via_lstsq, tol=1e-6)


def test_empty_training_set_raises() -> None:
    with pytest.raises(EmptySiteSet):
        fit_transition_model([])


def test_too_few_pairs_raises() -> None:
    site = SiteRecord("tiny", [(1.0, 2.0, 3.0, 4.0), (2.0, 3.0, 4.0, 5.0), (3.0, 1.0, 2.0, 9.0)])
    with pytest.raises(InvalidModel, match="lag pairs"):
        fit_transition_model([site])


def test_constant_series_is_rank_deficient() -> None:
    site = SiteRecord("flat", [(5.0, 5.0, 5.0, 5.0)] * 30)
    with pytest.raises(InvalidModel, match="rank deficient"):
        fit_transition_model([site])


def test_site_var_too_short_raises() -> None:
    site = SiteRecord("short", [(1.0, 2.0, 3.0, 4.0)] * 4)
    with pytest.raises(InvalidModel, match="observations"):
        fit_site_var(site)
