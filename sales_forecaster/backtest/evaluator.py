"""
Backtest evaluator: splice every test site at every window length.

How it works
------------
1. Fail fast on the inputs: no sites → ``EmptySiteSet``; any window length
   outside ``[1, series_length)`` → ``InvalidWindow``; any malformed site →
   ``InvalidSiteRecord`` naming the site.  All checks run before any
   forecasting, so a call either fully succeeds or returns nothing.
2. Map: for each (window_length, site) pair, ``splice()`` the site's actual
   series and reduce both the reconstruction and the actual series to
   per-series annual sums → one immutable ``SiteResult``.
3. Reduce: group ``SiteResult`` by window length and compute RMSE for each
   of the four series.

The map step is embarrassingly parallel.  With ``max_workers > 1`` it fans
out over a thread pool; the only shared object is the frozen
``LinearTransitionModel``.  ``Executor.map`` preserves input order, so the
returned results do not depend on completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Sequence

from sales_forecaster.backtest.metrics import (
    SeriesMetrics,
    SiteResult,
    annual_sums,
    metrics_by_series_and_window,
)
from sales_forecaster.backtest.splice import splice, validate_window
from sales_forecaster.errors import EmptySiteSet, InvalidWindow
from sales_forecaster.models.site import DEFAULT_SERIES_LENGTH, SiteRecord
from sales_forecaster.var.model import LinearTransitionModel

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationReport:
    """Everything one evaluation produced.

    Attributes:
        metrics:      Full metrics per (series_name, window_length).
        site_results: Per-site annual totals, ordered by (window, input site order).
    """

    metrics: dict[tuple[str, int], SeriesMetrics]
    site_results: tuple[SiteResult, ...]

    @property
    def rmse(self) -> dict[tuple[str, int], float]:
        return {key: m.rmse for key, m in self.metrics.items()}


def evaluate_site(
    model: LinearTransitionModel,
    site: SiteRecord,
    window_length: int,
) -> SiteResult:
    """Splice one (already validated) site and total both series."""
    reconstructed = splice(site.series, model, window_length)
    return SiteResult(
        site_id=site.site_id,
        window_length=window_length,
        predicted_sums=annual_sums(reconstructed),
        actual_sums=annual_sums(site.series),
    )


def run_site_backtests(
    model: LinearTransitionModel,
    sites: Sequence[SiteRecord],
    window_lengths: Iterable[int],
    series_length: int = DEFAULT_SERIES_LENGTH,
    max_workers: int = 1,
) -> list[SiteResult]:
    """Validate inputs and produce one ``SiteResult`` per (window, site).

    Raises:
        EmptySiteSet:      If ``sites`` is empty.
        InvalidWindow:     If no window lengths are given or one is out of range.
        InvalidSiteRecord: If any site is malformed.
    """
    if not sites:
        raise EmptySiteSet("Cannot evaluate an empty set of sites.")

    windows = sorted({validate_window(w, series_length) for w in window_lengths})
    if not windows:
        raise InvalidWindow("At least one window length is required.")

    for site in sites:
        site.validate(series_length)

    tasks = [(w, site) for w in windows for site in sites]
    log.debug(
        "Backtest map | sites=%d | windows=%s | workers=%d",
        len(sites), windows, max_workers,
    )

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(lambda t: evaluate_site(model, t[1], t[0]), tasks))
    else:
        results = [evaluate_site(model, site, w) for w, site in tasks]

    return results


def evaluate_report(
    model: LinearTransitionModel,
    sites: Sequence[SiteRecord],
    window_lengths: Iterable[int],
    series_length: int = DEFAULT_SERIES_LENGTH,
    max_workers: int = 1,
) -> EvaluationReport:
    """Like ``evaluate()`` but also returns full metrics and per-site totals."""
    results = run_site_backtests(
        model, sites, window_lengths,
        series_length=series_length, max_workers=max_workers,
    )
    metrics = metrics_by_series_and_window(results)

    log.info(
        "Evaluation complete | sites=%d | windows=%s | results=%d",
        len(sites), sorted({r.window_length for r in results}), len(results),
    )
    return EvaluationReport(metrics=metrics, site_results=tuple(results))


def evaluate(
    model: LinearTransitionModel,
    sites: Sequence[SiteRecord],
    window_lengths: Iterable[int],
    series_length: int = DEFAULT_SERIES_LENGTH,
    max_workers: int = 1,
) -> dict[tuple[str, int], float]:
    """Backtest ``model`` on ``sites`` and return ``{(series, window): RMSE}``.

    Args:
        model:          Fitted transition model (shared read-only).
        sites:          Held-out site records, each ``series_length`` long.
        window_lengths: Known-day counts to evaluate (e.g. ``[14, 21]``).
        series_length:  Required length of every site series.
        max_workers:    > 1 runs the per-site map on a thread pool.

    Returns:
        RMSE of annual totals keyed by ``(series_name, window_length)``.
    """
    return evaluate_report(
        model, sites, window_lengths,
        series_length=series_length, max_workers=max_workers,
    ).rmse
