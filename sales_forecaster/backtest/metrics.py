"""
Backtest evaluation metrics over per-site annual totals.

Every site, for every window length, reduces to one ``SiteResult``: the
predicted and actual annual sum of each of the four series.  Metrics are
then computed per (series, window_length) across sites.

RMSE (Root Mean Squared Error)
  The headline metric.  Errors are squared before averaging so a site whose
  annual diesel total is off by 200k counts far more than ten sites off by
  20k each.  Units are the series' own (dollars / gallons per year).

MAE (Mean Absolute Error)
  "On average a site's annual total is off by X."  RMSE > MAE implies a
  few sites are badly missed.

MAPE (Mean Absolute Percentage Error)
  MAE normalised by the actual annual total, comparable across series with
  very different scales.  Sites whose actual total is below MAPE_EPSILON are
  excluded from the MAPE denominator.

Because the first ``w`` days of every reconstruction are actual values, they
contribute zero error by construction; only the forecast tail moves these
numbers.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Sequence

from sales_forecaster.series import N_SERIES, SERIES_NAMES, Observation

MAPE_EPSILON = 1e-9


@dataclass(frozen=True)
class SiteResult:
    """Annual totals for one site under one window length.

    Attributes:
        site_id:        Site identifier.
        window_length:  Number of actual days kept before forecasting.
        predicted_sums: Per-series annual sum of the reconstruction.
        actual_sums:    Per-series annual sum of the actual series.
    """

    site_id: str
    window_length: int
    predicted_sums: Observation
    actual_sums: Observation

    def error(self, series_idx: int) -> float:
        return self.predicted_sums[series_idx] - self.actual_sums[series_idx]


@dataclass(frozen=True)
class SeriesMetrics:
    """Aggregated accuracy for one (series, window_length) cell.

    Attributes:
        series_name:    One of ``SERIES_NAMES``.
        window_length:  Window length the sites were spliced at.
        n_sites:        Number of sites aggregated.
        rmse:           Root mean squared error of annual totals.
        mae:            Mean absolute error of annual totals.
        mape:           Mean absolute percentage error (0.05 = 5%), or None.
        mean_actual:    Mean actual annual total (sanity check).
        mean_predicted: Mean predicted annual total (sanity check).
    """

    series_name: str
    window_length: int
    n_sites: int
    rmse: float
    mae: float
    mape: float | None
    mean_actual: float
    mean_predicted: float


def annual_sums(series: Iterable[Sequence[float]]) -> Observation:
    """Sum each of the four series over every day of ``series``."""
    totals = [0.0] * N_SERIES
    for obs in series:
        for i in range(N_SERIES):
            totals[i] += float(obs[i])
    return tuple(totals)  # type: ignore[return-value]


def rmse(pairs: Sequence[tuple[float, float]]) -> float:
    """``sqrt(mean((predicted - actual)^2))`` over ``(predicted, actual)`` pairs.

    Raises:
        ValueError: If ``pairs`` is empty.
    """
    if not pairs:
        raise ValueError("RMSE is undefined for an empty set of pairs.")
    return math.sqrt(sum((p - a) ** 2 for p, a in pairs) / len(pairs))


def compute_series_metrics(
    results: Sequence[SiteResult],
    series_idx: int,
    window_length: int,
) -> SeriesMetrics:
    """Compute all metrics for one series across ``results``.

    ``results`` must all share ``window_length`` and be non-empty.
    """
    pairs = [(r.predicted_sums[series_idx], r.actual_sums[series_idx]) for r in results]
    errors = [p - a for p, a in pairs]
    abs_errors = [abs(e) for e in errors]

    mape_terms = [
        abs(p - a) / abs(a) for p, a in pairs if abs(a) >= MAPE_EPSILON
    ]
    return SeriesMetrics(
        series_name=SERIES_NAMES[series_idx],
        window_length=window_length,
        n_sites=len(pairs),
        rmse=rmse(pairs),
        mae=sum(abs_errors) / len(abs_errors),
        mape=(sum(mape_terms) / len(mape_terms)) if mape_terms else None,
        mean_actual=sum(a for _, a in pairs) / len(pairs),
        mean_predicted=sum(p for p, _ in pairs) / len(pairs),
    )


def metrics_by_series_and_window(
    results: Iterable[SiteResult],
) -> dict[tuple[str, int], SeriesMetrics]:
    """Group results by window length and compute metrics for every series."""
    groups: dict[int, list[SiteResult]] = defaultdict(list)
    for r in results:
        groups[r.window_length].append(r)

    return {
        (SERIES_NAMES[i], w): compute_series_metrics(recs, i, w)
        for w, recs in sorted(groups.items())
        for i in range(N_SERIES)
    }

