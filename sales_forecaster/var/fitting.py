"""
VAR(1) fitting on a pool of training sites.

Two entry points, both returning a ``LinearTransitionModel``:

  fit_transition_model(sites)
    Pooled ordinary least squares across many sites.  Each site contributes
    its own ``(y[t-1], y[t])`` pairs; pairs never straddle two sites, so the
    last day of one store is never treated as the lag of another store's
    opening day.  This is the estimator the backtest pipeline uses.

  fit_site_var(site)
    A single site's series fitted with ``statsmodels.tsa.api.VAR`` (lag 1,
    constant trend).  Useful for inspecting one store on its own.

Both go through a named coefficient table laid out like statsmodels'
``VARResults.params`` and are mapped onto the fixed series order by
``LinearTransitionModel.from_named_coefficients``.  That mapping is the
only place series names meet matrix positions.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd
from statsmodels.tsa.api import VAR

from sales_forecaster.errors import EmptySiteSet, InvalidModel
from sales_forecaster.models.site import SiteRecord
from sales_forecaster.series import N_SERIES, SERIES_NAMES
from sales_forecaster.var.model import LAG_PREFIX, LinearTransitionModel

log = logging.getLogger(__name__)

PARAM_INDEX: list[str] = ["const"] + [f"{LAG_PREFIX}{name}" for name in SERIES_NAMES]
MIN_LAG_PAIRS = N_SERIES + 1


def lag_pairs(series: Sequence[Sequence[float]]) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(X, Y)`` where row t of X is day t and row t of Y is day t+1."""
    arr = np.asarray(series, dtype=float)
    if arr.ndim != 2 or arr.shape[1] != N_SERIES:
        raise InvalidModel(
            f"Training series must be (n_days, {N_SERIES}), got shape {arr.shape}."
        )
    return arr[:-1], arr[1:]


def fit_transition_model(sites: Sequence[SiteRecord]) -> LinearTransitionModel:
    """Fit ``y[t] = A · y[t-1] + b`` by pooled OLS over all training sites.

    Raises:
        EmptySiteSet: If ``sites`` is empty.
        InvalidModel: If there are too few lag pairs or the design matrix is
            rank deficient (e.g. a series that never varies).
    """
    if not sites:
        raise EmptySiteSet("No training sites supplied to fit.")

    xs: list[np.ndarray] = []
    ys: list[np.ndarray] = []
    for site in sites:
        if len(site.series) < 2:
            log.debug("Skipping site %s: fewer than 2 observations", site.site_id)
            continue
        x, y = lag_pairs(site.series)
        xs.append(x)
        ys.append(y)

    n_pairs = sum(len(x) for x in xs)
    if n_pairs < MIN_LAG_PAIRS:
        raise InvalidModel(
            f"Need at least {MIN_LAG_PAIRS} lag pairs to fit, got {n_pairs}."
        )

    lagged = np.vstack(xs)
    target = np.vstack(ys)
    design = np.column_stack([np.ones(len(lagged)), lagged])

    beta, _residuals, rank, _sv = np.linalg.lstsq(design, target, rcond=None)
    if rank < design.shape[1]:
        raise InvalidModel(
            f"Design matrix is rank deficient (rank {rank} < {design.shape[1]}); "
            "a series may be constant across all training sites."
        )

    params = pd.DataFrame(beta, index=PARAM_INDEX, columns=list(SERIES_NAMES))
    model = LinearTransitionModel.from_named_coefficients(params)
    log.info(
        "Fitted VAR(1) | sites=%d | lag_pairs=%d", len(xs), n_pairs,
    )
    return model


def fit_site_var(site: SiteRecord) -> LinearTransitionModel:
    """Fit a VAR(1) with constant to one site via statsmodels.

    Raises:
        InvalidModel: If statsmodels cannot estimate the system.
    """
    frame = pd.DataFrame(list(site.series), columns=list(SERIES_NAMES), dtype=float)
    if len(frame) < MIN_LAG_PAIRS + 1:
        raise InvalidModel(
            f"Need at least {MIN_LAG_PAIRS + 1} observations to fit, got {len(frame)}.",
            site_id=site.site_id,
        )
    try:
        results = VAR(frame).fit(maxlags=1, trend="c")
    except (ValueError, np.linalg.LinAlgError) as exc:
        raise InvalidModel(f"VAR fit failed: {exc}", site_id=site.site_id) from exc

    log.info("Fitted site VAR(1) | site=%s | nobs=%d", site.site_id, results.nobs)
    return LinearTransitionModel.from_named_coefficients(results.params)

