"""
Recursive multi-step forecasting.

Convention: the seed is NOT part of the output.  ``forecast(model, seed, n)``
returns exactly ``n`` states; entry ``k`` is the state after ``k + 1``
applications of the transition.  Each entry depends only on the one before
it, and there is no randomness, so repeated calls are identical.
"""

from __future__ import annotations

import logging
import numbers
from typing import Sequence

from sales_forecaster.errors import InvalidHorizon
from sales_forecaster.series import Observation, is_finite_observation
from sales_forecaster.var.model import LinearTransitionModel

log = logging.getLogger(__name__)


def forecast(
    model: LinearTransitionModel,
    seed: Sequence[float],
    horizon: int,
) -> list[Observation]:
    """Propagate ``seed`` forward ``horizon`` days.

    Args:
        model:   Fitted transition model.
        seed:    Starting observation (4 values, fixed series order).
        horizon: Number of future days to produce (>= 1).

    Returns:
        List of ``horizon`` observation tuples (seed excluded).

    Raises:
        InvalidHorizon: If ``horizon`` <= 0.
        ValueError:     If ``seed`` is not four finite numbers.
    """
    if (
        isinstance(horizon, bool)
        or not isinstance(horizon, numbers.Integral)
        or horizon <= 0
    ):
        raise InvalidHorizon(f"horizon must be a positive integer, got {horizon!r}.")
    if not is_finite_observation(seed):
        raise ValueError(f"seed must be four finite numbers, got {seed!r}.")

    trace: list[Observation] = []
    current: Sequence[float] = tuple(float(v) for v in seed)
    for _ in range(int(horizon)):
        current = model.apply(current)
        trace.append(current)  # type: ignore[arg-type]

    log.debug("Forecast | horizon=%d | last=%s", horizon, trace[-1])
    return trace
