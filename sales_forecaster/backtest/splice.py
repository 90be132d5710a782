"""
Reconstruct a site's full year from a known prefix and a forecast suffix.

Convention
----------
For window length ``w`` over an actual series of length ``n``:

    index:   0 ... w-1 | w          | w+1 ... n-1
    value:   actual    | actual[w]  | forecast (n - w - 1 steps)
                         (the seed)

The observation at index ``w`` seeds the forecaster and is kept as the
first entry of the trace, followed by exactly ``n - w - 1`` forecast days.
The reconstruction therefore has exactly ``n`` entries and its first ``w``
entries are the original objects, untouched.

``project_series()`` is the same operation for a site whose future is not
known yet: the last known observation seeds the forecast and the result is
padded out to ``length`` days.  ``splice(actual, model, w)`` is
``project_series(actual[:w + 1], model, len(actual))``.
"""

from __future__ import annotations

import numbers
from typing import Any, Sequence

from sales_forecaster.errors import InvalidWindow
from sales_forecaster.series import Observation
from sales_forecaster.var.forecaster import forecast
from sales_forecaster.var.model import LinearTransitionModel


def validate_window(window_length: Any, series_length: int) -> int:
    """Return ``window_length`` as an ``int`` if ``1 <= window_length < series_length``.

    Raises:
        InvalidWindow: Otherwise (including non-integer values).
    """
    if (
        isinstance(window_length, bool)
        or not isinstance(window_length, numbers.Integral)
        or not 1 <= window_length < series_length
    ):
        raise InvalidWindow(
            f"Window length must be an integer in [1, {series_length}), "
            f"got {window_length!r}.",
            window_length=(
                int(window_length)
                if isinstance(window_length, numbers.Integral)
                else None
            ),
        )
    return int(window_length)


def project_series(
    known: Sequence[Observation],
    model: LinearTransitionModel,
    length: int,
) -> list[Observation]:
    """Extend ``known`` with forecast days until it has ``length`` entries.

    Args:
        known:  Observed days 0..k-1 (k >= 1); the last one seeds the forecast.
        model:  Fitted transition model.
        length: Total number of days wanted (>= len(known)).

    Returns:
        A new list: ``known`` followed by ``length - len(known)`` forecast days.

    Raises:
        InvalidWindow: If ``known`` is empty or longer than ``length``.
    """
    if not 1 <= len(known) <= length:
        raise InvalidWindow(
            f"Need between 1 and {length} known days, got {len(known)}.",
        )
    reconstructed = list(known)
    remaining = length - len(known)
    if remaining:
        reconstructed.extend(forecast(model, known[-1], remaining))
    return reconstructed


def splice(
    actual_series: Sequence[Observation],
    model: LinearTransitionModel,
    window_length: int,
) -> list[Observation]:
    """Keep ``window_length`` actual days, then forecast the rest of the year.

    Args:
        actual_series: A site's full actual series.
        model:         Fitted transition model.
        window_length: Number of leading days treated as known.

    Returns:
        New list of the same length as ``actual_series``.

    Raises:
        InvalidWindow: If ``window_length`` is not in ``[1, len(actual_series))``.
    """
    n = len(actual_series)
    w = validate_window(window_length, n)
    return project_series(actual_series[: w + 1], model, n)
