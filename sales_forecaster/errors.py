"""
Error taxonomy for forecasting and backtesting.

All errors are deterministic input-validation failures: they are raised
eagerly at the boundary of the component that first needs the invariant
and are never retried.  Each carries enough context (site id, window
length) for a caller to find the offending input.

  InvalidModel       malformed coefficient matrix / intercept
  InvalidHorizon     non-positive forecast length
  InvalidWindow      window length outside [1, len(series))
  InvalidSiteRecord  wrong series length, wrong arity, non-finite values
  EmptySiteSet       evaluate() called with no sites
"""

from __future__ import annotations

from typing import Optional


class ForecastError(ValueError):
    """Base class for all sales_forecaster validation errors.

    Attributes:
        site_id:        Site that triggered the failure, if known.
        window_length:  Window length in effect, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        site_id: Optional[str] = None,
        window_length: Optional[int] = None,
    ) -> None:
        self.site_id = site_id
        self.window_length = window_length
        context = []
        if site_id is not None:
            context.append(f"site_id={site_id}")
        if window_length is not None:
            context.append(f"window_length={window_length}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)


class InvalidModel(ForecastError):
    """Coefficient matrix is not 4x4, intercept is not length 4, or values are non-finite."""


class InvalidHorizon(ForecastError):
    """Forecast horizon is <= 0."""


class InvalidWindow(ForecastError):
    """Window length is outside the valid range for a series."""


class InvalidSiteRecord(ForecastError):
    """A site's daily series is malformed."""


class EmptySiteSet(ForecastError):
    """No sites were supplied to an evaluation."""
