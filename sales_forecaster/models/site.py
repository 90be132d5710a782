"""
Site records — one retail site's first year of daily observations.

A ``SiteRecord`` holds ``series_length`` observation tuples (opening day
plus 365 days by default), index ``k`` being ``k`` days since opening.
Records are frozen and read-only during evaluation.

Construction does not validate: records are built by loaders and by
callers of ``evaluate()`` alike, and ``evaluate()`` must be the one to
reject a malformed record (with ``InvalidSiteRecord``) so no partial
aggregate is ever produced.  Call ``validate()`` to check explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sales_forecaster.errors import InvalidSiteRecord
from sales_forecaster.series import N_SERIES, is_finite_observation

DEFAULT_SERIES_LENGTH = 366


@dataclass(frozen=True)
class SiteRecord:
    """Actual daily series for one site.

    Attributes:
        site_id: Site identifier (store number or similar).
        series:  Observation tuples ordered by days since opening.
    """

    site_id: str
    series: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "site_id", str(self.site_id))
        object.__setattr__(self, "series", tuple(self.series))

    def __len__(self) -> int:
        return len(self.series)

    def validate(self, expected_length: int = DEFAULT_SERIES_LENGTH) -> None:
        """Check length, arity and finiteness of every entry.

        Raises:
            InvalidSiteRecord: On the first violation found.
        """
        if len(self.series) != expected_length:
            raise InvalidSiteRecord(
                f"Expected {expected_length} daily observations, got {len(self.series)}.",
                site_id=self.site_id,
            )
        for day, obs in enumerate(self.series):
            if not is_finite_observation(obs):
                raise InvalidSiteRecord(
                    f"Day {day} is not {N_SERIES} finite numbers: {obs!r}.",
                    site_id=self.site_id,
                )
