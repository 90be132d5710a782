"""
Load site records from a long-format daily table.

Expected columns (names configurable via ``DataConfig``)::

    site_id, days_since_opening, food_service, inside_sales, diesel, unleaded

One row per site per day.  Rows may arrive in any order; each site's rows
are sorted by ``days_since_opening`` and must cover exactly
``0 .. series_length - 1`` with no gaps or duplicates.  Anything else is
rejected with ``InvalidSiteRecord`` naming the site: the forecaster has no
notion of irregular timestamps.

Cleaning (imputation, outlier handling) happens upstream; this module only
reshapes and checks.  ``.parquet`` files are read through pyarrow.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from sales_forecaster.errors import InvalidSiteRecord
from sales_forecaster.models.site import DEFAULT_SERIES_LENGTH, SiteRecord
from sales_forecaster.series import (
    SERIES_NAMES,
    Observation,
    observation_from_mapping,
    observation_to_dict,
)

log = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = frozenset({".csv", ".parquet"})


def read_site_table(path: Path) -> pd.DataFrame:
    """Read a ``.csv`` or ``.parquet`` site table into a DataFrame.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError:        If the suffix is unsupported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sites file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported sites file format '{suffix}'. Use .csv or .parquet."
        )
    if suffix == ".parquet":
        return pd.read_parquet(path, engine="pyarrow")
    return pd.read_csv(path)


def frame_to_site_records(
    frame: pd.DataFrame,
    series_length: int = DEFAULT_SERIES_LENGTH,
    site_column: str = "site_id",
    day_column: str = "days_since_opening",
) -> list[SiteRecord]:
    """Convert a long-format frame into validated ``SiteRecord`` objects.

    Sites are returned in ascending ``site_id`` order (as strings).

    Raises:
        ValueError:        If required columns are missing.
        InvalidSiteRecord: If a site's day index or values are malformed.
    """
    required = [site_column, day_column, *SERIES_NAMES]
    missing = [c for c in required if c not in frame.columns]
    if missing:
        raise ValueError(f"Sites table is missing columns: {missing}")

    expected_days = list(range(series_length))
    records: list[SiteRecord] = []

    for site_id, group in frame.groupby(frame[site_column].astype(str), sort=True):
        group = group.sort_values(day_column)
        days = pd.to_numeric(group[day_column], errors="coerce")
        if (
            days.isna().any()
            or (days % 1 != 0).any()
            or days.astype(int).tolist() != expected_days
        ):
            raise InvalidSiteRecord(
                f"Day index must be exactly 0..{series_length - 1} with no gaps "
                f"or duplicates (got {len(group)} rows).",
                site_id=str(site_id),
            )

        values = group[list(SERIES_NAMES)].apply(pd.to_numeric, errors="coerce")
        if values.isna().any().any():
            raise InvalidSiteRecord(
                "Non-numeric or missing metric values.", site_id=str(site_id),
            )

        record = SiteRecord(
            site_id=str(site_id),
            series=tuple(
                observation_from_mapping(row)
                for row in values.to_dict(orient="records")
            ),
        )
        record.validate(series_length)
        records.append(record)

    log.info("Loaded %d site records (%d days each)", len(records), series_length)
    return records


def load_site_records(
    path: Path,
    series_length: int = DEFAULT_SERIES_LENGTH,
    site_column: str = "site_id",
    day_column: str = "days_since_opening",
) -> list[SiteRecord]:
    """Read a sites file and return one validated ``SiteRecord`` per site."""
    frame = read_site_table(Path(path))
    log.debug("Read %d rows from %s", len(frame), path)
    return frame_to_site_records(
        frame,
        series_length=series_length,
        site_column=site_column,
        day_column=day_column,
    )


def site_records_to_frame(
    sites: list[SiteRecord],
    site_column: str = "site_id",
    day_column: str = "days_since_opening",
) -> pd.DataFrame:
    """Inverse of ``frame_to_site_records`` (used for fixtures and exports)."""
    rows = [
        {site_column: s.site_id, day_column: day, **observation_to_dict(obs)}
        for s in sites
        for day, obs in enumerate(s.series)
    ]
    return pd.DataFrame(rows, columns=[site_column, day_column, *SERIES_NAMES])


def load_known_days(
    path: Path,
    day_column: str = "days_since_opening",
) -> list[Observation]:
    """Read the first ``k`` observed days of a site that has not finished its year.

    The file holds one row per day with ``day_column`` plus the four metric
    columns; days must be exactly ``0 .. k-1``.

    Raises:
        ValueError: On missing columns, an empty file, gaps or non-numeric values.
    """
    frame = read_site_table(Path(path))
    missing = [c for c in (day_column, *SERIES_NAMES) if c not in frame.columns]
    if missing:
        raise ValueError(f"Known-days table is missing columns: {missing}")
    if frame.empty:
        raise ValueError(f"Known-days table {path} has no rows.")

    frame = frame.sort_values(day_column)
    if frame[day_column].astype(int).tolist() != list(range(len(frame))):
        raise ValueError("Known days must be exactly 0..k-1 with no gaps or duplicates.")

    values = frame[list(SERIES_NAMES)].apply(pd.to_numeric, errors="coerce")
    if values.isna().any().any():
        raise ValueError("Known-days table has non-numeric or missing metric values.")
    return [observation_from_mapping(row) for row in values.to_dict(orient="records")]
