"""
The four tracked metrics and their fixed positional order.

Every observation vector in the system is a plain 4-tuple laid out in
``SERIES_NAMES`` order::

    (food_service, inside_sales, diesel, unleaded)

Downstream code indexes by position, never by name.  Names only appear at
the edges (loading site files, mapping fitted coefficient tables, writing
reports) and are converted through ``series_index()`` exactly once there.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Mapping

SERIES_NAMES: tuple[str, ...] = ("food_service", "inside_sales", "diesel", "unleaded")
N_SERIES = len(SERIES_NAMES)

SERIES_INDEX: dict[str, int] = {name: i for i, name in enumerate(SERIES_NAMES)}

Observation = tuple[float, float, float, float]


def series_index(name: str) -> int:
    """Return the positional index of a series name.

    Raises:
        ValueError: If ``name`` is not one of ``SERIES_NAMES``.
    """
    try:
        return SERIES_INDEX[name]
    except KeyError:
        raise ValueError(
            f"Unknown series '{name}'. Must be one of {list(SERIES_NAMES)}."
        ) from None


def observation_from_mapping(row: Mapping[str, Any]) -> Observation:
    """Build an observation tuple from a name-keyed row (e.g. a CSV record).

    Values are converted with ``float()``; conversion errors propagate.
    """
    return tuple(float(row[name]) for name in SERIES_NAMES)  # type: ignore[return-value]


def observation_to_dict(obs: Observation) -> dict[str, float]:
    return {name: obs[i] for i, name in enumerate(SERIES_NAMES)}


def is_finite_observation(obs: Any) -> bool:
    """True if ``obs`` is a length-4 sequence of finite real numbers."""
    try:
        if len(obs) != N_SERIES:
            return False
        return all(
            isinstance(v, numbers.Real)
            and not isinstance(v, bool)
            and math.isfinite(v)
            for v in obs
        )
    except TypeError:
        return False
