"""
Linear state-transition model: ``next_state = A · state + b``.

A fitted VAR(1) with intercept is held as a plain 4x4 coefficient matrix
``A`` and a length-4 intercept ``b``, both in ``SERIES_NAMES`` order:

    A[i][j]  effect of yesterday's series j on today's series i
    b[i]     constant term for series i

The model is frozen after construction.  Shape and finiteness are checked
once in ``__post_init__``; ``apply()`` then trusts its fields and is a pure
function of them, so one instance can be shared across threads.

Name-indexed coefficient tables
-------------------------------
Fitting libraries report coefficients keyed by name, e.g. statsmodels'
``VARResults.params``::

                      food_service  inside_sales  diesel  unleaded   <- target
    const                 ...
    L1.food_service       ...
    L1.inside_sales       ...                                         <- source
    L1.diesel             ...
    L1.unleaded           ...

``from_named_coefficients()`` maps such a table onto the fixed order.  Every
target and every source must be present exactly once; a missing or unknown
name raises ``InvalidModel`` instead of silently shifting a column.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from sales_forecaster.errors import InvalidModel
from sales_forecaster.series import N_SERIES, SERIES_NAMES, Observation, series_index

INTERCEPT_KEYS = frozenset({"const", "intercept"})
LAG_PREFIX = "L1."


@dataclass(frozen=True)
class LinearTransitionModel:
    """Immutable VAR(1) transition.

    Attributes:
        coefficients: 4x4 matrix as a tuple of row tuples (row = target series).
        intercept:    Length-4 intercept tuple.
    """

    coefficients: tuple[tuple[float, ...], ...]
    intercept: tuple[float, ...]

    def __post_init__(self) -> None:
        try:
            rows = tuple(tuple(float(v) for v in row) for row in self.coefficients)
            intercept = tuple(float(v) for v in self.intercept)
        except (TypeError, ValueError) as exc:
            raise InvalidModel(f"Coefficients must be numeric: {exc}") from exc

        if len(rows) != N_SERIES or any(len(row) != N_SERIES for row in rows):
            shape = f"{len(rows)}x{[len(r) for r in rows]}"
            raise InvalidModel(
                f"Coefficient matrix must be {N_SERIES}x{N_SERIES}, got {shape}."
            )
        if len(intercept) != N_SERIES:
            raise InvalidModel(
                f"Intercept must have length {N_SERIES}, got {len(intercept)}."
            )
        if not all(math.isfinite(v) for row in rows for v in row) or not all(
            math.isfinite(v) for v in intercept
        ):
            raise InvalidModel("Coefficients and intercept must be finite.")

        object.__setattr__(self, "coefficients", rows)
        object.__setattr__(self, "intercept", intercept)

    def apply(self, state: Sequence[float]) -> Observation:
        """Advance one day: return ``A · state + b``."""
        return tuple(  # type: ignore[return-value]
            sum(a * s for a, s in zip(row, state)) + b
            for row, b in zip(self.coefficients, self.intercept)
        )

    # ── Construction helpers ──────────────────────────────────────────────────

    @classmethod
    def identity(cls) -> "LinearTransitionModel":
        """A = I, b = 0: every state maps to itself."""
        return cls(
            coefficients=tuple(
                tuple(1.0 if i == j else 0.0 for j in range(N_SERIES))
                for i in range(N_SERIES)
            ),
            intercept=(0.0,) * N_SERIES,
        )

    @classmethod
    def from_named_coefficients(cls, table: Any) -> "LinearTransitionModel":
        """Build a model from a coefficient table keyed by series name.

        Args:
            table: Either a mapping ``{target: {source: value}}`` or any object
                with a pandas-style ``to_dict()`` returning that shape (a
                statsmodels ``params`` DataFrame qualifies).  Source keys are a
                series name, ``"L1.<series>"``, or ``"const"`` / ``"intercept"``.

        Raises:
            InvalidModel: On missing, duplicate or unknown names.
        """
        if hasattr(table, "to_dict"):
            table = table.to_dict()
        if not isinstance(table, Mapping):
            raise InvalidModel(
                f"Coefficient table must be a mapping, got {type(table).__name__}."
            )

        unknown_targets = set(table) - set(SERIES_NAMES)
        if unknown_targets:
            raise InvalidModel(f"Unknown target series: {sorted(unknown_targets)}.")
        missing_targets = [name for name in SERIES_NAMES if name not in table]
        if missing_targets:
            raise InvalidModel(f"Missing target series: {missing_targets}.")

        rows: list[list[float]] = []
        intercept: list[float] = []
        for target in SERIES_NAMES:
            row, const = _map_sources(target, table[target])
            rows.append(row)
            intercept.append(const)

        return cls(
            coefficients=tuple(tuple(r) for r in rows),
            intercept=tuple(intercept),
        )

    def to_named_coefficients(self) -> dict[str, dict[str, float]]:
        """Inverse of ``from_named_coefficients`` (keys use the ``L1.`` prefix)."""
        return {
            target: {
                "const": self.intercept[i],
                **{
                    f"{LAG_PREFIX}{source}": self.coefficients[i][j]
                    for j, source in enumerate(SERIES_NAMES)
                },
            }
            for i, target in enumerate(SERIES_NAMES)
        }


def _map_sources(target: str, sources: Mapping[str, Any]) -> tuple[list[float], float]:
    """Map one target's ``{source: value}`` entries onto a positional row."""
    row: list[float | None] = [None] * N_SERIES
    const: float | None = None

    for key, value in sources.items():
        name = str(key)
        if name in INTERCEPT_KEYS:
            if const is not None:
                raise InvalidModel(f"Duplicate intercept for target '{target}'.")
            const = value
            continue
        if name.startswith(LAG_PREFIX):
            name = name[len(LAG_PREFIX):]
        try:
            j = series_index(name)
        except ValueError:
            raise InvalidModel(
                f"Unknown source coefficient '{key}' for target '{target}'."
            ) from None
        if row[j] is not None:
            raise InvalidModel(f"Duplicate source '{name}' for target '{target}'.")
        row[j] = value

    missing = [SERIES_NAMES[j] for j, v in enumerate(row) if v is None]
    if missing:
        raise InvalidModel(f"Target '{target}' is missing sources {missing}.")
    if const is None:
        raise InvalidModel(f"Target '{target}' is missing an intercept ('const').")
    return row, const  # type: ignore[return-value]
