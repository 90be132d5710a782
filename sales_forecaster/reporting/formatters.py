"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept already-computed results and return plain multi-line
strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from typing import Sequence

from sales_forecaster.backtest.metrics import SeriesMetrics
from sales_forecaster.series import SERIES_NAMES, Observation
from sales_forecaster.var.model import LinearTransitionModel


# ── Backtest summary ──────────────────────────────────────────────────────────


def format_rmse_table(metrics: dict[tuple[str, int], SeriesMetrics]) -> str:
    """Format backtest metrics as one row per series, one column block per window.

    Example::

        === Annual Total RMSE by Window Length ===
          Series             w=14 RMSE     w=14 MAPE     w=21 RMSE     w=21 MAPE
          ------------------------------------------------------------------------
          food_service        41230.12        8.1%        38004.55        7.4%
    """
    lines: list[str] = []
    lines.append("")
    lines.append("=== Annual Total RMSE by Window Length ===")

    if not metrics:
        lines.append("  (no results)")
        return "\n".join(lines)

    windows = sorted({w for _, w in metrics})
    n_sites = max(m.n_sites for m in metrics.values())
    lines.append(f"  Test sites: {n_sites}")
    lines.append("")

    header = f"  {'Series':<14}"
    for w in windows:
        header += f"  {f'w={w} RMSE':>14}  {f'w={w} MAPE':>10}"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    for name in SERIES_NAMES:
        row = f"  {name:<14}"
        for w in windows:
            m = metrics.get((name, w))
            if m is None:
                row += f"  {'-':>14}  {'-':>10}"
                continue
            mape = f"{m.mape * 100:.1f}%" if m.mape is not None else "-"
            row += f"  {m.rmse:>14.2f}  {mape:>10}"
        lines.append(row)

    return "\n".join(lines)


# ── Model ─────────────────────────────────────────────────────────────────────


def format_coefficients(model: LinearTransitionModel) -> str:
    """Format the transition matrix with targets as rows and lag sources as columns."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== VAR(1) Transition Coefficients ===")
    header = f"  {'target':<14}  {'const':>12}"
    for name in SERIES_NAMES:
        header += f"  {'L1.' + name:>16}"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for i, target in enumerate(SERIES_NAMES):
        row = f"  {target:<14}  {model.intercept[i]:>12.4f}"
        for j in range(len(SERIES_NAMES)):
            row += f"  {model.coefficients[i][j]:>16.6f}"
        lines.append(row)
    return "\n".join(lines)


# ── Single-site projection ────────────────────────────────────────────────────


def format_site_projection(
    site_id: str,
    known_days: int,
    projected: Observation,
    actual: Sequence[float] | None = None,
) -> str:
    """Format one site's projected annual totals, with actuals when known."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Projected Annual Totals: site {site_id} ===")
    lines.append(f"  Known days: {known_days}")
    lines.append("")
    if actual is None:
        lines.append(f"  {'Series':<14}  {'Projected':>16}")
        lines.append("  " + "-" * 32)
        for i, name in enumerate(SERIES_NAMES):
            lines.append(f"  {name:<14}  {projected[i]:>16.2f}")
        return "\n".join(lines)

    lines.append(f"  {'Series':<14}  {'Projected':>16}  {'Actual':>16}  {'Error':>8}")
    lines.append("  " + "-" * 60)
    for i, name in enumerate(SERIES_NAMES):
        a = actual[i]
        err = f"{(projected[i] - a) / a * 100:+.1f}%" if a else "-"
        lines.append(f"  {name:<14}  {projected[i]:>16.2f}  {a:>16.2f}  {err:>8}")
    return "\n".join(lines)
