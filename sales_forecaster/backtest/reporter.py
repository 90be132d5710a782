"""
Backtest result reporting: CSV files and a JSON manifest.

Output layout (one backtest run):
  data/processed/backtest/{run_stamp}_{run_slug[:8]}/
    summary.csv       — metrics by (series, window_length)
    per_site.csv      — predicted vs actual annual totals, one row per
                        (site, window_length)
    model.json        — fitted coefficient table (statsmodels layout)
    manifest.json     — run config, site counts, seed, output file paths

The per-site file is what external charting tools consume for
predicted-vs-actual scatter plots; this package does no plotting.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from sales_forecaster.backtest.metrics import SeriesMetrics, SiteResult
from sales_forecaster.series import SERIES_NAMES
from sales_forecaster.utils.time_utils import utcnow
from sales_forecaster.var.model import LinearTransitionModel

log = logging.getLogger(__name__)


# ── CSV output ─────────────────────────────────────────────────────────────────

def write_summary_csv(
    metrics: dict[tuple[str, int], SeriesMetrics],
    path: Path,
) -> None:
    """Write aggregate (series × window) metrics as CSV, ordered by window then series."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = [
        "series", "window_length", "n_sites",
        "rmse", "mae", "mape",
        "mean_actual", "mean_predicted",
    ]
    order = {name: i for i, name in enumerate(SERIES_NAMES)}
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for (series, w), m in sorted(
            metrics.items(), key=lambda kv: (kv[0][1], order[kv[0][0]])
        ):
            writer.writerow({
                "series":         series,
                "window_length":  w,
                "n_sites":        m.n_sites,
                "rmse":           _fmt(m.rmse),
                "mae":            _fmt(m.mae),
                "mape":           _fmt(m.mape),
                "mean_actual":    _fmt(m.mean_actual),
                "mean_predicted": _fmt(m.mean_predicted),
            })
    log.info("Summary CSV written: %s", path)


def write_site_results_csv(results: Sequence[SiteResult], path: Path) -> None:
    """Write raw per-site annual totals (predicted and actual, every series)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = ["site_id", "window_length"]
    for name in SERIES_NAMES:
        fieldnames += [f"{name}_predicted", f"{name}_actual"]

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for r in results:
            row: dict[str, Any] = {"site_id": r.site_id, "window_length": r.window_length}
            for i, name in enumerate(SERIES_NAMES):
                row[f"{name}_predicted"] = r.predicted_sums[i]
                row[f"{name}_actual"] = r.actual_sums[i]
            writer.writerow(row)
    log.info("Per-site CSV written: %s (%d rows)", path, len(results))


# ── JSON output ────────────────────────────────────────────────────────────────

def write_model_json(model: LinearTransitionModel, path: Path) -> None:
    """Write the fitted coefficient table as ``{target: {source: value}}``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(model.to_named_coefficients(), f, indent=2)
    log.info("Model coefficients written: %s", path)


def build_backtest_manifest(
    run_slug: str,
    sites_file: str,
    n_train_sites: int,
    n_test_sites: int,
    window_lengths: list[int],
    random_seed: int,
    metrics: dict[tuple[str, int], SeriesMetrics],
    output_dir: Path,
    config_snapshot: dict[str, Any],
) -> dict[str, Any]:
    """Build a JSON manifest summarising this backtest run."""
    return {
        "schema_version": "1.0",
        "built_at":       utcnow().isoformat(),
        "run_slug":       run_slug,
        "sites_file":     sites_file,
        "n_train_sites":  n_train_sites,
        "n_test_sites":   n_test_sites,
        "window_lengths": window_lengths,
        "random_seed":    random_seed,
        "rmse": {
            f"{series}@{w}": m.rmse for (series, w), m in sorted(metrics.items())
        },
        "output_files": {
            "summary_csv":  str(output_dir / "summary.csv"),
            "per_site_csv": str(output_dir / "per_site.csv"),
            "model_json":   str(output_dir / "model.json"),
        },
        "config_snapshot": config_snapshot,
    }


def write_manifest(manifest: dict[str, Any], path: Path) -> None:
    """Write the manifest dict as pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, default=str)
    log.info("Backtest manifest written: %s", path)


def make_output_dir(base_dir: str, run_stamp: str, run_slug: str) -> Path:
    """Build the output directory path for one backtest run."""
    return Path(base_dir) / "backtest" / f"{run_stamp}_{run_slug[:8]}"


def _fmt(v: float | None) -> str:
    """Format float to 4 decimal places, or empty string for None."""
    if v is None:
        return ""
    return f"{v:.4f}"
