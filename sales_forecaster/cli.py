"""
Site Sales Forecaster — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (fit, project, backtest).
  5. Report result to stdout.

Install and run::

    pip install -e .
    sales-forecaster --help
    sales-forecaster validate-config
    sales-forecaster fit
    sales-forecaster forecast-site --site-id 101 --window 14
    sales-forecaster forecast-site --known-days data/raw/new_site.csv
    sales-forecaster backtest --window 14 --window 21
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(
    name="sales-forecaster",
    help="Annual sales forecasts for new retail sites from early daily data.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from sales_forecaster.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config; ``debug = true`` forces DEBUG level."""
    from sales_forecaster.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _fail(exc: Exception) -> None:
    typer.echo(f"[ERROR] {exc}", err=True)
    raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Sites file:       {config.data.sites_file}")
    typer.echo(f"  Output dir:       {config.data.processed_dir}")
    typer.echo(f"  Window lengths:   {', '.join(str(w) for w in config.backtest.window_lengths)}")
    typer.echo(f"  Series length:    {config.backtest.series_length}")
    typer.echo(f"  Test fraction:    {config.backtest.test_fraction}")
    typer.echo(f"  Random seed:      {config.backtest.random_seed}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("fit")
def fit(
    sites_file: Optional[str] = typer.Option(
        None, "--sites-file", help="Override config.data.sites_file.",
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Override the train/test partition seed.",
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the coefficient table to this JSON file.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Fit the VAR(1) transition model on the training partition and print it."""
    from sales_forecaster.errors import ForecastError
    from sales_forecaster.pipeline.fit import FitStage
    from sales_forecaster.reporting.formatters import format_coefficients

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    stage = FitStage(config=config)
    try:
        run = stage.run(sites_file=sites_file, seed=seed, output_path=output)
    except (ForecastError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    typer.echo(format_coefficients(stage.model))
    typer.echo("")
    typer.echo(f"  Training sites: {run.rows_processed}")
    if output:
        typer.echo(f"  Coefficients written to: {output}")
    typer.echo("[OK] Model fitted.")


@app.command("forecast-site")
def forecast_site(
    site_id: Optional[str] = typer.Option(
        None, "--site-id",
        help=(
            "Site in the sites file to project (actuals shown for comparison). "
            "Training-partition sites give an in-sample comparison; use the "
            "backtest command for hold-out error."
        ),
    ),
    window: Optional[int] = typer.Option(
        None, "--window", "-w", help="Known days for --site-id (default: first configured window).",
    ),
    known_days: Optional[str] = typer.Option(
        None, "--known-days", help="CSV/Parquet of a new site's first observed days.",
    ),
    sites_file: Optional[str] = typer.Option(
        None, "--sites-file", help="Override config.data.sites_file.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Project one site's annual totals from its first days of trading.

    \b
    Two modes:
      --site-id ID [--window W]   splice a site from the sites file at W days
                                  and compare against its actual year.
                                  Sites in the training partition are
                                  flagged as in-sample.
      --known-days FILE           project a new site from the days it has so far.
    """
    from sales_forecaster.backtest.metrics import annual_sums
    from sales_forecaster.backtest.splice import project_series, splice
    from sales_forecaster.data.loader import load_known_days, load_site_records
    from sales_forecaster.errors import ForecastError
    from sales_forecaster.pipeline.fit import FitStage
    from sales_forecaster.reporting.formatters import format_site_projection

    if (site_id is None) == (known_days is None):
        typer.echo("[ERROR] Pass exactly one of --site-id or --known-days.", err=True)
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    cfg_bt = config.backtest

    stage = FitStage(config=config)
    try:
        stage.run(sites_file=sites_file)
        model = stage.model

        if known_days is not None:
            known = load_known_days(Path(known_days), day_column=config.data.day_column)
            projected = project_series(known, model, cfg_bt.series_length)
            typer.echo(format_site_projection(Path(known_days).stem, len(known), annual_sums(projected)))
            return

        sites = load_site_records(
            Path(sites_file or config.data.sites_file),
            series_length=cfg_bt.series_length,
            site_column=config.data.site_column,
            day_column=config.data.day_column,
        )
        site = next((s for s in sites if s.site_id == site_id), None)
        if site is None:
            typer.echo(f"[ERROR] Site '{site_id}' not found in sites file.", err=True)
            raise typer.Exit(code=1)

        w = window if window is not None else cfg_bt.window_lengths[0]
        reconstructed = splice(site.series, model, w)
    except (ForecastError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    typer.echo(format_site_projection(
        site.site_id, w, annual_sums(reconstructed), actual=annual_sums(site.series),
    ))
    if site.site_id in stage.train_site_ids:
        typer.echo("")
        typer.echo(
            f"  [NOTE] Site {site.site_id} is in the training partition: "
            "this comparison is in-sample."
        )


@app.command("backtest")
def backtest(
    window: Optional[List[int]] = typer.Option(
        None, "--window", "-w", help="Window length in days. Repeatable; config default if omitted.",
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Override the train/test partition seed.",
    ),
    sites_file: Optional[str] = typer.Option(
        None, "--sites-file", help="Override config.data.sites_file.",
    ),
    no_write: bool = typer.Option(
        False, "--no-write", help="Print results without writing CSV/JSON outputs.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Backtest the VAR(1) forecaster on held-out sites.

    \b
    Steps:
      1. Load sites and split train/test with the configured seed.
      2. Fit the transition model on the training sites.
      3. For each window length and test site, keep W actual days,
         forecast the rest of the year, and compare annual totals.
      4. Report RMSE per series and window; write outputs under
         <processed_dir>/backtest/.
    """
    from sales_forecaster.errors import ForecastError
    from sales_forecaster.pipeline.backtest import BacktestStage
    from sales_forecaster.reporting.formatters import format_rmse_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    stage = BacktestStage(config=config)
    try:
        run = stage.run(
            sites_file=sites_file,
            window_lengths=window or None,
            seed=seed,
            write_outputs=not no_write,
        )
    except (ForecastError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    typer.echo(format_rmse_table(stage.report.metrics))
    typer.echo("")
    typer.echo(f"  Site results: {run.rows_processed}")
    if run.output_dir:
        typer.echo(f"  Outputs:      {run.output_dir}")
    typer.echo("[OK] Backtest complete.")


if __name__ == "__main__":
    app()
