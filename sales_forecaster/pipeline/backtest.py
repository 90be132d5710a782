"""
BacktestStage — hold-out evaluation pipeline stage.

This stage:
1. Loads site records from the configured sites file.
2. Partitions sites into train/test with the configured (or overridden) seed.
3. Fits the VAR(1) transition model on the training sites.
4. Evaluates every test site at every window length (splice → annual totals
   → RMSE per series and window).
5. Writes summary / per-site CSVs, the fitted coefficients and a JSON
   manifest to ``<processed_dir>/backtest/<run>/``.

The fitted model and the ``EvaluationReport`` are kept on the stage instance
(``self.model``, ``self.report``) for the CLI to display.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sales_forecaster.backtest.evaluator import EvaluationReport
from sales_forecaster.models.meta import RunMetadata
from sales_forecaster.pipeline.base import PipelineStage
from sales_forecaster.var.model import LinearTransitionModel

log = logging.getLogger(__name__)


class BacktestStage(PipelineStage):
    """Partition → fit → evaluate → report."""

    stage_name = "backtest"

    model: LinearTransitionModel | None = None
    report: EvaluationReport | None = None

    def _execute(
        self,
        run: RunMetadata,
        sites_file: str | None = None,
        window_lengths: list[int] | None = None,
        seed: int | None = None,
        write_outputs: bool = True,
    ) -> int:
        """Run the backtest.

        Args:
            run:            RunMetadata being tracked.
            sites_file:     Overrides ``config.data.sites_file``.
            window_lengths: Overrides ``config.backtest.window_lengths``.
            seed:           Overrides ``config.backtest.random_seed``.
            write_outputs:  Write CSV / JSON artefacts (disable for dry runs).

        Returns:
            Number of ``SiteResult`` records produced.
        """
        from sales_forecaster.backtest.evaluator import evaluate_report
        from sales_forecaster.backtest.partition import partition_sites
        from sales_forecaster.backtest.reporter import (
            build_backtest_manifest,
            make_output_dir,
            write_manifest,
            write_model_json,
            write_site_results_csv,
            write_summary_csv,
        )
        from sales_forecaster.data.loader import load_site_records
        from sales_forecaster.utils.time_utils import run_stamp
        from sales_forecaster.var.fitting import fit_transition_model

        cfg_data = self.config.data
        cfg_bt = self.config.backtest

        _sites_file = sites_file or cfg_data.sites_file
        _windows = list(window_lengths or cfg_bt.window_lengths)
        _seed = cfg_bt.random_seed if seed is None else seed

        sites = load_site_records(
            Path(_sites_file),
            series_length=cfg_bt.series_length,
            site_column=cfg_data.site_column,
            day_column=cfg_data.day_column,
        )
        train, test = partition_sites(sites, cfg_bt.test_fraction, _seed)
        log.info(
            "Partitioned %d sites | train=%d | test=%d | seed=%d",
            len(sites), len(train), len(test), _seed,
        )

        self.model = fit_transition_model(train)
        self.report = evaluate_report(
            self.model,
            test,
            _windows,
            series_length=cfg_bt.series_length,
            max_workers=cfg_bt.max_workers,
        )

        if write_outputs:
            out_dir = make_output_dir(cfg_data.processed_dir, run_stamp(run.started_at), run.run_slug)
            out_dir.mkdir(parents=True, exist_ok=True)

            write_summary_csv(self.report.metrics, out_dir / "summary.csv")
            write_site_results_csv(self.report.site_results, out_dir / "per_site.csv")
            write_model_json(self.model, out_dir / "model.json")

            manifest = build_backtest_manifest(
                run_slug=run.run_slug,
                sites_file=str(_sites_file),
                n_train_sites=len(train),
                n_test_sites=len(test),
                window_lengths=sorted(set(_windows)),
                random_seed=_seed,
                metrics=self.report.metrics,
                output_dir=out_dir,
                config_snapshot=run.config_snapshot,
            )
            write_manifest(manifest, out_dir / "manifest.json")
            run.output_dir = str(out_dir)

        return len(self.report.site_results)
