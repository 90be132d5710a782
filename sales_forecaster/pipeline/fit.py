"""
FitStage — fit the VAR(1) transition model on the training partition.

Loads the sites file, applies the seeded train/test partition and fits on
the training side only, so ``fit`` and ``backtest`` with the same config see
exactly the same training sites.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sales_forecaster.models.meta import RunMetadata
from sales_forecaster.pipeline.base import PipelineStage
from sales_forecaster.var.model import LinearTransitionModel

log = logging.getLogger(__name__)


class FitStage(PipelineStage):
    """Fit-only pipeline stage.

    The fitted model is kept on ``self.model`` and the ids of the sites it
    training sites on ``self.train_site_ids``.
    """

    stage_name = "fit"

    model: LinearTransitionModel | None = None
    train_site_ids: frozenset[str] = frozenset()

    def _execute(
        self,
        run: RunMetadata,
        sites_file: str | None = None,
        seed: int | None = None,
        output_path: str | None = None,
    ) -> int:
        """Fit on the training partition.

        Args:
            run:         RunMetadata being tracked.
            sites_file:  Overrides ``config.data.sites_file``.
            seed:        Overrides ``config.backtest.random_seed``.
            output_path: If given, write the coefficient table as JSON here.

        Returns:
            Number of training sites used.
        """
        from sales_forecaster.backtest.partition import partition_sites
        from sales_forecaster.backtest.reporter import write_model_json
        from sales_forecaster.data.loader import load_site_records
        from sales_forecaster.var.fitting import fit_transition_model

        cfg_data = self.config.data
        cfg_bt = self.config.backtest

        sites = load_site_records(
            Path(sites_file or cfg_data.sites_file),
            series_length=cfg_bt.series_length,
            site_column=cfg_data.site_column,
            day_column=cfg_data.day_column,
        )
        _seed = cfg_bt.random_seed if seed is None else seed
        train, _test = partition_sites(sites, cfg_bt.test_fraction, _seed)

        self.model = fit_transition_model(train)
        self.train_site_ids = frozenset(s.site_id for s in train)
        if output_path:
            write_model_json(self.model, Path(output_path))
            run.output_dir = str(Path(output_path).parent)

        log.info("Fit complete | train_sites=%d | seed=%d", len(train), _seed)
        return len(train)
