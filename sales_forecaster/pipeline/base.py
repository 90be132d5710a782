"""
Abstract base class for all pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, calls ``_execute()``,
     and writes the run record with its final status to
     ``<processed_dir>/runs/<run_slug>.json``.
  4. ``_execute()`` is the stage-specific implementation.

Stages never swallow exceptions: a failing ``_execute()`` is recorded as
``status='failed'`` and re-raised unchanged, so a ``ForecastError`` reaches
the CLI with its site / window context intact.

Usage::

    class MyStage(PipelineStage):
        stage_name = "fit"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    run = MyStage(config=app_config).run(sites_file="data/raw/site_daily.csv")
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from uuid import uuid4

from sales_forecaster.config import AppConfig
from sales_forecaster.models.meta import RunMetadata
from sales_forecaster.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for all pipeline stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``_execute(run, **kwargs) -> int``.

    Attributes:
        stage_name: One of ``VALID_PIPELINE_STAGES``.
        config: The application configuration for this run.
        runs_dir: Where run records are written (``None`` disables writing).
    """

    stage_name: str  # Override in subclass

    def __init__(
        self,
        config: AppConfig,
        runs_dir: str | Path | None = None,
    ) -> None:
        self.config = config
        self.runs_dir = (
            Path(runs_dir) if runs_dir is not None
            else Path(config.data.processed_dir) / "runs"
        )

    def run(self, **kwargs) -> RunMetadata:
        """Execute this pipeline stage.

        Returns:
            ``RunMetadata`` with final ``status``, ``rows_processed``,
            and ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'`` in the run record.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(),
            started_at=utcnow(),
        )
        logger.info("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)

        try:
            rows = self._execute(run=run, **kwargs)
        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            self._persist_run(run)
            raise

        run.status = "success"
        run.rows_processed = rows
        run.finished_at = utcnow()
        logger.info(
            "Stage [%s] completed | rows=%d | run_slug=%s",
            self.stage_name, rows, run.run_slug,
        )
        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Integer count of records processed.
        """
        ...

    def _persist_run(self, run: RunMetadata) -> None:
        """Write the run record as JSON.

        Logs errors rather than raising — a failure to write the audit record
        should not mask the original pipeline error.
        """
        try:
            self.runs_dir.mkdir(parents=True, exist_ok=True)
            path = self.runs_dir / f"{run.run_slug}.json"
            path.write_text(
                json.dumps(run.model_dump(mode="json"), indent=2, default=str),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error(
                "Failed to persist RunMetadata for run_slug=%s: %s",
                run.run_slug, exc,
            )
