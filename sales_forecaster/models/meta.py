"""
Run metadata — the reproducibility backbone.

Every pipeline run records a complete ``config_snapshot`` (the full
AppConfig as a dict, including the partition seed) so any backtest can be
reproduced exactly by restoring that config and re-running.

``RunMetadata`` is deliberately NOT frozen: ``status``, ``rows_processed``,
``error_message`` and ``finished_at`` are updated as the stage executes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

VALID_PIPELINE_STAGES = frozenset({"fit", "backtest"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """Pipeline execution audit record.

    Attributes:
        run_slug: UUID4 string identifying the run.
        pipeline_stage: One of ``VALID_PIPELINE_STAGES``.
        config_snapshot: ``AppConfig.model_dump()`` at run start.
        status: One of ``VALID_RUN_STATUSES``.
        rows_processed: Stage-defined count (site results for a backtest).
        error_message: Set when ``status == 'failed'``.
        started_at: UTC start time.
        finished_at: UTC finish time; ``None`` while running.
        output_dir: Where the stage wrote its artefacts, if anywhere.
    """

    run_slug: str
    pipeline_stage: str
    config_snapshot: dict[str, Any] = {}
    status: str = "started"
    rows_processed: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None
    output_dir: Optional[str] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
