"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local env overrides (gitignored)
  4. Environment variables        — ``SALES_FORECASTER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

All pipeline stages and CLI commands receive an ``AppConfig`` instance —
never raw dicts or individual env var lookups scattered through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Input and output locations, and the sites table's key columns."""

    model_config = ConfigDict(frozen=True)

    sites_file: str = "data/raw/site_daily.csv"
    processed_dir: str = "data/processed"
    site_column: str = "site_id"
    day_column: str = "days_since_opening"


class BacktestConfig(BaseModel):
    """Backtest parameters.

    ``random_seed`` drives the train/test site partition only; the
    forecaster itself is deterministic.
    """

    model_config = ConfigDict(frozen=True)

    window_lengths: list[int] = [14, 21]
    series_length: int = 366
    test_fraction: float = 0.2
    random_seed: int = 1234
    max_workers: int = 1

    @field_validator("test_fraction")
    @classmethod
    def validate_test_fraction(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"test_fraction must be in (0.0, 1.0), got {v}.")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_windows(self) -> "BacktestConfig":
        if self.series_length < 2:
            raise ValueError(f"series_length must be >= 2, got {self.series_length}.")
        if not self.window_lengths:
            raise ValueError("window_lengths must not be empty.")
        bad = [w for w in self.window_lengths if not 1 <= w < self.series_length]
        if bad:
            raise ValueError(
                f"window_lengths must be in [1, {self.series_length}), got {bad}."
            )
        return self


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/forecaster.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    backtest: BacktestConfig = BacktestConfig()
    logging: LoggingConfig = LoggingConfig()
    # Forces DEBUG logging regardless of logging.level.
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    # Also merge local.toml if present (gitignored local overrides)
    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply SALES_FORECASTER_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SALES_FORECASTER_* env vars to the raw config dict.

    Supported overrides:
      SALES_FORECASTER_SITES_FILE  → raw["data"]["sites_file"]
      SALES_FORECASTER_LOG_LEVEL   → raw["logging"]["level"]
      SALES_FORECASTER_SEED        → raw["backtest"]["random_seed"]
      SALES_FORECASTER_DEBUG       → raw["debug"]
    """
    if sites_file := os.environ.get("SALES_FORECASTER_SITES_FILE"):
        raw.setdefault("data", {})["sites_file"] = sites_file

    if log_level := os.environ.get("SALES_FORECASTER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if seed := os.environ.get("SALES_FORECASTER_SEED"):
        raw.setdefault("backtest", {})["random_seed"] = int(seed)

    if debug := os.environ.get("SALES_FORECASTER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        backtest=BacktestConfig(**raw.get("backtest", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
