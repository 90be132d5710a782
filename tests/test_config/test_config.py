"""
Tests for sales_forecaster/config.py.

What we test
------------
1. Defaults validate and match the committed default.toml.
2. A TOML file overrides defaults; local.toml beside it overrides the file.
3. SALES_FORECASTER_* environment variables override both.
4. BacktestConfig rejects empty / out-of-range windows, bad fractions and
   non-positive worker counts.
5. Missing config file → FileNotFoundError.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from sales_forecaster.config import AppConfig, BacktestConfig, LoggingConfig, load_config

_ENV_VARS = (
    "SALES_FORECASTER_SITES_FILE",
    "SALES_FORECASTER_LOG_LEVEL",
    "SALES_FORECASTER_SEED",
    "SALES_FORECASTER_DEBUG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# ── Defaults ───────────────────────────────────────────────────────────────────

def test_model_defaults() -> None:
    cfg = AppConfig()
    assert cfg.backtest.window_lengths == [14, 21]
    assert cfg.backtest.series_length == 366
    assert cfg.backtest.max_workers == 1
    assert cfg.logging.level == "INFO"
    assert cfg.debug is False


def test_committed_default_toml_loads() -> None:
    cfg = load_config()
    assert cfg.backtest.window_lengths == [14, 21]
    assert cfg.data.site_column == "site_id"


def test_config_is_frozen() -> None:
    cfg = AppConfig()
    with pytest.raises(ValidationError):
        cfg.debug = True  # type: ignore[misc]


# ── Layering ───────────────────────────────────────────────────────────────────

def test_toml_overrides_defaults(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "cfg" / "app.toml",
        """
[data]
sites_file = "sites.parquet"

[backtest]
window_lengths = [7, 14, 28]
random_seed = 7
""",
    )
    cfg = load_config(path)
    assert cfg.data.sites_file == "sites.parquet"
    assert cfg.backtest.window_lengths == [7, 14, 28]
    assert cfg.backtest.random_seed == 7
    assert cfg.backtest.test_fraction == 0.2


def test_local_toml_overrides_file(tmp_path: Path) -> None:
    path = _write(tmp_path / "cfg" / "app.toml", "[backtest]\nrandom_seed = 7\nmax_workers = 2\n")
    _write(tmp_path / "cfg" / "local.toml", "[backtest]\nrandom_seed = 99\n")
    cfg = load_config(path)
    assert cfg.backtest.random_seed == 99
    assert cfg.backtest.max_workers == 2


def test_project_debug_flag(tmp_path: Path) -> None:
    path = _write(tmp_path / "app.toml", "[project]\ndebug = true\n")
    assert load_config(path).debug is True


def test_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path / "app.toml", "[backtest]\nrandom_seed = 7\n")
    monkeypatch.setenv("SALES_FORECASTER_SITES_FILE", "/data/other.csv")
    monkeypatch.setenv("SALES_FORECASTER_LOG_LEVEL", "debug")
    monkeypatch.setenv("SALES_FORECASTER_SEED", "2024")
    monkeypatch.setenv("SALES_FORECASTER_DEBUG", "yes")
    cfg = load_config(path)
    assert cfg.data.sites_file == "/data/other.csv"
    assert cfg.logging.level == "DEBUG"
    assert cfg.backtest.random_seed == 2024
    assert cfg.debug is True


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")


def test_invalid_value_in_file_raises(tmp_path: Path) -> None:
    path = _write(tmp_path / "app.toml", "[backtest]\ntest_fraction = 1.5\n")
    with pytest.raises(ValidationError):
        load_config(path)


# ── BacktestConfig validators ──────────────────────────────────────────────────

@pytest.mark.parametrize(
    "kwargs",
    [
        {"window_lengths": []},
        {"window_lengths": [0]},
        {"window_lengths": [366]},
        {"window_lengths": [5], "series_length": 5},
        {"series_length": 1, "window_lengths": [1]},
        {"test_fraction": 0.0},
        {"test_fraction": 1.0},
        {"max_workers": 0},
    ],
)
def test_backtest_config_rejects(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        BacktestConfig(**kwargs)


def test_backtest_config_accepts_last_window() -> None:
    cfg = BacktestConfig(window_lengths=[365])
    assert cfg.window_lengths == [365]


def test_log_level_rejected() -> None:
    with pytest.raises(ValidationError):
        LoggingConfig(level="LOUD")
