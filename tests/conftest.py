"""
Shared pytest fixtures for the Site Sales Forecaster test suite.

Provides:
  - ``true_model``:   A stable VAR(1) used as the data-generating process.
  - ``site_factory``: Builds ``SiteRecord`` objects by running a model
    forward from an opening-day state, optionally with Gaussian noise.
  - ``sample_sites``: Ten noise-free 366-day sites generated by ``true_model``.
  - ``sites_csv``:    Those sites written as a long-format CSV in ``tmp_path``.
  - ``app_config``:   An ``AppConfig`` pointing outputs into ``tmp_path``.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Callable

import pytest

from sales_forecaster.config import AppConfig, BacktestConfig, DataConfig, LoggingConfig
from sales_forecaster.data.loader import site_records_to_frame
from sales_forecaster.models.site import SiteRecord
from sales_forecaster.var.model import LinearTransitionModel

SiteFactory = Callable[..., SiteRecord]


@pytest.fixture
def true_model() -> LinearTransitionModel:
    """Stable transition (spectral radius < 1) with mild cross-series effects."""
    return LinearTransitionModel(
        coefficients=(
            (0.50, 0.10, 0.00, 0.05),
            (0.05, 0.60, 0.00, 0.00),
            (0.00, 0.00, 0.40, 0.10),
            (0.00, 0.05, 0.10, 0.55),
        ),
        intercept=(100.0, 400.0, 600.0, 900.0),
    )


@pytest.fixture
def site_factory() -> SiteFactory:
    """Return ``make(site_id, model, opening, length=366, noise_sd=0.0, seed=0)``."""

    def make(
        site_id: str,
        model: LinearTransitionModel,
        opening: tuple[float, float, float, float],
        length: int = 366,
        noise_sd: float = 0.0,
        seed: int = 0,
    ) -> SiteRecord:
        rng = random.Random(seed)
        series = [tuple(float(v) for v in opening)]
        while len(series) < length:
            nxt = model.apply(series[-1])
            if noise_sd:
                nxt = tuple(v + rng.gauss(0.0, noise_sd) for v in nxt)
            series.append(nxt)
        return SiteRecord(site_id=site_id, series=tuple(series))

    return make


@pytest.fixture
def sample_sites(true_model: LinearTransitionModel, site_factory: SiteFactory) -> list[SiteRecord]:
    """Ten noise-free sites with different opening-day states."""
    rng = random.Random(7)
    return [
        site_factory(
            f"S{i:03d}",
            true_model,
            opening=tuple(rng.uniform(50.0, 3000.0) for _ in range(4)),
        )
        for i in range(10)
    ]


@pytest.fixture
def noisy_sites(true_model: LinearTransitionModel, site_factory: SiteFactory) -> list[SiteRecord]:
    """Ten sites from ``true_model`` with Gaussian noise (sd 25) on every day."""
    rng = random.Random(11)
    return [
        site_factory(
            f"N{i:03d}",
            true_model,
            opening=tuple(rng.uniform(500.0, 2500.0) for _ in range(4)),
            noise_sd=25.0,
            seed=i,
        )
        for i in range(10)
    ]


@pytest.fixture
def sites_csv(tmp_path: Path, noisy_sites: list[SiteRecord]) -> Path:
    """Noisy sites written as a long-format CSV."""
    path = tmp_path / "site_daily.csv"
    site_records_to_frame(noisy_sites).to_csv(path, index=False)
    return path


@pytest.fixture
def app_config(tmp_path: Path, sites_csv: Path) -> AppConfig:
    """Config with all file outputs under ``tmp_path``."""
    return AppConfig(
        data=DataConfig(
            sites_file=str(sites_csv),
            processed_dir=str(tmp_path / "processed"),
        ),
        backtest=BacktestConfig(window_lengths=[14, 21], test_fraction=0.3, random_seed=42),
        logging=LoggingConfig(log_file=""),
    )
