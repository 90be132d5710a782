"""
Train/test partition of sites.

The split is random but reproducible: the seed is an explicit argument and
drives a private ``random.Random`` instance, so no process-wide RNG state is
read or modified.  The same sites, fraction and seed always yield the same
split, and input order is preserved inside each side.
"""

from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


def partition_sites(
    sites: Sequence[T],
    test_fraction: float,
    seed: int,
) -> tuple[list[T], list[T]]:
    """Randomly split ``sites`` into ``(train, test)``.

    The test side receives ``round(len(sites) * test_fraction)`` sites,
    clamped so that both sides are non-empty whenever there are at least
    two sites.

    Raises:
        ValueError: If ``test_fraction`` is not in (0, 1) or fewer than two
            sites are supplied.
    """
    if not 0.0 < test_fraction < 1.0:
        raise ValueError(f"test_fraction must be in (0.0, 1.0), got {test_fraction}.")
    if len(sites) < 2:
        raise ValueError(f"Need at least 2 sites to partition, got {len(sites)}.")

    n_test = min(max(round(len(sites) * test_fraction), 1), len(sites) - 1)
    rng = random.Random(seed)
    test_idx = set(rng.sample(range(len(sites)), n_test))

    train = [s for i, s in enumerate(sites) if i not in test_idx]
    test = [s for i, s in enumerate(sites) if i in test_idx]
    return train, test
