"""Bootstrap confidence intervals and sampling from fitted distributions."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Literal

import numpy as np

from ..core import ArrayLike, ConfidenceBand, FittedParameters
from ..distfit import MLEConfig, estimate
from ..errors import ConvergenceError, FitError, InsufficientResamplesError
from ..frequency import quantile, return_level, to_probability

logger = logging.getLogger(__name__)

Scheme = Literal["nonparametric", "parametric"]

__all__ = [
    "BootstrapConfig",
    "sample_distribution",
    "bootstrap_ci",
]


@dataclass(slots=True)
class BootstrapConfig:
    """Configuration controlling bootstrap resampling behaviour."""

    resamples: int = 1000
    confidence_level: float = 0.95
    min_successes: int = 2
    workers: int = 1
    scheme: Scheme = "nonparametric"
    random_state: int | np.random.Generator | None = None


def sample_distribution(
    params: FittedParameters,
    size: int | tuple[int, ...],
    *,
    random_state: int | np.random.Generator | None = None,
) -> np.ndarray:
    """Draw from a fitted distribution by inverting its CDF at uniform variates."""
    rng = np.random.default_rng(random_state)
    return quantile(rng.random(size), params)


def bootstrap_ci(
    sample: ArrayLike,
    family: str,
    method: str,
    return_periods: ArrayLike,
    resamples: int = 1000,
    confidence_level: float = 0.95,
    *,
    random_state: int | np.random.Generator | None = None,
    min_successes: int = 2,
    workers: int = 1,
    scheme: Scheme = "nonparametric",
    config: MLEConfig | None = None,
) -> ConfidenceBand:
    """Percentile bootstrap band on return levels.

    Every resample is drawn up front from a single generator, so the band
    depends on ``random_state`` only and not on ``workers``. Resamples whose
    refit fails (or has no moment solution) are dropped.
    """
    x = np.asarray(sample, dtype=float).ravel()
    periods = np.asarray(return_periods, dtype=float).ravel()
    to_probability(periods)
    if not 0.0 < confidence_level < 1.0:
        raise ValueError("confidence_level must lie strictly between 0 and 1.")
    if resamples < 1:
        raise ValueError("resamples must be at least 1.")
    if x.size == 0:
        raise FitError("Cannot bootstrap an empty sample.")

    rng = np.random.default_rng(random_state)
    if scheme == "nonparametric":
        draws = x[rng.integers(0, x.size, size=(resamples, x.size))]
    elif scheme == "parametric":
        base = estimate(x, family, method, config=config)
        if base is None:
            raise FitError(f"{method} has no solution for {family} on the full sample.")
        draws = sample_distribution(base, (resamples, x.size), random_state=rng)
    else:
        raise ValueError(f"Unknown bootstrap scheme '{scheme}'.")

    def refit(resample: np.ndarray) -> np.ndarray | None:
        try:
            fitted = estimate(resample, family, method, config=config)
        except (FitError, ConvergenceError) as exc:
            logger.debug("Bootstrap refit of %s/%s failed: %s", family, method, exc)
            return None
        if fitted is None:
            return None
        levels = return_level(periods, fitted)
        if not np.all(np.isfinite(levels)):
            return None
        return levels

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(refit, draws))
    else:
        outcomes = [refit(resample) for resample in draws]

    successful = [levels for levels in outcomes if levels is not None]
    if len(successful) < max(min_successes, 1):
        raise InsufficientResamplesError(
            f"Only {len(successful)} of {resamples} resamples could be refitted "
            f"({family}, {method}); at least {min_successes} required."
        )
    if len(successful) < resamples:
        logger.debug("Dropped %d failed bootstrap refits", resamples - len(successful))

    matrix = np.vstack(successful)
    alpha = 1.0 - confidence_level
    lower = np.quantile(matrix, alpha / 2.0, axis=0)
    upper = np.quantile(matrix, 1.0 - alpha / 2.0, axis=0)
    return ConfidenceBand(
        index=periods,
        lower=lower,
        upper=upper,
        level=confidence_level,
        index_name="return_period",
        diagnostics={
            "resamples": resamples,
            "successes": len(successful),
            "scheme": scheme,
        },
    )
