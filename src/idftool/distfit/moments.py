"""Method-of-moments estimator."""

from __future__ import annotations

import logging

import numpy as np
from scipy.stats import skew as sample_skewness

from ..core import FittedParameters
from ..distributions import Distribution
from ..errors import FitError

logger = logging.getLogger(__name__)


def sample_moments(x: np.ndarray) -> tuple[float, float, float]:
    """Mean, standard deviation (ddof=1) and bias-corrected skewness."""
    arr = np.asarray(x, dtype=float)
    mean = float(np.mean(arr))
    sd = float(np.std(arr, ddof=1))
    skew = float(sample_skewness(arr, bias=False))
    return mean, sd, skew


def fit_mme(
    x: np.ndarray,
    dist: Distribution,
    config: object | None = None,
) -> FittedParameters | None:
    """Solve the family's moment equations; ``None`` when no valid solution exists."""
    if dist.moments_to_par is None:
        logger.debug("No moment relation for %s; method of moments is inapplicable", dist.name)
        return None
    mean, sd, skew = sample_moments(x)
    if not sd > 0:
        raise FitError("Sample standard deviation must be positive.")
    params = dist.moments_to_par(mean, sd, skew)
    if params is None or not all(np.isfinite(value) for value in params.values()):
        logger.debug("Moment equations of %s have no solution for skew=%.4f", dist.name, skew)
        return None
    return FittedParameters(
        family=dist.name,
        values=params,
        method="mme",
        diagnostics={"mean": mean, "sd": sd, "skew": skew},
    )


__all__ = ["sample_moments", "fit_mme"]
