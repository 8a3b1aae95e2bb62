"""Return periods, probabilities and quantiles of fitted distributions.

Families declaring a ``log10`` transform are fitted on ``log10(x)``; every
function here accepts and returns data-space values, applying the transform
on the way in and ``10**q`` on the way out.
"""

from __future__ import annotations

import numpy as np

from ..core import ArrayLike, FittedParameters
from ..distributions import Distribution, get_distribution

__all__ = [
    "PLOT_RETURN_PERIODS",
    "to_probability",
    "to_return_period",
    "quantile",
    "cdf",
    "pdf",
    "log_likelihood",
    "return_level",
    "plotting_positions",
    "observed_return_periods",
]

PLOT_RETURN_PERIODS: tuple[float, ...] = (
    1.001, 2, 3, 4, 5, 6, 7, 8, 9, 10, 20, 25, 30, 40, 50, 60, 70, 80, 90, 100, 150,
)

LN10 = float(np.log(10.0))


def _family(params: FittedParameters) -> Distribution:
    return get_distribution(params.family)


def to_probability(return_periods: ArrayLike) -> np.ndarray:
    """Non-exceedance probability ``1 - 1/T`` of each return period."""
    periods = np.asarray(return_periods, dtype=float)
    if not np.all(np.isfinite(periods)) or np.any(periods <= 1.0):
        raise ValueError("Return periods must be finite and greater than one year.")
    return 1.0 - 1.0 / periods


def to_return_period(probabilities: ArrayLike) -> np.ndarray:
    """Return period ``1 / (1 - p)`` of each non-exceedance probability."""
    prob = np.asarray(probabilities, dtype=float)
    with np.errstate(divide="ignore"):
        return 1.0 / (1.0 - prob)


def quantile(probabilities: ArrayLike, params: FittedParameters) -> np.ndarray:
    """Inverse CDF of the fitted family, in data space."""
    dist = _family(params)
    prob = np.asarray(probabilities, dtype=float)
    if np.any((prob < 0.0) | (prob > 1.0)):
        raise ValueError("Probabilities must lie in [0, 1].")
    values = np.asarray(dist.quantile(prob, params.values), dtype=float)
    if dist.transform == "log10":
        with np.errstate(over="ignore"):
            values = np.power(10.0, values)
    return values


def _to_fitted_space(dist: Distribution, values: np.ndarray) -> np.ndarray:
    if dist.transform == "log10":
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.where(values > 0, np.log10(np.where(values > 0, values, 1.0)), -np.inf)
    return values


def cdf(values: ArrayLike, params: FittedParameters) -> np.ndarray:
    """Non-exceedance probability of ``values`` under the fitted family."""
    dist = _family(params)
    x = np.asarray(values, dtype=float)
    return np.asarray(dist.cdf(_to_fitted_space(dist, x), params.values), dtype=float)


def pdf(values: ArrayLike, params: FittedParameters) -> np.ndarray:
    """Density in data space (Jacobian of the log10 transform included)."""
    dist = _family(params)
    x = np.asarray(values, dtype=float)
    density = np.asarray(dist.pdf(_to_fitted_space(dist, x), params.values), dtype=float)
    if dist.transform == "log10":
        with np.errstate(divide="ignore", invalid="ignore"):
            density = np.where(x > 0, density / (np.where(x > 0, x, 1.0) * LN10), 0.0)
    return density


def log_likelihood(sample: ArrayLike, params: FittedParameters) -> float:
    """Data-space log-likelihood; ``-inf`` when an observation has zero density."""
    density = pdf(sample, params)
    if np.any(density <= 0) or not np.all(np.isfinite(density)):
        return float("-inf")
    return float(np.sum(np.log(density)))


def return_level(return_periods: ArrayLike, params: FittedParameters) -> np.ndarray:
    """Intensity exceeded on average once every ``T`` years."""
    return quantile(to_probability(return_periods), params)


def plotting_positions(sample: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """Sorted sample and its Weibull plotting positions ``i / (n + 1)``."""
    values = np.sort(np.asarray(sample, dtype=float).ravel())
    n = values.size
    return values, np.arange(1, n + 1, dtype=float) / (n + 1.0)


def observed_return_periods(sample: ArrayLike, params: FittedParameters) -> np.ndarray:
    """Place observations on the return-period axis through the fitted CDF."""
    return to_return_period(cdf(sample, params))
