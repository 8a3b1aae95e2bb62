"""Single-sample distribution fitting workflow."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd

from ..core import ArrayLike, DistributionFitResult, DistributionGoodness
from ..distfit import MLEConfig, estimate, resolve_method
from ..distributions import get_distribution
from ..frequency import return_level, to_probability
from ..gof import distribution_gof
from ..sampling import BootstrapConfig, bootstrap_ci

logger = logging.getLogger(__name__)

DEFAULT_RETURN_PERIODS: tuple[float, ...] = (2, 5, 10, 25, 50, 100)


def fit_distribution(
    sample: ArrayLike,
    family: str,
    method: str = "lmoments",
    return_periods: Sequence[float] = DEFAULT_RETURN_PERIODS,
    *,
    goodness: bool = True,
    bootstrap: BootstrapConfig | None = None,
    config: MLEConfig | None = None,
) -> DistributionFitResult:
    """Fit ``family`` to ``sample`` and report return levels, goodness and bands.

    A method-of-moments fit without solution yields a result with no
    parameters, no quantiles and an all-NaN goodness record.
    """
    x = np.asarray(sample, dtype=float).ravel()
    periods = np.asarray(return_periods, dtype=float).ravel()
    to_probability(periods)
    name = get_distribution(family).name
    method = resolve_method(method)

    params = estimate(x, name, method, config=config)
    if params is None:
        logger.info("%s/%s: moment equations have no solution, no fit produced", name, method)
        return DistributionFitResult(
            family=name,
            method=method,
            parameters=None,
            return_periods=periods,
            goodness=DistributionGoodness.empty() if goodness else None,
        )

    levels = return_level(periods, params)
    result = DistributionFitResult(
        family=name,
        method=method,
        parameters=params,
        return_periods=periods,
        quantiles=pd.Series(levels, index=pd.Index(periods, name="return_period"), name=name),
        diagnostics={"n": int(x.size)},
    )
    if goodness:
        result.goodness = distribution_gof(x, params)
    if bootstrap is not None:
        result.confidence = bootstrap_ci(
            x,
            name,
            method,
            periods,
            resamples=bootstrap.resamples,
            confidence_level=bootstrap.confidence_level,
            random_state=bootstrap.random_state,
            min_successes=bootstrap.min_successes,
            workers=bootstrap.workers,
            scheme=bootstrap.scheme,
            config=config,
        )
        result.confidence.estimate = levels
    return result


__all__ = ["DEFAULT_RETURN_PERIODS", "fit_distribution"]
