"""End-to-end IDF construction from annual maxima per duration."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from ..core import DistributionFitResult
from ..distfit import MLEConfig
from ..errors import IDFToolError
from ..regression import IDFFitResult, RegressionConfig, fit_idf
from .distribution import DEFAULT_RETURN_PERIODS, fit_distribution

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IDFCurveSet:
    """Intensity table, per-duration distribution fits and the fitted IDF curves."""

    intensities: pd.DataFrame
    distributions: dict[float, DistributionFitResult]
    idf: IDFFitResult
    failures: dict[float, str] = field(default_factory=dict)


def build_idf_curves(
    annual_maxima: pd.DataFrame,
    family: str,
    method: str = "lmoments",
    return_periods: Sequence[float] = DEFAULT_RETURN_PERIODS,
    *,
    intervals: bool = True,
    confidence_level: float = 0.95,
    config: RegressionConfig | None = None,
    mle_config: MLEConfig | None = None,
) -> IDFCurveSet:
    """Fit ``family`` to every duration column, then regress the IDF curves.

    ``annual_maxima`` holds one column per duration (minutes) and one row per
    year. Durations whose distribution fit fails are logged, recorded in
    ``failures`` and left out of the regression.
    """
    periods = np.asarray(return_periods, dtype=float).ravel()
    rows: dict[float, np.ndarray] = {}
    fits: dict[float, DistributionFitResult] = {}
    failures: dict[float, str] = {}

    for column in annual_maxima.columns:
        duration = float(column)
        sample = annual_maxima[column].dropna().to_numpy(dtype=float)
        try:
            fit = fit_distribution(
                sample, family, method, periods, goodness=False, config=mle_config
            )
        except IDFToolError as exc:
            logger.warning("Skipping duration %s: %s", duration, exc)
            failures[duration] = str(exc)
            continue
        fits[duration] = fit
        if fit.quantiles is None:
            logger.warning("Skipping duration %s: %s has no %s solution", duration, family, method)
            failures[duration] = f"no {method} solution for {fit.family}"
            continue
        rows[duration] = fit.quantiles.to_numpy()

    durations = sorted(rows)
    table = pd.DataFrame(
        [rows[d] for d in durations],
        index=pd.Index(durations, name="duration"),
        columns=pd.Index(periods, name="return_period"),
    )
    idf = fit_idf(table, intervals=intervals, confidence_level=confidence_level, config=config)
    return IDFCurveSet(intensities=table, distributions=fits, idf=idf, failures=failures)


__all__ = ["IDFCurveSet", "build_idf_curves"]
