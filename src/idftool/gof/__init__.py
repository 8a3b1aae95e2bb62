"""Goodness-of-fit metrics for fitted curves and fitted distributions."""

from __future__ import annotations

import logging
import math
from collections.abc import Sized

import numpy as np
from scipy import stats

from ..core import ArrayLike, DistributionGoodness, FittedParameters, GoodnessMetrics
from ..errors import ShapeError
from ..frequency import cdf, log_likelihood, plotting_positions, quantile

logger = logging.getLogger(__name__)

_CDF_EPS = 1e-12


def _paired(observed: ArrayLike, fitted: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    obs = np.asarray(observed, dtype=float).ravel()
    fit = np.asarray(fitted, dtype=float).ravel()
    if obs.shape != fit.shape:
        raise ShapeError(f"Observed ({obs.size}) and fitted ({fit.size}) lengths differ.")
    if obs.size == 0:
        raise ShapeError("Cannot score empty series.")
    return obs, fit


def br2(observed: ArrayLike, fitted: ArrayLike) -> float:
    """Coefficient of determination weighted by the regression slope (Krause et al., 2005).

    ``b`` is the slope of the least-squares line of ``observed`` on ``fitted``
    (the IDF series enters hydroGOF's ``br2`` in the simulated position); the
    result is ``r**2 * |b|`` when ``|b| <= 1`` and ``r**2 / |b|`` otherwise.
    """
    obs, fit = _paired(observed, fitted)
    obs_dev = obs - obs.mean()
    fit_dev = fit - fit.mean()
    sxx = float(np.sum(obs_dev**2))
    syy = float(np.sum(fit_dev**2))
    if sxx <= 0 or syy <= 0:
        return float("nan")
    sxy = float(np.sum(obs_dev * fit_dev))
    r2 = sxy * sxy / (sxx * syy)
    slope = abs(sxy / syy)
    if slope == 0:
        return 0.0
    return float(r2 * slope if slope <= 1 else r2 / slope)


def _gaussian_loglik(rss: float, n: int) -> float:
    rss_safe = max(float(rss), 1e-12)
    return -0.5 * n * (math.log(2.0 * math.pi) + 1.0 - math.log(n) + math.log(rss_safe))


def score(observed: ArrayLike, fitted: ArrayLike, params: Sized | int) -> GoodnessMetrics:
    """Error metrics and information criteria of ``fitted`` against ``observed``.

    AIC and BIC use the Gaussian log-likelihood of the residuals with the
    residual variance counted as one more estimated quantity.
    """
    obs, fit = _paired(observed, fitted)
    n = obs.size
    k = (params if isinstance(params, int) else len(params)) + 1
    residuals = obs - fit
    rss = float(np.sum(residuals**2))
    mse = rss / n
    loglik = _gaussian_loglik(rss, n)
    return GoodnessMetrics(
        aic=float(-2.0 * loglik + 2.0 * k),
        bic=float(-2.0 * loglik + math.log(n) * k),
        br2=br2(obs, fit),
        mse=float(mse),
        rmse=float(math.sqrt(mse)),
    )


def _adinf(z: float) -> float:
    """Marsaglia's asymptotic distribution of the Anderson-Darling statistic."""
    if z <= 0:
        return 0.0
    if z < 2.0:
        poly = 2.00012 + (
            0.247105 - (0.0649821 - (0.0347962 - (0.0116720 - 0.00168691 * z) * z) * z) * z
        ) * z
        return math.exp(-1.2337141 / z) / math.sqrt(z) * poly
    inner = 1.0776 - (
        2.30695 - (0.43424 - (0.082433 - (0.008056 - 0.0003146 * z) * z) * z) * z
    ) * z
    return math.exp(-math.exp(inner))


def anderson_darling(sample: ArrayLike, params: FittedParameters) -> tuple[float, float]:
    """Anderson-Darling statistic against the fitted CDF and its asymptotic p-value."""
    x = np.sort(np.asarray(sample, dtype=float).ravel())
    n = x.size
    probs = np.clip(cdf(x, params), _CDF_EPS, 1.0 - _CDF_EPS)
    i = np.arange(1, n + 1, dtype=float)
    statistic = -n - float(np.sum((2.0 * i - 1.0) * (np.log(probs) + np.log1p(-probs[::-1])))) / n
    pvalue = min(max(1.0 - _adinf(statistic), 0.0), 1.0)
    return float(statistic), float(pvalue)


def distribution_gof(sample: ArrayLike, params: FittedParameters) -> DistributionGoodness:
    """Goodness of a fitted distribution on the sample it was fitted to."""
    x = np.asarray(sample, dtype=float).ravel()
    n = x.size
    k = len(params)

    def fitted_cdf(values: np.ndarray) -> np.ndarray:
        return cdf(values, params)

    ks = stats.kstest(x, fitted_cdf)
    cvm = stats.cramervonmises(x, fitted_cdf)
    ad, ad_pvalue = anderson_darling(x, params)

    loglik = log_likelihood(x, params)
    if np.isfinite(loglik):
        aic = -2.0 * loglik + 2.0 * k
        bic = -2.0 * loglik + math.log(n) * k
    else:
        logger.debug("Sample lies outside the support of the fitted %s", params.family)
        aic = bic = float("inf")

    ordered, positions = plotting_positions(x)
    plot_metrics = score(ordered, quantile(positions, params), params)
    return DistributionGoodness(
        ks=float(ks.statistic),
        ks_pvalue=float(ks.pvalue),
        ad=ad,
        ad_pvalue=ad_pvalue,
        cvm=float(cvm.statistic),
        cvm_pvalue=float(cvm.pvalue),
        aic=float(aic),
        bic=float(bic),
        log_likelihood=float(loglik),
        rmse=plot_metrics.rmse,
        mse=plot_metrics.mse,
        br2=plot_metrics.br2,
    )


__all__ = ["score", "br2", "anderson_darling", "distribution_gof"]
