"""Product-moment (mean, standard deviation, skewness) parameter relations.

Each relation returns ``None`` when the moment equations have no valid
solution for the given skewness.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.optimize import brentq
from scipy.stats import genextreme

from .lmoments import EULER_GAMMA

GEV_MIN_KAPPA = -0.33
GEV_MAX_KAPPA = 10.0


def moments_to_exponential(mean: float, sd: float, skew: float) -> dict[str, float] | None:
    return {"xi": mean - sd, "alpha": sd}


def moments_to_gamma(mean: float, sd: float, skew: float) -> dict[str, float] | None:
    if mean <= 0:
        return None
    return {"alpha": (mean / sd) ** 2, "beta": sd * sd / mean}


def _gev_skew(kappa: float) -> float:
    return float(genextreme.stats(kappa, moments="s"))


def moments_to_gev(mean: float, sd: float, skew: float) -> dict[str, float] | None:
    """Solve the GEV skewness equation for the shape, then match mean and variance."""
    lo, hi = _gev_skew(GEV_MAX_KAPPA), _gev_skew(GEV_MIN_KAPPA)
    if not lo < skew < hi:
        return None
    kappa = brentq(lambda k: _gev_skew(k) - skew, GEV_MIN_KAPPA, GEV_MAX_KAPPA, xtol=1e-10)
    std_mean, std_var = (float(v) for v in genextreme.stats(kappa, moments="mv"))
    if not std_var > 0:
        return None
    alpha = sd / math.sqrt(std_var)
    return {"xi": mean - alpha * std_mean, "alpha": alpha, "kappa": float(kappa)}


def moments_to_gumbel(mean: float, sd: float, skew: float) -> dict[str, float] | None:
    alpha = sd * math.sqrt(6.0) / math.pi
    return {"xi": mean - EULER_GAMMA * alpha, "alpha": alpha}


def moments_to_lognormal3(mean: float, sd: float, skew: float) -> dict[str, float] | None:
    """Invert ``skew = (w + 2) * sqrt(w - 1)`` with ``w = exp(sigmalog**2)``."""
    if skew <= 0:
        return None
    root = skew * math.sqrt(1.0 + skew * skew / 4.0)
    base = 1.0 + skew * skew / 2.0
    w = float(np.cbrt(base + root) + np.cbrt(base - root) - 1.0)
    if not w > 1.0:
        return None
    mulog = 0.5 * math.log(sd * sd / (w * (w - 1.0)))
    return {
        "zeta": mean - math.exp(mulog) * math.sqrt(w),
        "mulog": mulog,
        "sigmalog": math.sqrt(math.log(w)),
    }


def moments_to_normal(mean: float, sd: float, skew: float) -> dict[str, float] | None:
    return {"mu": mean, "sigma": sd}


def moments_to_pearson3(mean: float, sd: float, skew: float) -> dict[str, float] | None:
    return {"mu": mean, "sigma": sd, "gamma": skew}


__all__ = [
    "moments_to_exponential",
    "moments_to_gamma",
    "moments_to_gev",
    "moments_to_gumbel",
    "moments_to_lognormal3",
    "moments_to_normal",
    "moments_to_pearson3",
]
