"""Sample L-moments, probability-weighted moments and L-moment parameter relations.

Parameter relations follow Hosking & Wallis (1997), *Regional Frequency
Analysis*, appendix A. Every ``lmom_to_*`` function receives the vector
``(l1, l2, t3, t4, t5)`` returned by :func:`lmoment_ratios` (trailing
entries may be omitted when the family does not need them).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import TYPE_CHECKING

import numpy as np
from scipy.integrate import quad
from scipy.optimize import brentq
from scipy.special import comb, erf, gammaln

from ..errors import FitError

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .base import Distribution

EULER_GAMMA = 0.5772156649015329
LN2 = math.log(2.0)
LN3 = math.log(3.0)


def _sorted_sample(sample: np.ndarray, nmom: int) -> np.ndarray:
    x = np.sort(np.asarray(sample, dtype=float).ravel())
    if not np.all(np.isfinite(x)):
        raise FitError("Sample contains non-finite values.")
    if x.size < nmom:
        raise FitError(f"At least {nmom} observations are required for {nmom} L-moments.")
    return x


def sample_lmoments(sample: np.ndarray, nmom: int = 5) -> np.ndarray:
    """Unbiased sample L-moments ``l_1 .. l_nmom`` from order-statistic weights."""
    x = _sorted_sample(sample, nmom)
    n = x.size
    i = np.arange(1, n + 1, dtype=float)
    lambdas = np.zeros(nmom, dtype=float)
    for r in range(1, nmom + 1):
        weights = np.zeros(n, dtype=float)
        for k in range(r):
            weights += (-1.0) ** k * comb(r - 1, k) * comb(i - 1, r - 1 - k) * comb(n - i, k)
        lambdas[r - 1] = float(np.sum(weights * x)) / (r * comb(n, r))
    return lambdas


def sample_pwm(sample: np.ndarray, nmom: int = 5) -> np.ndarray:
    """Unbiased probability-weighted moments ``b_0 .. b_{nmom-1}``."""
    x = _sorted_sample(sample, nmom)
    n = x.size
    i = np.arange(1, n + 1, dtype=float)
    betas = np.zeros(nmom, dtype=float)
    for r in range(nmom):
        betas[r] = float(np.sum(comb(i - 1, r) / comb(n - 1, r) * x)) / n
    return betas


def pwm_to_lmoments(betas: np.ndarray) -> np.ndarray:
    """Convert PWMs ``b_r`` to L-moments with shifted Legendre coefficients."""
    b = np.asarray(betas, dtype=float)
    lambdas = np.zeros_like(b)
    for r in range(b.size):
        coefficients = [
            (-1.0) ** (r - k) * comb(r, k, exact=True) * comb(r + k, k, exact=True)
            for k in range(r + 1)
        ]
        lambdas[r] = float(np.dot(coefficients, b[: r + 1]))
    return lambdas


def lmoment_ratios(lambdas: np.ndarray) -> np.ndarray:
    """Return ``(l1, l2, t3, t4, ...)`` with ``t_r = l_r / l2``."""
    lam = np.asarray(lambdas, dtype=float)
    if lam.size < 2:
        raise FitError("At least two L-moments are required.")
    if not lam[1] > 0:
        raise FitError("Sample L-scale must be positive (constant sample?).")
    ratios = lam.copy()
    ratios[2:] = lam[2:] / lam[1]
    return ratios


def _check_scale(lmom: np.ndarray) -> tuple[float, float]:
    l1, l2 = float(lmom[0]), float(lmom[1])
    if not l2 > 0:
        raise FitError("L-scale must be positive.")
    return l1, l2


def _check_ratio(value: float, bound: float, label: str) -> float:
    if not abs(value) < bound:
        raise FitError(f"{label} {value:.4f} outside the admissible range (|{label}| < {bound}).")
    return float(value)


def lmom_to_exponential(lmom: np.ndarray) -> dict[str, float]:
    l1, l2 = _check_scale(lmom)
    alpha = 2.0 * l2
    return {"xi": l1 - alpha, "alpha": alpha}


def lmom_to_gamma(lmom: np.ndarray) -> dict[str, float]:
    l1, l2 = _check_scale(lmom)
    if l1 <= l2:
        raise FitError("Gamma requires mean greater than L-scale (L-CV < 1).")
    cv = l2 / l1
    if cv < 0.5:
        t = math.pi * cv * cv
        alpha = (1.0 - 0.3080 * t) / (t * (1.0 + t * (-0.05812 + t * 0.01765)))
    else:
        t = 1.0 - cv
        alpha = t * (0.7213 - 0.5947 * t) / (1.0 + t * (-2.1817 + 1.2113 * t))
    return {"alpha": float(alpha), "beta": float(l1 / alpha)}


def _gev_tau3(kappa: float) -> float:
    if abs(kappa) < 1e-8:
        return 2.0 * LN3 / LN2 - 3.0
    return 2.0 * (1.0 - 3.0 ** (-kappa)) / (1.0 - 2.0 ** (-kappa)) - 3.0


def lmom_to_gev(lmom: np.ndarray) -> dict[str, float]:
    l1, l2 = _check_scale(lmom)
    t3 = _check_ratio(lmom[2], 1.0, "t3")
    if abs(t3 - _gev_tau3(0.0)) < 1e-7:
        return lmom_to_gumbel(lmom) | {"kappa": 0.0}
    kappa = brentq(lambda k: _gev_tau3(k) - t3, -0.999999, 60.0, xtol=1e-12)
    if abs(kappa) < 1e-6:
        return lmom_to_gumbel(lmom) | {"kappa": 0.0}
    gam = math.exp(gammaln(1.0 + kappa))
    alpha = l2 * kappa / (gam * (1.0 - 2.0 ** (-kappa)))
    xi = l1 - alpha * (1.0 - gam) / kappa
    return {"xi": float(xi), "alpha": float(alpha), "kappa": float(kappa)}


def lmom_to_gumbel(lmom: np.ndarray) -> dict[str, float]:
    l1, l2 = _check_scale(lmom)
    alpha = l2 / LN2
    return {"xi": l1 - EULER_GAMMA * alpha, "alpha": alpha}


def lmom_to_normal(lmom: np.ndarray) -> dict[str, float]:
    l1, l2 = _check_scale(lmom)
    return {"mu": l1, "sigma": l2 * math.sqrt(math.pi)}


def lmom_to_lognormal3(lmom: np.ndarray) -> dict[str, float]:
    """Three-parameter log-normal through the generalized normal relation."""
    l1, l2 = _check_scale(lmom)
    t3 = _check_ratio(lmom[2], 0.95, "t3")
    if t3 <= 1e-6:
        raise FitError("log.normal3 requires a positive L-skewness.")
    tt = t3 * t3
    g = -t3 * (2.0466534 + tt * (-3.6544371 + tt * (1.8396733 + tt * -0.20360244))) / (
        1.0 + tt * (-2.0182173 + tt * (1.2420401 + tt * -0.21741801))
    )
    e = math.exp(0.5 * g * g)
    a = l2 * g / (e * erf(0.5 * g))
    u = l1 + a * (e - 1.0) / g
    sigmalog = -g
    return {
        "zeta": float(u - a / sigmalog),
        "mulog": float(math.log(a / sigmalog)),
        "sigmalog": float(sigmalog),
    }


def lmom_to_pearson3(lmom: np.ndarray) -> dict[str, float]:
    l1, l2 = _check_scale(lmom)
    t3_signed = _check_ratio(lmom[2], 1.0, "t3")
    t3 = abs(t3_signed)
    if t3 <= 1e-6:
        return {"mu": l1, "sigma": l2 * math.sqrt(math.pi), "gamma": 0.0}
    if t3 >= 1.0 / 3.0:
        t = 1.0 - t3
        alpha = t * (0.36067 + t * (-0.59567 + t * 0.25361)) / (
            1.0 + t * (-2.78861 + t * (2.56096 + t * -0.77045))
        )
    else:
        t = 3.0 * math.pi * t3 * t3
        alpha = (1.0 + 0.2906 * t) / (t * (1.0 + t * (0.1882 + t * 0.0442)))
    root = math.sqrt(alpha)
    beta = math.sqrt(math.pi) * l2 * math.exp(gammaln(alpha) - gammaln(alpha + 0.5))
    skew = 2.0 / root
    return {"mu": l1, "sigma": float(beta * root), "gamma": float(math.copysign(skew, t3_signed))}


def lmom_to_wakeby(lmom: np.ndarray) -> dict[str, float]:
    """Wakeby parameters; falls back to the generalized Pareto sub-family (gamma = 0)."""
    if len(lmom) < 5:
        raise FitError("Wakeby requires five L-moments.")
    l1, l2 = _check_scale(lmom)
    t3 = _check_ratio(lmom[2], 1.0, "t3")
    lam3, lam4, lam5 = t3 * l2, float(lmom[3]) * l2, float(lmom[4]) * l2

    n1 = 3.0 * l2 - 25.0 * lam3 + 32.0 * lam4
    n2 = -3.0 * l2 + 5.0 * lam3 + 8.0 * lam4
    n3 = 3.0 * l2 + 5.0 * lam3 + 2.0 * lam4
    c1 = 7.0 * l2 - 85.0 * lam3 + 203.0 * lam4 - 125.0 * lam5
    c2 = -7.0 * l2 + 25.0 * lam3 + 7.0 * lam4 - 25.0 * lam5
    c3 = 7.0 * l2 + 5.0 * lam3 - 7.0 * lam4 - 5.0 * lam5
    xa = n2 * c3 - c2 * n3
    xb = n1 * c3 - c1 * n3
    xc = n1 * c2 - c1 * n2
    disc = xb * xb - 4.0 * xa * xc
    if disc >= 0.0 and xa != 0.0:
        disc = math.sqrt(disc)
        root1 = 0.5 * (-xb + disc) / xa
        root2 = 0.5 * (-xb - disc) / xa
        beta = max(root1, root2)
        delta = -min(root1, root2)
        if delta < 1.0 and beta + delta > 0.0:
            alpha = (
                (1.0 + beta) * (2.0 + beta) * (3.0 + beta) / (4.0 * (beta + delta))
                * ((1.0 + delta) * l2 - (3.0 - delta) * lam3)
            )
            gamma = (
                -(1.0 - delta) * (2.0 - delta) * (3.0 - delta) / (4.0 * (beta + delta))
                * ((1.0 - beta) * l2 - (3.0 + beta) * lam3)
            )
            xi = l1 - alpha / (1.0 + beta) - gamma / (1.0 - delta)
            if gamma >= 0.0 and alpha + gamma >= 0.0:
                return {
                    "xi": float(xi),
                    "alpha": float(alpha),
                    "beta": float(beta),
                    "gamma": float(gamma),
                    "delta": float(delta),
                }

    beta = (1.0 - 3.0 * t3) / (1.0 + t3)
    alpha = (1.0 + beta) * (2.0 + beta) * l2
    xi = l1 - alpha / (1.0 + beta)
    if not alpha > 0:
        raise FitError("Wakeby L-moments admit no valid generalized Pareto fallback.")
    return {"xi": float(xi), "alpha": float(alpha), "beta": float(beta), "gamma": 0.0,
            "delta": 0.0}


def _shifted_legendre(r: int, u: float) -> float:
    return sum(
        (-1.0) ** (r - k) * comb(r, k, exact=True) * comb(r + k, k, exact=True) * u**k
        for k in range(r + 1)
    )


def distribution_lmoments(
    distribution: Distribution,
    params: Mapping[str, float],
    nmom: int = 4,
) -> np.ndarray:
    """Theoretical ``(l1, l2, t3, ...)`` of a family, by quadrature of its quantile function.

    Evaluated in the fitted space of the family (``log10`` for log families).
    """

    def x_of(u: float) -> float:
        return float(distribution.quantile(np.array([u]), params)[0])

    lambdas = np.zeros(nmom, dtype=float)
    for r in range(nmom):
        value, _ = quad(lambda u, r=r: x_of(u) * _shifted_legendre(r, u), 0.0, 1.0, limit=200)
        lambdas[r] = value
    return lmoment_ratios(lambdas)


__all__ = [
    "sample_lmoments",
    "sample_pwm",
    "pwm_to_lmoments",
    "lmoment_ratios",
    "distribution_lmoments",
    "lmom_to_exponential",
    "lmom_to_gamma",
    "lmom_to_gev",
    "lmom_to_gumbel",
    "lmom_to_normal",
    "lmom_to_lognormal3",
    "lmom_to_pearson3",
    "lmom_to_wakeby",
]
