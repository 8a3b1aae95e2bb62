"""Five-parameter Wakeby distribution.

The Wakeby family is defined through its quantile function

    x(F) = xi + alpha/beta * (1 - (1-F)^beta) - gamma/delta * (1 - (1-F)^(-delta))

so the CDF is obtained by inverting it numerically (vectorized bisection).
"""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np

BISECTION_STEPS = 64


def _unpack(params: Mapping[str, float]) -> tuple[float, float, float, float, float]:
    return (
        float(params["xi"]),
        float(params["alpha"]),
        float(params["beta"]),
        float(params["gamma"]),
        float(params["delta"]),
    )


def wakeby_quantile(p: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
    xi, alpha, beta, gamma, delta = _unpack(params)
    u = np.asarray(p, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        log_tail = np.log1p(-u)
        if abs(beta) < 1e-12:
            first = -alpha * log_tail
        else:
            first = alpha / beta * (1.0 - np.exp(beta * log_tail))
        if abs(delta) < 1e-12:
            second = -gamma * log_tail
        else:
            second = -gamma / delta * (1.0 - np.exp(-delta * log_tail))
        return xi + first + second


def wakeby_cdf(x: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
    values = np.asarray(x, dtype=float)
    lower = np.zeros_like(values)
    upper = np.ones_like(values)
    for _ in range(BISECTION_STEPS):
        mid = 0.5 * (lower + upper)
        below = wakeby_quantile(mid, params) < values
        lower = np.where(below, mid, lower)
        upper = np.where(below, upper, mid)
    return np.clip(0.5 * (lower + upper), 0.0, 1.0)


def wakeby_pdf(x: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
    _, alpha, beta, gamma, delta = _unpack(params)
    prob = wakeby_cdf(x, params)
    tail = 1.0 - prob
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        slope = alpha * np.power(tail, beta - 1.0) + gamma * np.power(tail, -delta - 1.0)
        density = 1.0 / slope
    inside = (prob > 0.0) & (prob < 1.0)
    density = np.where(inside, density, 0.0)
    return np.nan_to_num(density, nan=0.0, posinf=0.0, neginf=0.0)


def wakeby_feasible(params: Mapping[str, float]) -> bool:
    """Hosking's validity region, which keeps the quantile function increasing.

    Requires ``alpha > 0``, ``gamma >= 0``, ``beta + delta >= 0`` and
    ``delta < 1`` (finite mean).
    """
    values = _unpack(params)
    if not all(np.isfinite(values)):
        return False
    _, alpha, beta, gamma, delta = values
    return alpha > 0 and gamma >= 0 and alpha + gamma > 0 and beta + delta >= 0 and delta < 1


__all__ = ["wakeby_quantile", "wakeby_cdf", "wakeby_pdf", "wakeby_feasible"]
