"""Maximum likelihood estimator."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy.optimize import minimize

from ..core import FittedParameters
from ..distributions import Distribution
from ..errors import ConvergenceError, FitError
from .lmoments import fit_lmoments
from .moments import fit_mme

logger = logging.getLogger(__name__)

LOCATION_PARAMETERS = ("xi", "zeta")


@dataclass(slots=True)
class MLEConfig:
    """Optimizer settings for maximum likelihood fits."""

    optimizer: str = "Nelder-Mead"
    max_iter: int = 5000
    xatol: float = 1e-7
    fatol: float = 1e-9
    hessian_step: float = 1e-5

    def options(self, n_params: int) -> dict[str, Any]:
        opts: dict[str, Any] = {"maxiter": self.max_iter}
        if self.optimizer.lower() == "nelder-mead":
            opts.update(xatol=self.xatol, fatol=self.fatol, adaptive=n_params > 3)
        return opts


def _numerical_hessian(
    func: Callable[[np.ndarray], float],
    theta: np.ndarray,
    *,
    step: float = 1e-5,
) -> np.ndarray | None:
    """Approximate the Hessian using central finite differences."""
    n_params = theta.size
    hessian = np.zeros((n_params, n_params), dtype=float)
    f0 = func(theta)
    for i in range(n_params):
        ei = np.zeros(n_params, dtype=float)
        ei[i] = step
        hessian[i, i] = (func(theta + ei) - 2.0 * f0 + func(theta - ei)) / (step**2)
        for j in range(i + 1, n_params):
            ej = np.zeros(n_params, dtype=float)
            ej[j] = step
            value = (
                func(theta + ei + ej)
                - func(theta + ei - ej)
                - func(theta - ei + ej)
                + func(theta - ei - ej)
            ) / (4.0 * step**2)
            hessian[i, j] = value
            hessian[j, i] = value
    if not np.all(np.isfinite(hessian)):
        return None
    return hessian


def _build_initial_vector(
    param_names: tuple[str, ...],
    initial_map: dict[str, float],
    transform: dict[str, str],
) -> np.ndarray:
    theta0 = np.zeros(len(param_names), dtype=float)
    for idx, name in enumerate(param_names):
        value = float(initial_map[name])
        if transform.get(name) == "log":
            theta0[idx] = np.log(max(value, 1e-8))
        else:
            theta0[idx] = value
    return theta0


def _convert_params(
    theta: np.ndarray,
    param_names: tuple[str, ...],
    transform: dict[str, str],
) -> dict[str, float]:
    params: dict[str, float] = {}
    for idx, name in enumerate(param_names):
        if transform.get(name) == "log":
            params[name] = float(np.exp(theta[idx]))
        else:
            params[name] = float(theta[idx])
    return params


def _covariance(
    hessian: np.ndarray | None,
    params: dict[str, float],
    transform: dict[str, str],
    param_names: tuple[str, ...],
) -> np.ndarray | None:
    if hessian is None:
        return None
    try:
        cov_theta = np.linalg.inv(hessian)
    except np.linalg.LinAlgError:
        return None
    jacobian = np.diag(
        [params[name] if transform.get(name) == "log" else 1.0 for name in param_names]
    )
    return jacobian @ cov_theta @ jacobian


def _starting_points(x: np.ndarray, dist: Distribution) -> list[dict[str, float]]:
    """Candidate starts: L-moments, moments, then widened variants of the first."""
    candidates: list[dict[str, float]] = []
    try:
        candidates.append(fit_lmoments(x, dist).as_dict())
    except FitError as exc:
        logger.debug("No L-moment start for %s: %s", dist.name, exc)
    moment_fit = fit_mme(x, dist)
    if moment_fit is not None:
        candidates.append(moment_fit.as_dict())
    if not candidates:
        return candidates

    base = candidates[0]
    spread = float(np.ptp(x)) or 1.0
    for factor in (2.0, 5.0):
        widened = dict(base)
        for name in dist.positive:
            widened[name] = base[name] * factor
        candidates.append(widened)
    lowered = dict(base)
    for name in LOCATION_PARAMETERS:
        if name in lowered:
            lowered[name] = float(np.min(x)) - 0.1 * spread
    candidates.append(lowered)
    return candidates


def fit_mle(
    x: np.ndarray,
    dist: Distribution,
    config: MLEConfig | None = None,
) -> FittedParameters:
    """Minimise the negative log-likelihood from the first feasible start."""
    cfg = config or MLEConfig()
    names = dist.parameters
    transform = {name: "log" for name in dist.positive}

    def objective(theta: np.ndarray) -> float:
        params = _convert_params(theta, names, transform)
        if dist.feasible is not None and not dist.feasible(params):
            return np.inf
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            density = np.asarray(dist.pdf(x, params), dtype=float)
        if not np.all(np.isfinite(density)) or np.any(density <= 0):
            return np.inf
        return float(-np.sum(np.log(density)))

    theta0 = None
    for start in _starting_points(x, dist):
        candidate = _build_initial_vector(names, start, transform)
        if np.all(np.isfinite(candidate)) and np.isfinite(objective(candidate)):
            theta0 = candidate
            break
    if theta0 is None:
        raise FitError(f"No feasible starting point for maximum likelihood fit of {dist.name}.")

    result = minimize(objective, theta0, method=cfg.optimizer, options=cfg.options(len(names)))
    if not result.success or not np.isfinite(result.fun):
        raise ConvergenceError(f"Likelihood optimisation failed for {dist.name}: {result.message}")

    params = _convert_params(result.x, names, transform)
    hessian = _numerical_hessian(objective, result.x, step=cfg.hessian_step)
    covariance = _covariance(hessian, params, transform, names)
    logger.debug("MLE for %s converged after %s evaluations", dist.name, result.nfev)
    return FittedParameters(
        family=dist.name,
        values=params,
        method="mle",
        diagnostics={
            "log_likelihood": float(-result.fun),
            "iterations": int(getattr(result, "nit", 0)),
            "nfev": int(result.nfev),
            "converged": bool(result.success),
            "message": str(result.message),
            "covariance": covariance,
        },
    )


__all__ = ["MLEConfig", "fit_mle"]
