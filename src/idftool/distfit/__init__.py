"""Parameter estimation strategies for annual-maxima intensity samples."""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from ..core import ArrayLike, FittedParameters
from ..distributions import Distribution, get_distribution
from ..errors import FitError
from .lmoments import fit_lmoments, fit_pwm
from .mle import MLEConfig, fit_mle
from .moments import fit_mme, sample_moments

logger = logging.getLogger(__name__)

Estimator = Callable[[np.ndarray, Distribution, MLEConfig | None], FittedParameters | None]

MIN_SAMPLE_SIZE = 3

_ESTIMATORS: dict[str, Estimator] = {}
_METHOD_ALIASES: dict[str, str] = {}


def register_estimator(
    name: str,
    estimator: Estimator,
    *,
    aliases: tuple[str, ...] = (),
    overwrite: bool = False,
) -> None:
    """Register an estimation method under ``name`` and optional aliases."""
    key = name.lower()
    if key in _ESTIMATORS and not overwrite:
        raise ValueError(f"Estimator '{name}' already registered.")
    _ESTIMATORS[key] = estimator
    for alias in aliases:
        _METHOD_ALIASES[alias.lower()] = key


def resolve_method(name: str) -> str:
    """Return the registered method name for ``name`` or one of its aliases."""
    key = name.strip().lower()
    key = _METHOD_ALIASES.get(key, key)
    if key not in _ESTIMATORS:
        raise KeyError(f"Unknown estimation method '{name}'.")
    return key


def get_estimator(name: str) -> Estimator:
    return _ESTIMATORS[resolve_method(name)]


def list_methods() -> list[str]:
    return sorted(_ESTIMATORS)


def prepare_sample(sample: ArrayLike, distribution: Distribution) -> np.ndarray:
    """Validate a sample and move it to the space the family is fitted in."""
    x = np.asarray(sample, dtype=float).ravel()
    if not np.all(np.isfinite(x)):
        raise FitError("Sample contains non-finite values.")
    min_size = max(MIN_SAMPLE_SIZE, distribution.n_params)
    if x.size < min_size:
        raise FitError(
            f"{distribution.name} needs at least {min_size} observations, got {x.size}."
        )
    if distribution.transform == "log10":
        if np.any(x <= 0):
            raise FitError(f"{distribution.name} requires strictly positive observations.")
        x = np.log10(x)
    if np.ptp(x) == 0:
        raise FitError("Sample is constant; dispersion must be positive.")
    return x


def estimate(
    sample: ArrayLike,
    family: str,
    method: str = "lmoments",
    *,
    config: MLEConfig | None = None,
) -> FittedParameters | None:
    """Estimate the parameters of ``family`` from ``sample`` with ``method``.

    Returns ``None`` when the method has no valid solution for the sample
    (method of moments only); every other failure raises.
    """
    dist = get_distribution(family)
    key = resolve_method(method)
    x = prepare_sample(sample, dist)
    fitted = _ESTIMATORS[key](x, dist, config)
    if fitted is None:
        logger.debug("%s estimation of %s produced no fit", key, dist.name)
    return fitted


register_estimator("lmoments", fit_lmoments, aliases=("lmom", "l-moments"))
register_estimator("pwm", fit_pwm, aliases=("pwd",))
register_estimator("mle", fit_mle, aliases=("ml",))
register_estimator("mme", fit_mme, aliases=("moments", "mom"))


__all__ = [
    "Estimator",
    "MLEConfig",
    "estimate",
    "prepare_sample",
    "resolve_method",
    "sample_moments",
    "register_estimator",
    "get_estimator",
    "list_methods",
]
