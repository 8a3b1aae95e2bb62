"""Distribution registry and canonical implementations."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import numpy as np
from scipy import stats

from .base import (
    Cdf,
    Distribution,
    Pdf,
    Quantile,
    clear_registry,
    get_distribution,
    list_distributions,
    load_entry_points,
    load_env_configs,
    load_yaml_config,
    register_distribution,
)
from .lmoments import (
    distribution_lmoments,
    lmom_to_exponential,
    lmom_to_gamma,
    lmom_to_gev,
    lmom_to_gumbel,
    lmom_to_lognormal3,
    lmom_to_normal,
    lmom_to_pearson3,
    lmom_to_wakeby,
)
from .moments import (
    moments_to_exponential,
    moments_to_gamma,
    moments_to_gev,
    moments_to_gumbel,
    moments_to_lognormal3,
    moments_to_normal,
    moments_to_pearson3,
)
from .wakeby import wakeby_cdf, wakeby_feasible, wakeby_pdf, wakeby_quantile

__all__ = [
    "Distribution",
    "Pdf",
    "Cdf",
    "Quantile",
    "get_distribution",
    "list_distributions",
    "register_distribution",
    "clear_registry",
    "load_yaml_config",
    "distribution_lmoments",
    "STANDARD_DISTRIBUTIONS",
]


def _scipy_family(
    rv: Any,
    to_kwargs: Callable[[Mapping[str, float]], dict[str, float]],
) -> tuple[Quantile, Cdf, Pdf]:
    """Wrap a ``scipy.stats`` continuous distribution into quantile/cdf/pdf callables."""

    def quantile(p: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
        return rv.ppf(np.asarray(p, dtype=float), **to_kwargs(params))

    def cdf(x: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
        return rv.cdf(np.asarray(x, dtype=float), **to_kwargs(params))

    def pdf(x: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            values = rv.pdf(np.asarray(x, dtype=float), **to_kwargs(params))
        return np.nan_to_num(values, nan=0.0, posinf=0.0, neginf=0.0)

    return quantile, cdf, pdf


_EXPONENTIAL = _scipy_family(stats.expon, lambda p: {"loc": p["xi"], "scale": p["alpha"]})
_GAMMA = _scipy_family(stats.gamma, lambda p: {"a": p["alpha"], "scale": p["beta"]})
_GEV = _scipy_family(
    stats.genextreme, lambda p: {"c": p["kappa"], "loc": p["xi"], "scale": p["alpha"]}
)
_GUMBEL = _scipy_family(stats.gumbel_r, lambda p: {"loc": p["xi"], "scale": p["alpha"]})
_LOGNORMAL3 = _scipy_family(
    stats.lognorm,
    lambda p: {"s": p["sigmalog"], "loc": p["zeta"], "scale": float(np.exp(p["mulog"]))},
)
_NORMAL = _scipy_family(stats.norm, lambda p: {"loc": p["mu"], "scale": p["sigma"]})
_PEARSON3 = _scipy_family(
    stats.pearson3, lambda p: {"skew": p["gamma"], "loc": p["mu"], "scale": p["sigma"]}
)


STANDARD_DISTRIBUTIONS = [
    Distribution(
        name="exponential",
        parameters=("xi", "alpha"),
        quantile=_EXPONENTIAL[0],
        cdf=_EXPONENTIAL[1],
        pdf=_EXPONENTIAL[2],
        lmom_to_par=lmom_to_exponential,
        moments_to_par=moments_to_exponential,
        aliases=("exp", "exponencial"),
        positive=("alpha",),
        notes="Two-parameter exponential with lower bound xi.",
    ),
    Distribution(
        name="gamma",
        parameters=("alpha", "beta"),
        quantile=_GAMMA[0],
        cdf=_GAMMA[1],
        pdf=_GAMMA[2],
        lmom_to_par=lmom_to_gamma,
        moments_to_par=moments_to_gamma,
        aliases=("gam",),
        positive=("alpha", "beta"),
        notes="Two-parameter gamma (shape alpha, scale beta).",
    ),
    Distribution(
        name="gev",
        parameters=("xi", "alpha", "kappa"),
        quantile=_GEV[0],
        cdf=_GEV[1],
        pdf=_GEV[2],
        lmom_to_par=lmom_to_gev,
        moments_to_par=moments_to_gev,
        aliases=("generalized.extreme.value",),
        positive=("alpha",),
        notes="Generalized extreme value; kappa > 0 is bounded above (Hosking sign).",
    ),
    Distribution(
        name="gumbel",
        parameters=("xi", "alpha"),
        quantile=_GUMBEL[0],
        cdf=_GUMBEL[1],
        pdf=_GUMBEL[2],
        lmom_to_par=lmom_to_gumbel,
        moments_to_par=moments_to_gumbel,
        aliases=("gum", "ev1"),
        positive=("alpha",),
        notes="Gumbel (extreme value type I).",
    ),
    Distribution(
        name="log.normal3",
        parameters=("zeta", "mulog", "sigmalog"),
        quantile=_LOGNORMAL3[0],
        cdf=_LOGNORMAL3[1],
        pdf=_LOGNORMAL3[2],
        lmom_to_par=lmom_to_lognormal3,
        moments_to_par=moments_to_lognormal3,
        aliases=("ln3", "lognormal3"),
        positive=("sigmalog",),
        lmom_sign_normalize=True,
        notes="Three-parameter log-normal with lower bound zeta (natural log).",
    ),
    Distribution(
        name="normal",
        parameters=("mu", "sigma"),
        quantile=_NORMAL[0],
        cdf=_NORMAL[1],
        pdf=_NORMAL[2],
        lmom_to_par=lmom_to_normal,
        moments_to_par=moments_to_normal,
        aliases=("nor",),
        positive=("sigma",),
        notes="Normal distribution.",
    ),
    Distribution(
        name="pearson3",
        parameters=("mu", "sigma", "gamma"),
        quantile=_PEARSON3[0],
        cdf=_PEARSON3[1],
        pdf=_PEARSON3[2],
        lmom_to_par=lmom_to_pearson3,
        moments_to_par=moments_to_pearson3,
        aliases=("pe3", "pearson"),
        positive=("sigma",),
        notes="Pearson type III parameterized by mean, standard deviation and skewness.",
    ),
    Distribution(
        name="log.pearson3",
        parameters=("mu", "sigma", "gamma"),
        quantile=_PEARSON3[0],
        cdf=_PEARSON3[1],
        pdf=_PEARSON3[2],
        lmom_to_par=lmom_to_pearson3,
        moments_to_par=moments_to_pearson3,
        aliases=("lp3", "logpearson3"),
        transform="log10",
        positive=("sigma",),
        notes="Pearson type III fitted to log10 of the sample.",
    ),
    Distribution(
        name="wakeby",
        parameters=("xi", "alpha", "beta", "gamma", "delta"),
        quantile=wakeby_quantile,
        cdf=wakeby_cdf,
        pdf=wakeby_pdf,
        lmom_to_par=lmom_to_wakeby,
        aliases=("wak",),
        positive=("alpha",),
        feasible=wakeby_feasible,
        notes="Five-parameter Wakeby defined by its quantile function.",
    ),
]


def _register_builtin() -> None:
    for dist in STANDARD_DISTRIBUTIONS:
        register_distribution(dist, overwrite=True)


_register_builtin()
load_entry_points()
load_env_configs()
