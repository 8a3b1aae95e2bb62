"""Top-level package exports for idftool."""

from __future__ import annotations

from importlib import metadata

__version__ = "0.1.0"

try:
    __version__ = metadata.version("idftool")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev fallback
    pass

from . import core as core  # noqa: F401
from . import distfit as distfit  # noqa: F401
from . import distributions as distributions  # noqa: F401
from .core import DistributionFitResult, FittedParameters  # noqa: F401
from .distfit import estimate  # noqa: F401
from .errors import (  # noqa: F401
    ConvergenceError,
    FitError,
    IDFToolError,
    InsufficientResamplesError,
    ShapeError,
)
from .workflows import build_idf_curves, fit_distribution, fit_idf  # noqa: F401

__all__ = [
    "__version__",
    "core",
    "distributions",
    "distfit",
    "FittedParameters",
    "DistributionFitResult",
    "estimate",
    "fit_distribution",
    "fit_idf",
    "build_idf_curves",
    "IDFToolError",
    "FitError",
    "ConvergenceError",
    "ShapeError",
    "InsufficientResamplesError",
]
