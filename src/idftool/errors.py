"""Exception taxonomy shared by the fitting engines."""

from __future__ import annotations


class IDFToolError(ValueError):
    """Base class for idftool fitting failures."""


class FitError(IDFToolError):
    """Sample and family are incompatible (size, sign, degenerate moments)."""


class ConvergenceError(IDFToolError):
    """An iterative optimizer exhausted its budget without converging."""


class ShapeError(IDFToolError):
    """Observed and fitted series do not share the same shape."""


class InsufficientResamplesError(IDFToolError):
    """Too few bootstrap resamples could be refitted."""


__all__ = [
    "IDFToolError",
    "FitError",
    "ConvergenceError",
    "ShapeError",
    "InsufficientResamplesError",
]
