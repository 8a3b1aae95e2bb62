"""Workflow shortcuts for distribution and IDF fitting."""

from __future__ import annotations

from ..regression import fit_idf
from .distribution import DEFAULT_RETURN_PERIODS, fit_distribution
from .idf import IDFCurveSet, build_idf_curves

__all__ = [
    "DEFAULT_RETURN_PERIODS",
    "fit_distribution",
    "fit_idf",
    "build_idf_curves",
    "IDFCurveSet",
]
