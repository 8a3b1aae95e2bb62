"""Non-linear least-squares regression of IDF curves ``I(D) = A / (B + D)**C``."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from lmfit import Model
from scipy import stats

from ..core import ArrayLike, ConfidenceBand, GoodnessMetrics, PredictionBand, TableLike
from ..errors import ConvergenceError, FitError, IDFToolError, ShapeError
from ..gof import score

logger = logging.getLogger(__name__)

COEFFICIENTS = ("A", "B", "C")

__all__ = [
    "COEFFICIENTS",
    "RegressionConfig",
    "IDFCurveFit",
    "IDFFitResult",
    "idf_intensity",
    "fit_idf_curve",
    "fit_idf",
]


@dataclass(slots=True)
class RegressionConfig:
    """Starting values and optimizer budget for IDF curve fits."""

    initial: dict[str, float] = field(
        default_factory=lambda: {"A": 1000.0, "B": 0.2, "C": 0.01}
    )
    b_min: float = 0.0
    max_nfev: int = 4000
    method: str = "least_squares"
    tolerance: float = 1e-10

    def fit_kws(self) -> dict[str, float]:
        return {"ftol": self.tolerance, "xtol": self.tolerance, "gtol": self.tolerance}


def idf_intensity(durations: ArrayLike, A: float, B: float, C: float) -> np.ndarray:
    """Intensity ``A / (B + D)**C`` at each duration ``D``."""
    d = np.asarray(durations, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        return A / np.power(B + d, C)


def _jacobian(durations: np.ndarray, A: float, B: float, C: float) -> np.ndarray:
    base = B + durations
    power = np.power(base, -C)
    return np.column_stack(
        (
            power,
            -A * C * power / base,
            -A * np.log(base) * power,
        )
    )


@dataclass(slots=True)
class IDFCurveFit:
    """One fitted IDF curve for a single return period."""

    durations: np.ndarray
    intensities: np.ndarray
    coefficients: dict[str, float]
    fitted: np.ndarray
    residuals: np.ndarray
    metrics: GoodnessMetrics
    covariance: np.ndarray | None = None
    return_period: float | None = None
    confidence: ConfidenceBand | None = None
    prediction: PredictionBand | None = None
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def dof(self) -> int:
        return int(self.durations.size - len(COEFFICIENTS))

    def predict(self, durations: ArrayLike) -> np.ndarray:
        c = self.coefficients
        return idf_intensity(durations, c["A"], c["B"], c["C"])

    def intervals(
        self,
        durations: ArrayLike | None = None,
        level: float = 0.95,
    ) -> tuple[ConfidenceBand, PredictionBand]:
        """Delta-method confidence and prediction bands at ``durations``."""
        if not 0.0 < level < 1.0:
            raise ValueError("level must lie strictly between 0 and 1.")
        d = self.durations if durations is None else np.asarray(durations, dtype=float).ravel()
        estimate = self.predict(d)
        diagnostics: dict[str, Any] = {"return_period": self.return_period}
        if self.covariance is None or self.dof <= 0:
            logger.warning(
                "Interval computation unavailable for return period %s (no covariance)",
                self.return_period,
            )
            nan = np.full(d.shape, np.nan)
            diagnostics["note"] = "covariance unavailable"
            return (
                ConfidenceBand(d, nan, nan.copy(), level, "duration", estimate, dict(diagnostics)),
                PredictionBand(d, nan.copy(), nan.copy(), level, "duration", estimate, diagnostics),
            )
        c = self.coefficients
        jac = _jacobian(d, c["A"], c["B"], c["C"])
        var_mean = np.einsum("ij,jk,ik->i", jac, self.covariance, jac)
        se_mean = np.sqrt(np.clip(var_mean, 0.0, None))
        sigma2 = float(np.sum(self.residuals**2)) / self.dof
        se_pred = np.sqrt(se_mean**2 + sigma2)
        tval = float(stats.t.ppf(1.0 - (1.0 - level) / 2.0, self.dof))
        confidence = ConfidenceBand(
            index=d,
            lower=estimate - tval * se_mean,
            upper=estimate + tval * se_mean,
            level=level,
            index_name="duration",
            estimate=estimate,
            diagnostics=dict(diagnostics),
        )
        prediction = PredictionBand(
            index=d,
            lower=estimate - tval * se_pred,
            upper=estimate + tval * se_pred,
            level=level,
            index_name="duration",
            estimate=estimate,
            diagnostics=diagnostics,
        )
        return confidence, prediction


def _validate_curve(durations: ArrayLike, intensities: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    d = np.asarray(durations, dtype=float).ravel()
    y = np.asarray(intensities, dtype=float).ravel()
    if d.shape != y.shape:
        raise ShapeError(f"{d.size} durations but {y.size} intensities.")
    if d.size < len(COEFFICIENTS):
        raise FitError(f"IDF regression needs at least 3 durations, got {d.size}.")
    if not (np.all(np.isfinite(d)) and np.all(np.isfinite(y))):
        raise FitError("Durations and intensities must be finite.")
    if np.any(d <= 0) or np.any(y <= 0):
        raise FitError("Durations and intensities must be strictly positive.")
    return d, y


def fit_idf_curve(
    durations: ArrayLike,
    intensities: ArrayLike,
    *,
    config: RegressionConfig | None = None,
    return_period: float | None = None,
    intervals: bool = True,
    confidence_level: float = 0.95,
) -> IDFCurveFit:
    """Fit ``A / (B + D)**C`` to one intensity series.

    The default trust-region-reflective solver honours ``B >= b_min`` directly;
    every call starts from ``config.initial``.
    """
    cfg = config or RegressionConfig()
    d, y = _validate_curve(durations, intensities)

    model = Model(idf_intensity)
    params = model.make_params()
    for name in COEFFICIENTS:
        params[name].set(value=float(cfg.initial[name]))
    params["B"].set(min=cfg.b_min)

    result = model.fit(
        y,
        params,
        durations=d,
        method=cfg.method,
        max_nfev=cfg.max_nfev,
        fit_kws=cfg.fit_kws(),
    )
    coefficients = {name: float(result.params[name].value) for name in COEFFICIENTS}
    if not result.success or not all(np.isfinite(v) for v in coefficients.values()):
        raise ConvergenceError(
            f"IDF regression did not converge for return period {return_period}: {result.message}"
        )

    fitted = idf_intensity(d, **coefficients)
    covariance = None if result.covar is None else np.asarray(result.covar, dtype=float)
    curve = IDFCurveFit(
        durations=d,
        intensities=y,
        coefficients=coefficients,
        fitted=fitted,
        residuals=y - fitted,
        metrics=score(y, fitted, COEFFICIENTS),
        covariance=covariance,
        return_period=return_period,
        diagnostics={"nfev": int(result.nfev), "message": str(result.message)},
    )
    if intervals:
        curve.confidence, curve.prediction = curve.intervals(d, confidence_level)
    logger.debug("Fitted IDF curve for T=%s: %s", return_period, coefficients)
    return curve


@dataclass(slots=True)
class IDFFitResult:
    """IDF curves fitted to every return-period column of a table."""

    predict: pd.DataFrame
    coefficients: pd.DataFrame
    goodness: pd.DataFrame
    confidence: dict[float, ConfidenceBand] = field(default_factory=dict)
    prediction: dict[float, PredictionBand] = field(default_factory=dict)
    models: dict[float, IDFCurveFit] = field(default_factory=dict)
    failures: dict[float, str] = field(default_factory=dict)

    def to_frame(self) -> pd.DataFrame:
        """Coefficients and goodness metrics side by side, one row per return period."""
        return self.coefficients.join(self.goodness)


def _as_table(
    table: TableLike,
    return_periods: Sequence[float] | None,
    durations: Sequence[float] | None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    if isinstance(table, pd.DataFrame):
        values = table.to_numpy(dtype=float)
        d = np.asarray(table.index if durations is None else durations, dtype=float)
        columns = table.columns if return_periods is None else return_periods
        periods = np.asarray(columns, dtype=float)
    else:
        values = np.asarray(table, dtype=float)
        if values.ndim == 1:
            values = values[:, np.newaxis]
        if durations is None or return_periods is None:
            raise ShapeError("Array tables need explicit durations and return periods.")
        d = np.asarray(durations, dtype=float)
        periods = np.asarray(return_periods, dtype=float)
    if values.ndim != 2 or values.shape != (d.size, periods.size):
        raise ShapeError(
            f"Table shape {values.shape} does not match {d.size} durations x "
            f"{periods.size} return periods."
        )
    if values.shape[0] < len(COEFFICIENTS) or values.shape[1] < 1:
        raise ShapeError("IDF tables need at least 3 durations and 1 return period.")
    return values, d, periods


def fit_idf(
    table: TableLike,
    return_periods: Sequence[float] | None = None,
    durations: Sequence[float] | None = None,
    *,
    intervals: bool = True,
    confidence_level: float = 0.95,
    config: RegressionConfig | None = None,
) -> IDFFitResult:
    """Fit one independent IDF curve per return-period column.

    A failing column is logged, recorded in ``failures`` and left as NaN;
    the last error is raised only when every column fails.
    """
    values, d, periods = _as_table(table, return_periods, durations)
    predict = np.full(values.shape, np.nan)
    coef_rows = np.full((periods.size, len(COEFFICIENTS)), np.nan)
    metric_rows: list[dict[str, float]] = []
    result = IDFFitResult(
        predict=pd.DataFrame(),
        coefficients=pd.DataFrame(),
        goodness=pd.DataFrame(),
    )
    last_error: IDFToolError | None = None

    for j, period in enumerate(periods):
        key = float(period)
        try:
            curve = fit_idf_curve(
                d,
                values[:, j],
                config=config,
                return_period=key,
                intervals=intervals,
                confidence_level=confidence_level,
            )
        except IDFToolError as exc:
            logger.warning("Skipping return period %s: %s", key, exc)
            result.failures[key] = str(exc)
            last_error = exc
            metric_rows.append(GoodnessMetrics.empty().to_dict())
            continue
        predict[:, j] = curve.fitted
        coef_rows[j] = [curve.coefficients[name] for name in COEFFICIENTS]
        metric_rows.append(curve.metrics.to_dict())
        result.models[key] = curve
        if curve.confidence is not None and curve.prediction is not None:
            result.confidence[key] = curve.confidence
            result.prediction[key] = curve.prediction

    if not result.models and last_error is not None:
        raise last_error

    period_index = pd.Index(periods, name="return_period")
    result.predict = pd.DataFrame(
        predict, index=pd.Index(d, name="duration"), columns=period_index
    )
    result.coefficients = pd.DataFrame(coef_rows, index=period_index, columns=list(COEFFICIENTS))
    result.goodness = pd.DataFrame(metric_rows, index=period_index)
    return result
