import logging

import numpy as np
import pandas as pd
import pytest

from idftool.core import GoodnessMetrics
from idftool.errors import ConvergenceError, FitError, ShapeError
from idftool.regression import (
    IDFCurveFit,
    RegressionConfig,
    fit_idf,
    fit_idf_curve,
    idf_intensity,
)


def _noisy(values: np.ndarray, seed: int = 0, level: float = 0.01) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return values * (1.0 + level * rng.standard_normal(values.size))


def test_idf_intensity_formula() -> None:
    values = idf_intensity([0.0, 5.0, 95.0], 500.0, 5.0, 0.5)
    assert values.tolist() == pytest.approx([500.0 / 5.0**0.5, 500.0 / 10.0**0.5, 50.0])


def test_noise_free_curve_recovers_coefficients(idf_durations: np.ndarray) -> None:
    intensities = idf_intensity(idf_durations, 500.0, 5.0, 0.6)
    fit = fit_idf_curve(idf_durations, intensities, return_period=10.0)
    assert fit.coefficients["A"] == pytest.approx(500.0, rel=0.05)
    assert fit.coefficients["B"] == pytest.approx(5.0, rel=0.05)
    assert fit.coefficients["C"] == pytest.approx(0.6, rel=0.05)
    assert fit.metrics.rmse < 1e-3
    assert fit.metrics.br2 == pytest.approx(1.0, abs=1e-6)


def test_noisy_curve_has_small_error_and_positive_coefficients(
    idf_durations: np.ndarray,
) -> None:
    intensities = _noisy(idf_intensity(idf_durations, 500.0, 5.0, 0.6))
    fit = fit_idf_curve(idf_durations, intensities)
    assert all(value > 0 for value in fit.coefficients.values())
    assert fit.metrics.rmse < 0.05 * float(np.mean(intensities))
    assert fit.covariance is not None
    assert fit.covariance.shape == (3, 3)


SCENARIO_DURATIONS = np.array([5.0, 10.0, 15.0, 20.0, 30.0, 60.0, 120.0, 360.0])


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_scenario_durations_recover_coefficients_under_noise(seed: int) -> None:
    intensities = _noisy(idf_intensity(SCENARIO_DURATIONS, 500.0, 5.0, 0.6), seed=seed)
    fit = fit_idf_curve(SCENARIO_DURATIONS, intensities)
    assert fit.coefficients["A"] == pytest.approx(500.0, rel=0.05)
    assert fit.coefficients["B"] == pytest.approx(5.0, rel=0.05)
    assert fit.coefficients["C"] == pytest.approx(0.6, rel=0.05)
    assert fit.covariance is not None


def test_scenario_durations_fit_without_noise() -> None:
    intensities = idf_intensity(SCENARIO_DURATIONS, 500.0, 5.0, 0.6)
    fit = fit_idf_curve(SCENARIO_DURATIONS, intensities)
    assert fit.coefficients == pytest.approx({"A": 500.0, "B": 5.0, "C": 0.6}, rel=1e-3)
    table = pd.DataFrame(
        {2.0: intensities, 10.0: 1.5 * intensities},
        index=pd.Index(SCENARIO_DURATIONS, name="duration"),
    )
    result = fit_idf(table)
    assert result.failures == {}
    assert result.coefficients.loc[10.0, "A"] == pytest.approx(750.0, rel=1e-3)


def test_bands_contain_fit_and_prediction_is_wider(idf_durations: np.ndarray) -> None:
    intensities = _noisy(idf_intensity(idf_durations, 500.0, 5.0, 0.6), seed=3)
    fit = fit_idf_curve(idf_durations, intensities, confidence_level=0.9)
    assert fit.confidence is not None and fit.prediction is not None
    assert fit.confidence.level == pytest.approx(0.9)
    assert np.all(fit.confidence.lower <= fit.fitted)
    assert np.all(fit.fitted <= fit.confidence.upper)
    conf_width = fit.confidence.upper - fit.confidence.lower
    pred_width = fit.prediction.upper - fit.prediction.lower
    assert np.all(pred_width > conf_width)
    assert fit.confidence.to_frame().index.name == "duration"


def test_intervals_evaluate_on_demand(idf_durations: np.ndarray) -> None:
    intensities = _noisy(idf_intensity(idf_durations, 500.0, 5.0, 0.6), seed=4)
    fit = fit_idf_curve(idf_durations, intensities, intervals=False)
    assert fit.confidence is None
    grid = np.linspace(5.0, 1440.0, 200)
    confidence, prediction = fit.intervals(grid, level=0.95)
    assert confidence.lower.shape == (200,)
    assert np.allclose(confidence.estimate, fit.predict(grid))
    assert np.all(prediction.lower <= confidence.lower)
    with pytest.raises(ValueError):
        fit.intervals(grid, level=1.5)


def test_missing_covariance_gives_nan_bands(caplog: pytest.LogCaptureFixture) -> None:
    durations = np.array([5.0, 10.0, 30.0, 60.0])
    fitted = idf_intensity(durations, 500.0, 5.0, 0.6)
    fit = IDFCurveFit(
        durations=durations,
        intensities=fitted,
        coefficients={"A": 500.0, "B": 5.0, "C": 0.6},
        fitted=fitted,
        residuals=np.zeros_like(fitted),
        metrics=GoodnessMetrics.empty(),
        covariance=None,
        return_period=25.0,
    )
    with caplog.at_level(logging.WARNING, logger="idftool.regression"):
        confidence, prediction = fit.intervals()
    assert np.all(np.isnan(confidence.lower))
    assert np.all(np.isnan(prediction.upper))
    assert "unavailable" in caplog.text


@pytest.mark.parametrize(
    "durations,intensities,error",
    [
        ([5.0, 10.0], [100.0, 80.0], FitError),
        ([5.0, 10.0, 20.0], [100.0, 80.0], ShapeError),
        ([5.0, 10.0, 20.0], [100.0, -80.0, 60.0], FitError),
        ([5.0, 10.0, 20.0], [100.0, np.nan, 60.0], FitError),
    ],
)
def test_invalid_curves_rejected(
    durations: list[float], intensities: list[float], error: type[Exception]
) -> None:
    with pytest.raises(error):
        fit_idf_curve(durations, intensities)


def test_evaluation_budget_exhaustion_raises(idf_durations: np.ndarray) -> None:
    intensities = idf_intensity(idf_durations, 500.0, 5.0, 0.6)
    with pytest.raises(ConvergenceError):
        fit_idf_curve(idf_durations, intensities, config=RegressionConfig(max_nfev=3))


def test_each_fit_starts_from_the_configured_guess(idf_durations: np.ndarray) -> None:
    config = RegressionConfig()
    intensities = idf_intensity(idf_durations, 500.0, 5.0, 0.6)
    first = fit_idf_curve(idf_durations, intensities, config=config)
    second = fit_idf_curve(idf_durations, intensities, config=config)
    assert config.initial == {"A": 1000.0, "B": 0.2, "C": 0.01}
    assert first.coefficients == pytest.approx(second.coefficients)


def _idf_table(durations: np.ndarray) -> pd.DataFrame:
    columns = {
        period: idf_intensity(durations, a, 5.0, 0.6)
        for period, a in ((2.0, 400.0), (10.0, 600.0), (100.0, 800.0))
    }
    return pd.DataFrame(columns, index=pd.Index(durations, name="duration"))


def test_fit_idf_fits_every_column(idf_durations: np.ndarray) -> None:
    result = fit_idf(_idf_table(idf_durations))
    assert list(result.coefficients.columns) == ["A", "B", "C"]
    assert result.coefficients.index.tolist() == [2.0, 10.0, 100.0]
    assert result.coefficients.loc[10.0, "A"] == pytest.approx(600.0, rel=0.05)
    assert list(result.goodness.columns) == ["aic", "bic", "br2", "mse", "rmse"]
    assert result.predict.shape == (idf_durations.size, 3)
    expected = idf_intensity(idf_durations, 800.0, 5.0, 0.6)
    assert np.allclose(result.predict[100.0].to_numpy(), expected, rtol=1e-3)
    assert set(result.confidence) == {2.0, 10.0, 100.0}
    assert set(result.prediction) == {2.0, 10.0, 100.0}
    assert result.failures == {}
    assert list(result.to_frame().columns) == ["A", "B", "C", "aic", "bic", "br2", "mse", "rmse"]


def test_fit_idf_accepts_arrays(idf_durations: np.ndarray) -> None:
    table = _idf_table(idf_durations)
    result = fit_idf(
        table.to_numpy(), return_periods=[2, 10, 100], durations=idf_durations, intervals=False
    )
    assert result.confidence == {}
    assert result.coefficients.shape == (3, 3)
    with pytest.raises(ShapeError):
        fit_idf(table.to_numpy())


def test_failing_column_is_isolated(idf_durations: np.ndarray) -> None:
    table = _idf_table(idf_durations)
    table.loc[table.index[2], 10.0] = np.nan
    result = fit_idf(table)
    assert set(result.failures) == {10.0}
    assert result.coefficients.loc[10.0].isna().all()
    assert result.predict[10.0].isna().all()
    assert result.goodness.loc[10.0].isna().all()
    assert 10.0 not in result.models
    assert result.coefficients.loc[2.0, "A"] == pytest.approx(400.0, rel=0.05)


def test_all_columns_failing_raises(idf_durations: np.ndarray) -> None:
    table = -_idf_table(idf_durations)
    with pytest.raises(FitError):
        fit_idf(table)


def test_table_needs_three_durations() -> None:
    table = pd.DataFrame({2.0: [100.0, 80.0]}, index=[5.0, 10.0])
    with pytest.raises(ShapeError):
        fit_idf(table)
