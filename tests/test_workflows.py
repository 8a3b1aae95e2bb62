import numpy as np
import pandas as pd
import pytest
from scipy import stats

from idftool.regression import idf_intensity
from idftool.sampling import BootstrapConfig
from idftool.workflows import DEFAULT_RETURN_PERIODS, build_idf_curves, fit_distribution


def test_scenario_fit_reports_increasing_return_levels(scenario_sample: np.ndarray) -> None:
    result = fit_distribution(scenario_sample, "gumbel", "lmoments", [2, 5, 10, 25])
    assert result.fitted
    assert result.info == ("gumbel", "lmoments")
    assert result.quantiles is not None
    assert result.quantiles.index.name == "return_period"
    assert np.all(result.quantiles.to_numpy() > 0)
    assert np.all(np.diff(result.quantiles.to_numpy()) > 0)
    assert result.goodness is not None
    assert 0.0 <= result.goodness.ks_pvalue <= 1.0
    assert result.diagnostics["n"] == scenario_sample.size
    frame = result.to_frame()
    assert list(frame.columns) == ["intensity"]
    assert frame.index.tolist() == [2.0, 5.0, 10.0, 25.0]


def test_family_aliases_resolve_to_canonical_name(gumbel_sample: np.ndarray) -> None:
    result = fit_distribution(gumbel_sample, "lp3")
    assert result.family == "log.pearson3"
    assert result.return_periods.tolist() == [float(p) for p in DEFAULT_RETURN_PERIODS]


def test_method_aliases_are_reported_by_canonical_name(gumbel_sample: np.ndarray) -> None:
    result = fit_distribution(gumbel_sample, "gumbel", "PWD")
    assert result.info == ("gumbel", "pwm")
    assert result.parameters is not None
    assert result.parameters.method == "pwm"
    empty = fit_distribution(gumbel_sample, "wakeby", "Moments")
    assert empty.info == ("wakeby", "mme")


def test_goodness_can_be_skipped(gumbel_sample: np.ndarray) -> None:
    result = fit_distribution(gumbel_sample, "gev", "pwm", goodness=False)
    assert result.goodness is None
    assert result.quantiles is not None


def test_moment_fit_without_solution_yields_empty_result(gumbel_sample: np.ndarray) -> None:
    result = fit_distribution(gumbel_sample, "wakeby", "mme")
    assert not result.fitted
    assert result.quantiles is None
    assert result.goodness is not None
    assert np.isnan(result.goodness.aic)
    assert result.to_frame()["intensity"].isna().all()


def test_bootstrap_bounds_join_the_quantile_table(gumbel_sample: np.ndarray) -> None:
    result = fit_distribution(
        gumbel_sample,
        "gumbel",
        bootstrap=BootstrapConfig(resamples=200, random_state=0),
    )
    frame = result.to_frame()
    assert list(frame.columns) == ["intensity", "lower", "upper"]
    assert np.all(frame["lower"] <= frame["intensity"])
    assert np.all(frame["intensity"] <= frame["upper"])
    assert result.confidence is not None
    assert np.allclose(result.confidence.estimate, result.quantiles.to_numpy())


def test_invalid_return_period_is_rejected(gumbel_sample: np.ndarray) -> None:
    with pytest.raises(ValueError):
        fit_distribution(gumbel_sample, "gumbel", return_periods=[0.5, 10.0])


def _annual_maxima(durations: np.ndarray) -> pd.DataFrame:
    positions = np.arange(1, 26) / 26.0
    base = stats.gumbel_r.ppf(positions, loc=1.0, scale=0.3)
    columns = {d: 500.0 / (d + 5.0) ** 0.6 * base for d in durations}
    return pd.DataFrame(columns, index=pd.RangeIndex(1990, 2015, name="year"))


def test_build_idf_curves_from_annual_maxima(idf_durations: np.ndarray) -> None:
    curves = build_idf_curves(_annual_maxima(idf_durations), "gumbel", intervals=False)
    assert curves.failures == {}
    assert curves.intensities.index.tolist() == idf_durations.tolist()
    assert curves.intensities.columns.name == "return_period"
    assert set(curves.distributions) == set(idf_durations.tolist())
    coefficients = curves.idf.coefficients
    assert np.allclose(coefficients["B"], 5.0, rtol=0.05)
    assert np.allclose(coefficients["C"], 0.6, rtol=0.05)
    assert np.all(np.diff(coefficients["A"].to_numpy()) > 0)


def test_build_idf_curves_skips_durations_that_cannot_be_fitted(
    idf_durations: np.ndarray,
) -> None:
    maxima = _annual_maxima(idf_durations)
    maxima[2880.0] = np.nan
    curves = build_idf_curves(maxima, "gumbel", return_periods=[2, 10, 100], intervals=False)
    assert set(curves.failures) == {2880.0}
    assert 2880.0 not in curves.intensities.index
    assert curves.idf.failures == {}
    assert curves.idf.predict.shape == (idf_durations.size, 3)
