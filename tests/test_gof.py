import math

import numpy as np
import pytest

from idftool.core import FittedParameters
from idftool.distfit import estimate
from idftool.errors import ShapeError
from idftool.gof import _adinf, anderson_darling, br2, distribution_gof, score


def test_perfect_fit_scores() -> None:
    x = np.array([10.0, 20.0, 35.0, 50.0, 80.0])
    metrics = score(x, x, ("A", "B", "C"))
    assert metrics.rmse == 0.0
    assert metrics.mse == 0.0
    assert metrics.br2 == pytest.approx(1.0)
    assert math.isfinite(metrics.aic)
    assert math.isfinite(metrics.bic)


def test_score_rejects_mismatched_lengths() -> None:
    with pytest.raises(ShapeError):
        score([1.0, 2.0, 3.0], [1.0, 2.0], 3)


def test_score_information_criteria_follow_gaussian_loglik() -> None:
    observed = np.array([100.0, 60.0, 42.0, 30.0, 20.0, 12.0])
    fitted = np.array([98.0, 62.0, 41.0, 31.0, 19.5, 12.5])
    n = observed.size
    rss = float(np.sum((observed - fitted) ** 2))
    loglik = -0.5 * n * (math.log(2 * math.pi) + 1 - math.log(n) + math.log(rss))
    metrics = score(observed, fitted, 3)
    assert metrics.mse == pytest.approx(rss / n)
    assert metrics.rmse == pytest.approx(math.sqrt(rss / n))
    assert metrics.aic == pytest.approx(-2 * loglik + 2 * 4)
    assert metrics.bic == pytest.approx(-2 * loglik + math.log(n) * 4)


@pytest.mark.parametrize(
    "scale,offset,expected",
    [(2.0, 0.0, 0.5), (0.5, 3.0, 0.5), (1.0, 5.0, 1.0)],
)
def test_br2_weights_r2_by_slope(scale: float, offset: float, expected: float) -> None:
    observed = np.array([1.0, 2.0, 4.0, 7.0, 11.0])
    assert br2(observed, scale * observed + offset) == pytest.approx(expected)


def test_br2_slope_regresses_observed_on_fitted() -> None:
    observed = np.array([1.0, 2.0, 4.0, 7.0, 11.0])
    fitted = np.array([1.5, 2.5, 3.5, 8.0, 10.0])
    slope = np.polyfit(fitted, observed, 1)[0]
    r2 = np.corrcoef(observed, fitted)[0, 1] ** 2
    expected = r2 * abs(slope) if abs(slope) <= 1 else r2 / abs(slope)
    assert br2(observed, fitted) == pytest.approx(expected)
    assert br2(observed, fitted) != pytest.approx(br2(fitted, observed))


def test_br2_constant_series_is_nan() -> None:
    assert math.isnan(br2([1.0, 1.0, 1.0], [1.0, 2.0, 3.0]))


def test_adinf_is_a_distribution_function() -> None:
    grid = np.linspace(0.05, 8.0, 200)
    values = np.array([_adinf(z) for z in grid])
    assert np.all(np.diff(values) > 0)
    assert values[0] > 0.0
    assert values[-1] < 1.0
    assert _adinf(1.999999) == pytest.approx(_adinf(2.0), abs=1e-3)
    # upper 5% point of the asymptotic distribution
    assert _adinf(2.492) == pytest.approx(0.95, abs=2e-3)


def test_good_fit_passes_every_test(gumbel_sample: np.ndarray) -> None:
    fitted = estimate(gumbel_sample, "gumbel", "lmoments")
    assert fitted is not None
    gof = distribution_gof(gumbel_sample, fitted)
    assert gof.ks_pvalue > 0.5
    assert gof.cvm_pvalue > 0.5
    assert gof.ad_pvalue > 0.5
    assert gof.br2 > 0.95
    assert gof.bic > gof.aic
    assert gof.log_likelihood == pytest.approx(-0.5 * gof.aic + 2.0)


def test_poor_fit_is_rejected() -> None:
    rng = np.random.default_rng(99)
    sample = rng.exponential(10.0, size=500)
    fitted = estimate(sample, "normal", "lmoments")
    assert fitted is not None
    gof = distribution_gof(sample, fitted)
    assert gof.ks_pvalue < 0.01
    assert gof.ad_pvalue < 0.01


def test_anderson_darling_statistic_is_non_negative(gumbel_sample: np.ndarray) -> None:
    params = FittedParameters("gumbel", {"xi": 50.0, "alpha": 12.0})
    statistic, pvalue = anderson_darling(gumbel_sample, params)
    assert statistic > 0
    assert 0.0 <= pvalue <= 1.0


def test_sample_outside_support_has_infinite_criteria() -> None:
    params = FittedParameters("exponential", {"xi": 10.0, "alpha": 5.0})
    gof = distribution_gof([5.0, 12.0, 15.0, 30.0], params)
    assert gof.aic == float("inf")
    assert gof.log_likelihood == float("-inf")
