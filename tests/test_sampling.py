import numpy as np
import pytest
from scipy import stats

from idftool.core import ConfidenceBand, FittedParameters
from idftool.errors import InsufficientResamplesError
from idftool.sampling import bootstrap_ci, sample_distribution

PERIODS = [2.0, 10.0, 50.0]


def test_sample_distribution_returns_expected_shape() -> None:
    params = FittedParameters("gumbel", {"xi": 50.0, "alpha": 12.0})
    draws = sample_distribution(params, 500, random_state=123)
    assert draws.shape == (500,)
    assert np.allclose(draws, sample_distribution(params, 500, random_state=123))
    assert stats.kstest(draws, stats.gumbel_r(50.0, 12.0).cdf).pvalue > 0.001


def test_sample_distribution_back_transforms_log_families() -> None:
    params = FittedParameters("log.pearson3", {"mu": 1.7, "sigma": 0.1, "gamma": 0.2})
    draws = sample_distribution(params, (4, 25), random_state=np.random.default_rng(5))
    assert draws.shape == (4, 25)
    assert np.all(draws > 0)


def test_bootstrap_band_is_ordered_by_return_period(gumbel_sample: np.ndarray) -> None:
    band = bootstrap_ci(
        gumbel_sample, "gumbel", "lmoments", PERIODS, resamples=300, random_state=1
    )
    assert isinstance(band, ConfidenceBand)
    assert band.level == pytest.approx(0.95)
    assert band.index.tolist() == PERIODS
    assert np.all(band.lower < band.upper)
    assert np.all(np.diff(band.upper) > 0)
    assert band.diagnostics["successes"] == 300
    frame = band.to_frame()
    assert list(frame.columns) == ["lower", "upper"]
    assert frame.index.name == "return_period"


def test_bootstrap_is_reproducible_and_worker_independent(gumbel_sample: np.ndarray) -> None:
    serial = bootstrap_ci(gumbel_sample, "gev", "pwm", PERIODS, resamples=120, random_state=42)
    threaded = bootstrap_ci(
        gumbel_sample, "gev", "pwm", PERIODS, resamples=120, random_state=42, workers=4
    )
    assert np.array_equal(serial.lower, threaded.lower)
    assert np.array_equal(serial.upper, threaded.upper)


def test_bootstrap_without_any_successful_refit_fails(gumbel_sample: np.ndarray) -> None:
    with pytest.raises(InsufficientResamplesError):
        bootstrap_ci(gumbel_sample, "wakeby", "mme", PERIODS, resamples=20, random_state=3)


def test_bootstrap_requires_minimum_successes(gumbel_sample: np.ndarray) -> None:
    with pytest.raises(InsufficientResamplesError):
        bootstrap_ci(
            gumbel_sample, "gumbel", "lmoments", PERIODS, resamples=5, min_successes=6
        )


@pytest.mark.parametrize(
    "kwargs",
    [{"confidence_level": 1.0}, {"resamples": 0}, {"scheme": "jackknife"}],
)
def test_bootstrap_rejects_invalid_settings(gumbel_sample: np.ndarray, kwargs: dict) -> None:
    with pytest.raises(ValueError):
        bootstrap_ci(gumbel_sample, "gumbel", "lmoments", PERIODS, **kwargs)


def test_parametric_scheme(gumbel_sample: np.ndarray) -> None:
    band = bootstrap_ci(
        gumbel_sample,
        "gumbel",
        "lmoments",
        PERIODS,
        resamples=200,
        random_state=9,
        scheme="parametric",
    )
    assert band.diagnostics["scheme"] == "parametric"
    assert np.all(band.lower < band.upper)


def test_bootstrap_coverage_is_close_to_nominal() -> None:
    rng = np.random.default_rng(20240601)
    truth = stats.gumbel_r.ppf(0.9, loc=50.0, scale=12.0)
    hits = 0
    replicates = 60
    for _ in range(replicates):
        sample = rng.gumbel(50.0, 12.0, size=50)
        band = bootstrap_ci(
            sample,
            "gumbel",
            "lmoments",
            [10.0],
            resamples=200,
            confidence_level=0.9,
            random_state=rng,
        )
        hits += int(band.contains([truth])[0])
    assert hits / replicates >= 0.7
