import numpy as np
import pytest
from scipy import stats


@pytest.fixture
def gumbel_sample() -> np.ndarray:
    """Thirty annual maxima placed at the Weibull plotting positions of Gumbel(50, 12)."""
    positions = np.arange(1, 31) / 31.0
    return stats.gumbel_r.ppf(positions, loc=50.0, scale=12.0)


@pytest.fixture
def scenario_sample() -> np.ndarray:
    return np.array([30.0, 45.0, 50.0, 62.0, 70.0, 55.0, 40.0, 48.0])


@pytest.fixture
def idf_durations() -> np.ndarray:
    return np.array([5, 10, 15, 20, 30, 45, 60, 90, 120, 180, 360, 720, 1440], dtype=float)
