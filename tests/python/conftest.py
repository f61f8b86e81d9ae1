"""
Pytest configuration for swaption_calibration tests.
"""

import pytest
import numpy as np

from swaption_calibration.data import (
    FilterCriteria,
    VolatilitySurface,
    ZeroCurve,
    filter_volatility_surface,
)


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running calibration tests")


@pytest.fixture
def random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
    return 42


@pytest.fixture
def flat_curve():
    """Zero curve flat at 2% (continuously compounded)."""
    return ZeroCurve.flat(0.02)


@pytest.fixture
def upward_curve():
    """Upward sloping zero curve."""
    return ZeroCurve(
        dates=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0],
        rates=[0.010, 0.012, 0.015, 0.020, 0.025, 0.028, 0.029],
    )


@pytest.fixture
def sample_surface():
    """Log-normal swaption volatility surface (maturities x durations)."""
    return VolatilitySurface(
        maturities=[1.0, 2.0, 5.0, 10.0],
        durations=[1.0, 2.0, 5.0, 10.0],
        volatilities=[
            [0.30, 0.28, 0.25, 0.22],
            [0.28, 0.26, 0.24, 0.21],
            [0.25, 0.24, 0.22, 0.20],
            [0.22, 0.21, 0.20, 0.18],
        ],
    )


@pytest.fixture
def single_cell_surface():
    """5Y x 5Y swaption quoted at 1% log-normal volatility."""
    return VolatilitySurface(maturities=[5.0], durations=[5.0], volatilities=[[0.01]])


@pytest.fixture
def sample_grid(sample_surface):
    """Unfiltered calibration grid of the sample surface."""
    return filter_volatility_surface(sample_surface, FilterCriteria())
