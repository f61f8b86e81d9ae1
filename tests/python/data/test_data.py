"""
Tests for the data module.

Tests cover:
- ZeroCurve: Interpolation, discounting, validation, pandas conversion
- VolatilitySurface: Shape checks, pandas conversion
- InterestRateMarketData: Curve and embedded surface construction
- filter_surface: Inclusive bounds, ordering, empty results
"""

import logging
import math

import numpy as np
import pandas as pd
import pytest

from swaption_calibration.data import (
    FilterCriteria,
    FilteredGrid,
    InterestRateMarketData,
    VolatilitySurface,
    ZeroCurve,
    filter_surface,
    filter_volatility_surface,
)


class TestZeroCurve:
    """Tests for ZeroCurve."""

    @pytest.fixture
    def curve(self):
        return ZeroCurve(dates=[1.0, 5.0, 10.0], rates=[0.02, 0.025, 0.03])

    def test_linear_interpolation(self, curve):
        """Test rates are interpolated linearly between pillars."""
        assert curve.zero_rate(3.0) == pytest.approx(0.0225)
        assert curve.zero_rate(7.5) == pytest.approx(0.0275)

    def test_flat_extrapolation(self, curve):
        """Test first/last rate is held outside the pillars."""
        assert curve.zero_rate(0.1) == pytest.approx(0.02)
        assert curve.zero_rate(30.0) == pytest.approx(0.03)

    def test_discount_factor(self, curve):
        """Test P(0, t) = exp(-r(t) t)."""
        assert curve.discount_factor(5.0) == pytest.approx(math.exp(-0.125))
        assert curve.discount_factor(0.0) == pytest.approx(1.0)
        assert isinstance(curve.discount_factor(5.0), float)

    def test_discount_factor_vectorized(self, curve):
        """Test discount factors for an array of times."""
        times = np.array([1.0, 5.0, 10.0])
        expected = np.exp(-np.array([0.02, 0.125, 0.3]))
        np.testing.assert_allclose(curve.discount_factor(times), expected)

    def test_flat_curve(self):
        """Test flat curve has a constant rate everywhere."""
        curve = ZeroCurve.flat(0.02)
        for t in (0.1, 1.0, 7.0, 60.0):
            assert curve.zero_rate(t) == pytest.approx(0.02)

    def test_arrays_are_read_only(self, curve):
        """Test curve data cannot be mutated."""
        with pytest.raises(ValueError):
            curve.rates[0] = 0.5

    def test_input_is_copied(self):
        """Test the curve does not alias the caller's buffer."""
        rates = np.array([0.01, 0.02])
        curve = ZeroCurve(dates=[1.0, 2.0], rates=rates)
        rates[0] = 0.5
        assert curve.rates[0] == 0.01

    def test_non_increasing_dates(self):
        """Test validation rejects unordered pillars."""
        with pytest.raises(ValueError, match="strictly increasing"):
            ZeroCurve(dates=[1.0, 1.0, 2.0], rates=[0.01, 0.01, 0.01])

    def test_length_mismatch(self):
        """Test validation rejects dates/rates of different lengths."""
        with pytest.raises(ValueError, match="same length"):
            ZeroCurve(dates=[1.0, 2.0], rates=[0.01])

    def test_empty_curve(self):
        """Test validation rejects an empty curve."""
        with pytest.raises(ValueError, match="at least one pillar"):
            ZeroCurve(dates=[], rates=[])

    def test_from_frame_columns(self):
        """Test construction from date/rate columns (unsorted input)."""
        df = pd.DataFrame({"date": [5.0, 1.0], "rate": [0.025, 0.02]})
        curve = ZeroCurve.from_frame(df)
        np.testing.assert_array_equal(curve.dates, [1.0, 5.0])
        np.testing.assert_array_equal(curve.rates, [0.02, 0.025])

    def test_from_frame_index(self):
        """Test construction from a single column indexed by date."""
        df = pd.DataFrame({"zero": [0.02, 0.025]}, index=[1.0, 5.0])
        curve = ZeroCurve.from_frame(df)
        np.testing.assert_array_equal(curve.dates, [1.0, 5.0])

    def test_to_frame(self, curve):
        """Test conversion to a DataFrame."""
        df = curve.to_frame()
        assert list(df.columns) == ["date", "rate"]
        assert len(df) == 3

    def test_to_dict(self, curve):
        """Test conversion to dictionary."""
        d = curve.to_dict()
        assert d["dates"] == [1.0, 5.0, 10.0]
        assert d["rates"] == [0.02, 0.025, 0.03]


class TestVolatilitySurface:
    """Tests for VolatilitySurface."""

    def test_shape(self, sample_surface):
        """Test matrix shape matches the axes."""
        assert sample_surface.shape == (4, 4)

    def test_shape_mismatch(self):
        """Test validation rejects inconsistent matrix dimensions."""
        with pytest.raises(ValueError, match="shape"):
            VolatilitySurface(
                maturities=[1.0, 2.0],
                durations=[1.0, 2.0, 5.0],
                volatilities=[[0.2, 0.2], [0.2, 0.2]],
            )

    def test_frame_conversion(self, sample_surface):
        """Test DataFrame layout (maturity rows, duration columns)."""
        df = sample_surface.to_frame()
        assert df.index.name == "maturity"
        assert df.columns.name == "duration"
        assert df.loc[5.0, 10.0] == pytest.approx(0.20)

        surface = VolatilitySurface.from_frame(df)
        np.testing.assert_array_equal(surface.volatilities, sample_surface.volatilities)

    def test_empty_surface(self):
        """Test a surface without quotes is allowed."""
        surface = VolatilitySurface(maturities=[], durations=[], volatilities=[])
        assert surface.shape == (0, 0)


class TestInterestRateMarketData:
    """Tests for InterestRateMarketData."""

    def test_zero_curve(self):
        """Test curve construction from raw pillars."""
        data = InterestRateMarketData(zr_dates=[1.0, 2.0], zr_rates=[0.01, 0.02])
        curve = data.zero_curve()
        assert curve.zero_rate(1.5) == pytest.approx(0.015)

    def test_embedded_surface(self):
        """Test surface construction from embedded fields."""
        data = InterestRateMarketData(
            zr_dates=[1.0],
            zr_rates=[0.01],
            option_maturities=[1.0, 2.0],
            swap_durations=[5.0],
            swaptions_volatility=[[0.2], [0.3]],
        )
        surface = data.embedded_surface()
        assert surface.shape == (2, 1)
        assert surface.volatilities[1, 0] == pytest.approx(0.3)

    def test_defaults(self):
        """Test tenor is unset and quotes are log-normal by default."""
        data = InterestRateMarketData(zr_dates=[1.0], zr_rates=[0.01])
        assert data.swaption_tenor == 0.0
        assert data.vol_type == "lognormal"
        assert data.embedded_surface().shape == (0, 0)

    def test_missing_volatilities(self):
        """Test axes without volatilities are rejected, not zero-filled."""
        data = InterestRateMarketData(
            zr_dates=[1.0], zr_rates=[0.01], option_maturities=[5.0], swap_durations=[5.0]
        )
        with pytest.raises(ValueError, match="swaptions_volatility"):
            data.embedded_surface()

    def test_invalid_vol_type(self):
        """Test validation rejects unknown quote conventions."""
        with pytest.raises(ValueError, match="vol_type"):
            InterestRateMarketData(zr_dates=[1.0], zr_rates=[0.01], vol_type="shifted")


class TestFilterSurface:
    """Tests for surface filtering."""

    def test_default_criteria_keeps_everything(self, sample_surface):
        """Test the default criteria has the widest possible range."""
        grid = filter_volatility_surface(sample_surface, FilterCriteria())
        assert grid.shape == (4, 4)
        np.testing.assert_array_equal(grid.volatilities, sample_surface.volatilities)

    def test_inclusive_bounds(self, sample_surface):
        """Test bounds are inclusive on both ends of both axes."""
        criteria = FilterCriteria(
            min_maturity=2.0, max_maturity=5.0, min_duration=2.0, max_duration=5.0
        )
        grid = filter_volatility_surface(sample_surface, criteria)

        np.testing.assert_array_equal(grid.maturities, [2.0, 5.0])
        np.testing.assert_array_equal(grid.durations, [2.0, 5.0])
        np.testing.assert_array_equal(grid.volatilities, [[0.26, 0.24], [0.24, 0.22]])

    def test_every_cell_within_bounds(self, sample_surface):
        """Test all surviving cells satisfy the bounds and count = rows x cols."""
        rng = np.random.default_rng(7)
        for _ in range(25):
            lo_m, hi_m = np.sort(rng.uniform(0.0, 12.0, 2))
            lo_d, hi_d = np.sort(rng.uniform(0.0, 12.0, 2))
            criteria = FilterCriteria(lo_m, hi_m, lo_d, hi_d)
            grid = filter_volatility_surface(sample_surface, criteria)

            cells = list(grid.cells())
            assert len(cells) == len(grid.maturities) * len(grid.durations)
            for _, _, maturity, duration, _ in cells:
                assert lo_m <= maturity <= hi_m
                assert lo_d <= duration <= hi_d

    def test_order_preserved(self):
        """Test surviving rows and columns keep their input order."""
        grid = filter_surface(
            maturities=[10.0, 1.0, 5.0],
            durations=[5.0, 2.0],
            volatilities=[[0.1, 0.2], [0.3, 0.4], [0.5, 0.6]],
            criteria=FilterCriteria(max_maturity=9.0),
        )
        np.testing.assert_array_equal(grid.maturities, [1.0, 5.0])
        np.testing.assert_array_equal(grid.durations, [5.0, 2.0])
        np.testing.assert_array_equal(grid.volatilities, [[0.3, 0.4], [0.5, 0.6]])

    def test_empty_maturities(self, sample_surface):
        """Test bounds excluding all maturities give an empty grid, not an error."""
        grid = filter_volatility_surface(sample_surface, FilterCriteria(min_maturity=50.0))
        assert grid.is_empty
        assert grid.shape == (0, 4)
        assert list(grid.cells()) == []

    def test_min_greater_than_max(self, sample_surface):
        """Test inverted bounds give an empty grid."""
        grid = filter_volatility_surface(
            sample_surface, FilterCriteria(min_duration=5.0, max_duration=2.0)
        )
        assert grid.is_empty
        assert grid.shape == (4, 0)

    def test_shape_mismatch(self):
        """Test malformed matrices are rejected."""
        with pytest.raises(ValueError, match="shape"):
            filter_surface([1.0, 2.0], [1.0], [[0.2, 0.3]], FilterCriteria())

    def test_result_is_read_only(self, sample_grid):
        """Test the grid cannot be mutated."""
        assert isinstance(sample_grid, FilteredGrid)
        with pytest.raises(ValueError):
            sample_grid.volatilities[0, 0] = 1.0

    def test_logs_grid_size(self, sample_surface, caplog):
        """Test the calibration grid size is logged."""
        caplog.set_level(logging.INFO, logger="swaption_calibration.data.filtering")
        filter_volatility_surface(
            sample_surface, FilterCriteria(min_maturity=5.0, max_duration=2.0)
        )
        assert "Calibrating on 4 swaption prices [#maturities x #durations]=[2 x 2]" in caplog.text

    def test_criteria_to_dict(self):
        """Test criteria conversion to dictionary."""
        d = FilterCriteria(min_maturity=1.0).to_dict()
        assert d["min_maturity"] == 1.0
        assert d["max_maturity"] == math.inf
