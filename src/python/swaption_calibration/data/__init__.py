"""
Market data for swaption calibration.

- ZeroCurve, VolatilitySurface, InterestRateMarketData: read-only inputs
- FilterCriteria, FilteredGrid, filter_surface: calibration grid selection
"""

from .market import InterestRateMarketData, VolatilitySurface, ZeroCurve, VOL_TYPES
from .filtering import (
    EMPTY_FILTER_MESSAGE,
    FilterCriteria,
    FilteredGrid,
    filter_surface,
    filter_volatility_surface,
)

__all__ = [
    # Market data
    "ZeroCurve",
    "VolatilitySurface",
    "InterestRateMarketData",
    "VOL_TYPES",
    # Filtering
    "FilterCriteria",
    "FilteredGrid",
    "filter_surface",
    "filter_volatility_surface",
    "EMPTY_FILTER_MESSAGE",
]
