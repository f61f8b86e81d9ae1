"""
Swaption Calibration

Calibration of the Hull-White one-factor short-rate model to a market
surface of at-the-money swaption volatilities.

Core components:
- Zero curve and volatility surface value objects with surface filtering
- Black/Bachelier reference pricing of the swaption grid
- Closed-form Hull-White swaption pricing (Jamshidian decomposition)
- Two-stage calibration: differential evolution, then L-BFGS-B
- Cooperative cancellation of running calibrations

Usage:
    # As a library
    from swaption_calibration import CalibrationOrchestrator, ZeroCurve, VolatilitySurface
    result = CalibrationOrchestrator().calibrate(curve, surface, tenor_step=1.0)

    # As a CLI
    $ swaption-calibration calibrate --zero-curve curve.csv --surface vols.csv
"""

__version__ = "1.0.0"
__author__ = "Quantitative Research Team"

from .calibration import (
    CalibrationController,
    CalibrationError,
    CalibrationOrchestrator,
    CalibrationResult,
    CalibrationStatus,
    PricingDomainError,
)
from .config import CalibrationConfig, Config, load_config
from .data import FilterCriteria, InterestRateMarketData, VolatilitySurface, ZeroCurve
from .models import HullWhiteModel, HullWhiteParameters

__all__ = [
    "__version__",
    # Data
    "ZeroCurve",
    "VolatilitySurface",
    "InterestRateMarketData",
    "FilterCriteria",
    # Models
    "HullWhiteModel",
    "HullWhiteParameters",
    # Calibration
    "CalibrationOrchestrator",
    "CalibrationResult",
    "CalibrationStatus",
    "CalibrationController",
    "CalibrationError",
    "PricingDomainError",
    # Config
    "Config",
    "CalibrationConfig",
    "load_config",
]
