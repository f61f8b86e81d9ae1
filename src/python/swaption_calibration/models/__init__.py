"""
Pricing models.

Contains implementations of:
- Black and Bachelier market formulas for swaptions
- Hull-White one-factor short-rate model with Jamshidian swaption pricing

Example:
    >>> from swaption_calibration.models import HullWhiteModel, HullWhiteParameters
    >>> model = HullWhiteModel(curve, HullWhiteParameters(alpha=0.05, sigma=0.01))
    >>> price = model.swaption_price(5.0, times, accruals, strike=0.02)
"""

from .black import bachelier_swaption_price, black_swaption_price
from .hull_white import PARAM_NAMES, HullWhiteModel, HullWhiteParameters, decay_factor

__all__ = [
    # Market formulas
    "black_swaption_price",
    "bachelier_swaption_price",
    # Hull-White
    "HullWhiteModel",
    "HullWhiteParameters",
    "PARAM_NAMES",
    "decay_factor",
]
