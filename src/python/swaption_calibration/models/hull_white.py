"""
Hull-White one-factor short-rate model.

The model (extended Vasicek, fitted to the initial zero curve):
    dr_t = (θ(t) - α r_t) dt + σ dW_t

Parameters:
    α (alpha): Mean-reversion speed
    σ (sigma): Short-rate volatility

European swaptions are priced in closed form with Jamshidian's
decomposition. Zero-coupon bond prices at expiry T are written in terms of
a Gaussian state x ~ N(0, v) under the T-forward measure:

    P(T, T_i) = P(0, T_i) / P(0, T) * exp(-B_i x - B_i² v / 2)
    B_i = (1 - exp(-α (T_i - T))) / α
    v   = σ² (1 - exp(-2 α T)) / (2 α)

The payer swaption is a put on the coupon bond; the critical state x* at
which the coupon bond is worth par splits it into a sum of bond options.
With a non-positive coupon the critical state need not be unique, and the
price is the exact Gaussian expectation over the exercise region.
Every α-dependent factor has a removable singularity at α = 0 and is
evaluated through its continuous limit there.

Reference:
    Jamshidian, F. (1989). "An exact bond option formula."
    Journal of Finance, 44(1), 205-209.
    Brigo, D., & Mercurio, F. (2006). "Interest Rate Models - Theory and
    Practice", 2nd ed., Section 3.3.
"""

import math
from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np
from scipy.optimize import brentq
from scipy.special import logsumexp
from scipy.stats import norm

from ..data.market import ZeroCurve

PARAM_NAMES = ("Alpha", "Sigma")

# |k| below which (1 - exp(-k t)) / k is replaced by its series in k
_SMALL_RATE = 1e-12


def decay_factor(k: float, t):
    """
    (1 - exp(-k t)) / k, continuous in k.

    Equals t in the limit k -> 0.
    """
    t = np.asarray(t, dtype=np.float64)
    if abs(k) < _SMALL_RATE:
        kt = k * t
        return t * (1.0 - kt / 2.0 + kt * kt / 6.0)
    return -np.expm1(-k * t) / k


@dataclass
class HullWhiteParameters:
    """
    Hull-White one-factor parameters.

    Attributes:
        alpha: Mean-reversion speed (any finite value, 0 allowed)
        sigma: Short-rate volatility (>= 0)
    """

    alpha: float
    sigma: float

    def is_valid(self) -> bool:
        """Check if parameters are in the model's domain."""
        return (
            math.isfinite(self.alpha)
            and math.isfinite(self.sigma)
            and self.sigma >= 0
        )

    def validate(self) -> None:
        """Validate parameters and raise ValueError if invalid."""
        if not math.isfinite(self.alpha):
            raise ValueError(f"alpha must be finite, got {self.alpha}")
        if not math.isfinite(self.sigma):
            raise ValueError(f"sigma must be finite, got {self.sigma}")
        if self.sigma < 0:
            raise ValueError(f"sigma must be non-negative, got {self.sigma}")

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [alpha, sigma]."""
        return np.array([self.alpha, self.sigma])

    @classmethod
    def from_array(cls, arr: Sequence[float]) -> "HullWhiteParameters":
        """Create from array [alpha, sigma]."""
        if len(arr) != 2:
            raise ValueError(f"Expected 2 parameters, got {len(arr)}")
        return cls(alpha=float(arr[0]), sigma=float(arr[1]))

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary keyed by the published parameter names."""
        return dict(zip(PARAM_NAMES, (self.alpha, self.sigma)))


class HullWhiteModel:
    """
    Hull-White one-factor model fitted to a zero curve.

    Example:
        >>> curve = ZeroCurve.flat(0.02)
        >>> model = HullWhiteModel(curve, HullWhiteParameters(alpha=0.05, sigma=0.01))
        >>> times = np.arange(6.0, 11.0)
        >>> price = model.swaption_price(5.0, times, np.ones(5), strike=0.0202)
    """

    def __init__(self, zero_curve: ZeroCurve, params: HullWhiteParameters):
        params.validate()
        self.zero_curve = zero_curve
        self.params = params

    def B(self, tau):
        """Bond price sensitivity B(t, t + tau) to the short rate."""
        return decay_factor(self.params.alpha, tau)

    def state_variance(self, expiry: float) -> float:
        """Variance of the Gaussian state at expiry under the expiry-forward measure."""
        return float(self.params.sigma**2 * decay_factor(2.0 * self.params.alpha, expiry))

    def swaption_price(
        self,
        expiry: float,
        payment_times: np.ndarray,
        accruals: np.ndarray,
        strike: float,
        is_payer: bool = True,
    ) -> float:
        """
        Price a European swaption per unit notional.

        Coupon bonds with a non-positive coupon (negative strikes) are priced
        by integrating the payoff over the exercise region instead.

        Args:
            expiry: Option expiry (swap start) in years
            payment_times: Fixed-leg payment times (> expiry)
            accruals: Year fractions of the fixed-leg periods
            strike: Fixed rate of the underlying swap
            is_payer: Payer or receiver swaption

        Returns:
            Swaption price per unit notional
        """
        payment_times = np.asarray(payment_times, dtype=np.float64)
        accruals = np.asarray(accruals, dtype=np.float64)

        p_expiry = self.zero_curve.discount_factor(expiry)
        forward_bonds = self.zero_curve.discount_factor(payment_times) / p_expiry

        coupons = strike * accruals
        coupons[-1] += 1.0
        weights = coupons * forward_bonds

        variance = self.state_variance(expiry)
        if variance <= 0.0:
            # Deterministic rates: the option is worth its intrinsic value
            coupon_bond = float(np.sum(weights))
            if is_payer:
                return p_expiry * max(1.0 - coupon_bond, 0.0)
            return p_expiry * max(coupon_bond - 1.0, 0.0)

        std = math.sqrt(variance)
        b = self.B(payment_times - expiry)

        if np.any(weights <= 0.0):
            price = self._exercise_region_price(weights, b, variance, is_payer)
            return max(float(p_expiry * price), 0.0)

        x_star = self._critical_state(np.log(weights), b, variance)
        d = x_star / std

        if is_payer:
            price = norm.cdf(-d) - np.sum(weights * norm.cdf(-d - b * std))
        else:
            price = np.sum(weights * norm.cdf(d + b * std)) - norm.cdf(d)

        return max(float(p_expiry * price), 0.0)

    @staticmethod
    def _critical_state(log_weights: np.ndarray, b: np.ndarray, variance: float) -> float:
        """
        State x* at which the coupon bond is worth par at expiry.

        Solves log(sum_i w_i exp(-b_i x - b_i² v / 2)) = 0. The left-hand
        side is strictly decreasing in x, and an exact bracket follows from
        max_i(term_i) <= lse <= log(n) + max_i(term_i).
        """
        exponents = log_weights - 0.5 * b * b * variance

        def log_coupon_bond(x: float) -> float:
            return float(logsumexp(exponents - b * x))

        lower = float(np.min(exponents / b))
        upper = float(np.max((exponents + math.log(len(b))) / b))

        if upper - lower <= 0.0 or log_coupon_bond(lower) <= 0.0:
            return lower
        if log_coupon_bond(upper) >= 0.0:
            return upper

        return brentq(log_coupon_bond, lower, upper, xtol=1e-14)

    @staticmethod
    def _exercise_region_price(
        weights: np.ndarray, b: np.ndarray, variance: float, is_payer: bool
    ) -> float:
        """
        Forward swaption value E[(±(1 - bond(x)))+] for coupons of any sign.

        bond(x) = sum_i w_i exp(-b_i x - b_i² v / 2) and x ~ N(0, v). The
        roots of bond(x) = 1 are bracketed on a grid over ±12 standard
        deviations and refined with brentq. On each interval where the
        option is exercised the expectation is exact, because
        exp(-b_i x - b_i² v / 2) φ_v(x) = φ_v(x + b_i v).
        """
        std = math.sqrt(variance)
        sign = 1.0 if is_payer else -1.0
        shifts = b * variance

        def payoff(x: float) -> float:
            bond = float(np.sum(weights * np.exp(-b * x - 0.5 * b * b * variance)))
            return sign * (1.0 - bond)

        grid = np.linspace(-12.0 * std, 12.0 * std, 481)
        bonds = np.exp(-np.outer(grid, b) - 0.5 * b * b * variance) @ weights
        values = sign * (1.0 - bonds)

        boundaries = [grid[0]]
        for i in np.nonzero(np.sign(values[:-1]) * np.sign(values[1:]) < 0)[0]:
            boundaries.append(brentq(payoff, grid[i], grid[i + 1], xtol=1e-14))
        boundaries.append(grid[-1])

        price = 0.0
        for k, (lo, hi) in enumerate(zip(boundaries[:-1], boundaries[1:])):
            if payoff(0.5 * (lo + hi)) <= 0.0:
                continue
            # Tail intervals extend to infinity
            lo = -np.inf if k == 0 else lo
            hi = np.inf if k == len(boundaries) - 2 else hi
            mass = norm.cdf(hi / std) - norm.cdf(lo / std)
            bond_mass = np.sum(
                weights * (norm.cdf((hi + shifts) / std) - norm.cdf((lo + shifts) / std))
            )
            price += sign * (mass - bond_mass)

        return price
