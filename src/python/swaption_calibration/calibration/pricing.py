"""
Swaption grid pricing.

Turns a filtered volatility grid into price matrices:
  - ReferencePricer: market prices from quoted volatilities (Black/Bachelier)
  - ModelPricer: Hull-White prices for a candidate (alpha, sigma)

Both price at-the-money payer swaptions per cell, with the strike set to the
forward swap rate implied by the zero curve, and report prices per
PRICE_SCALE notional. Swap schedules depend only on the grid and tenor and
are built once per calibration call.

Example:
    >>> schedule = SwaptionGridSchedule.build(curve, grid, tenor_step=1.0)
    >>> reference = ReferencePricer(curve).price(grid, 1.0, schedule=schedule)
    >>> model = ModelPricer(curve).price(HullWhiteParameters(0.05, 0.01), grid, 1.0)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from ..data.filtering import FilteredGrid
from ..data.market import VOL_TYPES, ZeroCurve
from ..models.black import bachelier_swaption_price, black_swaption_price
from ..models.hull_white import HullWhiteModel, HullWhiteParameters

logger = logging.getLogger(__name__)

# Prices are quoted per 1000 of notional
PRICE_SCALE = 1000.0

# Smallest annuity accepted before a forward swap rate is considered undefined
ANNUITY_FLOOR = 1e-12

# Tolerance when deciding whether a duration is a whole number of periods
_SCHEDULE_EPS = 1e-9


class CalibrationError(Exception):
    """Raised when model calibration fails."""

    pass


class PricingDomainError(CalibrationError):
    """Raised when a price is undefined for the given curve, grid or parameters."""

    pass


@dataclass(frozen=True, eq=False)
class SwapSchedule:
    """
    Fixed-leg schedule of the swap underlying a swaption.

    Attributes:
        expiry: Option expiry, also the swap start date (years)
        payment_times: Fixed-leg payment times (years)
        accruals: Year fractions of each fixed-leg period
    """

    expiry: float
    payment_times: np.ndarray
    accruals: np.ndarray

    @property
    def end(self) -> float:
        return float(self.payment_times[-1])

    def annuity(self, zero_curve: ZeroCurve) -> float:
        """Present value of the fixed leg per unit rate."""
        return float(np.sum(self.accruals * zero_curve.discount_factor(self.payment_times)))

    def forward_rate(self, zero_curve: ZeroCurve, annuity: Optional[float] = None) -> float:
        """Forward swap rate (P(0, T0) - P(0, Tn)) / annuity."""
        if annuity is None:
            annuity = self.annuity(zero_curve)
        if not math.isfinite(annuity) or annuity < ANNUITY_FLOOR:
            raise PricingDomainError(
                f"Degenerate annuity {annuity!r} for swap "
                f"[{self.expiry:g}, {self.end:g}]"
            )
        start = zero_curve.discount_factor(self.expiry)
        end = zero_curve.discount_factor(self.end)
        return (start - end) / annuity


def swap_schedule(expiry: float, duration: float, tenor_step: float) -> SwapSchedule:
    """
    Build the fixed-leg schedule of a swap starting at expiry.

    Payments fall every tenor_step years; when duration is not a whole
    number of periods the last period is a short stub ending at
    expiry + duration.

    Raises:
        PricingDomainError: If duration or tenor_step is not positive
    """
    if not duration > 0:
        raise PricingDomainError(f"Swap duration must be positive, got {duration}")
    if not tenor_step > 0:
        raise PricingDomainError(f"Swap tenor must be positive, got {tenor_step}")

    offsets = np.arange(tenor_step, duration + _SCHEDULE_EPS, tenor_step)
    if len(offsets) == 0 or duration - offsets[-1] > _SCHEDULE_EPS:
        offsets = np.append(offsets, duration)
    else:
        offsets[-1] = duration

    accruals = np.diff(offsets, prepend=0.0)
    return SwapSchedule(
        expiry=float(expiry),
        payment_times=float(expiry) + offsets,
        accruals=accruals,
    )


@dataclass(frozen=True, eq=False)
class SwaptionGridSchedule:
    """
    Per-cell swap schedules, annuities and forward swap rates of a grid.

    Attributes:
        tenor_step: Fixed-leg payment step used to build the schedules
        schedules: Row-major nested list of SwapSchedule, one per grid cell
        annuities: Annuity matrix, same shape as the grid
        forwards: Forward swap rate matrix (ATM strikes), same shape as the grid
    """

    tenor_step: float
    schedules: List[List[SwapSchedule]]
    annuities: np.ndarray
    forwards: np.ndarray

    @property
    def shape(self):
        return self.annuities.shape

    @classmethod
    def build(
        cls, zero_curve: ZeroCurve, grid: FilteredGrid, tenor_step: float
    ) -> "SwaptionGridSchedule":
        """
        Build schedules for every cell of the grid.

        Raises:
            PricingDomainError: On non-positive duration/tenor or degenerate annuity
        """
        annuities = np.zeros(grid.shape)
        forwards = np.zeros(grid.shape)
        schedules: List[List[SwapSchedule]] = [[] for _ in grid.maturities]

        for i, j, maturity, duration, _ in grid.cells():
            schedule = swap_schedule(maturity, duration, tenor_step)
            annuity = schedule.annuity(zero_curve)
            forwards[i, j] = schedule.forward_rate(zero_curve, annuity)
            annuities[i, j] = annuity
            schedules[i].append(schedule)

        annuities.setflags(write=False)
        forwards.setflags(write=False)
        return cls(
            tenor_step=tenor_step,
            schedules=schedules,
            annuities=annuities,
            forwards=forwards,
        )


def _checked(prices: np.ndarray, what: str) -> np.ndarray:
    """Reject non-finite prices and freeze the matrix."""
    if not np.all(np.isfinite(prices)):
        bad = np.argwhere(~np.isfinite(prices))
        raise PricingDomainError(
            f"Non-finite {what} price at grid cells {bad.tolist()}"
        )
    prices.setflags(write=False)
    return prices


class ReferencePricer:
    """
    Market-implied swaption prices from a volatility grid.

    Quoted volatilities are converted to ATM payer swaption prices with the
    Black formula (log-normal quotes) or the Bachelier formula (normal
    quotes), using the forward swap rate and annuity implied by the curve.
    """

    def __init__(self, zero_curve: ZeroCurve, vol_type: str = "lognormal"):
        if vol_type not in VOL_TYPES:
            raise ValueError(f"vol_type must be one of {VOL_TYPES}, got {vol_type!r}")
        self.zero_curve = zero_curve
        self.vol_type = vol_type

    def forward_swap_rates(self, grid: FilteredGrid, tenor_step: float) -> np.ndarray:
        """Forward swap rate of every cell of the grid."""
        return SwaptionGridSchedule.build(self.zero_curve, grid, tenor_step).forwards

    def price(
        self,
        grid: FilteredGrid,
        tenor_step: float,
        schedule: Optional[SwaptionGridSchedule] = None,
    ) -> np.ndarray:
        """
        Reference price matrix for the grid.

        Args:
            grid: Filtered volatility grid
            tenor_step: Fixed-leg payment step in years
            schedule: Prebuilt schedules for this grid and tenor (optional)

        Returns:
            Read-only matrix of prices per PRICE_SCALE notional

        Raises:
            PricingDomainError: On degenerate annuity, non-positive forward
                under log-normal quotes, or non-finite prices
        """
        if schedule is None:
            schedule = SwaptionGridSchedule.build(self.zero_curve, grid, tenor_step)

        formula = (
            black_swaption_price if self.vol_type == "lognormal" else bachelier_swaption_price
        )

        prices = np.zeros(grid.shape)
        for i, j, maturity, duration, vol in grid.cells():
            forward = float(schedule.forwards[i, j])
            try:
                prices[i, j] = PRICE_SCALE * formula(
                    forward=forward,
                    strike=forward,
                    expiry=maturity,
                    volatility=vol,
                    annuity=float(schedule.annuities[i, j]),
                )
            except ValueError as e:
                raise PricingDomainError(
                    f"Cannot price swaption {maturity:g}x{duration:g}: {e}"
                ) from e

        return _checked(prices, "reference")


class ModelPricer:
    """
    Hull-White swaption prices on a grid.

    Uses the same curve, schedules and ATM strikes as the reference pricer so
    that the two matrices are directly comparable.
    """

    def __init__(self, zero_curve: ZeroCurve):
        self.zero_curve = zero_curve

    def prepare(self, grid: FilteredGrid, tenor_step: float) -> SwaptionGridSchedule:
        """Precompute the swap schedules of the grid."""
        return SwaptionGridSchedule.build(self.zero_curve, grid, tenor_step)

    def price(
        self,
        params: Union[HullWhiteParameters, Sequence[float]],
        grid: FilteredGrid,
        tenor_step: float,
        schedule: Optional[SwaptionGridSchedule] = None,
    ) -> np.ndarray:
        """
        Model price matrix for the grid.

        Args:
            params: Hull-White parameters or an [alpha, sigma] vector
            grid: Filtered grid (only maturities and durations are used)
            tenor_step: Fixed-leg payment step in years
            schedule: Prebuilt schedules from prepare() (optional)

        Returns:
            Read-only matrix of prices per PRICE_SCALE notional

        Raises:
            PricingDomainError: If the parameters are outside the model domain
                or a price is undefined
        """
        if not isinstance(params, HullWhiteParameters):
            params = HullWhiteParameters.from_array(params)
        if schedule is None:
            schedule = self.prepare(grid, tenor_step)

        try:
            model = HullWhiteModel(self.zero_curve, params)
        except ValueError as e:
            raise PricingDomainError(f"Invalid Hull-White parameters: {e}") from e

        prices = np.zeros(grid.shape)
        for i, j, maturity, duration, _ in grid.cells():
            cell = schedule.schedules[i][j]
            try:
                prices[i, j] = PRICE_SCALE * model.swaption_price(
                    expiry=cell.expiry,
                    payment_times=cell.payment_times,
                    accruals=cell.accruals,
                    strike=float(schedule.forwards[i, j]),
                )
            except ValueError as e:
                raise PricingDomainError(
                    f"Cannot price swaption {maturity:g}x{duration:g}: {e}"
                ) from e

        return _checked(prices, "model")
