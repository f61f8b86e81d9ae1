"""
Calibration objective.

Sum of squared differences between Hull-White and reference swaption
prices over the filtered grid. The grid, tenor, schedules and reference
prices are captured once; only the parameter vector changes between
evaluations, so the objective can sit in a solver's inner loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Sequence, Union

import numpy as np

from ..data.filtering import FilteredGrid
from ..models.hull_white import HullWhiteParameters
from .pricing import ModelPricer, SwaptionGridSchedule

if TYPE_CHECKING:
    import pandas as pd


@dataclass
class ObjectiveDiagnostics:
    """
    Per-cell breakdown of an objective evaluation.

    Attributes:
        maturities: Grid rows
        durations: Grid columns
        model_prices: Hull-White prices
        reference_prices: Market-implied prices
        value: Objective value (sum of squared errors)
    """

    maturities: np.ndarray
    durations: np.ndarray
    model_prices: np.ndarray
    reference_prices: np.ndarray
    value: float

    @property
    def errors(self) -> np.ndarray:
        """Model minus reference price per cell."""
        return self.model_prices - self.reference_prices

    @property
    def n_swaptions(self) -> int:
        return int(self.model_prices.size)

    @property
    def rmse(self) -> float:
        return float(np.sqrt(np.mean(self.errors**2)))

    @property
    def max_abs_error(self) -> float:
        return float(np.max(np.abs(self.errors)))

    def fit_quality(self) -> Dict[str, float]:
        """
        Fit quality metrics.

        Returns:
            dict: {
                'objective': sum of squared price errors,
                'rmse': root mean squared price error,
                'max_abs_error': maximum absolute price error,
                'mean_abs_error': mean absolute price error,
                'n_swaptions': number of calibration instruments
            }
        """
        return {
            "objective": float(self.value),
            "rmse": self.rmse,
            "max_abs_error": self.max_abs_error,
            "mean_abs_error": float(np.mean(np.abs(self.errors))),
            "n_swaptions": self.n_swaptions,
        }

    def to_frame(self) -> "pd.DataFrame":
        """Error matrix indexed by maturity with one column per duration."""
        import pandas as pd

        return pd.DataFrame(
            self.errors,
            index=pd.Index(self.maturities, name="maturity"),
            columns=pd.Index(self.durations, name="duration"),
        )


class CalibrationObjective:
    """
    Squared pricing error functional of the Hull-White parameters.

    Example:
        >>> objective = CalibrationObjective(ModelPricer(curve), reference, grid, 1.0)
        >>> value = objective([0.05, 0.01])
    """

    def __init__(
        self,
        model_pricer: ModelPricer,
        reference_prices: np.ndarray,
        grid: FilteredGrid,
        tenor_step: float,
        schedule: Optional[SwaptionGridSchedule] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize objective.

        Args:
            model_pricer: Hull-White grid pricer
            reference_prices: Reference price matrix, same shape as the grid
            grid: Filtered calibration grid
            tenor_step: Fixed-leg payment step in years
            schedule: Prebuilt schedules for this grid and tenor (optional)
            logger: Destination of diagnostics output (default: module logger)

        Raises:
            ValueError: If reference_prices does not match the grid shape
            PricingDomainError: If the grid schedules cannot be built
        """
        reference_prices = np.array(reference_prices, dtype=np.float64)
        if reference_prices.shape != grid.shape:
            raise ValueError(
                f"reference_prices must be of shape {grid.shape}, "
                f"got {reference_prices.shape}"
            )
        reference_prices.setflags(write=False)

        self.model_pricer = model_pricer
        self.reference_prices = reference_prices
        self.grid = grid
        self.tenor_step = tenor_step
        self.schedule = schedule or model_pricer.prepare(grid, tenor_step)
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._n_evaluations = 0

    @property
    def n_evaluations(self) -> int:
        """Number of objective evaluations so far."""
        return self._n_evaluations

    def model_prices(
        self, params: Union[HullWhiteParameters, Sequence[float]]
    ) -> np.ndarray:
        """Hull-White price matrix for the parameters."""
        return self.model_pricer.price(
            params, self.grid, self.tenor_step, schedule=self.schedule
        )

    def evaluate(
        self,
        params: Union[HullWhiteParameters, Sequence[float]],
        diagnostics: bool = False,
    ) -> float:
        """
        Sum of squared price errors.

        Args:
            params: Hull-White parameters or an [alpha, sigma] vector
            diagnostics: Log model prices and the per-cell error matrix

        Returns:
            Non-negative objective value

        Raises:
            PricingDomainError: If the model prices are undefined
        """
        self._n_evaluations += 1
        model_prices = self.model_prices(params)
        errors = model_prices - self.reference_prices
        value = float(np.sum(errors**2))

        if diagnostics:
            report = self._report(model_prices, value)
            self.logger.info(f"Model prices:\n{np.array2string(model_prices, precision=6)}")
            self.logger.info(f"Pricing errors:\n{report.to_frame().to_string()}")
            self.logger.info(f"Objective value: {value:.6e}")

        return value

    def __call__(self, x: Sequence[float]) -> float:
        return self.evaluate(x)

    def diagnostics(
        self, params: Union[HullWhiteParameters, Sequence[float]]
    ) -> ObjectiveDiagnostics:
        """Per-cell breakdown of the objective at the parameters."""
        model_prices = self.model_prices(params)
        value = float(np.sum((model_prices - self.reference_prices) ** 2))
        return self._report(model_prices, value)

    def _report(self, model_prices: np.ndarray, value: float) -> ObjectiveDiagnostics:
        return ObjectiveDiagnostics(
            maturities=self.grid.maturities,
            durations=self.grid.durations,
            model_prices=model_prices,
            reference_prices=self.reference_prices,
            value=value,
        )
