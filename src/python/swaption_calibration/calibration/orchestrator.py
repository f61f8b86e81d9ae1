"""
Calibration Orchestrator.

Runs a Hull-White one-factor calibration against a swaption volatility
surface:
- Filter the surface down to the calibration grid
- Price reference swaptions from the quoted volatilities
- Stage 1: global search (differential evolution)
- Stage 2: local refinement (L-BFGS-B) seeded from stage 1

Every expected failure (empty grid, undefined price, solver error,
cancellation) ends the pipeline and is returned as a FAILED result with a
message; nothing but programmer errors escapes calibrate().

Architecture:
    Surface → Filter → ReferencePricer ─┐
                                        ├→ Objective → [Global → Local] → Result
    Curve ────────────→ ModelPricer ────┘
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import CalibrationConfig
from ..data.filtering import (
    EMPTY_FILTER_MESSAGE,
    FilterCriteria,
    filter_volatility_surface,
)
from ..data.market import InterestRateMarketData, VolatilitySurface, ZeroCurve
from ..models.hull_white import PARAM_NAMES, HullWhiteParameters
from .objective import CalibrationObjective
from .pricing import ModelPricer, PricingDomainError, ReferencePricer
from .solvers import (
    CANCELLED_MESSAGE,
    CalibrationController,
    DESettings,
    DifferentialEvolutionSolver,
    LocalSolverSettings,
    OptimizationAlgorithm,
    QuasiNewtonSolver,
    SolverSolution,
)

logger = logging.getLogger(__name__)


class CalibrationStatus(Enum):
    """Status of a calibration run."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class CalibrationResult:
    """
    Result of a Hull-White calibration.

    Attributes:
        status: SUCCESS or FAILED
        message: Failure cause (empty on success)
        param_names: Parameter names ("Alpha", "Sigma") on success
        param_values: Calibrated [alpha, sigma] on success, None on failure
        zr_dates: Zero curve dates echoed on success
        zr_rates: Zero curve rates echoed on success
        objective_value: Final sum of squared price errors
        fit_quality: Fit quality metrics (RMSE, max error, ...)
        stages: Per-stage solver summaries
        warnings: Non-fatal diagnostics raised during the run
        timestamp: Calibration timestamp
        total_time: Wall-clock duration in seconds
    """

    status: CalibrationStatus
    message: str = ""
    param_names: Tuple[str, ...] = ()
    param_values: Optional[np.ndarray] = None
    zr_dates: Optional[np.ndarray] = None
    zr_rates: Optional[np.ndarray] = None
    objective_value: Optional[float] = None
    fit_quality: Dict[str, float] = field(default_factory=dict)
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)
    total_time: float = 0.0

    @property
    def success(self) -> bool:
        """Check if calibration was successful."""
        return self.status == CalibrationStatus.SUCCESS

    @property
    def params(self) -> Dict[str, float]:
        """Calibrated parameters by name (empty on failure)."""
        if self.param_values is None:
            return {}
        return {name: float(v) for name, v in zip(self.param_names, self.param_values)}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "status": self.status.value,
            "success": self.success,
            "message": self.message,
            "params": self.params,
            "zr_dates": None if self.zr_dates is None else self.zr_dates.tolist(),
            "zr_rates": None if self.zr_rates is None else self.zr_rates.tolist(),
            "objective_value": self.objective_value,
            "fit_quality": self.fit_quality,
            "stages": self.stages,
            "warnings": self.warnings,
            "timestamp": self.timestamp.isoformat(),
            "total_time": self.total_time,
        }

    def summary(self) -> str:
        """Human-readable one-line summary."""
        if not self.success:
            return f"FAILED: {self.message}"
        params = ", ".join(f"{k}={v:.6g}" for k, v in self.params.items())
        return f"SUCCESS: {params}, objective={self.objective_value:.3e}"


class CalibrationOrchestrator:
    """
    Two-stage Hull-White calibration to a swaption volatility surface.

    Stage 1: Global search with Differential Evolution
        - Coarse exploration from the initial guess (0.1, 0.1)
        - Small population and generation budget

    Stage 2: Local refinement with L-BFGS-B
        - Seeded from the stage 1 solution
        - Central finite-difference gradients, tight tolerances

    Solvers are injected; any OptimizationAlgorithm can replace the defaults.

    Example:
        >>> orchestrator = CalibrationOrchestrator()
        >>> result = orchestrator.calibrate(
        ...     zero_curve=ZeroCurve.flat(0.02),
        ...     surface=VolatilitySurface([5.0], [5.0], [[0.01]]),
        ...     tenor_step=1.0,
        ... )
        >>> if result.success:
        ...     print(result.params)
    """

    def __init__(
        self,
        config: Optional[CalibrationConfig] = None,
        global_solver: Optional[OptimizationAlgorithm] = None,
        local_solver: Optional[OptimizationAlgorithm] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize calibration orchestrator.

        Args:
            config: Calibration configuration
            global_solver: Stage 1 solver (default: DifferentialEvolutionSolver)
            local_solver: Stage 2 solver (default: QuasiNewtonSolver)
            logger: Destination of progress and diagnostics output
        """
        self.config = config or CalibrationConfig()
        self.global_solver = global_solver or DifferentialEvolutionSolver()
        self.local_solver = local_solver or QuasiNewtonSolver()
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def calibrate(
        self,
        zero_curve: ZeroCurve,
        surface: VolatilitySurface,
        criteria: Optional[FilterCriteria] = None,
        tenor_step: Optional[float] = None,
        controller: Optional[CalibrationController] = None,
        vol_type: Optional[str] = None,
    ) -> CalibrationResult:
        """
        Calibrate Hull-White parameters to a swaption volatility surface.

        Args:
            zero_curve: Discount curve
            surface: Swaption volatility surface
            criteria: Maturity/duration bounds (default: keep everything)
            tenor_step: Fixed-leg payment step in years (None or 0: default)
            controller: Cancellation controller (optional)
            vol_type: Quote convention (default: config.vol_type)

        Returns:
            CalibrationResult (FAILED with a message on any expected failure)

        Raises:
            ValueError: On malformed inputs (programmer error)
        """
        start_time = time.time()
        criteria = criteria or FilterCriteria()
        vol_type = vol_type or self.config.vol_type
        warnings: List[str] = []

        tenor_step = self._resolve_tenor(tenor_step, warnings)

        grid = filter_volatility_surface(surface, criteria)
        if grid.is_empty:
            return self._failure(EMPTY_FILTER_MESSAGE, warnings, start_time)

        try:
            model_pricer = ModelPricer(zero_curve)
            schedule = model_pricer.prepare(grid, tenor_step)
            reference_prices = ReferencePricer(zero_curve, vol_type).price(
                grid, tenor_step, schedule=schedule
            )
        except PricingDomainError as e:
            return self._failure(str(e), warnings, start_time)

        self.logger.info(f"Maturities: {grid.maturities}")
        self.logger.info(f"Swap durations: {grid.durations}")
        self.logger.info(
            f"Reference ({vol_type}) prices:\n"
            f"{np.array2string(reference_prices, precision=6)}"
        )

        objective = CalibrationObjective(
            model_pricer,
            reference_prices,
            grid,
            tenor_step,
            schedule=schedule,
            logger=self.logger,
        )

        stages: Dict[str, Dict[str, Any]] = {}
        if controller is not None and controller.is_cancelled:
            return self._failure(CANCELLED_MESSAGE, warnings, start_time, stages)

        x0 = np.asarray(self.config.initial_guess, dtype=np.float64)

        global_solution = None
        if self.config.global_search:
            self.logger.info("Stage 1: Global search with Differential Evolution")
            global_solution = self._global_search(objective, x0, controller)
            stages["global"] = global_solution.to_dict()
            if global_solution.errors:
                return self._failure(global_solution.message, warnings, start_time, stages)

        seed = global_solution.x if global_solution is not None else x0
        self.logger.info("Stage 2: Local refinement with L-BFGS-B")
        local_solution = self._local_refinement(objective, seed, controller)
        stages["local"] = local_solution.to_dict()
        if local_solution.errors:
            return self._failure(local_solution.message, warnings, start_time, stages)

        params = HullWhiteParameters.from_array(local_solution.x)
        self.logger.info(f"Solution: {params.to_dict()}")
        self.logger.info("Hull-White model prices and errors")

        try:
            objective_value = objective.evaluate(params, diagnostics=True)
            fit_quality = objective.diagnostics(params).fit_quality()
        except PricingDomainError as e:
            return self._failure(str(e), warnings, start_time, stages)

        result = CalibrationResult(
            status=CalibrationStatus.SUCCESS,
            param_names=PARAM_NAMES,
            param_values=params.to_array(),
            zr_dates=np.array(zero_curve.dates),
            zr_rates=np.array(zero_curve.rates),
            objective_value=objective_value,
            fit_quality=fit_quality,
            stages=stages,
            warnings=warnings,
            total_time=time.time() - start_time,
        )

        self.logger.info(
            f"Calibration successful: objective={objective_value:.4e}, "
            f"RMSE={fit_quality['rmse']:.4e}, "
            f"evaluations={objective.n_evaluations}, "
            f"Time={result.total_time:.2f}s"
        )

        return result

    def estimate(
        self,
        market_data: InterestRateMarketData,
        vol_matrix: Optional[VolatilitySurface] = None,
        criteria: Optional[FilterCriteria] = None,
        controller: Optional[CalibrationController] = None,
    ) -> CalibrationResult:
        """
        Calibrate from a host market-data bundle.

        A dedicated vol_matrix takes precedence over the surface embedded in
        market_data. The tenor and quote convention come from market_data.
        """
        surface = vol_matrix if vol_matrix is not None else market_data.embedded_surface()
        return self.calibrate(
            zero_curve=market_data.zero_curve(),
            surface=surface,
            criteria=criteria,
            tenor_step=market_data.swaption_tenor,
            controller=controller,
            vol_type=market_data.vol_type,
        )

    def _resolve_tenor(self, tenor_step: Optional[float], warnings: List[str]) -> float:
        """Substitute the default tenor when unset or unusable."""
        default = self.config.default_tenor_step

        if tenor_step is None or tenor_step == 0:
            message = f"Swaption tenor not set, using default ({default:g})"
        elif not math.isfinite(tenor_step) or tenor_step < 0:
            message = f"Invalid swaption tenor {tenor_step}, using default ({default:g})"
        else:
            return float(tenor_step)

        self.logger.warning(message)
        warnings.append(message)
        return default

    def _global_search(
        self,
        objective: CalibrationObjective,
        x0: Sequence[float],
        controller: Optional[CalibrationController],
    ) -> SolverSolution:
        """Stage 1: coarse global search."""
        settings = DESettings(
            population_size=self.config.de_population_size,
            max_iterations=self.config.de_max_iterations,
            bounds=self.config.bounds,
            seed=self.config.de_seed,
            tolerance=self.config.de_tolerance,
            verbosity=self.config.verbosity,
            controller=controller,
        )
        solution = self.global_solver.minimize(objective, settings, x0)

        self.logger.debug(
            f"Global search: errors={solution.errors}, x={solution.x}, "
            f"obj={solution.fun:.6e}, nit={solution.n_iterations}"
        )
        return solution

    def _local_refinement(
        self,
        objective: CalibrationObjective,
        x0: Sequence[float],
        controller: Optional[CalibrationController],
    ) -> SolverSolution:
        """Stage 2: gradient-based refinement with numerical derivatives."""
        settings = LocalSolverSettings(
            epsilon=self.config.local_epsilon,
            h=self.config.local_h,
            max_iterations=self.config.local_max_iterations,
            # Objective evaluations are cheap, so central differences are affordable
            accurate_numerical_derivatives=self.config.accurate_numerical_derivatives,
            bounds=self.config.bounds,
            verbosity=self.config.verbosity,
            controller=controller,
        )
        solution = self.local_solver.minimize(objective, settings, x0)

        self.logger.debug(
            f"Local refinement: errors={solution.errors}, x={solution.x}, "
            f"obj={solution.fun:.6e}, nit={solution.n_iterations}"
        )
        return solution

    def _failure(
        self,
        message: str,
        warnings: List[str],
        start_time: float,
        stages: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> CalibrationResult:
        self.logger.error(f"Calibration failed: {message}")
        return CalibrationResult(
            status=CalibrationStatus.FAILED,
            message=message,
            stages=stages or {},
            warnings=warnings,
            total_time=time.time() - start_time,
        )
