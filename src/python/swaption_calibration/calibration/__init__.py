"""
Model Calibration Engine.

Calibrates the Hull-White one-factor model to a swaption volatility surface:
- ReferencePricer: Black/Bachelier prices implied by quoted volatilities
- ModelPricer: Hull-White prices via Jamshidian's decomposition
- CalibrationObjective: Sum of squared price errors over the grid
- CalibrationOrchestrator: Global search then local refinement, with cancellation

Example:
    >>> from swaption_calibration.calibration import CalibrationOrchestrator
    >>> orchestrator = CalibrationOrchestrator()
    >>> result = orchestrator.calibrate(curve, surface, tenor_step=1.0)
    >>> print(f"Calibrated alpha: {result.params['Alpha']}")

References:
    - Hull & White (1990): "Pricing interest-rate-derivative securities"
    - Jamshidian (1989): "An exact bond option formula"
"""

from .pricing import (
    ANNUITY_FLOOR,
    PRICE_SCALE,
    CalibrationError,
    ModelPricer,
    PricingDomainError,
    ReferencePricer,
    SwapSchedule,
    SwaptionGridSchedule,
    swap_schedule,
)
from .objective import CalibrationObjective, ObjectiveDiagnostics
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
from .orchestrator import CalibrationOrchestrator, CalibrationResult, CalibrationStatus

__all__ = [
    # Pricing
    "ReferencePricer",
    "ModelPricer",
    "SwapSchedule",
    "SwaptionGridSchedule",
    "swap_schedule",
    "PRICE_SCALE",
    "ANNUITY_FLOOR",
    # Objective
    "CalibrationObjective",
    "ObjectiveDiagnostics",
    # Solvers
    "OptimizationAlgorithm",
    "DifferentialEvolutionSolver",
    "QuasiNewtonSolver",
    "DESettings",
    "LocalSolverSettings",
    "SolverSolution",
    "CalibrationController",
    "CANCELLED_MESSAGE",
    # Orchestration
    "CalibrationOrchestrator",
    "CalibrationResult",
    "CalibrationStatus",
    # Errors
    "CalibrationError",
    "PricingDomainError",
]
