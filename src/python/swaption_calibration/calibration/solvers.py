"""
Optimization algorithms used by the calibration.

Wraps SciPy optimizers behind a common interface:
  - DifferentialEvolutionSolver: coarse global search
  - QuasiNewtonSolver: L-BFGS-B local refinement with finite-difference gradients

Solvers never raise. Exceptions, cancellation and non-finite results are
reported through SolverSolution.errors with a human-readable message, so the
orchestrator can stop the pipeline without unwinding the stack. Running out
of iterations is not an error: the best point found is returned with
converged=False.

Cancellation is polled between iterations through a CalibrationController;
an objective evaluation that is already running always completes.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import differential_evolution, minimize

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Calibration aborted: cancellation requested"

# Default search box for (alpha, sigma)
DEFAULT_BOUNDS: Tuple[Tuple[float, float], ...] = ((0.0, 1.0), (1e-6, 0.5))


class CalibrationController:
    """
    Thread-safe cancellation flag shared between a host and a running calibration.

    Example:
        >>> controller = CalibrationController()
        >>> # hand controller to calibrate() running in a worker thread, then
        >>> controller.cancel()
    """

    def __init__(self):
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Request the running calibration to stop at the next iteration boundary."""
        self._cancelled.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def reset(self) -> None:
        self._cancelled.clear()


class _Aborted(Exception):
    """Raised from a solver callback to unwind a cancelled SciPy run."""


@dataclass
class SolverSolution:
    """
    Outcome of a solver run.

    Attributes:
        x: Best parameter vector found (the starting point if the run failed early)
        fun: Objective value at x (nan if unknown)
        errors: True if the run failed or was cancelled
        message: Solver message (failure cause when errors is True)
        n_iterations: Iterations/generations completed
        n_evaluations: Objective evaluations performed
        converged: Whether the solver reported convergence
    """

    x: np.ndarray
    fun: float = float("nan")
    errors: bool = False
    message: str = ""
    n_iterations: int = 0
    n_evaluations: int = 0
    converged: bool = False

    @classmethod
    def failure(cls, message: str, x: Sequence[float], **kwargs) -> "SolverSolution":
        return cls(x=np.asarray(x, dtype=np.float64), errors=True, message=message, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "x": self.x.tolist(),
            "fun": float(self.fun),
            "errors": self.errors,
            "message": self.message,
            "n_iterations": self.n_iterations,
            "n_evaluations": self.n_evaluations,
            "converged": self.converged,
        }


@dataclass
class DESettings:
    """
    Differential evolution settings.

    Attributes:
        population_size: Total population size (split across dimensions for SciPy)
        max_iterations: Maximum number of generations
        bounds: Search box, one (low, high) pair per parameter
        seed: Random seed for reproducible runs
        tolerance: Relative convergence tolerance of the population spread
        verbosity: 0 silent, 1 per-generation log, 2 also SciPy output
        controller: Cancellation controller (optional)
    """

    population_size: int = 20
    max_iterations: int = 5
    bounds: Sequence[Tuple[float, float]] = DEFAULT_BOUNDS
    seed: Optional[int] = 42
    tolerance: float = 0.01
    verbosity: int = 1
    controller: Optional[CalibrationController] = None


@dataclass
class LocalSolverSettings:
    """
    Gradient-based local solver settings.

    Attributes:
        epsilon: Convergence tolerance on objective decrease and projected gradient
        h: Relative finite-difference step
        max_iterations: Maximum number of iterations
        accurate_numerical_derivatives: Central (3-point) instead of forward differences
        bounds: Search box, one (low, high) pair per parameter
        verbosity: 0 silent, 1 per-iteration debug log
        controller: Cancellation controller (optional)
    """

    epsilon: float = 1e-7
    h: float = 1e-7
    max_iterations: int = 1000
    accurate_numerical_derivatives: bool = True
    bounds: Sequence[Tuple[float, float]] = DEFAULT_BOUNDS
    verbosity: int = 1
    controller: Optional[CalibrationController] = None


class OptimizationAlgorithm(ABC):
    """
    Minimizer of a scalar objective.

    Implementations must not raise: every failure is reported through the
    returned SolverSolution.
    """

    name = "solver"

    @abstractmethod
    def minimize(
        self,
        problem: Callable[[np.ndarray], float],
        settings: Any,
        initial_guess: Sequence[float],
    ) -> SolverSolution:
        """
        Minimize problem starting from initial_guess.

        Args:
            problem: Objective function of the parameter vector
            settings: Algorithm-specific settings
            initial_guess: Starting point

        Returns:
            SolverSolution (errors=True on failure or cancellation)
        """

    @staticmethod
    def _check_cancelled(controller: Optional[CalibrationController]) -> None:
        if controller is not None and controller.is_cancelled:
            raise _Aborted()

    def _solution_from(self, result, n_iterations: int) -> SolverSolution:
        """Translate a SciPy OptimizeResult."""
        x = np.asarray(result.x, dtype=np.float64)
        fun = float(result.fun)
        message = str(result.message)

        if not (np.all(np.isfinite(x)) and np.isfinite(fun)):
            logger.error(f"{self.name} returned a non-finite solution: x={x}, fun={fun}")
            return SolverSolution.failure(
                f"{self.name} returned a non-finite solution: {message}",
                x,
                fun=fun,
                n_iterations=n_iterations,
                n_evaluations=int(result.nfev),
            )

        if not result.success:
            logger.warning(f"{self.name} did not converge: {message}")

        return SolverSolution(
            x=x,
            fun=fun,
            errors=False,
            message=message,
            n_iterations=n_iterations,
            n_evaluations=int(result.nfev),
            converged=bool(result.success),
        )


def _clip_to_bounds(x: Sequence[float], bounds: Sequence[Tuple[float, float]]) -> np.ndarray:
    lower = np.array([b[0] for b in bounds], dtype=np.float64)
    upper = np.array([b[1] for b in bounds], dtype=np.float64)
    return np.clip(np.asarray(x, dtype=np.float64), lower, upper)


class DifferentialEvolutionSolver(OptimizationAlgorithm):
    """
    Global search with SciPy's differential evolution.

    The initial guess is injected into the starting population and polishing
    is left to the local stage.
    """

    name = "Differential evolution"

    def minimize(
        self,
        problem: Callable[[np.ndarray], float],
        settings: DESettings,
        initial_guess: Sequence[float],
    ) -> SolverSolution:
        controller = settings.controller
        if controller is not None and controller.is_cancelled:
            return SolverSolution.failure(CANCELLED_MESSAGE, initial_guess)

        bounds = [tuple(b) for b in settings.bounds]
        x0 = _clip_to_bounds(initial_guess, bounds)
        popsize = max(1, settings.population_size // len(bounds))
        n_iterations = 0

        def callback(xk, convergence=None):
            nonlocal n_iterations
            n_iterations += 1
            if settings.verbosity > 0:
                logger.info(f"DE generation {n_iterations}: best x={np.round(xk, 8)}")
            self._check_cancelled(controller)

        try:
            result = differential_evolution(
                problem,
                bounds=bounds,
                maxiter=settings.max_iterations,
                popsize=popsize,
                tol=settings.tolerance,
                seed=settings.seed,
                x0=x0,
                callback=callback,
                disp=settings.verbosity > 1,
                workers=1,
                updating="immediate",
                polish=False,  # Local stage refines
            )
        except _Aborted:
            logger.warning(f"{self.name} cancelled after {n_iterations} generations")
            return SolverSolution.failure(CANCELLED_MESSAGE, x0, n_iterations=n_iterations)
        except Exception as e:
            logger.error(f"{self.name} failed: {e}")
            return SolverSolution.failure(
                f"{self.name} failed: {e}", x0, n_iterations=n_iterations
            )

        logger.debug(
            f"Global optimization: converged={result.success}, "
            f"obj={result.fun:.6e}, nit={result.nit}"
        )
        return self._solution_from(result, n_iterations=int(result.nit))


class QuasiNewtonSolver(OptimizationAlgorithm):
    """
    Local refinement with SciPy's L-BFGS-B.

    The objective has no analytic gradient; it is approximated by finite
    differences with relative step settings.h, using central differences
    when settings.accurate_numerical_derivatives is set.
    """

    name = "L-BFGS-B"

    def minimize(
        self,
        problem: Callable[[np.ndarray], float],
        settings: LocalSolverSettings,
        initial_guess: Sequence[float],
    ) -> SolverSolution:
        controller = settings.controller
        if controller is not None and controller.is_cancelled:
            return SolverSolution.failure(CANCELLED_MESSAGE, initial_guess)

        bounds = [tuple(b) for b in settings.bounds]
        x0 = _clip_to_bounds(initial_guess, bounds)
        jac = "3-point" if settings.accurate_numerical_derivatives else "2-point"
        n_iterations = 0

        def callback(xk):
            nonlocal n_iterations
            n_iterations += 1
            if settings.verbosity > 0:
                logger.debug(f"L-BFGS-B iteration {n_iterations}: x={xk}")
            self._check_cancelled(controller)

        try:
            result = minimize(
                problem,
                x0=x0,
                method="L-BFGS-B",
                jac=jac,
                bounds=bounds,
                callback=callback,
                options={
                    "maxiter": settings.max_iterations,
                    "ftol": settings.epsilon,
                    "gtol": settings.epsilon,
                    "finite_diff_rel_step": settings.h,
                },
            )
        except _Aborted:
            logger.warning(f"{self.name} cancelled after {n_iterations} iterations")
            return SolverSolution.failure(CANCELLED_MESSAGE, x0, n_iterations=n_iterations)
        except Exception as e:
            logger.error(f"{self.name} failed: {e}")
            return SolverSolution.failure(
                f"{self.name} failed: {e}", x0, n_iterations=n_iterations
            )

        logger.debug(
            f"Local optimization: converged={result.success}, "
            f"obj={result.fun:.6e}, nit={result.nit}, nfev={result.nfev}"
        )
        return self._solution_from(result, n_iterations=int(result.nit))
