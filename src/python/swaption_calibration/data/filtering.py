"""
Swaption surface filtering.

Reduces a full maturity x duration volatility surface to the sub-grid of
instruments eligible for calibration. Bounds are inclusive on both axes and
the relative order of surviving rows and columns is preserved.

An empty result is a normal outcome, not an error: the orchestrator reports
it back to the caller as a failed calibration.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import numpy as np

from .market import VolatilitySurface

logger = logging.getLogger(__name__)

EMPTY_FILTER_MESSAGE = "No swaptions satisfying criteria found, please relax filters"


@dataclass(frozen=True)
class FilterCriteria:
    """
    User bounds on the calibration instruments.

    The default object keeps every instrument. min > max on an axis is
    accepted and simply filters everything out.

    Attributes:
        min_maturity: Smallest option maturity kept (years)
        max_maturity: Largest option maturity kept (years)
        min_duration: Smallest swap duration kept (years)
        max_duration: Largest swap duration kept (years)
    """

    min_maturity: float = 0.0
    max_maturity: float = math.inf
    min_duration: float = 0.0
    max_duration: float = math.inf

    def maturity_mask(self, maturities: np.ndarray) -> np.ndarray:
        return (maturities >= self.min_maturity) & (maturities <= self.max_maturity)

    def duration_mask(self, durations: np.ndarray) -> np.ndarray:
        return (durations >= self.min_duration) & (durations <= self.max_duration)

    def to_dict(self):
        """Convert to dictionary."""
        return {
            "min_maturity": self.min_maturity,
            "max_maturity": self.max_maturity,
            "min_duration": self.min_duration,
            "max_duration": self.max_duration,
        }


@dataclass(frozen=True, eq=False)
class FilteredGrid:
    """
    Calibration working set produced by the filter.

    Attributes:
        maturities: Surviving option maturities (input order)
        durations: Surviving swap durations (input order)
        volatilities: Matrix of shape (len(maturities), len(durations))
    """

    maturities: np.ndarray
    durations: np.ndarray
    volatilities: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self.maturities), len(self.durations))

    @property
    def size(self) -> int:
        return len(self.maturities) * len(self.durations)

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def cells(self) -> Iterator[Tuple[int, int, float, float, float]]:
        """Yield (row, col, maturity, duration, volatility) for every cell."""
        for i, maturity in enumerate(self.maturities):
            for j, duration in enumerate(self.durations):
                yield i, j, float(maturity), float(duration), float(self.volatilities[i, j])


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def filter_surface(
    maturities: Sequence[float],
    durations: Sequence[float],
    volatilities: Sequence[Sequence[float]],
    criteria: FilterCriteria,
) -> FilteredGrid:
    """
    Select the sub-grid of the surface that satisfies the criteria.

    Args:
        maturities: Option maturities (matrix rows)
        durations: Swap durations (matrix columns)
        volatilities: Volatility matrix of shape (len(maturities), len(durations))
        criteria: Inclusive maturity/duration bounds

    Returns:
        A freshly built FilteredGrid, possibly with zero rows or columns

    Raises:
        ValueError: If the matrix shape does not match the axes
    """
    maturities = np.asarray(maturities, dtype=np.float64)
    durations = np.asarray(durations, dtype=np.float64)
    volatilities = np.asarray(volatilities, dtype=np.float64)

    expected = (len(maturities), len(durations))
    if volatilities.size == 0 and 0 in expected:
        volatilities = volatilities.reshape(expected)
    if volatilities.shape != expected:
        raise ValueError(
            f"volatilities must be of shape {expected}, got {volatilities.shape}"
        )

    keep_rows = criteria.maturity_mask(maturities)
    keep_cols = criteria.duration_mask(durations)
    n_rows = int(keep_rows.sum())
    n_cols = int(keep_cols.sum())

    logger.info(
        f"Calibrating on {n_rows * n_cols} swaption prices "
        f"[#maturities x #durations]=[{n_rows} x {n_cols}]"
    )

    return FilteredGrid(
        maturities=_readonly(maturities[keep_rows].copy()),
        durations=_readonly(durations[keep_cols].copy()),
        volatilities=_readonly(volatilities[np.ix_(keep_rows, keep_cols)].copy()),
    )


def filter_volatility_surface(
    surface: VolatilitySurface, criteria: FilterCriteria
) -> FilteredGrid:
    """Filter a VolatilitySurface (see filter_surface)."""
    return filter_surface(
        surface.maturities, surface.durations, surface.volatilities, criteria
    )
