"""
Market data value objects for swaption calibration.

Holds the inputs of a calibration run:
- ZeroCurve: continuously compounded zero rates on a year-fraction grid
- VolatilitySurface: maturity x duration swaption volatility matrix
- InterestRateMarketData: bundle of curve, embedded surface and swaption tenor

All objects are read-only for the lifetime of a calibration call.

Example:
    >>> curve = ZeroCurve(dates=[1.0, 5.0, 10.0], rates=[0.02, 0.025, 0.03])
    >>> curve.discount_factor(5.0)
    0.8824969025845955
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
    import pandas as pd


VOL_TYPES = ("lognormal", "normal")


def _frozen_array(values: Sequence[float], ndim: int) -> np.ndarray:
    """Copy values into a read-only float array of the given rank."""
    arr = np.array(values, dtype=np.float64, ndmin=ndim)
    if arr.ndim != ndim:
        raise ValueError(f"Expected a {ndim}-D array, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class ZeroCurve:
    """
    Zero-coupon discount curve.

    Dates are year fractions from the valuation date and rates are
    continuously compounded, so P(0, t) = exp(-r(t) * t). Rates between
    pillars are interpolated linearly; outside the pillars the first/last
    rate is held flat.

    Attributes:
        dates: Pillar times in years (strictly increasing)
        rates: Zero rates at the pillars
    """

    dates: np.ndarray
    rates: np.ndarray

    def __post_init__(self):
        """Validate pillars."""
        dates = _frozen_array(self.dates, 1)
        rates = _frozen_array(self.rates, 1)

        if len(dates) == 0:
            raise ValueError("Zero curve needs at least one pillar")
        if len(dates) != len(rates):
            raise ValueError(
                f"dates and rates must have the same length, "
                f"got {len(dates)} and {len(rates)}"
            )
        if np.any(np.diff(dates) <= 0):
            raise ValueError("Zero curve dates must be strictly increasing")

        object.__setattr__(self, "dates", dates)
        object.__setattr__(self, "rates", rates)

    def zero_rate(self, t):
        """Interpolated zero rate at time t (scalar or array)."""
        return np.interp(t, self.dates, self.rates)

    def discount_factor(self, t):
        """Discount factor P(0, t) = exp(-r(t) * t)."""
        t = np.asarray(t, dtype=np.float64)
        df = np.exp(-self.zero_rate(t) * t)
        return float(df) if df.ndim == 0 else df

    def to_dict(self) -> Dict[str, list]:
        """Convert to dictionary."""
        return {"dates": self.dates.tolist(), "rates": self.rates.tolist()}

    def to_frame(self) -> "pd.DataFrame":
        """Two-column DataFrame (date, rate)."""
        import pandas as pd

        return pd.DataFrame({"date": self.dates, "rate": self.rates})

    @classmethod
    def from_frame(cls, df: "pd.DataFrame") -> "ZeroCurve":
        """
        Build from a DataFrame.

        Accepts either 'date'/'rate' columns or a single rate column indexed
        by date.
        """
        if {"date", "rate"}.issubset(df.columns):
            df = df.sort_values("date")
            return cls(dates=df["date"].to_numpy(), rates=df["rate"].to_numpy())

        if df.shape[1] != 1:
            raise ValueError("Expected 'date' and 'rate' columns")
        df = df.sort_index()
        return cls(
            dates=df.index.to_numpy(dtype=np.float64),
            rates=df.iloc[:, 0].to_numpy(dtype=np.float64),
        )

    @classmethod
    def flat(cls, rate: float, horizon: float = 50.0) -> "ZeroCurve":
        """Flat curve at a constant rate up to the given horizon."""
        return cls(dates=[horizon / 100.0, horizon], rates=[rate, rate])


@dataclass(frozen=True, eq=False)
class VolatilitySurface:
    """
    Swaption volatility matrix.

    Rows are option maturities, columns are underlying swap durations.

    Attributes:
        maturities: Option maturities in years
        durations: Swap durations in years
        volatilities: Matrix of shape (len(maturities), len(durations))
    """

    maturities: np.ndarray
    durations: np.ndarray
    volatilities: np.ndarray

    def __post_init__(self):
        """Check shape consistency."""
        maturities = _frozen_array(self.maturities, 1)
        durations = _frozen_array(self.durations, 1)
        volatilities = np.array(self.volatilities, dtype=np.float64)
        if volatilities.size == 0:
            volatilities = volatilities.reshape(len(maturities), len(durations))
        volatilities = _frozen_array(volatilities, 2)

        expected = (len(maturities), len(durations))
        if volatilities.shape != expected:
            raise ValueError(
                f"volatilities must be of shape {expected}, "
                f"got {volatilities.shape}"
            )

        object.__setattr__(self, "maturities", maturities)
        object.__setattr__(self, "durations", durations)
        object.__setattr__(self, "volatilities", volatilities)

    @property
    def shape(self):
        return self.volatilities.shape

    def to_frame(self) -> "pd.DataFrame":
        """DataFrame indexed by maturity with one column per duration."""
        import pandas as pd

        return pd.DataFrame(
            self.volatilities,
            index=pd.Index(self.maturities, name="maturity"),
            columns=pd.Index(self.durations, name="duration"),
        )

    @classmethod
    def from_frame(cls, df: "pd.DataFrame") -> "VolatilitySurface":
        """Build from a DataFrame indexed by maturity with duration columns."""
        return cls(
            maturities=df.index.to_numpy(dtype=np.float64),
            durations=df.columns.to_numpy(dtype=np.float64),
            volatilities=df.to_numpy(dtype=np.float64),
        )


@dataclass
class InterestRateMarketData:
    """
    Interest rate market data as handed over by the host.

    The embedded surface fields are used unless a dedicated volatility
    matrix is supplied to the estimator.

    Attributes:
        zr_dates: Zero curve pillar times in years
        zr_rates: Zero curve rates
        option_maturities: Embedded surface rows
        swap_durations: Embedded surface columns
        swaptions_volatility: Embedded surface values
        swaption_tenor: Fixed-leg payment step in years (0 means unset)
        vol_type: Volatility convention, 'lognormal' or 'normal'
    """

    zr_dates: Sequence[float]
    zr_rates: Sequence[float]
    option_maturities: Sequence[float] = field(default_factory=list)
    swap_durations: Sequence[float] = field(default_factory=list)
    swaptions_volatility: Optional[Sequence[Sequence[float]]] = None
    swaption_tenor: float = 0.0
    vol_type: str = "lognormal"

    def __post_init__(self):
        """Validate volatility convention."""
        if self.vol_type not in VOL_TYPES:
            raise ValueError(
                f"vol_type must be one of {VOL_TYPES}, got {self.vol_type!r}"
            )

    def zero_curve(self) -> ZeroCurve:
        """Zero curve built from the raw pillars."""
        return ZeroCurve(dates=self.zr_dates, rates=self.zr_rates)

    def embedded_surface(self) -> VolatilitySurface:
        """
        Volatility surface built from the embedded fields.

        Raises:
            ValueError: If the surface has axes but no volatilities
        """
        values = self.swaptions_volatility
        if values is None:
            if len(self.option_maturities) or len(self.swap_durations):
                raise ValueError(
                    "swaptions_volatility is missing for the embedded surface"
                )
            values = np.zeros((0, 0))
        return VolatilitySurface(
            maturities=self.option_maturities,
            durations=self.swap_durations,
            volatilities=values,
        )
