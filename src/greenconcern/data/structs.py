"""Core data structures passed between pipeline stages."""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class TimeSeries:
    """
    Named sequence of (timestamp, value) observations.

    Attributes:
        name: Identifier of the series (ticker, keyword, column name)
        data: Series indexed by an ascending, duplicate-free DatetimeIndex
        frequency: Optional pandas frequency alias describing the spacing
    """
    name: str
    data: pd.Series
    frequency: Optional[str] = None

    def __post_init__(self):
        """Validate index invariants after initialization."""
        if not isinstance(self.data.index, pd.DatetimeIndex):
            raise TypeError(f"TimeSeries '{self.name}' must have a DatetimeIndex")
        if self.data.index.has_duplicates:
            raise ValueError(f"TimeSeries '{self.name}' has duplicate timestamps")
        if not self.data.index.is_monotonic_increasing:
            raise ValueError(f"TimeSeries '{self.name}' timestamps are not sorted ascending")

    @classmethod
    def from_series(
        cls,
        series: pd.Series,
        name: Optional[str] = None,
        frequency: Optional[str] = None,
    ) -> "TimeSeries":
        """Create from a pandas Series, sorting by timestamp and copying the data."""
        data = series.astype(float).sort_index().copy()
        series_name = name if name is not None else str(series.name)
        data.name = series_name
        return cls(name=series_name, data=data, frequency=frequency)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def index(self) -> pd.DatetimeIndex:
        return self.data.index

    @property
    def values(self) -> np.ndarray:
        return self.data.to_numpy(dtype=float)


@dataclass(frozen=True)
class DecomposedSeries:
    """
    Multiplicative trend/seasonal/residual split of a periodic series.

    All component series share the observed index. Trend and residual hold NaN
    at the first and last period // 2 points, where the centred moving average
    is undefined.
    """
    name: str
    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    residual: pd.Series
    period: int
    seasonal_index: np.ndarray

    def trend_defined(self) -> pd.Series:
        """Trend restricted to timestamps where it is defined."""
        return self.trend.dropna()

    def reconstruct(self) -> pd.Series:
        """trend x seasonal x residual (NaN where the trend is undefined)."""
        return self.trend * self.seasonal * self.residual

    def to_frame(self) -> pd.DataFrame:
        """Components as columns of a single DataFrame."""
        return pd.DataFrame({
            "observed": self.observed,
            "trend": self.trend,
            "seasonal": self.seasonal,
            "residual": self.residual,
        })


@dataclass(frozen=True)
class CombinedSignal:
    """
    Sum of two trend components aligned with a target price series.

    The standardized series use the sample mean and standard deviation of the
    retained timestamps of this instance only.
    """
    name: str
    signal: pd.Series
    target: pd.Series
    standardized_signal: pd.Series
    standardized_target: pd.Series
    signal_mean: float
    signal_std: float
    target_mean: float
    target_std: float

    def __len__(self) -> int:
        return len(self.signal)

    @property
    def index(self) -> pd.DatetimeIndex:
        return self.signal.index
