"""
Classical multiplicative decomposition of periodic series.

observed = trend x seasonal x residual, where the trend is a centred moving
average over one period and the seasonal component repeats a length-period
index of multipliers averaging to 1.
"""

from typing import Union
import logging

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import seasonal_decompose

from greenconcern.data.structs import DecomposedSeries, TimeSeries
from greenconcern.utils.error_handling import (
    InsufficientDataError,
    InvalidConfigurationError,
)

logger = logging.getLogger(__name__)


class SeasonalDecomposer:
    """Multiplicative trend/seasonal/residual decomposition with a fixed period."""

    def __init__(self, period: int = 12):
        """
        Args:
            period: Number of observations per seasonal cycle (12 for monthly data)
        """
        if period < 2:
            raise InvalidConfigurationError(f"period must be >= 2, got {period}")
        self.period = period

    def decompose(self, series: Union[TimeSeries, pd.Series]) -> DecomposedSeries:
        """
        Split a series into trend, seasonal and residual components.

        The caller must trim the series to a whole number of periods; trailing
        partial periods are not handled here.

        Args:
            series: Strictly positive observations at consecutive period steps;
                phases are assigned by position

        Returns:
            DecomposedSeries aligned to the input timestamps

        Raises:
            InsufficientDataError: If fewer than two full periods are supplied
            InvalidConfigurationError: If the length is not a multiple of the
                period or values are not strictly positive
        """
        if isinstance(series, TimeSeries):
            name, observed = series.name, series.data.astype(float)
        else:
            name, observed = str(series.name), series.astype(float)

        n = len(observed)
        period = self.period

        if n < 2 * period:
            raise InsufficientDataError(
                f"Series '{name}' has {n} observations; decomposition needs at least {2 * period}"
            )
        if n % period != 0:
            raise InvalidConfigurationError(
                f"Series '{name}' length {n} is not a multiple of period {period}; "
                f"truncate trailing observations first"
            )

        values = observed.to_numpy()
        if not np.all(np.isfinite(values)) or np.any(values <= 0):
            raise InvalidConfigurationError(
                f"Series '{name}' must be finite and strictly positive for a multiplicative model"
            )

        # Two-sided filter leaves period // 2 undefined trend points at each end
        result = seasonal_decompose(values, model="multiplicative", period=period)
        seasonal_index = np.asarray(result.seasonal[:period], dtype=float)

        logger.debug(
            f"Decomposed '{name}' ({n} points, period {period}); "
            f"seasonal range {seasonal_index.min():.4f}-{seasonal_index.max():.4f}"
        )

        index = observed.index
        return DecomposedSeries(
            name=name,
            observed=observed.copy(),
            trend=pd.Series(result.trend, index=index, name="trend"),
            seasonal=pd.Series(result.seasonal, index=index, name="seasonal"),
            residual=pd.Series(result.resid, index=index, name="residual"),
            period=period,
            seasonal_index=seasonal_index,
        )
