"""Combination of decomposed search-interest trends into a single concern signal."""

from typing import Dict, Optional, Tuple, Union
import logging

import numpy as np
import pandas as pd

from greenconcern.data.structs import CombinedSignal, DecomposedSeries, TimeSeries
from greenconcern.utils.error_handling import InvalidConfigurationError, MissingDataError

logger = logging.getLogger(__name__)


def standardize(series: pd.Series) -> Tuple[pd.Series, float, float]:
    """
    Scale to zero mean and unit sample variance.

    Returns:
        Tuple of (standardized series, mean, sample standard deviation)
    """
    if len(series) < 2:
        raise MissingDataError(f"Need at least 2 values to standardize '{series.name}'")
    mean = float(series.mean())
    std = float(series.std(ddof=1))
    if not np.isfinite(std) or std == 0.0:
        raise InvalidConfigurationError(f"Series '{series.name}' has zero variance")
    return (series - mean) / std, mean, std


class SignalCombiner:
    """Sums two trend components and standardizes the result alongside a target."""

    def combine(
        self,
        first: DecomposedSeries,
        second: DecomposedSeries,
        target: Union[TimeSeries, pd.Series],
        name: Optional[str] = None,
    ) -> CombinedSignal:
        """
        Build the combined concern signal for one target price series.

        The signal is the pointwise sum of both trends where both are defined;
        timestamps where either is undefined, or where the target has no
        value, are left out. Standardization parameters come from the retained
        rows of this call only.

        Args:
            first: Decomposition of the first keyword
            second: Decomposition of the second keyword
            target: Price series on the same calendar as the decompositions
            name: Name for the combined signal (defaults to 'first+second')

        Returns:
            CombinedSignal with raw and standardized signal/target

        Raises:
            MissingDataError: If no timestamp is shared by both trends and the target
        """
        target_series = target.data if isinstance(target, TimeSeries) else target
        target_series = target_series.dropna()

        first_trend = first.trend_defined()
        second_trend = second.trend_defined()
        common = first_trend.index.intersection(second_trend.index)
        signal = (first_trend.loc[common] + second_trend.loc[common]).sort_index()

        shared = signal.index.intersection(target_series.index)
        if len(shared) == 0:
            raise MissingDataError(
                f"No timestamps shared by trends of '{first.name}', '{second.name}' and the target"
            )

        signal_name = name or f"{first.name}+{second.name}"
        signal = signal.loc[shared].rename(signal_name)
        aligned_target = target_series.loc[shared].sort_index().astype(float)

        z_signal, signal_mean, signal_std = standardize(signal)
        z_target, target_mean, target_std = standardize(aligned_target)

        logger.info(
            f"Combined '{signal_name}': {len(common)} trend-defined timestamps, "
            f"{len(shared)} aligned with target"
        )

        return CombinedSignal(
            name=signal_name,
            signal=signal,
            target=aligned_target,
            standardized_signal=z_signal,
            standardized_target=z_target,
            signal_mean=signal_mean,
            signal_std=signal_std,
            target_mean=target_mean,
            target_std=target_std,
        )

    @staticmethod
    def to_frame(
        combined: CombinedSignal,
        covariates: Optional[Dict[str, pd.Series]] = None,
        signal_column: str = "signal",
        target_column: str = "target",
        standardize_signal: bool = True,
        standardize_target: bool = True,
    ) -> pd.DataFrame:
        """
        Modelling table of signal, target and covariates.

        Rows missing any covariate are dropped.

        Args:
            combined: Output of combine()
            covariates: Extra columns keyed by name, indexed like the signal
            signal_column: Column name for the signal
            target_column: Column name for the target
            standardize_signal: Use the standardized signal
            standardize_target: Use the standardized target; pass False when a
                response transform needs the original price scale

        Returns:
            DataFrame indexed by timestamp
        """
        columns = {
            signal_column: combined.standardized_signal if standardize_signal else combined.signal,
            target_column: combined.standardized_target if standardize_target else combined.target,
        }

        for cov_name, cov in (covariates or {}).items():
            if cov_name in columns:
                raise ValueError(f"Covariate name '{cov_name}' clashes with an existing column")
            columns[cov_name] = cov.data if isinstance(cov, TimeSeries) else cov

        frame = pd.concat(columns, axis=1, join="inner").dropna(how="any")
        if frame.empty:
            raise MissingDataError("No rows left after joining signal, target and covariates")
        return frame
