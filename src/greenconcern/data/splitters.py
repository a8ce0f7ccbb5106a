"""Time series alignment and train/test splitting utilities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union
import logging

import numpy as np
import pandas as pd

from greenconcern.data.structs import TimeSeries
from greenconcern.utils.error_handling import (
    InsufficientDataError,
    InvalidConfigurationError,
    MissingDataError,
)

logger = logging.getLogger(__name__)

JOIN_KEYS = ("date", "month")


@dataclass
class SplitIndices:
    """Container for train/test split positions with metadata."""
    train_indices: List[int]
    test_indices: List[int]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "train_indices": self.train_indices,
            "test_indices": self.test_indices,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SplitIndices":
        """Create from dictionary."""
        return cls(
            train_indices=data["train_indices"],
            test_indices=data["test_indices"],
            metadata=data.get("metadata", {}),
        )


class SeriesAligner:
    """Reduces series to a common granularity and inner-joins them on a calendar key."""

    def to_period_means(self, series: TimeSeries, freq: str = "MS") -> TimeSeries:
        """
        Reduce a finer-grained series to a coarser period by arithmetic mean.

        Every value whose timestamp falls in the same period contributes to
        that period's mean. Periods without any observation are dropped.

        Args:
            series: Daily or weekly TimeSeries
            freq: Target period alias ('MS' for calendar months)

        Returns:
            TimeSeries indexed by period start
        """
        reduced = series.data.resample(freq).mean().dropna()
        logger.debug(
            f"Reduced '{series.name}' from {len(series)} to {len(reduced)} rows at freq {freq}"
        )
        return TimeSeries.from_series(reduced, name=series.name, frequency=freq)

    @staticmethod
    def month_key(index: pd.DatetimeIndex) -> pd.Index:
        """Year-month string key ('YYYY-MM') for monthly joins."""
        return pd.Index(index.strftime("%Y-%m"), name="month")

    def align(
        self,
        series: Union[Sequence[TimeSeries], Mapping[str, TimeSeries]],
        key: str = "date",
    ) -> pd.DataFrame:
        """
        Inner-join several series on an exact calendar key.

        A row is kept only if every series has a non-missing value for that
        key; nothing is interpolated or forward-filled.

        Args:
            series: TimeSeries to join; a mapping renames the columns
            key: 'date' (normalized calendar date) or 'month' ('YYYY-MM')

        Returns:
            DataFrame with one column per series, indexed by the join key

        Raises:
            MissingDataError: If no key is shared by all series
        """
        if key not in JOIN_KEYS:
            raise InvalidConfigurationError(f"Unknown join key: {key}. Supported keys are: {list(JOIN_KEYS)}")

        if isinstance(series, Mapping):
            named = list(series.items())
        else:
            named = [(s.name, s) for s in series]

        if not named:
            raise MissingDataError("No series provided for alignment")

        names = [name for name, _ in named]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate series names in alignment: {names}")

        columns = []
        for name, ts in named:
            column = ts.data.rename(name)
            if key == "month":
                column.index = self.month_key(ts.index)
            else:
                column.index = ts.index.normalize().rename("date")
            if column.index.has_duplicates:
                raise InvalidConfigurationError(
                    f"Series '{name}' has several observations per {key}; "
                    f"reduce it with to_period_means before aligning"
                )
            columns.append(column)

        joined = pd.concat(columns, axis=1, join="inner")
        result = joined.dropna(how="any").sort_index()

        logger.info(
            f"Aligned {len(columns)} series on '{key}': {len(joined)} shared keys, "
            f"{len(joined) - len(result)} dropped for missing values, {len(result)} kept"
        )

        if result.empty:
            raise MissingDataError(f"No overlapping observations across series {names}")

        return result

    @staticmethod
    def require_min_rows(frame: Union[pd.DataFrame, pd.Series, TimeSeries], period: int) -> None:
        """Fail unless there are at least two full periods of rows."""
        n_rows = len(frame)
        if n_rows < 2 * period:
            raise InsufficientDataError(
                f"Need at least {2 * period} rows for period {period}, got {n_rows}"
            )

    @staticmethod
    def require_contiguous(frame: Union[pd.DataFrame, pd.Series], freq: str = "MS") -> None:
        """
        Fail unless the index has one row for every period between its ends.

        Seasonal phases are assigned by row position, so a dropped month would
        shift every later observation into the wrong phase.

        Raises:
            MissingDataError: Naming the missing periods
        """
        index = pd.DatetimeIndex(frame.index)
        if index.empty:
            raise MissingDataError("Cannot check contiguity of an empty index")
        expected = pd.date_range(start=index[0], end=index[-1], freq=freq)
        missing = expected.difference(index)
        if len(missing) or len(index) != len(expected):
            missing_str = ", ".join(missing.strftime("%Y-%m-%d")[:12])
            if len(missing) > 12:
                missing_str += f", ... ({len(missing)} in total)"
            raise MissingDataError(
                f"Series are not contiguous at freq {freq}; missing periods: {missing_str}"
            )

    @staticmethod
    def truncate_to_period_multiple(series: TimeSeries, period: int) -> TimeSeries:
        """Drop trailing observations that do not complete a full period."""
        usable = (len(series) // period) * period
        if usable < len(series):
            logger.info(
                f"Truncating '{series.name}' from {len(series)} to {usable} rows "
                f"(multiple of period {period})"
            )
        return TimeSeries(
            name=series.name,
            data=series.data.iloc[:usable].copy(),
            frequency=series.frequency,
        )

    @staticmethod
    def correlation_matrix(frame: pd.DataFrame, method: str = "pearson") -> pd.DataFrame:
        """
        Pairwise correlation of the aligned columns.

        Args:
            frame: Aligned DataFrame
            method: 'pearson', 'spearman' or 'kendall'

        Returns:
            Square correlation DataFrame
        """
        if frame.empty:
            raise MissingDataError("Cannot compute correlations on an empty frame")
        return frame.corr(method=method)


class RandomRowSplitter:
    """
    Train/test split by an independent random draw per row.

    Rows are not split chronologically: test rows may fall between training
    rows in time.
    """

    def __init__(self, train_fraction: float = 0.6, seed: int = 1):
        if not 0.0 < train_fraction < 1.0:
            raise InvalidConfigurationError(
                f"train_fraction must be in (0, 1), got {train_fraction}"
            )
        self.train_fraction = train_fraction
        self.seed = seed

    def split(self, frame: pd.DataFrame) -> SplitIndices:
        """
        Assign each row to training with probability train_fraction.

        Args:
            frame: Modelling table

        Returns:
            SplitIndices with positional indices for each subset

        Raises:
            InvalidConfigurationError: If either subset comes out empty
        """
        n = len(frame)
        rng = np.random.default_rng(self.seed)
        in_train = rng.random(n) < self.train_fraction

        positions = np.arange(n)
        train_indices = positions[in_train].tolist()
        test_indices = positions[~in_train].tolist()

        if not train_indices or not test_indices:
            raise InvalidConfigurationError(
                f"Random split of {n} rows left an empty subset "
                f"(train={len(train_indices)}, test={len(test_indices)})"
            )

        metadata = {
            "split_type": "random_rows",
            "train_fraction": self.train_fraction,
            "seed": self.seed,
            "total_samples": n,
            "train_samples": len(train_indices),
            "test_samples": len(test_indices),
            "created_at": datetime.now().isoformat(),
        }

        return SplitIndices(
            train_indices=train_indices,
            test_indices=test_indices,
            metadata=metadata,
        )

    @staticmethod
    def apply_split(
        frame: pd.DataFrame,
        split: SplitIndices
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Return (train_frame, test_frame) for the given split."""
        return frame.iloc[split.train_indices], frame.iloc[split.test_indices]
