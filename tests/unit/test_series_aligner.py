"""Unit tests for series alignment and random train/test splitting."""

import pytest
import pandas as pd
import numpy as np

from greenconcern.data.splitters import RandomRowSplitter, SeriesAligner, SplitIndices
from greenconcern.data.structs import TimeSeries
from greenconcern.utils.error_handling import (
    InsufficientDataError,
    InvalidConfigurationError,
    MissingDataError,
)


def _series(values, start="2020-01-01", freq="MS", name="s"):
    dates = pd.date_range(start=start, periods=len(values), freq=freq)
    return TimeSeries.from_series(pd.Series(values, index=dates, dtype=float), name=name)


class TestSeriesAligner:
    """Tests for SeriesAligner."""

    def test_weekly_to_monthly_mean(self):
        """Every weekly value in a month contributes to that month's mean."""
        weeks = pd.to_datetime(["2021-01-04", "2021-01-11", "2021-01-18", "2021-02-01", "2021-02-08"])
        weekly = TimeSeries.from_series(pd.Series([1.0, 2.0, 6.0, 10.0, 20.0], index=weeks), name="fuel")
        monthly = SeriesAligner().to_period_means(weekly)
        assert list(monthly.index) == [pd.Timestamp("2021-01-01"), pd.Timestamp("2021-02-01")]
        np.testing.assert_allclose(monthly.values, [3.0, 15.0])

    def test_period_means_drop_empty_periods(self):
        """Months without observations do not appear."""
        days = pd.to_datetime(["2021-01-05", "2021-03-05"])
        daily = TimeSeries.from_series(pd.Series([1.0, 2.0], index=days), name="px")
        monthly = SeriesAligner().to_period_means(daily)
        assert len(monthly) == 2

    def test_inner_join_keeps_shared_dates(self):
        """Only keys present in every series survive."""
        a = _series([1, 2, 3, 4], start="2020-01-01", name="a")
        b = _series([10, 20, 30, 40], start="2020-03-01", name="b")
        frame = SeriesAligner().align([a, b])
        assert list(frame.columns) == ["a", "b"]
        assert len(frame) == 2
        assert frame.index[0] == pd.Timestamp("2020-03-01")

    def test_missing_values_drop_whole_row(self):
        """A NaN in any column removes the row; nothing is filled."""
        a = _series([1, np.nan, 3, 4], name="a")
        b = _series([10, 20, 30, np.nan], name="b")
        frame = SeriesAligner().align({"share": a, "index": b})
        assert list(frame.columns) == ["share", "index"]
        assert len(frame) == 2
        assert not frame.isna().any().any()

    def test_month_key_join(self):
        """Month keys join series whose timestamps differ within a month."""
        a = TimeSeries.from_series(
            pd.Series([1.0, 2.0], index=pd.to_datetime(["2020-01-01", "2020-02-01"])), name="a"
        )
        b = TimeSeries.from_series(
            pd.Series([5.0, 6.0], index=pd.to_datetime(["2020-01-31", "2020-02-29"])), name="b"
        )
        frame = SeriesAligner().align([a, b], key="month")
        assert list(frame.index) == ["2020-01", "2020-02"]

    def test_month_key_rejects_unreduced_daily_series(self):
        """Several observations per month must be reduced first."""
        daily = _series(np.arange(1, 41), freq="D", name="daily")
        monthly = _series([1, 2], name="monthly")
        with pytest.raises(InvalidConfigurationError, match="to_period_means"):
            SeriesAligner().align([daily, monthly], key="month")

    def test_no_overlap_raises(self):
        """Disjoint series produce a MissingDataError."""
        a = _series([1, 2], start="2010-01-01", name="a")
        b = _series([1, 2], start="2020-01-01", name="b")
        with pytest.raises(MissingDataError):
            SeriesAligner().align([a, b])

    def test_contiguous_months_pass(self):
        """Consecutive month starts satisfy the contiguity check."""
        frame = SeriesAligner().align([_series(np.arange(1, 25), name="a"), _series(np.arange(1, 25), name="b")])
        SeriesAligner.require_contiguous(frame)

    def test_gap_after_join_names_missing_month(self):
        """A month absent from one series leaves a gap that is reported by date."""
        a = _series(np.arange(1, 25), name="a")
        b = _series(np.arange(1, 25), name="b")
        b = TimeSeries.from_series(b.data.drop(pd.Timestamp("2020-06-01")), name="b")
        frame = SeriesAligner().align([a, b])
        assert len(frame) == 23
        with pytest.raises(MissingDataError, match="2020-06-01"):
            SeriesAligner.require_contiguous(frame)

    def test_empty_period_mean_leaves_gap(self):
        """A month without daily observations disappears from the period means."""
        days = pd.date_range("2021-01-01", "2021-04-30", freq="D")
        daily = pd.Series(1.0, index=days)
        daily = daily[daily.index.month != 2]
        monthly = SeriesAligner().to_period_means(TimeSeries.from_series(daily, name="px"))
        with pytest.raises(MissingDataError, match="2021-02-01"):
            SeriesAligner.require_contiguous(monthly.data)

    def test_unknown_key(self):
        """Only date and month keys are supported."""
        with pytest.raises(InvalidConfigurationError, match="Unknown join key"):
            SeriesAligner().align([_series([1, 2])], key="week")

    def test_duplicate_names_rejected(self):
        """Column names must be unique."""
        with pytest.raises(ValueError, match="Duplicate"):
            SeriesAligner().align([_series([1, 2], name="x"), _series([3, 4], name="x")])

    def test_require_min_rows(self):
        """Fewer than two periods of rows fails the decomposition precondition."""
        frame = pd.DataFrame({"a": np.arange(23.0)})
        with pytest.raises(InsufficientDataError):
            SeriesAligner.require_min_rows(frame, 12)
        SeriesAligner.require_min_rows(pd.DataFrame({"a": np.arange(24.0)}), 12)

    def test_truncate_to_period_multiple(self):
        """Trailing partial periods are discarded."""
        series = _series(np.arange(1, 31), name="hits")
        truncated = SeriesAligner.truncate_to_period_multiple(series, 12)
        assert len(truncated) == 24
        assert truncated.index[-1] == series.index[23]

    def test_correlation_matrix(self):
        """Correlation table is square with unit diagonal."""
        frame = pd.DataFrame({"a": [1.0, 2.0, 3.0, 4.0], "b": [2.0, 4.0, 6.0, 8.5], "c": [4.0, 3.0, 2.0, 1.0]})
        corr = SeriesAligner.correlation_matrix(frame)
        assert corr.shape == (3, 3)
        np.testing.assert_allclose(np.diag(corr), 1.0)
        assert corr.loc["a", "c"] == pytest.approx(-1.0)


class TestRandomRowSplitter:
    """Tests for RandomRowSplitter."""

    def test_split_is_reproducible(self):
        """The same seed gives the same partition."""
        frame = pd.DataFrame({"x": np.arange(200.0)})
        first = RandomRowSplitter(0.6, seed=5).split(frame)
        second = RandomRowSplitter(0.6, seed=5).split(frame)
        assert first.train_indices == second.train_indices

    def test_split_partitions_rows(self):
        """Every row lands in exactly one subset."""
        frame = pd.DataFrame({"x": np.arange(200.0)})
        split = RandomRowSplitter(0.6, seed=1).split(frame)
        assert sorted(split.train_indices + split.test_indices) == list(range(200))
        assert 0.45 < len(split.train_indices) / 200 < 0.75

    def test_split_is_not_chronological(self):
        """Test rows are interleaved with training rows."""
        frame = pd.DataFrame({"x": np.arange(200.0)})
        split = RandomRowSplitter(0.6, seed=1).split(frame)
        assert min(split.test_indices) < max(split.train_indices)

    def test_apply_split(self):
        """Positional indices select the right rows."""
        frame = pd.DataFrame({"x": np.arange(10.0)})
        split = SplitIndices(train_indices=[0, 2, 4], test_indices=[1, 3])
        train, test = RandomRowSplitter.apply_split(frame, split)
        assert list(train["x"]) == [0.0, 2.0, 4.0]
        assert list(test["x"]) == [1.0, 3.0]

    def test_split_indices_roundtrip(self):
        """to_dict/from_dict preserve the split."""
        split = SplitIndices(train_indices=[0, 1], test_indices=[2], metadata={"seed": 1})
        assert SplitIndices.from_dict(split.to_dict()) == split

    def test_invalid_fraction(self):
        """Fractions outside (0, 1) are rejected."""
        with pytest.raises(InvalidConfigurationError):
            RandomRowSplitter(1.0)

    def test_empty_subset_raises(self):
        """A single row cannot populate both subsets."""
        with pytest.raises(InvalidConfigurationError, match="empty subset"):
            RandomRowSplitter(0.6, seed=1).split(pd.DataFrame({"x": [1.0]}))
