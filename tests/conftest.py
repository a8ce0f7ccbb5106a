"""Pytest configuration and shared fixtures."""

import pytest
import pandas as pd
import numpy as np

from greenconcern.data.structs import TimeSeries

SEASONAL_PATTERN = np.linspace(0.9, 1.1, 12)


@pytest.fixture
def seasonal_pattern():
    """Period-12 multipliers from 0.9 to 1.1 (mean exactly 1)."""
    return SEASONAL_PATTERN.copy()


@pytest.fixture
def synthetic_monthly_series():
    """24 months: linear trend 100 -> 123 times an exact period-12 pattern."""
    dates = pd.date_range(start="2018-01-01", periods=24, freq="MS")
    trend = np.linspace(100, 123, 24)
    values = trend * np.tile(SEASONAL_PATTERN, 2)
    return TimeSeries.from_series(pd.Series(values, index=dates), name="climate change")


@pytest.fixture
def keyword_pair():
    """Two 60-month search-interest series with seasonality and noise."""
    dates = pd.date_range(start="2015-01-01", periods=60, freq="MS")
    rng = np.random.default_rng(42)
    months = np.arange(60)
    first = (40 + 0.5 * months) * np.tile(SEASONAL_PATTERN, 5) * rng.uniform(0.97, 1.03, 60)
    second = (20 + 0.2 * months) * np.tile(SEASONAL_PATTERN[::-1], 5) * rng.uniform(0.97, 1.03, 60)
    return (
        TimeSeries.from_series(pd.Series(first, index=dates), name="climate change"),
        TimeSeries.from_series(pd.Series(second, index=dates), name="global warming"),
    )


@pytest.fixture
def market_inputs():
    """Daily share closes, daily index closes and weekly fuel prices over 2015-2019."""
    rng = np.random.default_rng(7)
    days = pd.bdate_range(start="2015-01-01", end="2019-12-31")
    weeks = pd.date_range(start="2015-01-05", end="2019-12-30", freq="W-MON")

    index_close = 6500 + np.cumsum(rng.normal(0, 20, len(days)))
    fuel = 110 + np.cumsum(rng.normal(0, 0.5, len(weeks)))

    fuel_daily = pd.Series(fuel, index=weeks).reindex(days, method="ffill").bfill()
    share = 2.0 + 0.0004 * index_close + 0.01 * fuel_daily.to_numpy() + rng.normal(0, 0.05, len(days))

    return {
        "share": TimeSeries.from_series(pd.Series(share, index=days), name="BP.L"),
        "index": TimeSeries.from_series(pd.Series(index_close, index=days), name="FTSE100"),
        "fuel": TimeSeries.from_series(pd.Series(fuel, index=weeks), name="ULSP"),
    }


@pytest.fixture
def linear_frame():
    """Modelling table whose target is an exact linear function of its columns."""
    rng = np.random.default_rng(3)
    n = 120
    frame = pd.DataFrame({
        "signal": rng.normal(0, 1, n),
        "fuel": rng.uniform(100, 140, n),
        "index": rng.uniform(6000, 7500, n),
    }, index=pd.date_range("2010-01-01", periods=n, freq="MS"))
    frame["target"] = (
        1.5 * frame["signal"] + 0.02 * frame["fuel"] - 0.001 * frame["index"] + 3.0
        + rng.normal(0, 1e-9, n)
    )
    return frame


@pytest.fixture
def analysis_config_dict():
    """Configuration as it would be read from analysis_config.yaml."""
    return {
        "analysis": {
            "period": 12,
            "max_degree": 5,
            "k_folds": 10,
            "train_fraction": 0.6,
            "seed": 1,
            "response_transform": "identity",
            "covariates": ["fuel", "index"],
            "on_error": "skip",
        },
        "logging": {"level": "INFO", "dir": None},
    }
