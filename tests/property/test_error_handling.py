"""Property tests for error handling and the per-report error policy."""

import pytest
import pandas as pd
import numpy as np
from hypothesis import given, settings, strategies as st

from greenconcern.data.structs import TimeSeries
from greenconcern.pipeline import ConcernAnalysis, ReportSpec
from greenconcern.utils.config_manager import AnalysisConfig
from greenconcern.utils.error_handling import (
    InsufficientDataError,
    InvalidConfigurationError,
    MissingDataError,
    PipelineError,
    RankDeficiencyError,
    RecoveryContext,
)


def test_recovery_context_capture():
    """Verify context capture from exception."""
    try:
        x = 123
        y = "important_context"
        raise MissingDataError("Something went wrong")
    except MissingDataError as e:
        ctx = RecoveryContext.from_exception(run_id="test_run", exc=e)

    assert ctx.run_id == "test_run"
    assert ctx.exception_type == "MissingDataError"
    assert ctx.exception_message == "Something went wrong"
    assert "x" in ctx.local_variables
    assert ctx.local_variables["x"] == "123"
    assert ctx.local_variables["y"] == "important_context"
    assert set(ctx.to_dict()) == {
        "run_id", "timestamp", "exception_type", "exception_message", "stack_trace", "local_variables"
    }


def test_long_locals_are_truncated():
    try:
        payload = "z" * 2000
        raise RankDeficiencyError("singular")
    except RankDeficiencyError as e:
        ctx = RecoveryContext.from_exception(run_id="r", exc=e)
    assert len(ctx.local_variables["payload"]) == 503


@pytest.mark.parametrize("error_type", [
    MissingDataError, InsufficientDataError, RankDeficiencyError, InvalidConfigurationError,
])
def test_stage_errors_share_a_base(error_type):
    """Callers can catch every stage failure as PipelineError."""
    assert issubclass(error_type, PipelineError)


@given(st.text(max_size=50))
@settings(max_examples=20, deadline=None)
def test_configuration_error_is_value_error(message):
    """Out-of-range parameters are also ValueErrors."""
    with pytest.raises(ValueError):
        raise InvalidConfigurationError(message)


def _short_keywords():
    dates = pd.date_range("2019-01-01", periods=18, freq="MS")
    return tuple(
        TimeSeries.from_series(pd.Series(np.full(18, 50.0) + i, index=dates), name=f"kw{i}")
        for i in range(2)
    )


@pytest.fixture
def good_spec(keyword_pair, market_inputs):
    return ReportSpec(
        name="BP.L",
        target=market_inputs["share"],
        keywords=keyword_pair,
        covariates={"fuel": market_inputs["fuel"], "index": market_inputs["index"]},
    )


@pytest.fixture
def short_spec(market_inputs):
    return ReportSpec(
        name="SHORT",
        target=market_inputs["share"],
        keywords=_short_keywords(),
        covariates={"fuel": market_inputs["fuel"], "index": market_inputs["index"]},
    )


def test_skip_policy_records_failure_and_continues(good_spec, short_spec):
    """With on_error='skip' later reports still run."""
    analysis = ConcernAnalysis(AnalysisConfig(on_error="skip", k_folds=5, log_dir=None))
    results = analysis.run_reports([short_spec, good_spec], run_id="run1")

    assert [r.name for r in results] == ["SHORT", "BP.L"]
    assert not results[0].succeeded
    assert results[0].failure.exception_type == "InsufficientDataError"
    assert results[0].failure.run_id == "run1/SHORT"
    assert results[1].succeeded
    assert results[0].to_dict()["failure"]["exception_type"] == "InsufficientDataError"


def test_abort_policy_propagates(good_spec, short_spec):
    """With on_error='abort' the first failure stops the run."""
    analysis = ConcernAnalysis(AnalysisConfig(on_error="abort", k_folds=5, log_dir=None))
    with pytest.raises(InsufficientDataError):
        analysis.run_reports([short_spec, good_spec])
