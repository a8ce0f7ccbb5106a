import json
import numpy as np
import pandas as pd
import pytest
from hypothesis import given, settings, strategies as st
from datetime import datetime

from greenconcern.utils.serialization import DateTimeEncoder, load_json, save_json

# --- Strategies ---

report_values = st.recursive(
    st.text() | st.integers() | st.floats(allow_nan=False, allow_infinity=False) | st.booleans() | st.none(),
    lambda children: st.lists(children, max_size=5) | st.dictionaries(st.text(), children, max_size=5),
    max_leaves=20,
)


# --- Tests ---

@given(st.dictionaries(st.text(min_size=1), report_values, max_size=5))
@settings(max_examples=30, deadline=None)
def test_json_roundtrip(tmp_path_factory, data):
    """Plain report dictionaries survive save/load unchanged."""
    path = tmp_path_factory.mktemp("json") / "report.json"
    save_json(data, path)
    assert load_json(path) == data


@given(
    st.lists(st.floats(min_value=-1e6, max_value=1e6), min_size=1, max_size=20),
    st.integers(min_value=-10**9, max_value=10**9),
)
@settings(max_examples=30)
def test_numpy_values_encode_as_python(values, integer):
    """numpy scalars and arrays become plain JSON numbers and lists."""
    payload = {
        "array": np.array(values),
        "float": np.float64(values[0]),
        "int": np.int64(integer),
    }
    decoded = json.loads(json.dumps(payload, cls=DateTimeEncoder))
    assert decoded["array"] == pytest.approx(values)
    assert decoded["float"] == pytest.approx(values[0])
    assert decoded["int"] == integer


def test_timestamps_and_periods():
    payload = {
        "created_at": datetime(2024, 5, 1, 12, 30),
        "month": pd.Timestamp("2019-03-01"),
        "period": pd.Period("2019-03", freq="M"),
    }
    decoded = json.loads(json.dumps(payload, cls=DateTimeEncoder))
    assert decoded["created_at"] == "2024-05-01T12:30:00"
    assert decoded["month"] == "2019-03-01T00:00:00"
    assert decoded["period"] == "2019-03"


def test_series_keys_become_strings():
    """Series indexed by timestamps encode as {iso-ish key: value}."""
    series = pd.Series([1.5, 2.5], index=pd.to_datetime(["2020-01-01", "2020-02-01"]))
    decoded = json.loads(json.dumps({"s": series}, cls=DateTimeEncoder))
    assert decoded["s"] == {"2020-01-01 00:00:00": 1.5, "2020-02-01 00:00:00": 2.5}


def test_save_json_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "out.json"
    save_json({"a": 1}, path)
    assert path.exists()


def test_unsupported_type_raises():
    with pytest.raises(TypeError):
        json.dumps({"x": object()}, cls=DateTimeEncoder)
