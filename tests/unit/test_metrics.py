"""Unit tests for held-out metrics and residual summaries."""

import pytest
import numpy as np

from greenconcern.evaluation.metrics import MetricsCalculator
from greenconcern.utils.error_handling import MissingDataError


class TestMetricsCalculator:
    """Tests for MetricsCalculator."""

    def test_regression_metrics(self):
        y_true = np.array([1.0, 2.0, 3.0, 4.0])
        y_pred = np.array([1.0, 2.0, 3.0, 6.0])
        metrics = MetricsCalculator().calculate_regression_metrics(y_true, y_pred)
        assert metrics["mse"] == pytest.approx(1.0)
        assert metrics["rmse"] == pytest.approx(1.0)
        assert metrics["mae"] == pytest.approx(0.5)
        assert metrics["r2"] == pytest.approx(1.0 - 4.0 / 5.0)

    def test_perfect_predictions(self):
        y = np.linspace(0, 1, 10)
        metrics = MetricsCalculator().calculate_regression_metrics(y, y)
        assert metrics["mse"] == 0.0
        assert metrics["r2"] == pytest.approx(1.0)

    def test_residual_summary(self):
        """Quartiles come from the residual sample."""
        summary = MetricsCalculator().residual_summary(np.array([-2.0, -1.0, 0.0, 1.0, 2.0]))
        assert summary["min"] == -2.0
        assert summary["q1"] == -1.0
        assert summary["median"] == 0.0
        assert summary["q3"] == 1.0
        assert summary["max"] == 2.0
        assert summary["mean"] == 0.0
        assert summary["std"] == pytest.approx(np.sqrt(2.5))

    def test_empty_residuals(self):
        with pytest.raises(MissingDataError):
            MetricsCalculator().residual_summary(np.array([]))

    def test_evaluate_residuals_are_observed_minus_predicted(self):
        result = MetricsCalculator().evaluate(np.array([3.0, 5.0]), np.array([1.0, 1.0]))
        assert result.residuals["min"] == 2.0
        assert result.residuals["max"] == 4.0
        assert result.metadata["n_samples"] == 2
        assert set(result.to_dict()) == {"metrics", "residuals", "metadata"}
