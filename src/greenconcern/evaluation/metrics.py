"""Evaluation metrics and residual diagnostics for regression models."""

from dataclasses import dataclass
from typing import Any, Dict
import logging

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from greenconcern.utils.error_handling import MissingDataError

logger = logging.getLogger(__name__)


@dataclass
class MetricsResult:
    """Container for evaluation metrics."""
    metrics: Dict[str, float]
    residuals: Dict[str, float]
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "metrics": self.metrics,
            "residuals": self.residuals,
            "metadata": self.metadata,
        }


class MetricsCalculator:
    """Calculate held-out error metrics and residual summaries."""

    def calculate_regression_metrics(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
    ) -> Dict[str, float]:
        """
        Calculate regression metrics.

        Args:
            y_true: True values
            y_pred: Predicted values

        Returns:
            Dictionary with mse, rmse, mae and r2
        """
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)

        if len(y_true) == 0:
            raise MissingDataError("Cannot compute metrics on an empty sample")

        metrics: Dict[str, float] = {}
        metrics["mse"] = float(mean_squared_error(y_true, y_pred))
        metrics["rmse"] = float(np.sqrt(metrics["mse"]))
        metrics["mae"] = float(mean_absolute_error(y_true, y_pred))
        # r2 is undefined for a single observation
        metrics["r2"] = float(r2_score(y_true, y_pred)) if len(y_true) > 1 else np.nan
        return metrics

    def residual_summary(self, residuals: np.ndarray) -> Dict[str, float]:
        """
        Five-number summary plus mean and standard deviation of residuals.

        Args:
            residuals: Observed minus predicted values

        Returns:
            Dictionary with min, q1, median, q3, max, mean and std
        """
        residuals = np.asarray(residuals, dtype=float)
        if len(residuals) == 0:
            raise MissingDataError("Cannot summarise an empty residual sample")

        q1, median, q3 = np.percentile(residuals, [25, 50, 75])
        return {
            "min": float(residuals.min()),
            "q1": float(q1),
            "median": float(median),
            "q3": float(q3),
            "max": float(residuals.max()),
            "mean": float(residuals.mean()),
            "std": float(residuals.std(ddof=1)) if len(residuals) > 1 else np.nan,
        }

    def evaluate(self, y_true: np.ndarray, y_pred: np.ndarray) -> MetricsResult:
        """Metrics and residual summary for one set of predictions."""
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)
        return MetricsResult(
            metrics=self.calculate_regression_metrics(y_true, y_pred),
            residuals=self.residual_summary(y_true - y_pred),
            metadata={"n_samples": len(y_true)},
        )
