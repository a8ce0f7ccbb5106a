"""Evaluation metrics and residual diagnostics."""

from greenconcern.evaluation.metrics import MetricsCalculator, MetricsResult

__all__ = ["MetricsCalculator", "MetricsResult"]
