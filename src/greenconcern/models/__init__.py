"""Regression candidates, response transforms and degree selection."""

from greenconcern.models.candidate import ModelCandidate, fit_candidate, fit_linear_baseline
from greenconcern.models.selection import CrossValidationResult, ModelSelector, SelectionReport
from greenconcern.models.transforms import (
    IDENTITY,
    INVERSE_SQUARE,
    LOG,
    ResponseTransform,
    get_transform,
)

__all__ = [
    "ModelCandidate",
    "fit_candidate",
    "fit_linear_baseline",
    "CrossValidationResult",
    "ModelSelector",
    "SelectionReport",
    "IDENTITY",
    "INVERSE_SQUARE",
    "LOG",
    "ResponseTransform",
    "get_transform",
]
