"""Data loading, alignment and splitting utilities."""

from .loaders import DataLoader, ValidationResult
from .structs import TimeSeries, DecomposedSeries, CombinedSignal
from .splitters import SeriesAligner, RandomRowSplitter, SplitIndices

__all__ = [
    "DataLoader",
    "ValidationResult",
    "TimeSeries",
    "DecomposedSeries",
    "CombinedSignal",
    "SeriesAligner",
    "RandomRowSplitter",
    "SplitIndices",
]
