"""Seasonal decomposition of monthly search-interest series."""

from greenconcern.decomposition.seasonal import SeasonalDecomposer

__all__ = ["SeasonalDecomposer"]
