"""Utility functions for configuration, logging, errors and serialization."""

from greenconcern.utils.config_manager import AnalysisConfig, ConfigManager
from greenconcern.utils.error_handling import (
    PipelineError,
    MissingDataError,
    InsufficientDataError,
    RankDeficiencyError,
    InvalidConfigurationError,
    RecoveryContext,
)

__all__ = [
    "AnalysisConfig",
    "ConfigManager",
    "PipelineError",
    "MissingDataError",
    "InsufficientDataError",
    "RankDeficiencyError",
    "InvalidConfigurationError",
    "RecoveryContext",
]
