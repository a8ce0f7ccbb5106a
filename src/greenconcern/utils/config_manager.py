"""
Configuration management utilities.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema
import yaml

from greenconcern.utils.error_handling import InvalidConfigurationError

logger = logging.getLogger(__name__)

ON_ERROR_POLICIES = ("abort", "skip")


@dataclass(frozen=True)
class AnalysisConfig:
    """Typed view of the analysis settings consumed by the pipeline."""
    period: int = 12
    max_degree: int = 5
    k_folds: int = 10
    train_fraction: float = 0.6
    seed: int = 1
    response_transform: str = "identity"
    covariates: Tuple[str, ...] = ("fuel", "index")
    on_error: str = "abort"
    log_level: str = "INFO"
    log_dir: Optional[str] = "logs"
    report_dir: Optional[str] = None

    def __post_init__(self):
        if self.period < 2:
            raise InvalidConfigurationError(f"period must be >= 2, got {self.period}")
        if self.max_degree < 1:
            raise InvalidConfigurationError(f"max_degree must be >= 1, got {self.max_degree}")
        if self.k_folds < 2:
            raise InvalidConfigurationError(f"k_folds must be >= 2, got {self.k_folds}")
        if not 0.0 < self.train_fraction < 1.0:
            raise InvalidConfigurationError(
                f"train_fraction must be in (0, 1), got {self.train_fraction}"
            )
        if self.on_error not in ON_ERROR_POLICIES:
            raise InvalidConfigurationError(
                f"on_error must be one of {ON_ERROR_POLICIES}, got {self.on_error!r}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        """Build from the 'analysis' and 'logging' sections of a loaded config."""
        analysis = dict(data.get("analysis", {}))
        logging_section = data.get("logging", {})
        if "covariates" in analysis:
            analysis["covariates"] = tuple(analysis["covariates"])
        if "level" in logging_section:
            analysis["log_level"] = logging_section["level"]
        if "dir" in logging_section:
            analysis["log_dir"] = logging_section["dir"]
        known = set(cls.__dataclass_fields__)
        unknown = set(analysis) - known
        if unknown:
            raise InvalidConfigurationError(f"Unknown analysis settings: {sorted(unknown)}")
        return cls(**analysis)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = asdict(self)
        result["covariates"] = list(self.covariates)
        return result


class ConfigManager:
    """
    Manages loading, validation, and merging of configurations.
    """

    def __init__(self, config_dir: Optional[str] = None, schema_dir: Optional[str] = None):
        self.config_dir = Path(config_dir) if config_dir else Path("config")
        self.schema_dir = Path(schema_dir) if schema_dir else self.config_dir / "schemas"

    def load_config(self, config_name: str, schema_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a configuration file (YAML or JSON).
        Optionally validate against a schema.

        Args:
            config_name: Name of config file (e.g. 'analysis_config.yaml')
            schema_name: Name of schema file (e.g. 'analysis_config_schema.json')

        Returns:
            Loaded configuration dictionary
        """
        config_path = self.config_dir / config_name

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                config = yaml.safe_load(f) or {}
            elif config_path.suffix == ".json":
                config = json.load(f)
            else:
                raise InvalidConfigurationError(
                    f"Unsupported configuration format: {config_path.suffix}"
                )

        if schema_name:
            self.validate_config(config, schema_name)

        return config

    def load_analysis_config(
        self,
        config_name: str = "analysis_config.yaml",
        schema_name: Optional[str] = "analysis_config_schema.json",
        overrides: Optional[Dict[str, Any]] = None,
    ) -> AnalysisConfig:
        """
        Load, validate and merge the analysis configuration into an AnalysisConfig.

        Args:
            config_name: Name of the config file
            schema_name: Schema to validate against (skipped if None)
            overrides: Nested dictionary merged over the file contents

        Returns:
            AnalysisConfig instance
        """
        config = self.load_config(config_name, schema_name)
        if overrides:
            config = self.merge_configs(config, overrides)
            if schema_name:
                self.validate_config(config, schema_name)
        analysis_config = AnalysisConfig.from_dict(config)
        logger.info(f"Loaded analysis configuration from {self.config_dir / config_name}")
        return analysis_config

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against a schema.

        Args:
            config: Configuration dictionary
            schema_name: Name of schema file
        """
        schema_path = self.schema_dir / schema_name

        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r") as f:
            schema = json.load(f)

        try:
            jsonschema.validate(instance=config, schema=schema)
        except jsonschema.exceptions.ValidationError as e:
            path_str = " -> ".join(str(p) for p in e.path) if e.path else "root"
            error_msg = f"Configuration validation failed at '{path_str}': {e.message}"
            logger.error(error_msg)
            raise InvalidConfigurationError(error_msg) from e

        logger.info(f"Configuration successfully validated against {schema_name}")

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configurations.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_value(self, config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """
        Get a value from configuration using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'analysis.k_folds')
            default: Default value if path not found

        Returns:
            Value at path or default
        """
        current = config
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def set_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a value in configuration using dot notation.
        Creates intermediate dictionaries if they don't exist.

        Args:
            config: Configuration dictionary (modified in-place)
            path: Dot-separated path
            value: Value to set
        """
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
