"""Loading of downloaded CSV/Parquet exports into TimeSeries with schema validation."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import pandas as pd

from greenconcern.data.structs import TimeSeries
from greenconcern.utils.error_handling import MissingDataError

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of schema validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    schema_violations: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "schema_violations": self.schema_violations,
        }


class DataLoader:
    """Reads provider exports (share closes, index closes, fuel prices, search hits)."""

    def load_csv(
        self,
        path: str,
        date_column: str,
        value_column: str,
        name: Optional[str] = None,
        schema: Optional[Dict[str, str]] = None,
        date_format: Optional[str] = None,
    ) -> TimeSeries:
        """
        Load one value column of a CSV file as a TimeSeries.

        Args:
            path: Path to the CSV file
            date_column: Column holding timestamps
            value_column: Column holding the observations
            name: Series name (defaults to value_column)
            schema: Expected schema as {column_name: dtype_string}
            date_format: Optional strftime format of date_column

        Returns:
            TimeSeries sorted by timestamp

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If schema validation fails
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"CSV file not found: {path}")

        df = pd.read_csv(file_path)
        df[date_column] = pd.to_datetime(df[date_column], format=date_format)
        logger.info(f"Loaded {len(df)} rows from {path}")
        return self._to_timeseries(df, date_column, value_column, name, schema, path)

    def load_parquet(
        self,
        path: str,
        date_column: str,
        value_column: str,
        name: Optional[str] = None,
        schema: Optional[Dict[str, str]] = None,
    ) -> TimeSeries:
        """
        Load one value column of a Parquet file as a TimeSeries.

        Args:
            path: Path to the Parquet file
            date_column: Column holding timestamps
            value_column: Column holding the observations
            name: Series name (defaults to value_column)
            schema: Expected schema as {column_name: dtype_string}

        Returns:
            TimeSeries sorted by timestamp
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Parquet file not found: {path}")

        df = pd.read_parquet(file_path)
        logger.info(f"Loaded {len(df)} rows from {path}")
        return self._to_timeseries(df, date_column, value_column, name, schema, path)

    def _to_timeseries(
        self,
        df: pd.DataFrame,
        date_column: str,
        value_column: str,
        name: Optional[str],
        schema: Optional[Dict[str, str]],
        source: str,
    ) -> TimeSeries:
        if schema:
            result = self.validate_schema(df, schema)
            if not result.is_valid:
                error_msg = "; ".join(result.errors)
                raise ValueError(f"Schema validation failed: {error_msg}")

        for col in (date_column, value_column):
            if col not in df.columns:
                raise ValueError(f"Missing required column: {col}")

        series = pd.to_numeric(df.set_index(date_column)[value_column], errors="coerce")
        n_missing = int(series.isna().sum())
        if n_missing:
            logger.warning(f"{n_missing} non-numeric or missing values in '{value_column}' of {source}")
        series = series.dropna()
        if series.empty:
            raise MissingDataError(f"No usable observations in '{value_column}' of {source}")

        series = series.groupby(level=0).mean()
        return TimeSeries.from_series(series, name=name or value_column)

    def validate_schema(
        self,
        df: pd.DataFrame,
        schema: Dict[str, str]
    ) -> ValidationResult:
        """
        Validate DataFrame against expected schema.

        Args:
            df: DataFrame to validate
            schema: Expected schema as {column_name: dtype_string}

        Returns:
            ValidationResult with validation details
        """
        errors: List[str] = []
        warnings: List[str] = []
        schema_violations: Dict[str, str] = {}

        for col in schema.keys():
            if col not in df.columns:
                errors.append(f"Missing required column: {col}")
                schema_violations[col] = "missing"

        extra_cols = set(df.columns) - set(schema.keys())
        if extra_cols:
            warnings.append(f"Extra columns found: {sorted(extra_cols)}")

        for col, expected_dtype in schema.items():
            if col in df.columns:
                actual_dtype = str(df[col].dtype)
                if not self._dtype_compatible(actual_dtype, expected_dtype):
                    errors.append(
                        f"Column '{col}' has dtype '{actual_dtype}', "
                        f"expected '{expected_dtype}'"
                    )
                    schema_violations[col] = (
                        f"dtype_mismatch: {actual_dtype} != {expected_dtype}"
                    )

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            schema_violations=schema_violations,
        )

    def _dtype_compatible(self, actual: str, expected: str) -> bool:
        """Check if actual dtype is compatible with expected dtype."""
        actual_norm = actual.lower().replace(" ", "")
        expected_norm = expected.lower().replace(" ", "")

        if actual_norm == expected_norm:
            return True

        families = (
            {"float64", "float32", "float", "float16"},
            {"int64", "int32", "int", "int16", "int8"},
            {"datetime64[ns]", "datetime64", "datetime64[us]", "datetime64[ms]"},
        )
        return any(actual_norm in family and expected_norm in family for family in families)
