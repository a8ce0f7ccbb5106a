"""
Serialization utilities for analysis reports.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime, pandas and numpy types."""
    def default(self, obj):
        if isinstance(obj, (datetime, pd.Timestamp)):
            return obj.isoformat()
        if isinstance(obj, pd.Period):
            return str(obj)
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, pd.Series):
            return {str(k): v for k, v in obj.items()}
        return super().default(obj)


def save_json(data: Any, path: Union[str, Path], **kwargs) -> None:
    """Save data to JSON with datetime support."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, cls=DateTimeEncoder, indent=2, **kwargs)
    logger.debug(f"Saved JSON to {path}")


def load_json(path: Union[str, Path]) -> Any:
    """Load data from JSON."""
    with open(path, 'r') as f:
        return json.load(f)
