"""Error types and failure context for the analysis pipeline."""

import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base class for all failures raised by the analysis stages."""


class MissingDataError(PipelineError):
    """A join produced no rows, or a stage needs more history than supplied."""


class InsufficientDataError(MissingDataError):
    """Too few observations for seasonal decomposition (needs two full periods)."""


class RankDeficiencyError(PipelineError):
    """Regression design matrix is not of full column rank."""


class InvalidConfigurationError(PipelineError, ValueError):
    """Requested parameters cannot be satisfied by the data or are out of range."""


@dataclass
class RecoveryContext:
    """Captures context of a failed report for later inspection."""
    run_id: str
    timestamp: float = field(default_factory=time.time)
    exception_type: str = ""
    exception_message: str = ""
    stack_trace: str = ""
    local_variables: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, run_id: str, exc: Exception) -> "RecoveryContext":
        """
        Create context from an exception.
        Captures locals from the frame where exception occurred.
        """
        stack_trace = "".join(traceback.format_tb(exc.__traceback__))

        locals_repr = {}
        if exc.__traceback__:
            ptr = exc.__traceback__
            while ptr.tb_next:
                ptr = ptr.tb_next
            frame = ptr.tb_frame

            for k, v in frame.f_locals.items():
                try:
                    val_str = str(v)
                except Exception:
                    val_str = "<unprintable>"
                if len(val_str) > 500:
                    val_str = val_str[:500] + "..."
                locals_repr[k] = val_str

        return cls(
            run_id=run_id,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            stack_trace=stack_trace,
            local_variables=locals_repr,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "exception_type": self.exception_type,
            "exception_message": self.exception_message,
            "stack_trace": self.stack_trace,
            "local_variables": self.local_variables,
        }
