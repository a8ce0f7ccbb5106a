"""Response transforms with exact inverses for fitting on a transformed scale."""

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from greenconcern.utils.error_handling import InvalidConfigurationError


@dataclass(frozen=True)
class ResponseTransform:
    """
    A response transform paired with its inverse.

    Models are fit on forward(y); predictions are mapped back with inverse()
    so errors are always measured in the original response units.
    """
    name: str
    forward: Callable[[np.ndarray], np.ndarray]
    inverse: Callable[[np.ndarray], np.ndarray]
    requires_positive: bool = False

    def apply(self, y: np.ndarray) -> np.ndarray:
        """Forward transform after checking the domain."""
        y = np.asarray(y, dtype=float)
        if self.requires_positive and np.any(y <= 0):
            raise InvalidConfigurationError(
                f"Transform '{self.name}' requires a strictly positive response"
            )
        return self.forward(y)

    def invert(self, z: np.ndarray) -> np.ndarray:
        """Inverse transform; values outside the inverse's domain become NaN."""
        with np.errstate(invalid="ignore", divide="ignore"):
            return self.inverse(np.asarray(z, dtype=float))


def _identity(y: np.ndarray) -> np.ndarray:
    return y


def _inverse_square(y: np.ndarray) -> np.ndarray:
    return 1.0 / np.square(y)


def _inverse_square_inverse(z: np.ndarray) -> np.ndarray:
    # Only the positive root is a valid price
    return 1.0 / np.sqrt(np.where(z > 0, z, np.nan))


IDENTITY = ResponseTransform("identity", _identity, _identity)
INVERSE_SQUARE = ResponseTransform(
    "inverse_square", _inverse_square, _inverse_square_inverse, requires_positive=True
)
LOG = ResponseTransform("log", np.log, np.exp, requires_positive=True)

TRANSFORMS: Dict[str, ResponseTransform] = {
    t.name: t for t in (IDENTITY, INVERSE_SQUARE, LOG)
}


def get_transform(name: str) -> ResponseTransform:
    """Look up a registered transform by name."""
    try:
        return TRANSFORMS[name]
    except KeyError:
        raise InvalidConfigurationError(
            f"Unknown response transform: {name}. Supported transforms are: {sorted(TRANSFORMS)}"
        ) from None
