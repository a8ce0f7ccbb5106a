"""Orthogonal polynomial basis for a single regressor."""

from dataclasses import dataclass
from typing import List, Tuple
import logging

import numpy as np

from greenconcern.utils.error_handling import InvalidConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrthogonalPolynomialBasis:
    """
    Polynomials of degree 1..d that are orthogonal over the fitting sample.

    Built with the three-term recurrence

        p_{j+1}(x) = (x - alpha_j) p_j(x) - (norm2_{j+1} / norm2_j) p_{j-1}(x)

    starting from p_{-1} = 0 and p_0 = 1. Each column is orthogonal to the
    constant, so it has zero mean over the fitting sample, and columns are
    scaled to unit Euclidean norm. The recurrence coefficients are kept so the
    same polynomials can be evaluated on other samples.

    Attributes:
        degree: Number of polynomial columns
        alpha: Recurrence centres, length degree
        norm2: Squared norms [1, n, |p_1|^2, ..., |p_d|^2], length degree + 2
    """
    degree: int
    alpha: Tuple[float, ...]
    norm2: Tuple[float, ...]

    @classmethod
    def fit(cls, x: np.ndarray, degree: int) -> "OrthogonalPolynomialBasis":
        """
        Derive the recurrence coefficients from a sample.

        Args:
            x: 1-d sample of the regressor
            degree: Highest polynomial degree (>= 1)

        Returns:
            Fitted basis

        Raises:
            InvalidConfigurationError: If degree < 1 or degree >= number of
                distinct values in x
        """
        x = np.asarray(x, dtype=float).ravel()
        if degree < 1:
            raise InvalidConfigurationError(f"Polynomial degree must be >= 1, got {degree}")
        n_distinct = np.unique(x).size
        if degree >= n_distinct:
            raise InvalidConfigurationError(
                f"Polynomial degree {degree} needs more than {degree} distinct values, "
                f"got {n_distinct}"
            )

        alpha = np.zeros(degree)
        norm2 = np.zeros(degree + 2)
        norm2[0] = 1.0
        norm2[1] = float(len(x))

        p_prev = np.zeros_like(x)
        p = np.ones_like(x)
        for j in range(degree):
            alpha[j] = np.dot(x * p, p) / norm2[j + 1]
            p_next = (x - alpha[j]) * p - (norm2[j + 1] / norm2[j]) * p_prev
            norm2[j + 2] = np.dot(p_next, p_next)
            if norm2[j + 2] <= np.finfo(float).eps * norm2[j + 1] * max(1.0, np.dot(x, x)):
                raise InvalidConfigurationError(
                    f"Sample is degenerate for a degree-{j + 1} polynomial"
                )
            p_prev, p = p, p_next

        return cls(degree=degree, alpha=tuple(alpha), norm2=tuple(norm2))

    def transform(self, x: np.ndarray) -> np.ndarray:
        """
        Evaluate the fitted polynomials on any sample.

        Args:
            x: 1-d sample of the regressor

        Returns:
            Array of shape (len(x), degree)
        """
        x = np.asarray(x, dtype=float).ravel()
        columns = np.empty((len(x), self.degree))

        p_prev = np.zeros_like(x)
        p = np.ones_like(x)
        for j in range(self.degree):
            p_next = (x - self.alpha[j]) * p - (self.norm2[j + 1] / self.norm2[j]) * p_prev
            columns[:, j] = p_next / np.sqrt(self.norm2[j + 2])
            p_prev, p = p, p_next

        return columns

    def column_names(self, prefix: str) -> List[str]:
        """Names of the basis columns, e.g. ['signal_poly1', 'signal_poly2']."""
        return [f"{prefix}_poly{j}" for j in range(1, self.degree + 1)]
