"""Feature construction for the regression stage.

- Combined concern signal from two decomposed search-interest trends
- Orthogonal polynomial basis for the signal term
"""

from greenconcern.features.signal import SignalCombiner, standardize
from greenconcern.features.polynomial import OrthogonalPolynomialBasis

__all__ = [
    "SignalCombiner",
    "standardize",
    "OrthogonalPolynomialBasis",
]
