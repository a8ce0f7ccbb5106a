"""Ordinary least squares fits of a polynomial signal term plus linear covariates."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd
import statsmodels.api as sm

from greenconcern.features.polynomial import OrthogonalPolynomialBasis
from greenconcern.models.transforms import IDENTITY, ResponseTransform
from greenconcern.utils.error_handling import MissingDataError, RankDeficiencyError

logger = logging.getLogger(__name__)

# Smallest singular value allowed relative to the largest, on unit-norm columns
RANK_TOLERANCE = 1e-10


@dataclass(frozen=True)
class ModelCandidate:
    """
    A fitted regression of the target on covariates and an orthogonal
    polynomial in the signal. Immutable once fit.

    Coefficients are on the transformed response scale; predict() returns
    values in the original response units.
    """
    degree: int
    target: str
    signal: str
    covariate_names: Tuple[str, ...]
    intercept: float
    covariate_coefficients: Tuple[float, ...]
    polynomial_coefficients: Tuple[float, ...]
    basis: Optional[OrthogonalPolynomialBasis]
    response_transform: ResponseTransform = IDENTITY
    p_values: Dict[str, float] = field(default_factory=dict)
    r_squared: float = np.nan
    adj_r_squared: float = np.nan
    n_observations: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def feature_names(self) -> List[str]:
        """Design matrix column names in coefficient order."""
        names = ["const", *self.covariate_names]
        if self.basis is not None:
            names.extend(self.basis.column_names(self.signal))
        return names

    @property
    def coefficients(self) -> Dict[str, float]:
        values = (self.intercept, *self.covariate_coefficients, *self.polynomial_coefficients)
        return dict(zip(self.feature_names, values))

    def design_matrix(self, frame: pd.DataFrame) -> np.ndarray:
        """Evaluate the design columns of this candidate on new rows."""
        return _design_matrix(frame, self.covariate_names, self.signal, self.basis)

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        """
        Predict the target in original response units.

        Args:
            frame: Rows holding the covariate and signal columns

        Returns:
            Array of predictions (NaN where the inverse transform is undefined)
        """
        beta = np.array([
            self.intercept, *self.covariate_coefficients, *self.polynomial_coefficients
        ])
        return self.response_transform.invert(self.design_matrix(frame) @ beta)

    def summary(self) -> Dict[str, Any]:
        """JSON-serialisable description of the fit."""
        return {
            "degree": self.degree,
            "target": self.target,
            "signal": self.signal,
            "response_transform": self.response_transform.name,
            "coefficients": self.coefficients,
            "p_values": self.p_values,
            "r_squared": self.r_squared,
            "adj_r_squared": self.adj_r_squared,
            "n_observations": self.n_observations,
            "created_at": self.created_at.isoformat(),
        }


def _design_matrix(
    frame: pd.DataFrame,
    covariates: Sequence[str],
    signal: str,
    basis: Optional[OrthogonalPolynomialBasis],
) -> np.ndarray:
    missing = [c for c in (*covariates, signal) if c not in frame.columns]
    if basis is None and signal in missing:
        missing.remove(signal)
    if missing:
        raise MissingDataError(f"Missing model columns: {missing}")

    blocks = [np.ones((len(frame), 1))]
    if covariates:
        blocks.append(frame[list(covariates)].to_numpy(dtype=float))
    if basis is not None:
        blocks.append(basis.transform(frame[signal].to_numpy(dtype=float)))
    return np.hstack(blocks)


def check_full_rank(design: np.ndarray, names: Sequence[str]) -> None:
    """
    Fail unless the design matrix has full column rank.

    Columns are scaled to unit norm first so the check measures collinearity
    rather than differences in units.

    Raises:
        RankDeficiencyError: If there are fewer rows than columns or the
            columns are (nearly) linearly dependent
    """
    n_rows, n_cols = design.shape
    if n_rows < n_cols:
        raise RankDeficiencyError(
            f"Design matrix has {n_rows} rows for {n_cols} columns {list(names)}"
        )
    norms = np.linalg.norm(design, axis=0)
    zero = [name for name, norm in zip(names, norms) if norm == 0.0]
    if zero:
        raise RankDeficiencyError(f"Design columns are identically zero: {zero}")
    singular_values = np.linalg.svd(design / norms, compute_uv=False)
    if singular_values[-1] <= RANK_TOLERANCE * singular_values[0]:
        raise RankDeficiencyError(
            f"Design matrix with columns {list(names)} is not of full rank "
            f"(condition number {singular_values[0] / max(singular_values[-1], 1e-300):.3g})"
        )


def fit_candidate(
    frame: pd.DataFrame,
    degree: int,
    target: str = "target",
    signal: str = "signal",
    covariates: Sequence[str] = ("fuel", "index"),
    transform: ResponseTransform = IDENTITY,
) -> ModelCandidate:
    """
    Fit OLS of the (transformed) target on covariates and a degree-d
    orthogonal polynomial in the signal.

    The basis is derived from the rows of `frame` only.

    Args:
        frame: Fitting rows
        degree: Polynomial degree for the signal; 0 omits the polynomial term
        target: Response column
        signal: Signal column
        covariates: Linear covariate columns present in every candidate
        transform: Response transform applied before fitting

    Returns:
        Fitted ModelCandidate

    Raises:
        RankDeficiencyError: If the design matrix is not of full rank
        InvalidConfigurationError: If degree exceeds the distinct signal values
    """
    if frame.empty:
        raise MissingDataError("Cannot fit a model on zero rows")
    if target not in frame.columns:
        raise MissingDataError(f"Missing target column: {target}")

    covariates = tuple(covariates)
    basis = None
    if degree > 0:
        basis = OrthogonalPolynomialBasis.fit(frame[signal].to_numpy(dtype=float), degree)

    design = _design_matrix(frame, covariates, signal, basis)
    names = ["const", *covariates]
    if basis is not None:
        names.extend(basis.column_names(signal))
    check_full_rank(design, names)

    y = transform.apply(frame[target].to_numpy(dtype=float))
    results = sm.OLS(y, design).fit()

    params = np.asarray(results.params, dtype=float)
    n_cov = len(covariates)
    candidate = ModelCandidate(
        degree=degree,
        target=target,
        signal=signal,
        covariate_names=covariates,
        intercept=float(params[0]),
        covariate_coefficients=tuple(float(v) for v in params[1:1 + n_cov]),
        polynomial_coefficients=tuple(float(v) for v in params[1 + n_cov:]),
        basis=basis,
        response_transform=transform,
        p_values={n: float(p) for n, p in zip(names, np.asarray(results.pvalues, dtype=float))},
        r_squared=float(results.rsquared),
        adj_r_squared=float(results.rsquared_adj),
        n_observations=int(results.nobs),
    )
    logger.debug(
        f"Fit degree-{degree} candidate on {len(frame)} rows "
        f"(transform={transform.name}, R^2={candidate.r_squared:.4f})"
    )
    return candidate


def fit_linear_baseline(
    frame: pd.DataFrame,
    target: str = "target",
    features: Sequence[str] = ("signal", "fuel", "index"),
    transform: ResponseTransform = IDENTITY,
) -> ModelCandidate:
    """Plain linear regression of the target on the given features."""
    return fit_candidate(
        frame,
        degree=0,
        target=target,
        signal="",
        covariates=features,
        transform=transform,
    )
