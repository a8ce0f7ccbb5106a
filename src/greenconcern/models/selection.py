"""
Degree selection for the polynomial signal term by K-fold cross-validation.

The aligned table is split once into training and held-out rows. Within the
training rows every candidate degree is scored on the same K folds, the degree
with the lowest mean fold MSE is refit on all training rows, and the refit
model is scored on the held-out rows.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
import logging

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error
from sklearn.model_selection import KFold

from greenconcern.data.splitters import RandomRowSplitter, SplitIndices
from greenconcern.evaluation.metrics import MetricsCalculator
from greenconcern.models.candidate import ModelCandidate, fit_candidate
from greenconcern.models.transforms import IDENTITY, ResponseTransform, get_transform
from greenconcern.utils.config_manager import AnalysisConfig
from greenconcern.utils.error_handling import InvalidConfigurationError, MissingDataError

logger = logging.getLogger(__name__)

# Mean MSEs closer than this (relative to the best) count as a tie
TIE_TOLERANCE = 1e-12


@dataclass(frozen=True)
class CrossValidationResult:
    """
    Per-fold and mean assessment MSE for each candidate degree.

    Attributes:
        fold_mse: Fold x degree table; rows of skipped folds are NaN
        mean_mse: Mean over the folds that were not skipped, indexed by degree
        n_folds_used: Number of folds contributing to the mean
    """
    fold_mse: pd.DataFrame
    mean_mse: pd.Series
    n_folds_used: int

    @property
    def degrees(self) -> List[int]:
        return [int(d) for d in self.mean_mse.index]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mean_mse": {int(d): float(v) for d, v in self.mean_mse.items()},
            "fold_mse": {
                int(fold): {int(d): float(v) for d, v in row.items()}
                for fold, row in self.fold_mse.iterrows()
            },
            "n_folds_used": self.n_folds_used,
        }


@dataclass(frozen=True)
class SelectionReport:
    """Outcome of one selection run: chosen model, CV curve and held-out error."""
    model: ModelCandidate
    cross_validation: CrossValidationResult
    split: SplitIndices
    test_mse: float
    test_metrics: Dict[str, float] = field(default_factory=dict)
    residual_summary: Dict[str, float] = field(default_factory=dict)

    @property
    def selected_degree(self) -> int:
        return self.model.degree

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (split indices reduced to their metadata)."""
        return {
            "selected_degree": self.selected_degree,
            "test_mse": self.test_mse,
            "test_metrics": self.test_metrics,
            "residual_summary": self.residual_summary,
            "model": self.model.summary(),
            "cross_validation": self.cross_validation.to_dict(),
            "split": self.split.metadata,
        }


class ModelSelector:
    """Chooses the polynomial degree of the signal term by K-fold cross-validation."""

    def __init__(
        self,
        max_degree: int = 5,
        k_folds: int = 10,
        train_fraction: float = 0.6,
        seed: int = 1,
        target: str = "target",
        signal: str = "signal",
        covariates: Sequence[str] = ("fuel", "index"),
        transform: Union[str, ResponseTransform] = IDENTITY,
    ):
        """
        Args:
            max_degree: Candidate degrees are 1..max_degree
            k_folds: Number of cross-validation folds within the training rows
            train_fraction: Probability that a row is drawn into training
            seed: Seed for the train/test draw and the fold shuffle
            target: Response column
            signal: Column receiving the polynomial term
            covariates: Linear covariates held in every candidate
            transform: Response transform (or its registered name)
        """
        if max_degree < 1:
            raise InvalidConfigurationError(f"max_degree must be >= 1, got {max_degree}")
        if k_folds < 2:
            raise InvalidConfigurationError(f"k_folds must be >= 2, got {k_folds}")
        self.max_degree = max_degree
        self.k_folds = k_folds
        self.seed = seed
        self.target = target
        self.signal = signal
        self.covariates = tuple(covariates)
        self.transform = get_transform(transform) if isinstance(transform, str) else transform
        self.splitter = RandomRowSplitter(train_fraction=train_fraction, seed=seed)
        self.metrics = MetricsCalculator()

    @classmethod
    def from_config(cls, config: AnalysisConfig, **kwargs) -> "ModelSelector":
        """Build a selector from the analysis configuration."""
        params = dict(
            max_degree=config.max_degree,
            k_folds=config.k_folds,
            train_fraction=config.train_fraction,
            seed=config.seed,
            covariates=config.covariates,
            transform=config.response_transform,
        )
        params.update(kwargs)
        return cls(**params)

    @property
    def degrees(self) -> List[int]:
        return list(range(1, self.max_degree + 1))

    def with_transform(self, transform: Union[str, ResponseTransform]) -> "ModelSelector":
        """Same settings (and therefore the same split and folds) with another transform."""
        return ModelSelector(
            max_degree=self.max_degree,
            k_folds=self.k_folds,
            train_fraction=self.splitter.train_fraction,
            seed=self.seed,
            target=self.target,
            signal=self.signal,
            covariates=self.covariates,
            transform=transform,
        )

    def fit(self, frame: pd.DataFrame, degree: int) -> ModelCandidate:
        """Fit one candidate of the given degree on all rows of `frame`."""
        return fit_candidate(
            frame,
            degree=degree,
            target=self.target,
            signal=self.signal,
            covariates=self.covariates,
            transform=self.transform,
        )

    def _assessment_mse(self, model: ModelCandidate, frame: pd.DataFrame) -> float:
        predictions = model.predict(frame)
        if not np.all(np.isfinite(predictions)):
            raise InvalidConfigurationError(
                f"Degree-{model.degree} predictions fall outside the domain of the "
                f"'{self.transform.name}' inverse transform"
            )
        return float(mean_squared_error(frame[self.target].to_numpy(dtype=float), predictions))

    def _check_training_rows(self, train: pd.DataFrame) -> None:
        n_rows = len(train)
        if self.k_folds > n_rows:
            raise InvalidConfigurationError(
                f"k_folds={self.k_folds} exceeds the {n_rows} training rows"
            )
        n_distinct = train[self.signal].nunique()
        if self.max_degree >= n_distinct:
            raise InvalidConfigurationError(
                f"max_degree={self.max_degree} needs more than {self.max_degree} distinct "
                f"signal values, got {n_distinct}"
            )

    def fold_indices(self, n_rows: int) -> List[np.ndarray]:
        """
        Assessment positions of each fold.

        Rows are shuffled with the selector's seed and cut into k_folds
        contiguous blocks whose sizes differ by at most one.
        """
        kfold = KFold(n_splits=self.k_folds, shuffle=True, random_state=self.seed)
        return [assessment for _, assessment in kfold.split(np.arange(n_rows))]

    def cross_validate(self, train: pd.DataFrame) -> CrossValidationResult:
        """
        Score every candidate degree on the same K folds of the training rows.

        The polynomial basis is refit on each fold's analysis rows. A fold with
        no assessment rows is skipped and left out of the mean.

        Args:
            train: Training rows

        Returns:
            CrossValidationResult

        Raises:
            InvalidConfigurationError: If k_folds exceeds the training rows or
                max_degree exceeds the distinct signal values
        """
        self._check_training_rows(train)

        n_rows = len(train)
        folds = self.fold_indices(n_rows)
        fold_mse = pd.DataFrame(
            np.nan,
            index=pd.RangeIndex(1, len(folds) + 1, name="fold"),
            columns=pd.Index(self.degrees, name="degree"),
        )

        for fold_no, assessment_pos in enumerate(folds, start=1):
            if len(assessment_pos) == 0:
                logger.warning(f"Fold {fold_no} has no assessment rows; skipping")
                continue
            in_assessment = np.zeros(n_rows, dtype=bool)
            in_assessment[assessment_pos] = True
            analysis = train.iloc[~in_assessment]
            assessment = train.iloc[in_assessment]

            for degree in self.degrees:
                model = self.fit(analysis, degree)
                fold_mse.loc[fold_no, degree] = self._assessment_mse(model, assessment)

            logger.debug(
                f"Fold {fold_no}: {len(analysis)} analysis / {len(assessment)} assessment rows, "
                f"MSE by degree {fold_mse.loc[fold_no].round(6).to_dict()}"
            )

        used = fold_mse.notna().all(axis=1)
        n_folds_used = int(used.sum())
        if n_folds_used == 0:
            raise MissingDataError("Every cross-validation fold was empty")

        mean_mse = fold_mse.loc[used].mean(axis=0)
        mean_mse.name = "mean_mse"
        return CrossValidationResult(
            fold_mse=fold_mse,
            mean_mse=mean_mse,
            n_folds_used=n_folds_used,
        )

    @staticmethod
    def select_degree(cv: CrossValidationResult) -> int:
        """Degree with the lowest mean MSE; ties go to the lower degree."""
        best = float(cv.mean_mse.min())
        threshold = best + TIE_TOLERANCE * max(1.0, abs(best))
        tied = [d for d, mse in cv.mean_mse.items() if mse <= threshold]
        return int(min(tied))

    def evaluate(self, model: ModelCandidate, test: pd.DataFrame) -> Dict[str, Any]:
        """Held-out metrics and residual summary in original response units."""
        predictions = model.predict(test)
        if not np.all(np.isfinite(predictions)):
            raise InvalidConfigurationError(
                f"Held-out predictions fall outside the domain of the "
                f"'{self.transform.name}' inverse transform"
            )
        result = self.metrics.evaluate(test[self.target].to_numpy(dtype=float), predictions)
        return result.to_dict()

    def run(self, frame: pd.DataFrame) -> SelectionReport:
        """
        Full protocol: split, cross-validate, select, refit, evaluate.

        Args:
            frame: Modelling table with target, signal and covariate columns

        Returns:
            SelectionReport for the selected degree
        """
        split = self.splitter.split(frame)
        train, test = self.splitter.apply_split(frame, split)

        cv = self.cross_validate(train)
        degree = self.select_degree(cv)
        model = self.fit(train, degree)
        evaluation = self.evaluate(model, test)

        report = SelectionReport(
            model=model,
            cross_validation=cv,
            split=split,
            test_mse=evaluation["metrics"]["mse"],
            test_metrics=evaluation["metrics"],
            residual_summary=evaluation["residuals"],
        )
        logger.info(
            f"Selected degree {degree} (transform={self.transform.name}, "
            f"CV MSE={cv.mean_mse[degree]:.6g}, test MSE={report.test_mse:.6g}, "
            f"train={len(train)}, test={len(test)})"
        )
        return report

    def compare_transforms(
        self,
        frame: pd.DataFrame,
        transforms: Iterable[Union[str, ResponseTransform]],
    ) -> pd.DataFrame:
        """
        Run the protocol once per transform on the same split and folds.

        Args:
            frame: Modelling table
            transforms: Transforms or registered transform names

        Returns:
            DataFrame indexed by transform name, sorted by held-out MSE
        """
        rows = []
        for transform in transforms:
            report = self.with_transform(transform).run(frame)
            rows.append({
                "transform": report.model.response_transform.name,
                "selected_degree": report.selected_degree,
                "cv_mse": float(report.cross_validation.mean_mse[report.selected_degree]),
                "test_mse": report.test_mse,
                "r_squared": report.model.r_squared,
            })
        if not rows:
            raise InvalidConfigurationError("No transforms given for comparison")
        return pd.DataFrame(rows).set_index("transform").sort_values("test_mse")
