"""
End-to-end concern-vs-share-price analysis.

Each report runs the four stages in order, passing values explicitly:

1. align: reduce every input to monthly means and inner-join on month
2. decompose: multiplicative decomposition of both search-interest series
3. combine: sum the two trends, standardize alongside the share price
4. select: K-fold degree selection and held-out evaluation
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import logging
import uuid

import pandas as pd

from greenconcern.data.splitters import SeriesAligner
from greenconcern.data.structs import CombinedSignal, DecomposedSeries, TimeSeries
from greenconcern.decomposition.seasonal import SeasonalDecomposer
from greenconcern.features.signal import SignalCombiner
from greenconcern.models.candidate import ModelCandidate, fit_linear_baseline
from greenconcern.models.selection import ModelSelector, SelectionReport
from greenconcern.models.transforms import IDENTITY, get_transform
from greenconcern.utils.config_manager import AnalysisConfig
from greenconcern.utils.error_handling import PipelineError, RecoveryContext
from greenconcern.utils.serialization import save_json

logger = logging.getLogger(__name__)

MONTHLY = "MS"


@dataclass(frozen=True)
class ReportSpec:
    """
    Inputs of one report.

    Attributes:
        name: Report identifier (usually the ticker)
        target: Share price series at any granularity
        keywords: The two search-interest series to combine
        covariates: Linear covariates by column name (e.g. fuel, index)
        transform: Response transform name; the configured default if None
    """
    name: str
    target: TimeSeries
    keywords: Tuple[TimeSeries, TimeSeries]
    covariates: Mapping[str, TimeSeries] = field(default_factory=dict)
    transform: Optional[str] = None


@dataclass
class ReportResult:
    """Outcome of one report; exactly one of `selection` and `failure` is set."""
    name: str
    selection: Optional[SelectionReport] = None
    combined: Optional[CombinedSignal] = None
    correlations: Optional[pd.DataFrame] = None
    baseline: Optional[ModelCandidate] = None
    failure: Optional[RecoveryContext] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {"name": self.name, "succeeded": self.succeeded}
        if self.failure is not None:
            result["failure"] = self.failure.to_dict()
            return result
        result["selection"] = self.selection.to_dict()
        result["baseline"] = self.baseline.summary() if self.baseline else None
        if self.correlations is not None:
            result["correlations"] = self.correlations.to_dict()
        if self.combined is not None:
            result["standardization"] = {
                "signal_mean": self.combined.signal_mean,
                "signal_std": self.combined.signal_std,
                "target_mean": self.combined.target_mean,
                "target_std": self.combined.target_std,
            }
        return result


class ConcernAnalysis:
    """Runs the align -> decompose -> combine -> select stages for one or more reports."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.aligner = SeriesAligner()
        self.decomposer = SeasonalDecomposer(period=self.config.period)
        self.combiner = SignalCombiner()

    def to_monthly(self, series: TimeSeries) -> TimeSeries:
        """Monthly means of any finer-grained series."""
        return self.aligner.to_period_means(series, freq=MONTHLY)

    def decompose_keywords(
        self,
        keywords: Sequence[TimeSeries],
    ) -> List[DecomposedSeries]:
        """
        Decompose search-interest series over the months they share.

        The shared months must be consecutive; they are truncated to a whole
        number of periods before decomposition.

        Raises:
            MissingDataError: If a month is missing inside the shared range
            InsufficientDataError: If fewer than two periods of shared months remain
        """
        monthly = [self.to_monthly(k) for k in keywords]
        shared = self.aligner.align(monthly)
        self.aligner.require_contiguous(shared, freq=MONTHLY)
        self.aligner.require_min_rows(shared, self.config.period)

        decomposed = []
        for column in shared.columns:
            series = TimeSeries.from_series(shared[column], name=column, frequency=MONTHLY)
            series = self.aligner.truncate_to_period_multiple(series, self.config.period)
            decomposed.append(self.decomposer.decompose(series))
        return decomposed

    def build_frame(self, spec: ReportSpec) -> Tuple[CombinedSignal, pd.DataFrame]:
        """Combined signal and the modelling table for one report."""
        if len(spec.keywords) != 2:
            raise PipelineError(f"Report '{spec.name}' needs exactly two keyword series")

        first, second = self.decompose_keywords(spec.keywords)
        target = self.to_monthly(spec.target)
        combined = self.combiner.combine(first, second, target)

        transform = get_transform(spec.transform or self.config.response_transform)
        covariates = {name: self.to_monthly(ts).data for name, ts in spec.covariates.items()}
        frame = self.combiner.to_frame(
            combined,
            covariates,
            standardize_target=transform is IDENTITY,
        )
        return combined, frame

    def run_report(self, spec: ReportSpec) -> ReportResult:
        """
        Run all stages for one report.

        Raises:
            PipelineError: Any stage failure; the caller applies the error policy
        """
        combined, frame = self.build_frame(spec)
        missing = [c for c in self.config.covariates if c not in frame.columns]
        if missing:
            raise PipelineError(f"Report '{spec.name}' lacks covariates {missing}")

        selector = ModelSelector.from_config(self.config)
        if spec.transform:
            selector = selector.with_transform(spec.transform)

        selection = selector.run(frame)
        baseline = fit_linear_baseline(
            frame,
            features=("signal", *self.config.covariates),
            transform=selector.transform,
        )
        correlations = self.aligner.correlation_matrix(frame)

        logger.info(
            f"Report '{spec.name}' complete",
            extra={"props": {
                "report": spec.name,
                "rows": len(frame),
                "selected_degree": selection.selected_degree,
                "test_mse": selection.test_mse,
            }},
        )
        return ReportResult(
            name=spec.name,
            selection=selection,
            combined=combined,
            correlations=correlations,
            baseline=baseline,
        )

    def run_reports(
        self,
        specs: Sequence[ReportSpec],
        run_id: Optional[str] = None,
    ) -> List[ReportResult]:
        """
        Run several reports under the configured error policy.

        With on_error='skip' a failing report is recorded with its failure
        context and the remaining reports still run; with 'abort' the first
        failure propagates.
        """
        run_id = run_id or uuid.uuid4().hex[:12]
        results = []
        for spec in specs:
            try:
                results.append(self.run_report(spec))
            except PipelineError as e:
                if self.config.on_error == "abort":
                    logger.error(f"Report '{spec.name}' failed, aborting run {run_id}: {e}")
                    raise
                logger.warning(f"Report '{spec.name}' skipped: {type(e).__name__}: {e}")
                results.append(ReportResult(
                    name=spec.name,
                    failure=RecoveryContext.from_exception(f"{run_id}/{spec.name}", e),
                ))

        n_ok = sum(r.succeeded for r in results)
        logger.info(f"Run {run_id}: {n_ok}/{len(results)} reports succeeded")
        return results

    def save_reports(
        self,
        results: Sequence[ReportResult],
        path: Optional[Union[str, Path]] = None,
    ) -> Path:
        """Write all report summaries to one JSON file."""
        if path is None:
            if not self.config.report_dir:
                raise ValueError("No report path given and no report_dir configured")
            path = Path(self.config.report_dir) / "reports.json"
        path = Path(path)
        save_json({
            "config": self.config.to_dict(),
            "reports": [r.to_dict() for r in results],
        }, path)
        logger.info(f"Saved {len(results)} reports to {path}")
        return path
