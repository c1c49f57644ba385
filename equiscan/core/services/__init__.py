"""Update orchestration services."""

from equiscan.core.services.eligibility import (
    annual_percentages,
    apply_eligibility,
    average_percentage,
    classify,
    compute_metrics,
    income_trend_ok,
)
from equiscan.core.services.orchestrator import CycleResult, UpdateOrchestrator, merge_seed
from equiscan.core.services.report import ReportBuilder, WorkbookSink, partition_by_tag
from equiscan.core.services.staleness import hours_until_next_run, should_refresh

__all__ = [
    "should_refresh",
    "hours_until_next_run",
    "income_trend_ok",
    "classify",
    "annual_percentages",
    "average_percentage",
    "compute_metrics",
    "apply_eligibility",
    "CycleResult",
    "UpdateOrchestrator",
    "merge_seed",
    "ReportBuilder",
    "WorkbookSink",
    "partition_by_tag",
]
