"""Domain models for the resort import workbench.

This package contains the domain model classes used throughout the
application: the normalized resort record, the per-row reconciliation state,
aggregate counters, parse-error records and configuration.
"""

from .config_models import BackendConfig, ImportSettings, WorkbenchConfig
from .error_record import ErrorRecord
from .processing_result import CommitResult, WorkbenchCounts
from .resort_record import FIELD_NAMES, RICHNESS_FIELDS, ResortRecord
from .workbench_row import (
    Completeness,
    MatchResult,
    MatchType,
    RowAction,
    RowIssue,
    RowStatus,
    WorkbenchRow,
)

__all__ = [
    # Configuration models
    "BackendConfig",
    "ImportSettings",
    "WorkbenchConfig",
    # Record models
    "FIELD_NAMES",
    "RICHNESS_FIELDS",
    "ResortRecord",
    "ErrorRecord",
    # Reconciliation models
    "Completeness",
    "MatchResult",
    "MatchType",
    "RowAction",
    "RowIssue",
    "RowStatus",
    "WorkbenchRow",
    # Aggregates
    "CommitResult",
    "WorkbenchCounts",
]
