from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .resort_record import ResortRecord

"""WorkbenchRow domain model and reconciliation enums.

A WorkbenchRow is the unit of reconciliation state for one parsed input row.
Rows are immutable; every change goes through the reducer in
resort_import.services.workbench, which calls compute_status() so that
status is always derived from the row's own fields.

Status precedence (first match wins):
    skip -> error -> warning (undecided duplicate / edited after check) -> ready
"""

__all__ = [
    "RowStatus",
    "MatchType",
    "RowAction",
    "RowIssue",
    "Completeness",
    "MatchResult",
    "WorkbenchRow",
    "compute_status",
    "similarity_band",
]


class RowStatus(Enum):
    ERROR = "error"
    WARNING = "warning"
    READY = "ready"
    SKIPPED = "skipped"


class MatchType(Enum):
    NEW = "new"
    EXACT = "exact"
    SIMILAR = "similar"


class RowAction(Enum):
    IMPORT = "import"
    MERGE = "merge"
    SKIP = "skip"


@dataclass(frozen=True)
class RowIssue:
    """A validation finding for one field (or pseudo-field such as terrain_pct)."""
    field: str
    message: str


@dataclass(frozen=True)
class Completeness:
    filled: int
    total: int


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a duplicate check for one row (absolute index)."""
    index: int
    match_type: MatchType
    resort_id: str | None = None
    resort_name: str | None = None
    similarity: float | None = None
    existing_data: dict[str, Any] | None = None


@dataclass(frozen=True)
class WorkbenchRow:
    index: int  # 解析バッチ内の位置 (識別キー)
    data: ResortRecord
    original_data: ResortRecord
    status: RowStatus
    completeness: Completeness
    errors: tuple[RowIssue, ...] = ()
    warnings: tuple[RowIssue, ...] = ()
    checked: bool = False
    match_type: MatchType | None = None
    matched_resort_id: str | None = None
    matched_resort_name: str | None = None
    match_similarity: float | None = None
    matched_data: dict[str, Any] | None = field(default=None, compare=False)
    action: RowAction | None = None
    is_dirty: bool = False

    @property
    def is_duplicate(self) -> bool:
        return self.match_type in (MatchType.EXACT, MatchType.SIMILAR)

    @property
    def edited_fields(self) -> list[str]:
        """Fields whose current value differs from the as-parsed value."""
        current = self.data.to_dict()
        original = self.original_data.to_dict()
        return [k for k in current if _differs(current[k], original[k])]


def _differs(a: Any, b: Any) -> bool:
    # NaN != NaN; 未解析値同士は同一扱い
    if isinstance(a, float) and isinstance(b, float) and a != a and b != b:
        return False
    return a != b


def compute_status(
    errors: tuple[RowIssue, ...],
    warnings: tuple[RowIssue, ...],
    checked: bool,
    match_type: MatchType | None,
    action: RowAction | None,
    is_dirty: bool,
) -> RowStatus:
    """Derive a row status from its reconciliation inputs.

    Validation warnings (e.g. terrain percentages) count as a warning status
    as well, between the error check and the match checks.
    """
    if action is RowAction.SKIP:
        return RowStatus.SKIPPED
    if errors:
        return RowStatus.ERROR
    if checked and match_type in (MatchType.EXACT, MatchType.SIMILAR) and action is None:
        return RowStatus.WARNING
    if is_dirty and checked:
        return RowStatus.WARNING
    if warnings:
        return RowStatus.WARNING
    return RowStatus.READY


def similarity_band(score: float | None) -> str:
    """Bucket a similarity score for display: high / medium / low."""
    if score is None:
        return ""
    if score >= 0.8:
        return "high"
    if score >= 0.5:
        return "medium"
    return "low"
