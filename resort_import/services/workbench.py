from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any, Union

from ..models.config_models import DEFAULT_TERRAIN_TOLERANCE
from ..models.processing_result import WorkbenchCounts
from ..models.resort_record import FIELD_NAMES, ResortRecord
from ..models.workbench_row import (
    MatchResult,
    MatchType,
    RowAction,
    RowStatus,
    WorkbenchRow,
    compute_status,
)
from .normalizer import coerce_field
from .validator import completeness, validate_record

"""Workbench state machine.

Row state only changes through reduce_row(row, event). Every event produces a
new WorkbenchRow whose errors, warnings, completeness and status are derived
from scratch, so no call site has to remember to refresh status.

Events:
- FieldEdited:   replace one field in data, mark dirty (match context kept)
- MatchResolved: apply a duplicate-check result, clear dirty flag
- ActionChosen:  operator decision (None = undecided / unskip)
- SkipToggled:   skip <-> undecided

The Workbench container owns the rows of one editing session and computes the
aggregate counts and the push gate.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "FieldEdited",
    "MatchResolved",
    "ActionChosen",
    "SkipToggled",
    "RowEvent",
    "WorkbenchError",
    "make_row",
    "reduce_row",
    "count_rows",
    "Workbench",
]


class WorkbenchError(Exception):
    """Invalid workbench operation (unknown row index or field)."""


@dataclass(frozen=True)
class FieldEdited:
    field: str
    value: Any


@dataclass(frozen=True)
class MatchResolved:
    result: MatchResult


@dataclass(frozen=True)
class ActionChosen:
    action: RowAction | None


@dataclass(frozen=True)
class SkipToggled:
    pass


RowEvent = Union[FieldEdited, MatchResolved, ActionChosen, SkipToggled]


def _derive(row: WorkbenchRow, terrain_tolerance: float) -> WorkbenchRow:
    errors, warnings = validate_record(row.data, terrain_tolerance)
    status = compute_status(
        errors, warnings, row.checked, row.match_type, row.action, row.is_dirty
    )
    return replace(
        row,
        errors=errors,
        warnings=warnings,
        completeness=completeness(row.data),
        status=status,
    )


def make_row(
    index: int,
    record: ResortRecord,
    terrain_tolerance: float = DEFAULT_TERRAIN_TOLERANCE,
) -> WorkbenchRow:
    """Create the initial (unchecked, undecided) row for a parsed record."""
    seed = WorkbenchRow(
        index=index,
        data=record,
        original_data=record,
        status=RowStatus.READY,
        completeness=completeness(record),
    )
    return _derive(seed, terrain_tolerance)


def _apply_match(row: WorkbenchRow, result: MatchResult) -> WorkbenchRow:
    action = row.action
    if result.match_type is MatchType.NEW:
        if action is not RowAction.SKIP:
            # new 判定は operator の merge も import に戻す (skip は保持)
            action = RowAction.IMPORT
        return replace(
            row,
            checked=True,
            is_dirty=False,
            match_type=MatchType.NEW,
            matched_resort_id=None,
            matched_resort_name=None,
            match_similarity=None,
            matched_data=None,
            action=action,
        )

    # 前回と異なる照合結果なら以前の import/merge 判断は無効
    same_outcome = (
        row.checked
        and row.match_type is result.match_type
        and row.matched_resort_id == result.resort_id
    )
    if not same_outcome and action is not RowAction.SKIP:
        action = None
    similarity = result.similarity
    if similarity is None and result.match_type is MatchType.EXACT:
        similarity = 1.0
    return replace(
        row,
        checked=True,
        is_dirty=False,
        match_type=result.match_type,
        matched_resort_id=result.resort_id,
        matched_resort_name=result.resort_name,
        match_similarity=similarity,
        matched_data=result.existing_data,
        action=action,
    )


def reduce_row(
    row: WorkbenchRow,
    event: RowEvent,
    terrain_tolerance: float = DEFAULT_TERRAIN_TOLERANCE,
) -> WorkbenchRow:
    """Apply one event to a row and return the recomputed row.

    Raises:
        WorkbenchError: for an unknown field name or an event of unknown type
    """
    if isinstance(event, FieldEdited):
        if event.field not in FIELD_NAMES:
            raise WorkbenchError(f"unknown field: {event.field}")
        data = replace(row.data, **{event.field: coerce_field(event.field, event.value)})
        updated = replace(row, data=data, is_dirty=True)
    elif isinstance(event, MatchResolved):
        updated = _apply_match(row, event.result)
    elif isinstance(event, ActionChosen):
        updated = replace(row, action=event.action)
    elif isinstance(event, SkipToggled):
        updated = replace(row, action=None if row.action is RowAction.SKIP else RowAction.SKIP)
    else:
        raise WorkbenchError(f"unsupported event: {type(event).__name__}")
    return _derive(updated, terrain_tolerance)


def count_rows(rows: Iterable[WorkbenchRow]) -> WorkbenchCounts:
    tally = {status: 0 for status in RowStatus}
    total = 0
    checked = 0
    for row in rows:
        tally[row.status] += 1
        total += 1
        if row.checked:
            checked += 1
    return WorkbenchCounts(
        errors=tally[RowStatus.ERROR],
        warnings=tally[RowStatus.WARNING],
        ready=tally[RowStatus.READY],
        skipped=tally[RowStatus.SKIPPED],
        total=total,
        checked=checked,
    )


class Workbench:
    """Reconciliation state for one import file and one operator.

    Not thread-safe; a workbench belongs to a single editing session.
    """

    def __init__(self, terrain_tolerance: float = DEFAULT_TERRAIN_TOLERANCE) -> None:
        self.terrain_tolerance = terrain_tolerance
        self._rows: list[WorkbenchRow] = []
        self._counts: WorkbenchCounts | None = None

    @classmethod
    def from_records(
        cls,
        records: Sequence[ResortRecord],
        terrain_tolerance: float = DEFAULT_TERRAIN_TOLERANCE,
    ) -> Workbench:
        wb = cls(terrain_tolerance)
        wb.load(records)
        return wb

    # -- lifecycle -------------------------------------------------------

    def load(self, records: Sequence[ResortRecord]) -> None:
        """Replace all rows with fresh rows for a newly parsed file."""
        self._rows = [
            make_row(i, record, self.terrain_tolerance) for i, record in enumerate(records)
        ]
        self._counts = None
        logger.debug(f"workbench loaded rows={len(self._rows)}")

    def clear(self) -> None:
        self._rows = []
        self._counts = None

    # -- access ----------------------------------------------------------

    @property
    def rows(self) -> tuple[WorkbenchRow, ...]:
        return tuple(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def row(self, index: int) -> WorkbenchRow:
        if not 0 <= index < len(self._rows):
            raise WorkbenchError(f"row index out of range: {index}")
        return self._rows[index]

    # -- mutation (all through the reducer) ------------------------------

    def dispatch(self, index: int, event: RowEvent) -> WorkbenchRow:
        current = self.row(index)
        updated = reduce_row(current, event, self.terrain_tolerance)
        self._rows[index] = updated
        self._counts = None
        return updated

    def edit(self, index: int, field: str, value: Any) -> WorkbenchRow:
        return self.dispatch(index, FieldEdited(field, value))

    def set_action(self, index: int, action: RowAction | None) -> WorkbenchRow:
        return self.dispatch(index, ActionChosen(action))

    def toggle_skip(self, index: int) -> WorkbenchRow:
        return self.dispatch(index, SkipToggled())

    def apply_match(self, result: MatchResult) -> WorkbenchRow:
        return self.dispatch(result.index, MatchResolved(result))

    # -- aggregates ------------------------------------------------------

    def counts(self) -> WorkbenchCounts:
        # 変更が入るまでキャッシュ
        if self._counts is None:
            self._counts = count_rows(self._rows)
        return self._counts

    def can_push(self) -> bool:
        return self.counts().can_push
