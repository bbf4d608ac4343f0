from __future__ import annotations

import pytest

from resort_import.models.workbench_row import (
    MatchResult,
    MatchType,
    RowAction,
    RowStatus,
    compute_status,
    similarity_band,
)
from resort_import.services.workbench import (
    ActionChosen,
    FieldEdited,
    MatchResolved,
    SkipToggled,
    Workbench,
    WorkbenchError,
    make_row,
    reduce_row,
)


def _exact(index: int, resort_id: str = "r-1", similarity: float | None = None) -> MatchResult:
    return MatchResult(index, MatchType.EXACT, resort_id, "Whistler Blackcomb", similarity)


def test_make_row_initial_state(make_record):
    row = make_row(0, make_record())
    assert row.status is RowStatus.READY
    assert not row.checked
    assert row.action is None
    assert not row.is_dirty
    assert row.original_data == row.data


def test_make_row_with_error(make_record):
    row = make_row(3, make_record(country_code="CAN"))
    assert row.status is RowStatus.ERROR
    assert row.index == 3


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({"action": RowAction.SKIP, "errors": ("e",)}, RowStatus.SKIPPED),
        ({"errors": ("e",), "checked": True, "match_type": MatchType.EXACT}, RowStatus.ERROR),
        ({"checked": True, "match_type": MatchType.SIMILAR}, RowStatus.WARNING),
        ({"checked": True, "match_type": MatchType.SIMILAR, "action": RowAction.MERGE}, RowStatus.READY),
        ({"checked": True, "match_type": MatchType.NEW, "is_dirty": True}, RowStatus.WARNING),
        ({"is_dirty": True}, RowStatus.READY),
        ({"warnings": ("w",), "action": RowAction.IMPORT}, RowStatus.WARNING),
        ({}, RowStatus.READY),
    ],
)
def test_compute_status_precedence(kwargs, expected):
    args = {
        "errors": (),
        "warnings": (),
        "checked": False,
        "match_type": None,
        "action": None,
        "is_dirty": False,
    }
    args.update(kwargs)
    assert compute_status(**args) is expected


def test_new_match_auto_imports(make_record):
    row = reduce_row(make_row(0, make_record()), MatchResolved(MatchResult(0, MatchType.NEW)))
    assert row.checked
    assert row.match_type is MatchType.NEW
    assert row.action is RowAction.IMPORT
    assert row.status is RowStatus.READY


def test_exact_match_needs_decision(make_record):
    row = reduce_row(make_row(0, make_record()), MatchResolved(_exact(0)))
    assert row.status is RowStatus.WARNING
    assert row.action is None
    assert row.match_similarity == 1.0
    assert row.is_duplicate

    merged = reduce_row(row, ActionChosen(RowAction.MERGE))
    assert merged.status is RowStatus.READY
    assert merged.matched_resort_id == "r-1"


def test_edit_after_check_marks_dirty(make_record):
    row = reduce_row(make_row(0, make_record()), MatchResolved(MatchResult(0, MatchType.NEW)))
    edited = reduce_row(row, FieldEdited("name", "Whistler Blackcomb"))
    assert edited.is_dirty
    assert edited.status is RowStatus.WARNING
    assert edited.edited_fields == ["name"]

    rechecked = reduce_row(edited, MatchResolved(MatchResult(0, MatchType.NEW)))
    assert not rechecked.is_dirty
    assert rechecked.status is RowStatus.READY


def test_edit_fixes_error(make_record):
    row = make_row(0, make_record(lat=95))
    fixed = reduce_row(row, FieldEdited("lat", "45.5"))
    assert fixed.status is RowStatus.READY
    assert fixed.data.lat == 45.5
    assert fixed.original_data.lat == 95


def test_edit_unknown_field_rejected(make_record):
    with pytest.raises(WorkbenchError, match="unknown field"):
        reduce_row(make_row(0, make_record()), FieldEdited("elevation", 1))


def test_skip_toggle_round_trip(make_record):
    row = make_row(0, make_record(name=""))
    skipped = reduce_row(row, SkipToggled())
    assert skipped.status is RowStatus.SKIPPED
    back = reduce_row(skipped, SkipToggled())
    assert back.action is None
    assert back.status is RowStatus.ERROR


def test_recheck_with_different_match_clears_decision(make_record):
    row = reduce_row(make_row(0, make_record()), MatchResolved(_exact(0, "r-1")))
    row = reduce_row(row, ActionChosen(RowAction.MERGE))
    same = reduce_row(row, MatchResolved(_exact(0, "r-1")))
    assert same.action is RowAction.MERGE
    other = reduce_row(row, MatchResolved(_exact(0, "r-2")))
    assert other.action is None
    assert other.status is RowStatus.WARNING


def test_recheck_keeps_skip(make_record):
    row = reduce_row(make_row(0, make_record()), SkipToggled())
    row = reduce_row(row, MatchResolved(_exact(0)))
    assert row.action is RowAction.SKIP
    row = reduce_row(row, MatchResolved(MatchResult(0, MatchType.NEW)))
    assert row.status is RowStatus.SKIPPED


def test_terrain_warning_row_is_warning(make_record):
    row = make_row(0, make_record(beginner_pct=20, intermediate_pct=20, advanced_pct=20))
    assert row.status is RowStatus.WARNING
    assert row.warnings[0].field == "terrain_pct"


def test_workbench_counts_and_gate(make_record):
    wb = Workbench.from_records(
        [make_record(), make_record(name=""), make_record(name="Verbier")]
    )
    counts = wb.counts()
    assert (counts.total, counts.ready, counts.errors) == (3, 2, 1)
    assert not wb.can_push()

    wb.toggle_skip(1)
    assert wb.counts().skipped == 1
    assert wb.can_push()

    wb.apply_match(_exact(2, "r-9", 0.93))
    assert wb.counts().warnings == 1
    assert not wb.can_push()
    wb.set_action(2, RowAction.IMPORT)
    assert wb.can_push()
    counts = wb.counts()
    assert counts.errors + counts.warnings + counts.ready + counts.skipped == counts.total


def test_workbench_all_skipped_cannot_push(make_record):
    wb = Workbench.from_records([make_record()])
    wb.toggle_skip(0)
    assert not wb.can_push()


def test_workbench_row_out_of_range(make_record):
    wb = Workbench.from_records([make_record()])
    with pytest.raises(WorkbenchError, match="out of range"):
        wb.edit(5, "name", "x")


def test_workbench_load_and_clear_reset_state(make_record):
    wb = Workbench.from_records([make_record()])
    wb.toggle_skip(0)
    wb.load([make_record(), make_record()])
    assert len(wb) == 2
    assert all(r.action is None for r in wb.rows)
    wb.clear()
    assert wb.counts().total == 0


@pytest.mark.parametrize("score, band", [(None, ""), (0.95, "high"), (0.8, "high"), (0.6, "medium"), (0.2, "low")])
def test_similarity_band(score, band):
    assert similarity_band(score) == band
