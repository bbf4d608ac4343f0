from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path

from ..models.workbench_row import RowAction
from .workbench import Workbench, WorkbenchError

"""Operator decisions file.

Input CSV format (comma-delimited, header row required):
    index,action

index:  0-based workbench row index (as shown by `inspect` / export)
action: import | merge | skip | clear   (clear = back to undecided)

Rows with an unknown action or a bad index are rejected with a warning;
valid rows are applied in file order.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "Decision",
    "DecisionsError",
    "parse_action",
    "read_decisions",
    "apply_decisions",
]

_REQUIRED_COLS = frozenset({"index", "action"})
_CLEAR = "clear"


class DecisionsError(Exception):
    """The decisions file is missing or lacks required columns."""


@dataclass(frozen=True)
class Decision:
    line: int
    index: int
    action: RowAction | None


def parse_action(text: str) -> RowAction | None:
    """Parse an action token; 'clear' / '' mean undecided.

    Raises:
        ValueError: unknown token
    """
    token = text.strip().lower()
    if token in (_CLEAR, ""):
        return None
    return RowAction(token)


def read_decisions(path: Path) -> tuple[list[Decision], list[str]]:
    """Read a decisions CSV.

    Returns:
        (decisions, rejects) where rejects are human-readable reasons
    """
    if not path.exists():
        raise DecisionsError(f"decisions file not found: {path}")
    decisions: list[Decision] = []
    rejects: list[str] = []
    with path.open(newline="", encoding="utf-8") as fh:
        reader = csv.DictReader(fh)
        header = {(h or "").strip() for h in reader.fieldnames or []}
        missing = _REQUIRED_COLS - header
        if missing:
            raise DecisionsError(f"decisions file missing columns: {sorted(missing)}")
        for line_no, raw in enumerate(reader, start=2):
            row = {(k or "").strip(): (v or "") for k, v in raw.items()}
            try:
                index = int(row["index"].strip())
                action = parse_action(row["action"])
            except ValueError:
                rejects.append(f"line {line_no}: invalid index/action {row['index']!r}/{row['action']!r}")
                continue
            decisions.append(Decision(line=line_no, index=index, action=action))
    return decisions, rejects


def apply_decisions(workbench: Workbench, decisions: list[Decision]) -> tuple[int, list[str]]:
    """Apply decisions to the workbench; returns (applied, rejects)."""
    applied = 0
    rejects: list[str] = []
    for d in decisions:
        try:
            workbench.set_action(d.index, d.action)
        except WorkbenchError as e:
            rejects.append(f"line {d.line}: {e}")
            continue
        applied += 1
    for reason in rejects:
        logger.warning(f"decisions: {reason}")
    return applied, rejects
