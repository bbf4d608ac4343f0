from __future__ import annotations

from dataclasses import dataclass

"""Aggregate result models for the resort import workbench.

WorkbenchCounts is the toolbar summary over all rows; CommitResult is the
running total of a batch commit (possibly partial when a batch failed).
"""

__all__ = [
    "WorkbenchCounts",
    "CommitResult",
]


@dataclass(frozen=True)
class WorkbenchCounts:
    """Per-status row totals (errors + warnings + ready + skipped == total)."""
    errors: int = 0
    warnings: int = 0
    ready: int = 0
    skipped: int = 0
    total: int = 0
    checked: int = 0

    @property
    def can_push(self) -> bool:
        """Push gate: nothing broken, nothing undecided, something to send."""
        return self.errors == 0 and self.warnings == 0 and self.ready > 0


@dataclass(frozen=True)
class CommitResult:
    inserted: int = 0
    updated: int = 0
    placeholders: int = 0
    batches_sent: int = 0
    total_batches: int = 0

    def add_response(self, response: dict) -> CommitResult:
        """Return a new total including one import-batch response."""
        return CommitResult(
            inserted=self.inserted + int(response.get("inserted") or 0),
            updated=self.updated + int(response.get("updated") or 0),
            placeholders=self.placeholders + int(response.get("placeholders_assigned") or 0),
            batches_sent=self.batches_sent + 1,
            total_batches=self.total_batches,
        )

    def to_details(self) -> dict[str, int]:
        """Audit-log details payload."""
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "placeholders_assigned": self.placeholders,
        }
