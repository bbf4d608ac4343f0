from __future__ import annotations

from ..models.processing_result import CommitResult, WorkbenchCounts

"""SUMMARY line rendering.

Formats:
    SUMMARY rows={total} ready={ready} warnings={warnings} errors={errors} skipped={skipped} checked={checked}
    SUMMARY inserted={inserted} updated={updated} placeholders={placeholders} batches={sent}/{total}

The "SUMMARY " prefix is part of the rendered line; callers that log through
log_summary() strip it since the formatter adds the label.
"""

__all__ = [
    "render_counts_line",
    "render_commit_line",
    "strip_label",
]

_LABEL = "SUMMARY "


def render_counts_line(counts: WorkbenchCounts) -> str:
    """Render workbench status totals.

    Examples:
        >>> render_counts_line(WorkbenchCounts(ready=2, warnings=1, total=3, checked=3))
        'SUMMARY rows=3 ready=2 warnings=1 errors=0 skipped=0 checked=3'
    """
    return (
        f"{_LABEL}rows={counts.total} "
        f"ready={counts.ready} "
        f"warnings={counts.warnings} "
        f"errors={counts.errors} "
        f"skipped={counts.skipped} "
        f"checked={counts.checked}"
    )


def render_commit_line(result: CommitResult) -> str:
    """Render commit totals.

    Examples:
        >>> render_commit_line(CommitResult(inserted=3, updated=1, placeholders=3, batches_sent=1, total_batches=1))
        'SUMMARY inserted=3 updated=1 placeholders=3 batches=1/1'
    """
    return (
        f"{_LABEL}inserted={result.inserted} "
        f"updated={result.updated} "
        f"placeholders={result.placeholders} "
        f"batches={result.batches_sent}/{result.total_batches}"
    )


def strip_label(line: str) -> str:
    return line[len(_LABEL):] if line.startswith(_LABEL) else line
