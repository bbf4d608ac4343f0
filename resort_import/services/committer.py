from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..backend.client import BackendError
from ..models.processing_result import CommitResult, WorkbenchCounts
from ..models.workbench_row import MatchType, RowAction, RowStatus, WorkbenchRow
from .session import ImportSession
from .workbench import Workbench

"""Batch committer: workbench rows -> sequential import calls.

Partitioning:
- action=merge with a matched resort id          -> updates [{resort_id, fields}]
- action=import, match_type=new, or never checked -> new resorts
- error / skipped rows                            -> neither

Batching:
- new resorts are chunked by batch_size
- updates travel in full with the first request, as do placeholder URLs
- updates only -> one request with an empty new_resorts list

Requests are sent strictly one after another. A failed request aborts the
remaining ones; totals from the batches that already succeeded are kept on the
raised CommitError (no rollback).
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CommitError",
    "NothingToImportError",
    "PushBlockedError",
    "Partition",
    "BatchMetrics",
    "partition_rows",
    "build_batches",
    "commit_partition",
    "commit_workbench",
]

AUDIT_ACTION = "bulk_import_resorts"

ProgressCallback = Callable[[int, int], None]


class CommitError(Exception):
    """A batch request failed; `result` holds the totals committed before it."""

    def __init__(self, message: str, result: CommitResult) -> None:
        super().__init__(message)
        self.result = result


class NothingToImportError(Exception):
    """No row qualifies for insert or update."""


class PushBlockedError(Exception):
    """Workbench still has errors / warnings, or no ready row."""

    def __init__(self, counts: WorkbenchCounts) -> None:
        super().__init__(
            f"push blocked: errors={counts.errors} warnings={counts.warnings} ready={counts.ready}"
        )
        self.counts = counts


@dataclass(frozen=True)
class Partition:
    new_resorts: list[dict[str, Any]] = field(default_factory=list)
    updates: list[dict[str, Any]] = field(default_factory=list)
    new_indexes: list[int] = field(default_factory=list)
    update_indexes: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.new_resorts and not self.updates


@dataclass(frozen=True)
class BatchMetrics:
    """Timing data for one import request."""
    batch_number: int
    new_rows: int
    updates: int
    elapsed_seconds: float


def partition_rows(rows: Iterable[WorkbenchRow]) -> Partition:
    """Split rows into new inserts and merge updates."""
    new_resorts: list[dict[str, Any]] = []
    updates: list[dict[str, Any]] = []
    new_indexes: list[int] = []
    update_indexes: list[int] = []

    for row in rows:
        if row.status in (RowStatus.ERROR, RowStatus.SKIPPED) or row.action is RowAction.SKIP:
            continue
        if row.action is RowAction.MERGE and row.matched_resort_id:
            updates.append({"resort_id": row.matched_resort_id, "fields": row.data.to_payload()})
            update_indexes.append(row.index)
            continue
        # merge 先が無い行は新規扱い
        if row.action is RowAction.IMPORT or row.match_type in (None, MatchType.NEW):
            new_resorts.append(row.data.to_payload())
            new_indexes.append(row.index)
            continue
        # 未決定の重複候補 (push ゲートで先に止まる想定)
        logger.warning(f"row {row.index}: undecided {row.match_type.value} match, not sent")

    return Partition(
        new_resorts=new_resorts,
        updates=updates,
        new_indexes=new_indexes,
        update_indexes=update_indexes,
    )


def build_batches(
    new_resorts: Sequence[dict[str, Any]],
    updates: Sequence[dict[str, Any]],
    placeholder_urls: Sequence[str] | None,
    batch_size: int,
) -> list[dict[str, Any]]:
    """Lay out the request bodies (without the action key) in send order."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    if not new_resorts:
        if not updates:
            return []
        return [{"new_resorts": [], "updates": list(updates)}]

    batches: list[dict[str, Any]] = []
    for offset in range(0, len(new_resorts), batch_size):
        batch: dict[str, Any] = {"new_resorts": list(new_resorts[offset:offset + batch_size])}
        if offset == 0:
            if updates:
                batch["updates"] = list(updates)
            if placeholder_urls:
                batch["placeholder_urls"] = list(placeholder_urls)
        batches.append(batch)
    return batches


def commit_partition(
    partition: Partition,
    session: ImportSession,
    *,
    force_refresh_placeholders: bool = False,
    progress_callback: ProgressCallback | None = None,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> CommitResult:
    """Send a partition to the import endpoint batch by batch.

    Raises:
        NothingToImportError: partition is empty (no request is made)
        CommitError: placeholder listing or a batch request failed
    """
    if partition.is_empty:
        raise NothingToImportError("Nothing to import")

    settings = session.config.settings
    placeholder_urls: list[str] | None = None
    if partition.new_resorts and settings.assign_placeholders:
        try:
            placeholder_urls = session.placeholders.get(session.api, force_refresh=force_refresh_placeholders)
        except BackendError as e:
            raise CommitError(f"Failed to load placeholder images: {e}", CommitResult()) from e

    batches = build_batches(partition.new_resorts, partition.updates, placeholder_urls, settings.batch_size)
    result = CommitResult(total_batches=len(batches))
    logger.info(
        f"commit start: new={len(partition.new_resorts)} updates={len(partition.updates)} batches={len(batches)}"
    )

    for batch_no, batch in enumerate(batches, start=1):
        if progress_callback is not None:
            progress_callback(batch_no, len(batches))
        start = time.time()
        try:
            response = session.api.import_batch(
                batch["new_resorts"],
                updates=batch.get("updates"),
                placeholder_urls=batch.get("placeholder_urls"),
            )
        except BackendError as e:
            logger.error(
                f"import batch {batch_no}/{len(batches)} failed: {e} "
                f"(committed so far inserted={result.inserted} updated={result.updated})"
            )
            if result.batches_sent:
                session.audit.log(
                    AUDIT_ACTION,
                    "resort",
                    details={**result.to_details(), "aborted": True, "error": str(e)},
                )
            raise CommitError(f"Import failed at batch {batch_no}/{len(batches)}: {e}", result) from e
        finally:
            if metrics_callback is not None:
                metrics_callback(
                    BatchMetrics(
                        batch_number=batch_no,
                        new_rows=len(batch["new_resorts"]),
                        updates=len(batch.get("updates") or []),
                        elapsed_seconds=time.time() - start,
                    )
                )
        result = result.add_response(response)

    session.audit.log(AUDIT_ACTION, "resort", details=result.to_details())
    logger.info(
        f"commit complete: inserted={result.inserted} updated={result.updated} placeholders={result.placeholders}"
    )
    return result


def commit_workbench(
    workbench: Workbench,
    session: ImportSession,
    *,
    force_refresh_placeholders: bool = False,
    progress_callback: ProgressCallback | None = None,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> CommitResult:
    """Gate, partition and commit a workbench.

    Raises:
        PushBlockedError: errors or warnings remain, or no row is ready
        NothingToImportError: nothing qualifies after partitioning
        CommitError: a remote call failed (partial totals attached)
    """
    counts = workbench.counts()
    if not counts.can_push:
        raise PushBlockedError(counts)
    partition = partition_rows(workbench.rows)
    return commit_partition(
        partition,
        session,
        force_refresh_placeholders=force_refresh_placeholders,
        progress_callback=progress_callback,
        metrics_callback=metrics_callback,
    )
