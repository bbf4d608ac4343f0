from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from ..backend.client import BackendError
from ..models.workbench_row import MatchResult, MatchType, WorkbenchRow
from .workbench import Workbench

"""Duplicate matcher: client side of the remote reconciliation call.

The full row set is split into chunks of batch_size and sent one chunk at a
time (never in parallel). Each chunk's results carry an input_index relative
to the chunk; the absolute row index is offset + input_index. Results are
applied to the workbench as soon as a chunk returns, so a failure in a later
chunk leaves earlier chunks' rows checked.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "MatcherError",
    "MatchConflictError",
    "PreviewApi",
    "CheckSummary",
    "chunk_offsets",
    "parse_preview_results",
    "check_against_db",
]

ProgressCallback = Callable[[int, int], None]

_RESULT_LISTS = (
    ("new", MatchType.NEW),
    ("exact_matches", MatchType.EXACT),
    ("similar_matches", MatchType.SIMILAR),
)


class MatcherError(Exception):
    """Duplicate check aborted; rows from earlier chunks keep their results."""

    def __init__(self, message: str, checked_rows: int = 0) -> None:
        super().__init__(message)
        self.checked_rows = checked_rows


class MatchConflictError(MatcherError):
    """The endpoint returned overlapping or out-of-range result indexes."""


class PreviewApi(Protocol):
    def preview(self, resorts: Sequence[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]: ...


@dataclass(frozen=True)
class CheckSummary:
    new: int = 0
    exact: int = 0
    similar: int = 0
    batches: int = 0

    @property
    def checked(self) -> int:
        return self.new + self.exact + self.similar


def chunk_offsets(total: int, batch_size: int) -> Iterator[tuple[int, int]]:
    """Yield (offset, end) for consecutive chunks covering range(total)."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    for offset in range(0, total, batch_size):
        yield offset, min(offset + batch_size, total)


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_preview_results(
    results: dict[str, list[dict[str, Any]]],
    offset: int,
    chunk_len: int,
) -> list[MatchResult]:
    """Convert one chunk's preview response into absolute-index MatchResults.

    Raises:
        MatchConflictError: an input_index is missing, out of the chunk's
            range, or present in more than one result list
    """
    seen: dict[int, MatchType] = {}
    parsed: list[MatchResult] = []
    for key, match_type in _RESULT_LISTS:
        for entry in results.get(key) or []:
            try:
                local = int(entry["input_index"])
            except (KeyError, TypeError, ValueError) as e:
                raise MatchConflictError(f"{key} entry without a valid input_index: {entry!r}") from e
            if not 0 <= local < chunk_len:
                raise MatchConflictError(
                    f"{key} input_index {local} outside chunk of {chunk_len} rows (offset {offset})"
                )
            if local in seen:
                raise MatchConflictError(
                    f"row {offset + local} returned as both {seen[local].value} and {match_type.value}"
                )
            seen[local] = match_type
            resort_id = entry.get("existing_resort_id")
            parsed.append(
                MatchResult(
                    index=offset + local,
                    match_type=match_type,
                    resort_id=str(resort_id) if resort_id is not None else None,
                    resort_name=entry.get("existing_name"),
                    similarity=_optional_float(entry.get("similarity_score")),
                    existing_data=entry.get("existing_data"),
                )
            )
    return parsed


def _candidate(row: WorkbenchRow) -> dict[str, Any]:
    return {"name": row.data.name, "country": row.data.country}


def check_against_db(
    workbench: Workbench,
    api: PreviewApi,
    batch_size: int,
    progress_callback: ProgressCallback | None = None,
) -> CheckSummary:
    """Run the duplicate check for every workbench row.

    Args:
        workbench: Rows to check (results are written back in place)
        api: Object exposing preview(resorts)
        batch_size: Maximum rows per preview call
        progress_callback: Called with (batch_number, total_batches) before each call

    Returns:
        CheckSummary with per-type counts over all chunks

    Raises:
        MatcherError: a preview call failed; earlier chunks stay applied
        MatchConflictError: the response violated the disjoint-lists contract
    """
    rows = workbench.rows
    chunks = list(chunk_offsets(len(rows), batch_size))
    counts = {MatchType.NEW: 0, MatchType.EXACT: 0, MatchType.SIMILAR: 0}
    applied = 0

    for batch_no, (offset, end) in enumerate(chunks, start=1):
        if progress_callback is not None:
            progress_callback(batch_no, len(chunks))
        candidates = [_candidate(r) for r in rows[offset:end]]
        try:
            results = api.preview(candidates)
        except BackendError as e:
            logger.error(f"duplicate check failed at batch {batch_no}/{len(chunks)}: {e}")
            raise MatcherError(f"Duplicate check failed: {e}", checked_rows=applied) from e

        matches = parse_preview_results(results, offset, end - offset)
        for match in matches:
            workbench.apply_match(match)
            counts[match.match_type] += 1
        applied += len(matches)
        logger.debug(f"preview batch {batch_no}/{len(chunks)} rows={end - offset} matched={len(matches)}")

    summary = CheckSummary(
        new=counts[MatchType.NEW],
        exact=counts[MatchType.EXACT],
        similar=counts[MatchType.SIMILAR],
        batches=len(chunks),
    )
    logger.info(
        f"check complete: {summary.new} new, {summary.exact} exact, {summary.similar} similar"
    )
    return summary
