from __future__ import annotations

import logging
from collections.abc import Sequence

from .session import ImportSession

"""Resort verification and placeholder maintenance.

Each operation is one remote call followed by one audit row. Remote failures
propagate as BackendError; audit failures are swallowed by the audit sink.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "verify_resort",
    "bulk_verify",
    "assign_placeholders",
]


def verify_resort(session: ImportSession, resort_id: str, verified: bool, notes: str | None = None) -> None:
    """Mark one resort verified (or flag it) with optional reviewer notes."""
    session.api.verify(resort_id, verified, notes)
    session.audit.log(
        "verify_resort" if verified else "flag_resort",
        "resort",
        entity_id=resort_id,
        details={"notes": notes} if notes else None,
    )
    logger.info(f"resort {resort_id} {'verified' if verified else 'flagged'}")


def bulk_verify(session: ImportSession, resort_ids: Sequence[str], verified: bool) -> int:
    """Verify or flag many resorts; returns the affected count reported by the backend."""
    if not resort_ids:
        return 0
    res = session.api.bulk_verify(resort_ids, verified)
    affected = int(res.get("affected") or len(resort_ids))
    session.audit.log(
        "bulk_verify_resorts" if verified else "bulk_flag_resorts",
        "resort",
        details={"count": affected},
    )
    logger.info(f"{'verified' if verified else 'flagged'} {affected} resorts")
    return affected


def assign_placeholders(session: ImportSession, urls: Sequence[str]) -> int:
    """Assign placeholder cover images to resorts without one.

    Raises:
        ValueError: when no URL is given
    """
    cleaned = [u.strip() for u in urls if u and u.strip()]
    if not cleaned:
        raise ValueError("Enter at least one placeholder URL")
    res = session.api.assign_placeholders(cleaned)
    assigned = int(res.get("assigned") or 0)
    session.audit.log("assign_placeholders", "resort", details={"assigned": assigned})
    logger.info(f"assigned {assigned} placeholder images")
    return assigned
