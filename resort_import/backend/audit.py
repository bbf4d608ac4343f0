from __future__ import annotations

import logging
from typing import Any

import requests

from .client import BackendClient, BackendError

"""Append-only audit log sink.

Every committing operation writes one row attributed to the operator. A failed
audit write is logged and swallowed; it never fails the operation it records.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "AuditLogger",
]


class AuditLogger:
    def __init__(self, client: BackendClient, operator_email: str, table: str | None = None) -> None:
        self.client = client
        self.operator_email = operator_email or "unknown"
        self.table = table or client.config.audit_table

    def log(
        self,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> bool:
        """Write one audit row. Returns False (after logging) when the write failed."""
        row = {
            "admin_email": self.operator_email,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "details": details,
        }
        try:
            self.client.insert(self.table, row)
        except (BackendError, requests.RequestException) as e:
            logger.error(f"failed to write audit log action={action}: {e}")
            return False
        logger.debug(f"audit action={action} entity_type={entity_type}")
        return True
