from __future__ import annotations

import logging
from typing import Any

import requests

from ..models.config_models import BackendConfig

"""HTTP client for the managed backend.

Two seams are used by the workbench:
- invoke(): POST a JSON body to the bulk-import serverless function
- insert(): append one row to a table through the REST interface

Every failure (transport error, non-2xx status, unparseable body) surfaces as
BackendError so the workflow layer has a single exception to handle.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BackendError",
    "BackendClient",
]


class BackendError(Exception):
    """Remote call failed (network, auth or server error)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    """Thin requests.Session wrapper bound to one backend configuration."""

    def __init__(self, config: BackendConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session if session is not None else requests.Session()

    def _headers(self) -> dict[str, str]:
        if not self.config.access_token:
            raise BackendError("Not authenticated: RESORT_ADMIN_TOKEN is not set")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.access_token}",
        }
        if self.config.anon_key:
            headers["apikey"] = self.config.anon_key
        return headers

    def _post(self, url: str, body: Any, extra_headers: dict[str, str] | None = None) -> requests.Response:
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)
        try:
            return self.session.post(
                url, json=body, headers=headers, timeout=self.config.timeout_seconds
            )
        except requests.RequestException as e:
            raise BackendError(f"request to {url} failed: {e}") from e

    def invoke(self, body: dict[str, Any]) -> dict[str, Any]:
        """Call the bulk-import function and return its JSON body.

        Raises:
            BackendError: on transport failure, non-2xx status (message taken
                from the body's "error" field) or a non-JSON body
        """
        url = self.config.function_url
        action = body.get("action")
        logger.debug(f"invoke {self.config.function_name} action={action}")
        resp = self._post(url, body)
        try:
            data = resp.json()
        except ValueError as e:
            if not resp.ok:
                raise BackendError("Request failed", status_code=resp.status_code) from e
            raise BackendError(f"invalid JSON response for action={action}", status_code=resp.status_code) from e
        if not resp.ok:
            message = data.get("error") if isinstance(data, dict) else None
            raise BackendError(message or "Request failed", status_code=resp.status_code)
        if not isinstance(data, dict):
            raise BackendError(f"unexpected response shape for action={action}", status_code=resp.status_code)
        return data

    def insert(self, table: str, row: dict[str, Any]) -> None:
        """Insert one row through the REST interface (no representation returned)."""
        resp = self._post(self.config.table_url(table), row, {"Prefer": "return=minimal"})
        if not resp.ok:
            raise BackendError(
                f"insert into {table} failed: HTTP {resp.status_code}", status_code=resp.status_code
            )
