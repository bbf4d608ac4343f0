from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .client import BackendClient

"""Typed wrappers for the actions of the bulk-import function.

Request / response shapes:
    preview            {resorts: [{name, country}]} -> {results: {new, exact_matches, similar_matches}}
    import             {new_resorts, updates?, placeholder_urls?} -> {inserted, updated, placeholders_assigned}
    list_placeholders  {} -> {urls}
    verify             {resort_id, verified, notes?} -> {}
    bulk_verify        {resort_ids, verified} -> {affected}
    assign_placeholders {placeholder_urls} -> {assigned}
"""

__all__ = [
    "ResortImportApi",
]


class ResortImportApi:
    def __init__(self, client: BackendClient) -> None:
        self.client = client

    def preview(self, resorts: Sequence[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
        data = self.client.invoke({"action": "preview", "resorts": list(resorts)})
        results = data.get("results") or {}
        return {
            "new": list(results.get("new") or []),
            "exact_matches": list(results.get("exact_matches") or []),
            "similar_matches": list(results.get("similar_matches") or []),
        }

    def import_batch(
        self,
        new_resorts: Sequence[dict[str, Any]],
        updates: Sequence[dict[str, Any]] | None = None,
        placeholder_urls: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": "import", "new_resorts": list(new_resorts)}
        if updates:
            payload["updates"] = list(updates)
        if placeholder_urls:
            payload["placeholder_urls"] = list(placeholder_urls)
        return self.client.invoke(payload)

    def list_placeholders(self) -> list[str]:
        data = self.client.invoke({"action": "list_placeholders"})
        return [str(u) for u in data.get("urls") or [] if u]

    def verify(self, resort_id: str, verified: bool, notes: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": "verify", "resort_id": resort_id, "verified": verified}
        if notes:
            payload["notes"] = notes
        return self.client.invoke(payload)

    def bulk_verify(self, resort_ids: Sequence[str], verified: bool) -> dict[str, Any]:
        return self.client.invoke(
            {"action": "bulk_verify", "resort_ids": list(resort_ids), "verified": verified}
        )

    def assign_placeholders(self, placeholder_urls: Sequence[str]) -> dict[str, Any]:
        return self.client.invoke(
            {"action": "assign_placeholders", "placeholder_urls": list(placeholder_urls)}
        )
