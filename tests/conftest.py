# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from resort_import.backend.client import BackendError
from resort_import.logging.init import reset_logging
from resort_import.models.config_models import BackendConfig, ImportSettings, WorkbenchConfig
from resort_import.models.resort_record import ResortRecord
from resort_import.services.session import ImportSession


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        for key in ("RESORT_BACKEND_URL", "RESORT_ADMIN_TOKEN", "RESORT_ANON_KEY", "RESORT_ADMIN_EMAIL"):
            monkeypatch.delenv(key, raising=False)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """backend:
  url: https://resorts.example.test
  function_name: admin-bulk-import-resorts
  audit_table: admin_audit_log
import:
  batch_size: 2
  terrain_tolerance_pct: 5
  assign_placeholders: true
operator_email: ops@example.test
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "workbench.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def _record(**overrides: Any) -> ResortRecord:
    values: dict[str, Any] = {
        "name": "Whistler",
        "country": "Canada",
        "country_code": "CA",
        "lat": 50.1,
        "lng": -122.9,
    }
    values.update(overrides)
    return ResortRecord(**values)


@pytest.fixture()
def make_record() -> Callable[..., ResortRecord]:
    return _record


class FakeBackend:
    """In-memory stand-in for BackendClient (invoke / insert).

    existing: lower-cased resort name -> (resort_id, similarity or None).
    A similarity of None or >= 1 is reported as an exact match.
    """

    def __init__(
        self,
        existing: dict[str, tuple[str, float | None]] | None = None,
        placeholders: tuple[str, ...] = (),
        fail_preview_call: int | None = None,
        fail_import_call: int | None = None,
    ) -> None:
        self.config = BackendConfig(url="https://resorts.example.test", access_token="token")
        self.existing = existing or {}
        self.placeholders = placeholders
        self.fail_preview_call = fail_preview_call
        self.fail_import_call = fail_import_call
        self.calls: list[dict[str, Any]] = []
        self.inserts: list[tuple[str, dict[str, Any]]] = []

    def _count(self, action: str) -> int:
        return sum(1 for c in self.calls if c["action"] == action)

    def invoke(self, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(body)
        action = body["action"]
        if action == "preview":
            if self._count("preview") == self.fail_preview_call:
                raise BackendError("preview unavailable", status_code=503)
            new, exact, similar = [], [], []
            for i, resort in enumerate(body["resorts"]):
                hit = self.existing.get(resort["name"].lower())
                if hit is None:
                    new.append({"input_index": i, "name": resort["name"]})
                    continue
                resort_id, score = hit
                entry = {
                    "input_index": i,
                    "existing_resort_id": resort_id,
                    "existing_name": resort["name"],
                    "similarity_score": score,
                }
                (exact if score is None or score >= 1 else similar).append(entry)
            return {"results": {"new": new, "exact_matches": exact, "similar_matches": similar}}
        if action == "list_placeholders":
            return {"urls": list(self.placeholders)}
        if action == "import":
            if self._count("import") == self.fail_import_call:
                raise BackendError("insert failed", status_code=500)
            return {
                "inserted": len(body["new_resorts"]),
                "updated": len(body.get("updates") or []),
                "placeholders_assigned": len(body["new_resorts"]) if body.get("placeholder_urls") else 0,
            }
        if action == "verify":
            return {}
        if action == "bulk_verify":
            return {"affected": len(body["resort_ids"])}
        if action == "assign_placeholders":
            return {"assigned": len(body["placeholder_urls"])}
        raise BackendError(f"unknown action {action}", status_code=400)

    def insert(self, table: str, row: dict[str, Any]) -> None:
        self.inserts.append((table, row))

    def actions(self) -> list[str]:
        return [c["action"] for c in self.calls]


@pytest.fixture()
def make_backend() -> Callable[..., FakeBackend]:
    return FakeBackend


@pytest.fixture()
def make_session() -> Callable[..., ImportSession]:
    def _make(backend: FakeBackend, **settings: Any) -> ImportSession:
        config = WorkbenchConfig(
            backend=backend.config,
            settings=ImportSettings(**settings),
            operator_email="ops@example.test",
        )
        return ImportSession.from_config(config, client=backend)

    return _make
