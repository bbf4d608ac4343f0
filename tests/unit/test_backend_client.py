from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from resort_import.backend.audit import AuditLogger
from resort_import.backend.client import BackendClient, BackendError
from resort_import.backend.resort_api import ResortImportApi
from resort_import.models.config_models import BackendConfig


def _response(status: int = 200, body=None, json_error: bool = False) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body if body is not None else {}
    return resp


def _client(response: MagicMock | None = None, **config) -> tuple[BackendClient, MagicMock]:
    values = {"url": "https://resorts.example.test/", "access_token": "tok", "anon_key": "anon"}
    values.update(config)
    session = MagicMock()
    session.post.return_value = response if response is not None else _response()
    return BackendClient(BackendConfig(**values), session=session), session


def test_invoke_posts_to_function_url_with_auth():
    client, session = _client(_response(body={"ok": True}))
    assert client.invoke({"action": "list_placeholders"}) == {"ok": True}

    args, kwargs = session.post.call_args
    assert args[0] == "https://resorts.example.test/functions/v1/admin-bulk-import-resorts"
    assert kwargs["json"] == {"action": "list_placeholders"}
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["headers"]["apikey"] == "anon"


def test_invoke_without_token_fails_before_request():
    client, session = _client(access_token=None)
    with pytest.raises(BackendError, match="Not authenticated"):
        client.invoke({"action": "preview"})
    session.post.assert_not_called()


def test_invoke_error_body_message():
    client, _ = _client(_response(403, {"error": "Admin access required"}))
    with pytest.raises(BackendError, match="Admin access required") as exc_info:
        client.invoke({"action": "import"})
    assert exc_info.value.status_code == 403


def test_invoke_error_without_message():
    client, _ = _client(_response(500, json_error=True))
    with pytest.raises(BackendError, match="Request failed"):
        client.invoke({"action": "import"})


def test_invoke_transport_error():
    client, session = _client()
    session.post.side_effect = requests.ConnectionError("refused")
    with pytest.raises(BackendError, match="refused"):
        client.invoke({"action": "preview"})


def test_insert_uses_rest_table_url():
    client, session = _client(_response(201))
    client.insert("admin_audit_log", {"action": "x"})
    args, kwargs = session.post.call_args
    assert args[0] == "https://resorts.example.test/rest/v1/admin_audit_log"
    assert kwargs["headers"]["Prefer"] == "return=minimal"


def test_insert_failure_raises():
    client, _ = _client(_response(400))
    with pytest.raises(BackendError, match="HTTP 400"):
        client.insert("admin_audit_log", {})


def test_preview_normalizes_missing_lists():
    client = MagicMock()
    client.invoke.return_value = {"results": {"new": [{"input_index": 0}]}}
    api = ResortImportApi(client)
    assert api.preview([{"name": "A", "country": "B"}]) == {
        "new": [{"input_index": 0}],
        "exact_matches": [],
        "similar_matches": [],
    }
    client.invoke.assert_called_once_with(
        {"action": "preview", "resorts": [{"name": "A", "country": "B"}]}
    )


def test_import_batch_omits_empty_extras():
    client = MagicMock()
    client.invoke.return_value = {"inserted": 1}
    ResortImportApi(client).import_batch([{"name": "A"}])
    client.invoke.assert_called_once_with({"action": "import", "new_resorts": [{"name": "A"}]})


def test_audit_logger_writes_row():
    client = MagicMock()
    audit = AuditLogger(client, "ops@example.test", "admin_audit_log")
    assert audit.log("verify_resort", "resort", entity_id="r-1", details={"notes": "ok"})
    client.insert.assert_called_once_with(
        "admin_audit_log",
        {
            "admin_email": "ops@example.test",
            "action": "verify_resort",
            "entity_type": "resort",
            "entity_id": "r-1",
            "details": {"notes": "ok"},
        },
    )


def test_audit_logger_swallows_failures():
    client = MagicMock()
    client.insert.side_effect = BackendError("insert failed")
    audit = AuditLogger(client, "", "admin_audit_log")
    assert audit.log("bulk_import_resorts", "resort") is False
    assert audit.operator_email == "unknown"
