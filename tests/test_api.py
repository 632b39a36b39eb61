"""
Automated tests for the simulator HTTP API.
Run with:  pytest tests/ -v
"""

import pytest
from fastapi.testclient import TestClient

from socsim.main import app
from socsim.config import settings

client = TestClient(app)
HEADERS = {"x-api-key": settings.API_KEY}


def _new_alert() -> dict:
    """Force one generator tick and return the alert it produced."""
    resp = client.post("/api/v1/snapshot/generator/tick", headers=HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    assert body["generated"] is True
    return body["alert"]


# =============================================================================
# System endpoints
# =============================================================================

def test_health():
    """Health check returns healthy."""
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json().get("status") == "healthy"


def test_root():
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["service"] == "SOC Ops Simulator API"


def test_request_id_echoed():
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time-Ms" in resp.headers


def test_stats():
    resp = client.get("/api/v1/stats", headers=HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    for key in ("totalAlerts", "openAlerts", "newAlerts", "highOpenAlerts", "activeCases", "generatorOn"):
        assert key in body, f"Missing key: {key}"


# =============================================================================
# Authentication
# =============================================================================

def test_missing_api_key_rejected():
    """
    The API key header uses auto_error=False and manual verify_api_key,
    so a missing key returns 401 (not 422).
    """
    resp = client.get("/api/v1/alerts")
    assert resp.status_code == 401
    assert resp.json().get("detail") == "Invalid API key"


def test_wrong_api_key_rejected():
    resp = client.get("/api/v1/alerts", headers={"x-api-key": "wrong-key"})
    assert resp.status_code == 401


@pytest.mark.parametrize("path", ["/api/v1/stats", "/api/v1/snapshot", "/api/v1/logs", "/api/v1/playbooks"])
def test_every_api_route_needs_key(path):
    assert client.get(path).status_code == 401


def test_valid_api_key_accepted():
    resp = client.get("/api/v1/alerts", headers=HEADERS)
    assert resp.status_code == 200


# =============================================================================
# Alerts
# =============================================================================

def test_list_alerts_returns_list():
    resp = client.get("/api/v1/alerts", headers=HEADERS)
    assert resp.status_code == 200
    assert isinstance(resp.json(), list)
    assert len(resp.json()) >= 1


def test_list_alerts_limit_respected():
    resp = client.get("/api/v1/alerts?limit=2", headers=HEADERS)
    assert resp.status_code == 200
    assert len(resp.json()) <= 2


def test_list_alerts_query_filters():
    resp = client.get("/api/v1/alerts", params={"q": "NOT severity:high"}, headers=HEADERS)
    assert resp.status_code == 200
    assert all(a["severity"] != "high" for a in resp.json())


def test_tick_alert_is_listed_first():
    alert = _new_alert()
    resp = client.get("/api/v1/alerts?limit=1", headers=HEADERS)
    assert resp.json()[0]["id"] == alert["id"]


def test_get_alert_by_id():
    alert = _new_alert()
    resp = client.get(f"/api/v1/alerts/{alert['id']}", headers=HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == alert["id"]
    assert "mailFrom" in body["evidence"]


def test_get_nonexistent_alert_returns_404():
    resp = client.get("/api/v1/alerts/al_does_not_exist", headers=HEADERS)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Alert al_does_not_exist not found"


def test_triage_alert():
    alert = _new_alert()
    resp = client.post(f"/api/v1/alerts/{alert['id']}/triage", headers=HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "triage"
    assert body["timeline"][-1]["msg"] == "Status changed: new → triage"


def test_patch_alert():
    alert = _new_alert()
    resp = client.patch(
        f"/api/v1/alerts/{alert['id']}",
        json={"status": "contained", "severity": "low"},
        headers=HEADERS,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert (body["status"], body["severity"]) == ("contained", "low")
    assert len(body["timeline"]) == len(alert["timeline"]) + 1


def test_patch_alert_invalid_status():
    alert = _new_alert()
    resp = client.patch(f"/api/v1/alerts/{alert['id']}", json={"status": "resolved"}, headers=HEADERS)
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "Validation Error"
    assert "request_id" in body


def test_patch_missing_alert_returns_404():
    resp = client.patch("/api/v1/alerts/al_nope", json={"status": "closed"}, headers=HEADERS)
    assert resp.status_code == 404


def test_alert_notes():
    alert = _new_alert()
    blank = client.post(f"/api/v1/alerts/{alert['id']}/notes", json={"body": "  "}, headers=HEADERS)
    assert blank.status_code == 200
    assert blank.json()["abandoned"] is True

    resp = client.post(f"/api/v1/alerts/{alert['id']}/notes", json={"body": "Checked sign-in logs"}, headers=HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    assert [n["body"] for n in body["notes"]] == ["Checked sign-in logs"]
    assert body["timeline"][-1]["type"] == "note"


# =============================================================================
# Cases
# =============================================================================

def test_case_from_alert_flow():
    alert = _new_alert()
    resp = client.post(f"/api/v1/alerts/{alert['id']}/case", headers=HEADERS)
    assert resp.status_code == 201
    case = resp.json()["case"]
    assert case["alertIds"] == [alert["id"]]
    assert case["priority"] == alert["severity"]
    assert resp.json()["alert"]["status"] == "triage"

    detail = client.get(f"/api/v1/cases/{case['id']}", headers=HEADERS)
    assert detail.status_code == 200
    assert [a["id"] for a in detail.json()["linkedAlerts"]] == [alert["id"]]

    patched = client.patch(f"/api/v1/cases/{case['id']}", json={"status": "in-progress"}, headers=HEADERS)
    assert patched.json()["status"] == "in-progress"

    noted = client.post(f"/api/v1/cases/{case['id']}/notes", json={"body": "Scoped to one mailbox"}, headers=HEADERS)
    assert noted.json()["notes"][-1]["body"] == "Scoped to one mailbox"

    event = client.post(f"/api/v1/cases/{case['id']}/timeline", json={"msg": "User called"}, headers=HEADERS)
    assert [e["type"] for e in event.json()["timeline"]] == ["created", "status", "note", "event"]

    listed = client.get("/api/v1/cases", headers=HEADERS)
    assert case["id"] in [c["id"] for c in listed.json()]


def test_case_from_missing_alert_returns_404():
    before = len(client.get("/api/v1/cases", headers=HEADERS).json())
    resp = client.post("/api/v1/alerts/al_nope/case", headers=HEADERS)
    assert resp.status_code == 404
    assert len(client.get("/api/v1/cases", headers=HEADERS).json()) == before


def test_manual_case():
    blank = client.post("/api/v1/cases", json={"title": ""}, headers=HEADERS)
    assert blank.status_code == 200
    assert blank.json()["abandoned"] is True

    resp = client.post("/api/v1/cases", json={"title": "Vendor access review", "summary": "Q3"}, headers=HEADERS)
    assert resp.status_code == 201
    assert resp.json()["priority"] == "medium"
    assert resp.json()["alertIds"] == []


def test_blank_case_event_abandoned():
    case = client.post("/api/v1/cases", json={"title": "Events"}, headers=HEADERS).json()
    resp = client.post(f"/api/v1/cases/{case['id']}/timeline", json={"msg": ""}, headers=HEADERS)
    assert resp.json()["abandoned"] is True


def test_get_missing_case_returns_404():
    assert client.get("/api/v1/cases/case_nope", headers=HEADERS).status_code == 404


# =============================================================================
# Logs
# =============================================================================

def test_logs_default_limit():
    resp = client.get("/api/v1/logs", headers=HEADERS)
    assert resp.status_code == 200
    assert len(resp.json()) <= settings.LOG_VIEW_LIMIT


def test_pivot_log():
    log = client.get("/api/v1/logs?limit=1", headers=HEADERS).json()[0]
    resp = client.post(f"/api/v1/logs/{log['id']}/pivot", headers=HEADERS)
    assert resp.status_code == 201
    alert = resp.json()
    assert alert["title"] == f"Log Pivot: {log['action']}"
    assert "pivot" in alert["tags"]
    assert alert["evidence"]["ip"] == "0.0.0.0"

    ui = client.get("/api/v1/snapshot/ui", headers=HEADERS).json()
    assert ui["selectedAlertId"] == alert["id"]


def test_pivot_missing_log_returns_404():
    assert client.post("/api/v1/logs/log_nope/pivot", headers=HEADERS).status_code == 404


# =============================================================================
# Saved queries, playbooks, assets
# =============================================================================

def test_saved_query_lifecycle():
    resp = client.post("/api/v1/queries", json={"name": "Spray", "query": "technique:spray"}, headers=HEADERS)
    assert resp.status_code == 201
    saved = resp.json()
    assert saved in client.get("/api/v1/queries", headers=HEADERS).json()

    assert client.delete(f"/api/v1/queries/{saved['id']}", headers=HEADERS).status_code == 204
    assert client.delete(f"/api/v1/queries/{saved['id']}", headers=HEADERS).status_code == 404


def test_blank_saved_query_abandoned():
    resp = client.post("/api/v1/queries", json={"name": "Nothing", "query": ""}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["abandoned"] is True


def test_playbooks():
    playbooks = client.get("/api/v1/playbooks", headers=HEADERS).json()
    assert len(playbooks) >= 3
    resp = client.get(f"/api/v1/playbooks/{playbooks[0]['id']}", headers=HEADERS)
    assert resp.json()["severityMap"]["high"]
    assert client.get("/api/v1/playbooks/pb_nope", headers=HEADERS).status_code == 404


def test_asset_search():
    resp = client.get("/api/v1/assets", params={"q": "finance"}, headers=HEADERS)
    assert [a["host"] for a in resp.json()] == ["FIN-WS-014"]
    assert client.get("/api/v1/assets", headers=HEADERS).json() == []


# =============================================================================
# Tools
# =============================================================================

def test_tools_endpoints():
    defanged = client.post("/api/v1/tools/defang", json={"text": "https://evil.com"}, headers=HEADERS)
    assert defanged.json() == {"output": "hxxps[://]evil[.]com"}

    encoded = client.post("/api/v1/tools/base64/encode", json={"text": "hello"}, headers=HEADERS)
    assert encoded.json()["output"] == "aGVsbG8="

    headers = client.post("/api/v1/tools/headers", json={"text": "From: a@b.com\nTo: c@d.com"}, headers=HEADERS)
    assert headers.json()["fromAddr"] == "a@b.com"

    rep = client.post("/api/v1/tools/reputation", json={"indicator": "8.8.8.8"}, headers=HEADERS)
    assert rep.json()["verdict"] == "benign"


def test_tools_input_errors_return_400():
    bad_b64 = client.post("/api/v1/tools/base64/decode", json={"text": "!!!"}, headers=HEADERS)
    assert bad_b64.status_code == 400
    blank_rep = client.post("/api/v1/tools/reputation", json={"indicator": ""}, headers=HEADERS)
    assert blank_rep.status_code == 400


# =============================================================================
# Snapshot, UI state and preferences
# =============================================================================

def test_export_import_round_trip():
    exported = client.get("/api/v1/snapshot", headers=HEADERS).json()
    assert set(exported) == {"state", "prefs"}

    resp = client.post("/api/v1/snapshot", json=exported, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert client.get("/api/v1/snapshot", headers=HEADERS).json() == exported


@pytest.mark.parametrize("content", [b"{not json", b'{"prefs": {}}', b'{"state": {"alerts": 1}}'])
def test_malformed_import_rejected(content):
    before = client.get("/api/v1/snapshot", headers=HEADERS).json()
    resp = client.post(
        "/api/v1/snapshot",
        content=content,
        headers={**HEADERS, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Import failed")
    assert client.get("/api/v1/snapshot", headers=HEADERS).json() == before


def test_ui_state():
    resp = client.patch("/api/v1/snapshot/ui", json={"alertQuery": "status:new"}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["alertQuery"] == "status:new"
    assert client.get("/api/v1/snapshot/ui", headers=HEADERS).json()["alertQuery"] == "status:new"


@pytest.mark.parametrize("field", ["alertQuery", "logQuery"])
def test_null_ui_query_rejected(field):
    resp = client.patch("/api/v1/snapshot/ui", json={field: None}, headers=HEADERS)
    assert resp.status_code == 422

    exported = client.get("/api/v1/snapshot", headers=HEADERS).json()
    assert isinstance(exported["state"]["ui"][field], str)
    resp = client.post("/api/v1/snapshot", json=exported, headers=HEADERS)
    assert resp.status_code == 200


def test_ui_selection_can_be_cleared():
    client.patch("/api/v1/snapshot/ui", json={"alertQuery": "status:new", "selectedCaseId": "cs_x"}, headers=HEADERS)
    resp = client.patch("/api/v1/snapshot/ui", json={"selectedCaseId": None}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["selectedCaseId"] is None
    assert resp.json()["alertQuery"] == "status:new"


def test_generator_toggle():
    before = client.get("/api/v1/snapshot/prefs", headers=HEADERS).json()["generatorOn"]
    flipped = client.post("/api/v1/snapshot/prefs/generator", headers=HEADERS).json()
    assert flipped["generatorOn"] is (not before)
    restored = client.post("/api/v1/snapshot/prefs/generator", headers=HEADERS).json()
    assert restored["generatorOn"] is before


def test_reset_with_and_without_demo_seed():
    seeded = client.post("/api/v1/snapshot/reset", headers=HEADERS).json()
    assert len(seeded["alerts"]) == settings.SEED_ALERT_COUNT
    assert seeded["cases"] == []

    client.post("/api/v1/snapshot/prefs/demo-seed", headers=HEADERS)
    empty = client.post("/api/v1/snapshot/reset", headers=HEADERS).json()
    assert empty["alerts"] == []
    assert empty["logs"] == []
    assert len(empty["playbooks"]) == 3

    client.post("/api/v1/snapshot/prefs/demo-seed", headers=HEADERS)
    client.post("/api/v1/snapshot/reset", headers=HEADERS)
