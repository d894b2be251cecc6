"""
HTTP API integration tests
"""
import pytest


def _start_intake(client, headers, step_payloads):
    response = client.post("/case-submission/session", json={}, headers=headers)
    assert response.status_code == 200
    session_id = response.json()["data"]["session_id"]

    for step, payload in step_payloads.items():
        response = client.post(
            f"/case-submission/step{step}",
            json={"session_id": session_id, "data": payload},
            headers=headers
        )
        assert response.status_code == 200, response.json()
    return session_id


def _create_panelist(client, admin_headers, email, **extra):
    body = {"name": email.split("@")[0], "email": email, "specializations": ["land"]}
    body.update(extra)
    response = client.post("/panelists", json=body, headers=admin_headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]["panelist_id"]


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "healthy"


def test_missing_api_key(client):
    response = client.post("/case-submission/session", json={})
    assert response.status_code in (401, 403)
    assert response.json()["success"] is False


def test_wrong_api_key(client):
    response = client.post(
        "/case-submission/session",
        json={},
        headers={"Authorization": "Bearer wrong"}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_intake_and_party_b_join(client, client_headers, step_payloads):
    """Full Party A submission followed by one successful and one losing join"""
    session_id = _start_intake(client, client_headers, step_payloads)

    response = client.post("/case-submission/submit", json={"session_id": session_id}, headers=client_headers)
    assert response.status_code == 200
    case = response.json()["data"]["case"]
    assert case["status"] == "open"
    assert case["created_by"] == "user_a"

    response = client.post(
        "/case-submission/join-case",
        json={"parent_session_id": session_id},
        headers=client_headers
    )
    assert response.status_code == 200
    party_b_id = response.json()["data"]["session"]["session_id"]

    response = client.post(
        "/case-submission/join-case",
        json={"parent_session_id": session_id},
        headers=client_headers
    )
    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "PARTY_B_ALREADY_JOINED"
    assert error["details"]["existing_session_id"] == party_b_id


def test_session_draft_endpoints(client, client_headers, step_payloads):
    session_id = client.post("/case-submission/session", json={}, headers=client_headers).json()["data"]["session_id"]

    response = client.patch(f"/case-submission/session/{session_id}", json={"current_step": 3}, headers=client_headers)
    assert response.json()["data"]["current_step"] == 3

    response = client.get(f"/case-submission/session/{session_id}", headers=client_headers)
    assert response.status_code == 200
    assert response.json()["data"]["user_id"] == "user_a"

    response = client.get("/case-submission/session/sess_missing_000", headers=client_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"


def test_step_errors(client, client_headers):
    session_id = client.post("/case-submission/session", json={}, headers=client_headers).json()["data"]["session_id"]

    response = client.post(
        "/case-submission/step7",
        json={"session_id": session_id, "data": {}},
        headers=client_headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_STEP"

    response = client.post(
        "/case-submission/step1",
        json={"session_id": session_id, "data": {"conflict_type": "Land Dispute"}},
        headers=client_headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    response = client.post("/case-submission/submit", json={"session_id": session_id}, headers=client_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INCOMPLETE_SUBMISSION"


def test_join_unsubmitted_case(client, client_headers):
    session_id = client.post("/case-submission/session", json={}, headers=client_headers).json()["data"]["session_id"]

    response = client.post(
        "/case-submission/join-case",
        json={"parent_session_id": session_id},
        headers=client_headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "CASE_NOT_SUBMITTED"


def test_panel_and_resolution_flow(client, client_headers, admin_headers, panelist_headers, step_payloads):
    """Admin assigns a panel, both panelists submit, the case resolves"""
    session_id = _start_intake(client, client_headers, step_payloads)
    case_id = client.post(
        "/case-submission/submit", json={"session_id": session_id}, headers=client_headers
    ).json()["data"]["case"]["case_id"]

    p1 = _create_panelist(client, admin_headers, "p1@example.com")
    p2 = _create_panelist(client, admin_headers, "p2@example.com")

    response = client.get("/panelists/available", params={"specialization": "land"}, headers=admin_headers)
    assert {p["panelist_id"] for p in response.json()["data"]} == {p1, p2}

    response = client.post(f"/cases/{case_id}/assign-panel", json={"panelist_ids": [p1, p2]}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "panel_assigned"

    response = client.post(f"/cases/{case_id}/assign-panel", json={"panelist_ids": [p1]}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "PANELIST_ALREADY_ASSIGNED"

    body = {"resolution_status": "resolved", "resolution_notes": "Agreed"}
    response = client.post(f"/panelist/cases/{case_id}/resolution/submit", json=body, headers=panelist_headers(p1))
    assert response.status_code == 200
    assert response.json()["data"]["resolution_status"] == "partial"

    response = client.post(f"/panelist/cases/{case_id}/resolution/submit", json=body, headers=panelist_headers(p1))
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "RESOLUTION_ALREADY_SUBMITTED"

    response = client.post(
        f"/panelist/cases/{case_id}/resolution/submit",
        json=body,
        headers=panelist_headers("pnl_outsider")
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_ASSIGNED_TO_CASE"

    response = client.post(f"/panelist/cases/{case_id}/resolution/submit", json=body, headers=panelist_headers(p2))
    assert response.json()["data"]["case_status"] == "resolved"

    response = client.get(f"/panelist/cases/{case_id}/resolution/status", headers=panelist_headers(p2))
    assert response.json()["data"]["all_submitted"] is True

    response = client.get(f"/panelist/cases/{case_id}/resolution/my", headers=panelist_headers(p1))
    assert response.json()["data"]["resolution_notes"] == "Agreed"

    response = client.get(f"/panelists/{p1}/cases", headers=admin_headers)
    assert [c["case_id"] for c in response.json()["data"]] == [case_id]


def test_remove_panelist_endpoint(client, client_headers, admin_headers, step_payloads):
    session_id = _start_intake(client, client_headers, step_payloads)
    case_id = client.post(
        "/case-submission/submit", json={"session_id": session_id}, headers=client_headers
    ).json()["data"]["case"]["case_id"]
    p1 = _create_panelist(client, admin_headers, "p1@example.com")
    client.post(f"/cases/{case_id}/assign-panel", json={"panelist_ids": [p1]}, headers=admin_headers)

    response = client.delete(f"/cases/{case_id}/panelists/{p1}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "assigned"

    response = client.delete(f"/cases/{case_id}/panelists/{p1}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "PANELIST_NOT_ASSIGNED"

    response = client.delete(f"/panelists/{p1}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is False


def test_case_admin_endpoints(client, client_headers, admin_headers, step_payloads):
    session_id = _start_intake(client, client_headers, step_payloads)
    case_id = client.post(
        "/case-submission/submit", json={"session_id": session_id}, headers=client_headers
    ).json()["data"]["case"]["case_id"]

    response = client.patch(f"/cases/{case_id}/assign", json={"assigned_to": "mediator_7"}, headers=admin_headers)
    assert response.json()["data"]["status"] == "assigned"

    response = client.patch(f"/cases/{case_id}/priority", json={"priority": "asap"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PRIORITY"

    response = client.patch(f"/cases/{case_id}/status", json={"status": "archived"}, headers=admin_headers)
    assert response.json()["error"]["code"] == "INVALID_STATUS"

    response = client.post(
        f"/cases/{case_id}/notes",
        json={"content": "Left a voicemail", "note_type": "call"},
        headers=admin_headers
    )
    assert response.json()["data"]["added_note"]["content"] == "[call] Left a voicemail"

    response = client.patch(f"/cases/{case_id}/unassign", headers=admin_headers)
    assert response.json()["data"]["status"] == "open"

    response = client.get(f"/cases/{case_id}/timeline", headers=admin_headers)
    types = [a["activity_type"] for a in response.json()["data"]]
    assert types[0] == "case_unassigned"
    assert types[-1] == "case_created"

    response = client.get(f"/cases/{case_id}/full-details", headers=admin_headers)
    assert response.json()["data"]["party_a"]["session_id"] == session_id


def test_case_access_by_role(client, client_headers, admin_headers, step_payloads):
    session_id = _start_intake(client, client_headers, step_payloads)
    case_id = client.post(
        "/case-submission/submit", json={"session_id": session_id}, headers=client_headers
    ).json()["data"]["case"]["case_id"]

    assert client.get(f"/cases/{case_id}", headers=client_headers).status_code == 200

    other_client = dict(client_headers, **{"X-Caller-Id": "user_z"})
    response = client.get(f"/cases/{case_id}", headers=other_client)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"

    response = client.get(f"/cases/{case_id}/full-details", headers=client_headers)
    assert response.status_code == 403

    response = client.get("/cases/CASE-2026-999999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "CASE_NOT_FOUND"


@pytest.mark.parametrize("body", [{}, {"panelist_ids": "pnl_1"}])
def test_request_validation_errors(client, admin_headers, body):
    response = client.post("/cases/CASE-2026-000001/assign-panel", json=body, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
