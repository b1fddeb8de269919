import json
from types import SimpleNamespace
from urllib.parse import parse_qs, urlsplit

import pytest

from codehire.config import settings
from codehire.dependencies import get_dispatcher
from codehire.main import app
from codehire.services.dispatcher import NotificationDispatcher
from codehire.services.payments import sign_payload
from conftest import auth_headers


async def _create_project(client, hirer, title="Landing Page"):
    response = await client.post(
        "/projects",
        json={"title": title, "description": "Build a marketing site", "budget": 1200},
        headers=auth_headers(hirer),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _activate(client, hirer, project_id):
    response = await client.get(
        "/payments/return",
        params={"status": "success", "projectId": project_id},
        headers=auth_headers(hirer),
    )
    assert response.status_code == 200, response.text
    return response.json()


def _webhook_body(project_id, event_name="order_created", status="paid") -> bytes:
    return json.dumps(
        {
            "meta": {"event_name": event_name, "custom_data": {"projectId": str(project_id)}},
            "data": {"attributes": {"status": status}},
        }
    ).encode()


# ── Auth ──

async def test_requests_without_token_are_unauthorized(client, users):
    response = await client.get("/applications/mine")
    assert response.status_code == 401


async def test_dev_token_and_profile(client, users):
    token = (await client.get(f"/auth/dev-token/{users.alice.id}")).json()["access_token"]

    response = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "alice@codehire.io"
    assert response.json()["role"] == "coder"


async def test_register_and_edit_profile(client):
    response = await client.post(
        "/users", json={"full_name": "Dana Dev", "email": "Dana@CodeHire.io", "role": "coder"}
    )
    assert response.status_code == 201
    user = response.json()
    assert user["email"] == "dana@codehire.io"

    duplicate = await client.post("/users", json={"full_name": "Dana", "email": "dana@codehire.io"})
    assert duplicate.status_code == 409

    headers = auth_headers(SimpleNamespace(id=user["id"]))
    response = await client.put("/users/me", json={"bio": "Rust and Go"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["bio"] == "Rust and Go"


# ── Projects & payment ──

async def test_hirer_creates_draft_and_coders_cannot(client, users):
    project = await _create_project(client, users.hirer)
    assert project["status"] == "draft"
    assert project["paid"] is False
    assert project["biddable"] is False
    assert project["bidding_end_time"] is None

    response = await client.post(
        "/projects",
        json={"title": "Nope", "description": "Coders do not post"},
        headers=auth_headers(users.alice),
    )
    assert response.status_code == 403


async def test_blank_title_is_a_validation_error(client, users):
    response = await client.post(
        "/projects", json={"title": "  ", "description": "x"}, headers=auth_headers(users.hirer)
    )
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


async def test_draft_is_private_to_owner(client, users):
    project = await _create_project(client, users.hirer)

    assert (await client.get(f"/projects/{project['id']}", headers=auth_headers(users.hirer))).status_code == 200
    assert (await client.get(f"/projects/{project['id']}", headers=auth_headers(users.alice))).status_code == 403


async def test_checkout_url_carries_project(client, users):
    project = await _create_project(client, users.hirer)

    response = await client.get(f"/projects/{project['id']}/checkout", headers=auth_headers(users.hirer))
    assert response.status_code == 200

    query = parse_qs(urlsplit(response.json()["checkout_url"]).query)
    assert query["checkout[custom][projectId]"] == [str(project["id"])]
    assert "status=success" in query["checkout[success_url]"][0]
    assert "status=cancel" in query["checkout[cancel_url]"][0]


async def test_payment_return_activates_project(client, users):
    project = await _create_project(client, users.hirer)

    body = await _activate(client, users.hirer, project["id"])
    assert body["paid"] is True
    assert body["status"] == "active"

    listed = (await client.get("/projects")).json()
    assert [p["id"] for p in listed] == [project["id"]]
    assert listed[0]["biddable"] is True


async def test_payment_return_cancel_leaves_draft(client, users):
    project = await _create_project(client, users.hirer)

    response = await client.get(
        "/payments/return",
        params={"status": "cancel", "projectId": project["id"]},
        headers=auth_headers(users.hirer),
    )
    assert response.json()["paid"] is False
    assert (await client.get("/projects")).json() == []


async def test_payment_return_requires_owner(client, users):
    project = await _create_project(client, users.hirer)

    response = await client.get(
        "/payments/return",
        params={"status": "success", "projectId": project["id"]},
        headers=auth_headers(users.other_hirer),
    )
    assert response.status_code == 403


async def test_untrusted_redirect_waits_for_webhook(client, users, monkeypatch):
    monkeypatch.setattr(settings, "PAYMENT_TRUST_REDIRECT", False)
    project = await _create_project(client, users.hirer)

    response = await client.get(
        "/payments/return",
        params={"status": "success", "projectId": project["id"]},
        headers=auth_headers(users.hirer),
    )
    assert response.status_code == 202
    assert response.json()["paid"] is False

    body = _webhook_body(project["id"])
    response = await client.post(
        "/payments/webhook",
        content=body,
        headers={"X-Signature": sign_payload(body, settings.LEMON_WEBHOOK_SECRET)},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "active"


async def test_webhook_is_idempotent(client, users):
    project = await _create_project(client, users.hirer)
    body = _webhook_body(project["id"])
    headers = {"X-Signature": sign_payload(body, settings.LEMON_WEBHOOK_SECRET)}

    await client.post("/payments/webhook", content=body, headers=headers)
    first = (await client.get(f"/projects/{project['id']}", headers=auth_headers(users.hirer))).json()
    await client.post("/payments/webhook", content=body, headers=headers)
    second = (await client.get(f"/projects/{project['id']}", headers=auth_headers(users.hirer))).json()

    assert first["status"] == second["status"] == "active"
    assert first["bidding_end_time"] == second["bidding_end_time"]


@pytest.mark.parametrize("signature", [None, "deadbeef"])
async def test_webhook_rejects_bad_signature(client, users, signature):
    project = await _create_project(client, users.hirer)
    headers = {"X-Signature": signature} if signature else {}

    response = await client.post("/payments/webhook", content=_webhook_body(project["id"]), headers=headers)

    assert response.status_code == 401
    after = (await client.get(f"/projects/{project['id']}", headers=auth_headers(users.hirer))).json()
    assert after["status"] == "draft"


async def test_webhook_ignores_other_events(client, users):
    project = await _create_project(client, users.hirer)
    body = _webhook_body(project["id"], event_name="order_refunded")

    response = await client.post(
        "/payments/webhook",
        content=body,
        headers={"X-Signature": sign_payload(body, settings.LEMON_WEBHOOK_SECRET)},
    )
    assert response.json() == {"ok": True, "ignored": True}


# ── Applications & decisions ──

async def test_full_bidding_flow(client, users):
    project = await _create_project(client, users.hirer)
    await _activate(client, users.hirer, project["id"])

    response = await client.post(
        f"/projects/{project['id']}/applications",
        json={"bid_amount": 500, "experience_years": 4},
        headers=auth_headers(users.alice),
    )
    assert response.status_code == 201, response.text
    application = response.json()
    assert application["status"] == "pending"
    assert application["bid_amount"] == 500

    duplicate = await client.post(
        f"/projects/{project['id']}/applications", json={}, headers=auth_headers(users.alice)
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "duplicate_application"

    review = await client.get(f"/projects/{project['id']}/applications", headers=auth_headers(users.hirer))
    assert [a["id"] for a in review.json()] == [application["id"]]

    decision = await client.post(
        f"/applications/{application['id']}/decision",
        json={"decision": "accept"},
        headers=auth_headers(users.hirer),
    )
    assert decision.status_code == 200
    assert decision.json()["application"]["status"] == "accepted"
    assert decision.json()["notified"] is True
    assert decision.json()["warning"] is None

    again = await client.post(
        f"/applications/{application['id']}/decision",
        json={"decision": "reject"},
        headers=auth_headers(users.hirer),
    )
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_state"

    mine = (await client.get("/applications/mine", headers=auth_headers(users.alice))).json()
    assert mine[0]["status"] == "accepted"

    inbox = (await client.get("/notifications", headers=auth_headers(users.alice))).json()
    assert inbox["unread_count"] == 1
    assert inbox["notifications"][0]["title"] == "Application Accepted"
    assert inbox["notifications"][0]["related_id"] == project["id"]

    current = (await client.get(f"/projects/{project['id']}", headers=auth_headers(users.hirer))).json()
    assert current["status"] == "in_progress"


async def test_hirers_cannot_apply(client, users):
    project = await _create_project(client, users.hirer)
    await _activate(client, users.hirer, project["id"])

    response = await client.post(
        f"/projects/{project['id']}/applications", json={}, headers=auth_headers(users.other_hirer)
    )
    assert response.status_code == 403


async def test_applying_after_window_is_closed(client, users, clock):
    project = await _create_project(client, users.hirer)
    await _activate(client, users.hirer, project["id"])
    clock.advance(days=7)

    response = await client.post(
        f"/projects/{project['id']}/applications", json={}, headers=auth_headers(users.alice)
    )
    assert response.status_code == 409
    assert response.json()["code"] == "bidding_closed"


async def test_decision_survives_notification_failure(client, users, session_factory, clock):
    class BrokenDispatcher(NotificationDispatcher):
        async def deliver(self, event_id):
            raise RuntimeError("down")

    project = await _create_project(client, users.hirer)
    await _activate(client, users.hirer, project["id"])
    application = (
        await client.post(f"/projects/{project['id']}/applications", json={}, headers=auth_headers(users.alice))
    ).json()

    app.dependency_overrides[get_dispatcher] = lambda: BrokenDispatcher(session_factory, clock=clock)
    response = await client.post(
        f"/applications/{application['id']}/decision",
        json={"decision": "reject"},
        headers=auth_headers(users.hirer),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["application"]["status"] == "rejected"
    assert body["notified"] is False
    assert body["warning"] == "Application updated, but there was an issue sending the notification."


async def test_decision_by_another_hirer_is_forbidden(client, users):
    project = await _create_project(client, users.hirer)
    await _activate(client, users.hirer, project["id"])
    application = (
        await client.post(f"/projects/{project['id']}/applications", json={}, headers=auth_headers(users.alice))
    ).json()

    response = await client.post(
        f"/applications/{application['id']}/decision",
        json={"decision": "accept"},
        headers=auth_headers(users.other_hirer),
    )
    assert response.status_code == 403


# ── Notifications ──

async def test_mark_notifications_read(client, users, dispatcher):
    await dispatcher.notify(users.bob.id, "One", "first", "info")
    await dispatcher.notify(users.bob.id, "Two", "second", "info")

    inbox = (await client.get("/notifications", headers=auth_headers(users.bob))).json()
    assert inbox["unread_count"] == 2

    first_id = inbox["notifications"][0]["id"]
    response = await client.post(f"/notifications/read/{first_id}", headers=auth_headers(users.bob))
    assert response.json()["is_read"] is True
    assert (await client.get("/notifications", headers=auth_headers(users.bob))).json()["unread_count"] == 1

    await client.post("/notifications/read-all", headers=auth_headers(users.bob))
    assert (await client.get("/notifications", headers=auth_headers(users.bob))).json()["unread_count"] == 0

    other = await client.post(f"/notifications/read/{first_id}", headers=auth_headers(users.alice))
    assert other.status_code == 404


async def test_anonymous_notifications_are_empty(client):
    assert (await client.get("/notifications")).json() == {"notifications": [], "unread_count": 0}
