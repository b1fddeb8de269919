import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from codehire.config import settings
from codehire.database import store_operation
from codehire.errors import StoreTimeoutError, TransientStoreError
from codehire.models.notification import Notification
from codehire.models.project import ProjectStatus
from codehire.services.dispatcher import NotificationDispatcher
from codehire.services.ledger import ApplicationLedger
from codehire.services.lifecycle import ProjectLifecycle
from codehire.services.payments import paid_project_id, sign_payload, verify_signature
from run_maintenance import run_once


class BrokenDispatcher(NotificationDispatcher):
    async def deliver(self, event_id):
        raise RuntimeError("down")


async def test_run_once_closes_windows_and_drains_outbox(session_factory, db, users, clock):
    lifecycle = ProjectLifecycle(db, clock)
    expired_id = await lifecycle.create_draft(users.hirer.id, "Old", "Window ran out")
    await lifecycle.confirm_payment(expired_id)
    ledger = ApplicationLedger(db, BrokenDispatcher(session_factory, clock=clock), clock)
    application_id = await ledger.submit(expired_id, users.alice.id)
    await ledger.decide(application_id, users.hirer.id, "reject")

    clock.advance(days=8)
    fresh_id = await lifecycle.create_draft(users.hirer.id, "Fresh", "Just paid")
    await lifecycle.confirm_payment(fresh_id)

    summary = await run_once(session_factory, clock)

    assert summary == {"closed": 1, "delivered": 1}
    assert (await lifecycle.get(expired_id)).status == ProjectStatus.CLOSED
    rows = (await db.execute(select(Notification).where(Notification.user_id == users.alice.id))).scalars().all()
    assert [n.kind for n in rows] == ["rejected"]


async def test_store_operation_times_out(monkeypatch):
    monkeypatch.setattr(settings, "STORE_TIMEOUT_SECONDS", 0.01)

    @store_operation
    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(StoreTimeoutError) as excinfo:
        await slow()
    assert excinfo.value.status_code == 504
    assert excinfo.value.details["timeout"] == 0.01


async def test_store_operation_maps_connection_errors():
    @store_operation
    async def unreachable():
        raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

    with pytest.raises(TransientStoreError) as excinfo:
        await unreachable()
    assert excinfo.value.status_code == 503


def test_signature_roundtrip():
    body = b'{"meta": {}}'
    signature = sign_payload(body, "secret")

    assert verify_signature(body, signature, "secret")
    assert not verify_signature(body, signature, "other-secret")
    assert not verify_signature(body + b" ", signature, "secret")
    assert not verify_signature(body, signature, "")


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"meta": {"event_name": "order_created", "custom_data": {"projectId": "12"}},
          "data": {"attributes": {"status": "paid"}}}, 12),
        ({"meta": {"event_name": "order_created", "custom_data": {"projectId": "12"}},
          "data": {"attributes": {"status": "pending"}}}, None),
        ({"meta": {"event_name": "order_created", "custom_data": {}},
          "data": {"attributes": {"status": "paid"}}}, None),
        ({"meta": {"event_name": "subscription_created"}}, None),
    ],
)
def test_paid_project_id(payload, expected):
    assert paid_project_id(payload) == expected
