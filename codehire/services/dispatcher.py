"""
Notification dispatcher — best-effort delivery of in-app notifications.

Decisions write an ``OutboxEvent`` in their own transaction; the
dispatcher turns outbox rows into ``Notification`` rows using a separate
session, so a failed delivery can never undo or block the decision.
Delivery is keyed by ``application:<id>:<kind>``, which makes repeated
attempts (inline, then ``drain`` from the maintenance job) harmless.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from codehire.config import settings
from codehire.database import async_session, store_operation
from codehire.models.application import Application
from codehire.models.notification import Notification
from codehire.models.outbox import OutboxEvent
from codehire.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass
class NotifyResult:
    ok: bool
    duplicate: bool = False
    error: Optional[str] = None


def build_outbox_event(application: Application, project_title: str, kind: str) -> OutboxEvent:
    """Outbox row telling the applicant about a decision (``kind`` is accepted/rejected)."""
    return OutboxEvent(
        application_id=application.id,
        kind=kind,
        recipient_id=application.applicant_id,
        title=f"Application {kind.capitalize()}",
        message=f'Your application for project "{project_title or "a project"}" has been {kind}.',
        related_id=application.project_id,
        attempts=0,
    )


class NotificationDispatcher:
    def __init__(self, session_factory: async_sessionmaker = async_session, clock: Clock = utcnow):
        self.session_factory = session_factory
        self.clock = clock

    async def notify(
        self,
        recipient_id: int,
        title: str,
        message: str,
        kind: str,
        related_id: Optional[int] = None,
        dedupe_key: Optional[str] = None,
    ) -> NotifyResult:
        """Store one in-app notification. Never raises on storage failure."""
        try:
            async with self.session_factory() as db:
                db.add(
                    Notification(
                        user_id=recipient_id,
                        title=title,
                        message=message,
                        kind=kind,
                        related_id=related_id,
                        dedupe_key=dedupe_key,
                        created_at=self.clock(),
                    )
                )
                try:
                    await db.commit()
                except IntegrityError as exc:
                    await db.rollback()
                    if dedupe_key and "dedupe_key" in str(exc.orig):
                        return NotifyResult(ok=True, duplicate=True)
                    raise
        except SQLAlchemyError as exc:
            logger.error("Failed to store notification for user %s: %s", recipient_id, exc)
            return NotifyResult(ok=False, error=str(exc))
        return NotifyResult(ok=True)

    async def deliver(self, event_id: int) -> NotifyResult:
        """Deliver one outbox row and record the attempt."""
        try:
            async with self.session_factory() as db:
                event = await db.get(OutboxEvent, event_id)
        except SQLAlchemyError as exc:
            logger.error("Could not load outbox event %s: %s", event_id, exc)
            return NotifyResult(ok=False, error=str(exc))

        if event is None:
            return NotifyResult(ok=False, error=f"Outbox event {event_id} does not exist")
        if event.delivered_at is not None:
            return NotifyResult(ok=True, duplicate=True)

        result = await self.notify(
            event.recipient_id,
            event.title,
            event.message,
            event.kind,
            event.related_id,
            dedupe_key=event.dedupe_key,
        )
        await self._record_attempt(event_id, result)
        return result

    @store_operation
    async def _pending_ids(self, limit: int) -> List[int]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(OutboxEvent.id)
                .where(OutboxEvent.delivered_at.is_(None))
                .order_by(OutboxEvent.created_at, OutboxEvent.id)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def drain(self, limit: int = 100) -> int:
        """Deliver undelivered outbox rows, oldest first. Returns how many succeeded.

        Each delivery gets ``NOTIFY_TIMEOUT_SECONDS``; an event that times out
        or fails stays pending for the next run and the batch moves on.
        """
        event_ids = await self._pending_ids(limit)

        delivered = 0
        for event_id in event_ids:
            try:
                result = await asyncio.wait_for(self.deliver(event_id), settings.NOTIFY_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning(
                    "Outbox event %s not delivered within %ss", event_id, settings.NOTIFY_TIMEOUT_SECONDS
                )
                continue
            except Exception:
                logger.exception("Outbox event %s delivery failed", event_id)
                continue
            if result.ok:
                delivered += 1
        if event_ids:
            logger.info("Outbox drain: %d of %d event(s) delivered", delivered, len(event_ids))
        return delivered

    async def _record_attempt(self, event_id: int, result: NotifyResult) -> None:
        values = {"attempts": OutboxEvent.attempts + 1}
        if result.ok:
            values.update(delivered_at=self.clock(), last_error=None)
        else:
            values["last_error"] = result.error
        try:
            async with self.session_factory() as db:
                await db.execute(
                    update(OutboxEvent).where(OutboxEvent.id == event_id).values(**values)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            # The notification itself is deduplicated, so a later drain is harmless.
            logger.error("Could not record delivery attempt for outbox event %s: %s", event_id, exc)
