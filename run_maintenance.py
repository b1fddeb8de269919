"""
Periodic maintenance — run from cron, exits when done.

    python run_maintenance.py

1. Persist ``closed`` for projects whose bidding window has elapsed.
2. Retry undelivered decision notifications from the outbox.
"""

import asyncio
import logging

from codehire.config import settings
from codehire.database import async_session, engine
from codehire.services.dispatcher import NotificationDispatcher
from codehire.services.lifecycle import ProjectLifecycle
from codehire.utils.clock import utcnow

logger = logging.getLogger("codehire.maintenance")


async def run_once(session_factory=async_session, clock=utcnow, batch_size: int = 100) -> dict:
    async with session_factory() as session:
        closed = await ProjectLifecycle(session, clock).close_expired()

    delivered = await NotificationDispatcher(session_factory, clock=clock).drain(limit=batch_size)
    return {"closed": closed, "delivered": delivered}


async def async_main():
    try:
        summary = await run_once()
    finally:
        await engine.dispose()
    logger.info(
        "Maintenance finished: %d project(s) closed, %d notification(s) delivered",
        summary["closed"], summary["delivered"],
    )


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    asyncio.run(async_main())
