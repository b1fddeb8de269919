"""FastAPI dependency providers wiring a request's session into the services."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.database import async_session, get_db
from codehire.services.dispatcher import NotificationDispatcher
from codehire.services.ledger import ApplicationLedger
from codehire.services.lifecycle import ProjectLifecycle
from codehire.services.messaging import MessagingService
from codehire.services.profiles import ProfileService
from codehire.services.teams import TeamService
from codehire.utils.clock import Clock, utcnow


def get_clock() -> Clock:
    return utcnow


def get_dispatcher(clock: Clock = Depends(get_clock)) -> NotificationDispatcher:
    return NotificationDispatcher(async_session, clock=clock)


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ProjectLifecycle:
    return ProjectLifecycle(db, clock)


def get_ledger(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: Clock = Depends(get_clock),
) -> ApplicationLedger:
    return ApplicationLedger(db, dispatcher, clock)


def get_teams(db: AsyncSession = Depends(get_db)) -> TeamService:
    return TeamService(db)


def get_profiles(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ProfileService:
    return ProfileService(db, clock)


def get_messaging(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> MessagingService:
    return MessagingService(db, clock)
