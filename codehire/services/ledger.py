"""
Application ledger — bids on projects and the hirer's accept/reject decision.

One application per (project, applicant) is guaranteed by the
``uq_application_project_applicant`` constraint; a decision is a single
conditional UPDATE from ``pending``, so concurrent callers cannot both win.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.config import settings
from codehire.database import store_operation
from codehire.errors import (
    AuthorizationError,
    BiddingClosedError,
    DuplicateApplicationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from codehire.models.application import Application, ApplicantKind, ApplicationStatus
from codehire.models.project import TERMINAL_STATUSES
from codehire.models.team import Team
from codehire.services.dispatcher import NotificationDispatcher, build_outbox_event
from codehire.services.lifecycle import ProjectLifecycle, is_biddable
from codehire.utils.clock import Clock, utcnow
from codehire.utils.validation import to_amount, to_count, to_enum

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "I would like to apply for this project."
NOTIFICATION_WARNING = "Application updated, but there was an issue sending the notification."

DECISIONS = {
    "accept": ApplicationStatus.ACCEPTED,
    "accepted": ApplicationStatus.ACCEPTED,
    "reject": ApplicationStatus.REJECTED,
    "rejected": ApplicationStatus.REJECTED,
}


@dataclass
class DecisionResult:
    application: Application
    notified: bool
    warning: Optional[str] = None


def _is_duplicate(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    return (
        "uq_application_project_applicant" in text
        or "applications.project_id, applications.applicant_id" in text
    )


class ApplicationLedger:
    def __init__(
        self,
        db: AsyncSession,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.clock = clock
        self.projects = ProjectLifecycle(db, clock)

    async def _load(self, application_id: int) -> Application:
        result = await self.db.execute(
            select(Application)
            .where(Application.id == application_id)
            .execution_options(populate_existing=True)
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError("Application not found.", application_id=application_id)
        return application

    # ── Submission ──

    @store_operation
    async def submit(
        self,
        project_id: int,
        applicant_id: int,
        applicant_kind=ApplicantKind.INDIVIDUAL,
        team_id: Optional[int] = None,
        bid_amount=None,
        experience_years=None,
        message: str = "",
    ) -> int:
        project = await self.projects.get(project_id)
        now = self.clock()
        if not is_biddable(project, now):
            raise BiddingClosedError("Bidding for this project is closed.", project_id=project_id)
        if project.owner_id == applicant_id:
            raise AuthorizationError("You cannot apply to your own project.", project_id=project_id)

        kind = to_enum(ApplicantKind, applicant_kind or ApplicantKind.INDIVIDUAL, "applicant_kind")
        prefix = ""
        if kind == ApplicantKind.TEAM:
            if team_id is None:
                raise ValidationError("Select a team to apply as.", field="team_id")
            result = await self.db.execute(
                select(Team).where(Team.id == team_id, Team.owner_id == applicant_id)
            )
            team = result.scalar_one_or_none()
            if team is None:
                raise AuthorizationError(
                    "Only the team owner can apply on behalf of a team.", team_id=team_id
                )
            prefix = f"[Applied as Team: {team.name}]\n"
        elif team_id is not None:
            raise ValidationError("Individual applications cannot name a team.", field="team_id")

        amount = to_amount(bid_amount, "bid_amount")
        years = to_count(experience_years, "experience_years")
        text = (message or "").strip() or DEFAULT_MESSAGE

        application = Application(
            project_id=project_id,
            applicant_id=applicant_id,
            applicant_kind=kind,
            team_id=team_id,
            bid_amount=amount,
            experience_years=years,
            message=f"{prefix}{text}",
            status=ApplicationStatus.PENDING,
            created_at=now,
        )
        self.db.add(application)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if _is_duplicate(exc):
                raise DuplicateApplicationError(
                    "You have already applied to this project.", project_id=project_id
                ) from exc
            raise ValidationError("Application refers to a record that does not exist.") from exc
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Application %s submitted to project %s by %s (%s)",
            application.id, project_id, applicant_id, kind.value,
        )
        return application.id

    # ── Reads ──

    @store_operation
    async def get(self, application_id: int) -> Application:
        return await self._load(application_id)

    @store_operation
    async def list_for_project(self, project_id: int) -> List[Application]:
        result = await self.db.execute(
            select(Application)
            .where(Application.project_id == project_id)
            .order_by(Application.created_at.desc(), Application.id.desc())
        )
        return list(result.scalars().all())

    @store_operation
    async def list_for_project_as(self, project_id: int, viewer_id: int) -> List[Application]:
        """Applications of a project, visible to its hirer only."""
        project = await self.projects.get(project_id)
        if project.owner_id != viewer_id:
            raise AuthorizationError("Only the project owner can review applications.", project_id=project_id)
        return await self.list_for_project(project_id)

    @store_operation
    async def list_for_applicant(self, applicant_id: int) -> List[Application]:
        result = await self.db.execute(
            select(Application)
            .where(Application.applicant_id == applicant_id)
            .order_by(Application.created_at.desc(), Application.id.desc())
        )
        return list(result.scalars().all())

    # ── Decision ──

    async def decide(self, application_id: int, decider_id: int, decision) -> DecisionResult:
        """Accept or reject a pending application, then try to notify the applicant."""
        application, event_id = await self._record_decision(application_id, decider_id, decision)
        notified, warning = await self._dispatch(event_id)
        return DecisionResult(application=application, notified=notified, warning=warning)

    @store_operation
    async def _record_decision(self, application_id: int, decider_id: int, decision) -> Tuple[Application, int]:
        target = DECISIONS.get(str(getattr(decision, "value", decision)).strip().lower())
        if target is None:
            raise ValidationError("Decision must be 'accept' or 'reject'.", field="decision")

        try:
            application = await self._load(application_id)
            project = await self.projects.get(application.project_id)
            if project.owner_id != decider_id:
                raise AuthorizationError(
                    "Only the project owner can decide on applications.", application_id=application_id
                )
            if application.status != ApplicationStatus.PENDING:
                raise InvalidStateError(
                    f"This application has already been {application.status.value}.",
                    application_id=application_id,
                )
            if project.status in TERMINAL_STATUSES:
                raise InvalidStateError(
                    f"The project is {project.status.value}.", project_id=project.id
                )

            now = self.clock()
            if target == ApplicationStatus.ACCEPTED and not is_biddable(project, now):
                raise BiddingClosedError(
                    "This project is no longer accepting applications.", project_id=project.id
                )

            result = await self.db.execute(
                update(Application)
                .where(
                    Application.id == application_id,
                    Application.status == ApplicationStatus.PENDING,
                )
                .values(status=target, decided_at=now)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                raise InvalidStateError(
                    "This application has already been decided.", application_id=application_id
                )

            if target == ApplicationStatus.ACCEPTED and not await self.projects.begin_work(project.id):
                raise InvalidStateError(
                    "This project is no longer accepting applications.", project_id=project.id
                )

            event = build_outbox_event(application, project.title, target.value)
            self.db.add(event)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Application %s %s by hirer %s", application_id, target.value, decider_id
        )
        return await self._load(application_id), event.id

    async def _dispatch(self, event_id: int) -> Tuple[bool, Optional[str]]:
        if self.dispatcher is None:
            return False, None
        try:
            result = await asyncio.wait_for(
                self.dispatcher.deliver(event_id), settings.NOTIFY_TIMEOUT_SECONDS
            )
        except Exception:
            # A recorded decision stands; the outbox row is retried by drain().
            logger.exception("Notification delivery for outbox event %s failed", event_id)
            return False, NOTIFICATION_WARNING
        if not result.ok:
            logger.warning("Notification for outbox event %s not delivered: %s", event_id, result.error)
            return False, NOTIFICATION_WARNING
        return True, None
