"""
Project lifecycle — draft creation, payment activation, the bidding
window, cancellation and completion.

State changes are single conditional UPDATEs so that repeated or
concurrent requests are settled by the store, not by this process.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.config import settings
from codehire.database import store_operation
from codehire.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from codehire.models.project import (
    BIDDABLE_STATUSES,
    TERMINAL_STATUSES,
    HirePreference,
    Project,
    ProjectSkill,
    ProjectStatus,
)
from codehire.models.skill import Skill
from codehire.utils.clock import Clock, as_utc, utcnow
from codehire.utils.validation import required_text, to_amount, to_enum

logger = logging.getLogger(__name__)

# Payment may activate a project only from these states.
ACTIVATABLE_STATUSES = (ProjectStatus.DRAFT, ProjectStatus.OPEN)


def is_biddable(project: Project, now: datetime) -> bool:
    """True while the project accepts new applications.

    The bidding window is checked here rather than trusted from the stored
    status, so an ``active`` row past its end time is already closed.
    """
    if project.status == ProjectStatus.CANCELLED:
        return False
    if project.status not in BIDDABLE_STATUSES:
        return False
    end = as_utc(project.bidding_end_time)
    return end is None or as_utc(now) < end


def _skill_ids(values: Optional[Iterable]) -> set:
    ids = set()
    for value in values or ():
        try:
            ids.add(int(value))
        except (TypeError, ValueError) as exc:
            raise ValidationError("Skill ids must be integers.", field="required_skills") from exc
    return ids


class ProjectLifecycle:
    """Owns every project status transition."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def _load(self, project_id: int) -> Project:
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project not found.", project_id=project_id)
        return project

    # ── Reads ──

    @store_operation
    async def get(self, project_id: int) -> Project:
        return await self._load(project_id)

    @store_operation
    async def list_biddable(self, now: Optional[datetime] = None) -> List[Project]:
        """Projects currently open for bids, newest first."""
        now = now or self.clock()
        result = await self.db.execute(
            select(Project)
            .where(
                Project.status.in_(BIDDABLE_STATUSES),
                or_(Project.bidding_end_time.is_(None), Project.bidding_end_time > now),
            )
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        return list(result.scalars().all())

    @store_operation
    async def list_for_owner(self, owner_id: int) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.owner_id == owner_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        return list(result.scalars().all())

    # ── Transitions ──

    @store_operation
    async def create_draft(
        self,
        hirer_id: int,
        title: str,
        description: str,
        required_skills: Iterable = (),
        hire_preference=HirePreference.EITHER,
        budget=None,
        deadline: Optional[date] = None,
    ) -> int:
        """Create a project in ``draft``; it is not biddable until paid."""
        title = required_text(title, "title")
        description = required_text(description, "description")
        preference = to_enum(HirePreference, hire_preference or HirePreference.EITHER, "hire_preference")
        amount = to_amount(budget, "budget")
        skill_ids = _skill_ids(required_skills)

        if skill_ids:
            found = await self.db.execute(select(Skill.id).where(Skill.id.in_(skill_ids)))
            missing = skill_ids - set(found.scalars().all())
            if missing:
                raise ValidationError("Unknown skill ids.", field="required_skills", skill_ids=sorted(missing))

        project = Project(
            owner_id=hirer_id,
            title=title,
            description=description,
            budget=amount,
            deadline=deadline,
            hire_preference=preference,
            status=ProjectStatus.DRAFT,
            paid=False,
            bidding_end_time=None,
            created_at=self.clock(),
            skills=[ProjectSkill(skill_id=skill_id) for skill_id in sorted(skill_ids)],
        )
        self.db.add(project)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("Draft project %s created by hirer %s", project.id, hirer_id)
        return project.id

    @store_operation
    async def confirm_payment(self, project_id: int) -> Project:
        """Activate a paid project and open its bidding window.

        Safe under at-least-once delivery: only a project that was never
        activated matches the UPDATE, so repeats leave the window alone.
        """
        now = self.clock()
        try:
            result = await self.db.execute(
                update(Project)
                .where(
                    Project.id == project_id,
                    Project.status.in_(ACTIVATABLE_STATUSES),
                    Project.bidding_end_time.is_(None),
                )
                .values(
                    paid=True,
                    status=ProjectStatus.ACTIVE,
                    bidding_end_time=now + timedelta(days=settings.BIDDING_WINDOW_DAYS),
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        project = await self._load(project_id)
        if result.rowcount:
            logger.info(
                "Project %s activated; bidding closes at %s",
                project_id, project.bidding_end_time,
            )
            return project
        if project.status == ProjectStatus.CANCELLED:
            raise InvalidStateError("Cancelled projects cannot be activated.", project_id=project_id)
        logger.info("Repeated payment confirmation for project %s ignored (status=%s)", project_id, project.status.value)
        return project

    async def begin_work(self, project_id: int) -> bool:
        """Move a biddable project to ``in_progress`` inside the caller's transaction."""
        result = await self.db.execute(
            update(Project)
            .where(Project.id == project_id, Project.status.in_(BIDDABLE_STATUSES))
            .values(status=ProjectStatus.IN_PROGRESS, updated_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    @store_operation
    async def cancel(self, project_id: int, actor_id: int) -> Project:
        project = await self._load(project_id)
        if project.owner_id != actor_id:
            raise AuthorizationError("Only the project owner can cancel it.", project_id=project_id)
        if project.status in TERMINAL_STATUSES:
            raise InvalidStateError(
                f"Project is already {project.status.value}.", project_id=project_id
            )
        await self._transition(project_id, TERMINAL_STATUSES, ProjectStatus.CANCELLED, exclude=True)
        logger.info("Project %s cancelled by %s", project_id, actor_id)
        return await self._load(project_id)

    @store_operation
    async def complete(self, project_id: int, actor_id: int) -> Project:
        project = await self._load(project_id)
        if project.owner_id != actor_id:
            raise AuthorizationError("Only the project owner can complete it.", project_id=project_id)
        if project.status != ProjectStatus.IN_PROGRESS:
            raise InvalidStateError("Only projects in progress can be completed.", project_id=project_id)
        await self._transition(project_id, (ProjectStatus.IN_PROGRESS,), ProjectStatus.COMPLETED)
        logger.info("Project %s completed", project_id)
        return await self._load(project_id)

    @store_operation
    async def close_expired(self, now: Optional[datetime] = None) -> int:
        """Persist ``closed`` for projects whose bidding window has elapsed."""
        now = now or self.clock()
        try:
            result = await self.db.execute(
                update(Project)
                .where(
                    Project.status.in_(BIDDABLE_STATUSES),
                    Project.bidding_end_time.is_not(None),
                    Project.bidding_end_time <= now,
                )
                .values(status=ProjectStatus.CLOSED, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        if result.rowcount:
            logger.info("Closed bidding on %d expired project(s)", result.rowcount)
        return result.rowcount

    async def _transition(self, project_id, statuses, target: ProjectStatus, exclude: bool = False) -> None:
        condition = Project.status.not_in(statuses) if exclude else Project.status.in_(statuses)
        try:
            result = await self.db.execute(
                update(Project)
                .where(Project.id == project_id, condition)
                .values(status=target, updated_at=self.clock())
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                raise InvalidStateError("Project changed state; reload and try again.", project_id=project_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
