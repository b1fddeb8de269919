"""Teams — persisted teams with exactly one owner."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.database import store_operation
from codehire.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from codehire.models.team import Team
from codehire.models.team_member import TeamMember, TeamRole
from codehire.models.user import User

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3
MAX_DESCRIPTION_LENGTH = 250


class TeamService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, team_id: int) -> Team:
        result = await self.db.execute(select(Team).where(Team.id == team_id))
        team = result.scalar_one_or_none()
        if team is None:
            raise NotFoundError("Team not found.", team_id=team_id)
        return team

    @store_operation
    async def create_team(
        self,
        owner_id: int,
        name: str,
        description: Optional[str] = None,
        logo_url: Optional[str] = None,
    ) -> Team:
        name = (name or "").strip()
        description = (description or "").strip() or None
        if not name:
            raise ValidationError("Team name is required.", field="name")
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationError(
                f"Team name must be at least {MIN_NAME_LENGTH} characters.", field="name"
            )
        if description and len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters.", field="description"
            )

        team = Team(
            name=name,
            description=description,
            logo_url=(logo_url or "").strip() or None,
            owner_id=owner_id,
        )
        try:
            self.db.add(team)
            await self.db.flush()  # to get team.id
            self.db.add(TeamMember(team_id=team.id, user_id=owner_id, role=TeamRole.OWNER))
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise InvalidStateError("You already own a team.") from exc
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(team)
        logger.info("Team %s created by %s", team.id, owner_id)
        return team

    @store_operation
    async def get(self, team_id: int) -> Team:
        return await self._load(team_id)

    @store_operation
    async def list_teams(self) -> List[Team]:
        result = await self.db.execute(select(Team).order_by(Team.name.asc()))
        return list(result.scalars().all())

    @store_operation
    async def owned_by(self, user_id: int) -> Optional[Team]:
        result = await self.db.execute(select(Team).where(Team.owner_id == user_id))
        return result.scalar_one_or_none()

    @store_operation
    async def members(self, team_id: int) -> List[Tuple[TeamMember, User]]:
        await self._load(team_id)
        result = await self.db.execute(
            select(TeamMember, User)
            .join(User, TeamMember.user_id == User.id)
            .where(TeamMember.team_id == team_id)
            .order_by(TeamMember.joined_at.asc(), User.id.asc())
        )
        return [(member, user) for member, user in result.all()]

    @store_operation
    async def add_member(self, team_id: int, actor_id: int, user_id: int) -> TeamMember:
        team = await self._load(team_id)
        if team.owner_id != actor_id:
            raise AuthorizationError("Only the team owner can add members.", team_id=team_id)
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found.", user_id=user_id)
        if await self.db.get(TeamMember, (team_id, user_id)) is not None:
            raise InvalidStateError("User is already a member of this team.", user_id=user_id)

        member = TeamMember(team_id=team_id, user_id=user_id, role=TeamRole.MEMBER)
        self.db.add(member)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise InvalidStateError("User is already a member of this team.", user_id=user_id) from exc
        return member

    @store_operation
    async def remove_member(self, team_id: int, actor_id: int, user_id: int) -> None:
        """Owner removes a member, or a member leaves."""
        team = await self._load(team_id)
        if actor_id not in (team.owner_id, user_id):
            raise AuthorizationError("Only the team owner can remove other members.", team_id=team_id)
        if user_id == team.owner_id:
            raise InvalidStateError("The team owner cannot leave their own team.", team_id=team_id)

        member = await self.db.get(TeamMember, (team_id, user_id))
        if member is None:
            raise NotFoundError("Membership not found.", team_id=team_id, user_id=user_id)
        try:
            await self.db.delete(member)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
