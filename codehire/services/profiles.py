"""
Profiles — profile edits, the skills and rate a coder advertises,
coder search, and portfolio items.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.database import store_operation
from codehire.errors import AuthorizationError, NotFoundError, ValidationError
from codehire.models.portfolio_item import PortfolioItem
from codehire.models.skill import Skill
from codehire.models.user import User, UserRole
from codehire.models.user_skill import SkillLevel, UserSkill
from codehire.utils.clock import Clock, utcnow
from codehire.utils.validation import required_text, to_count, to_enum

logger = logging.getLogger(__name__)

OPTIONAL_TEXT_FIELDS = ("bio", "avatar_url", "location")


def _optional_url(value: Optional[str], field: str) -> Optional[str]:
    url = (value or "").strip()
    if not url:
        return None
    if not url.lower().startswith(("http://", "https://")):
        raise ValidationError(f"{field} must be an http(s) URL.", field=field)
    return url


def _skill_levels(entries: Iterable[Any]) -> Dict[int, SkillLevel]:
    """``[{"skill_id": 3, "level": "expert"}, 5, ...]`` → ``{3: EXPERT, 5: INTERMEDIATE}``."""
    levels: Dict[int, SkillLevel] = {}
    for entry in entries:
        if isinstance(entry, Mapping):
            skill_id, level = entry.get("skill_id"), entry.get("level")
        else:
            skill_id, level = entry, None
        skill_id = to_count(skill_id, "skills")
        if skill_id is None:
            raise ValidationError("Every skill needs a skill_id.", field="skills")
        levels[skill_id] = to_enum(SkillLevel, level or SkillLevel.INTERMEDIATE, "level")
    return levels


class ProfileService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def _load_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found.", user_id=user_id)
        return user

    @store_operation
    async def get(self, user_id: int) -> User:
        return await self._load_user(user_id)

    @store_operation
    async def update_profile(self, user_id: int, changes: Mapping[str, Any]) -> User:
        """Apply only the fields present in ``changes``; ``skills`` replaces the whole list."""
        user = await self._load_user(user_id)

        values: Dict[str, Any] = {}
        if "full_name" in changes:
            full_name = (changes["full_name"] or "").strip()
            if not full_name:
                raise ValidationError("Full name cannot be empty.", field="full_name")
            values["full_name"] = full_name
        for field in OPTIONAL_TEXT_FIELDS:
            if field in changes:
                values[field] = (changes[field] or "").strip() or None
        if "avatar_url" in values:
            values["avatar_url"] = _optional_url(values["avatar_url"], "avatar_url")
        if "hourly_rate" in changes:
            values["hourly_rate"] = to_count(changes["hourly_rate"], "hourly_rate")
        levels = None
        if "skills" in changes:
            levels = _skill_levels(changes["skills"] or ())
            await self._check_skills(levels)

        for field, value in values.items():
            setattr(user, field, value)
        try:
            if levels is not None:
                await self._replace_skills(user_id, levels)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(user)
        return user

    async def _check_skills(self, levels: Dict[int, SkillLevel]) -> None:
        if not levels:
            return
        found = await self.db.execute(select(Skill.id).where(Skill.id.in_(levels)))
        missing = set(levels) - set(found.scalars().all())
        if missing:
            raise ValidationError("Unknown skill ids.", field="skills", skill_ids=sorted(missing))

    async def _replace_skills(self, user_id: int, levels: Dict[int, SkillLevel]) -> None:
        result = await self.db.execute(select(UserSkill).where(UserSkill.user_id == user_id))
        current = {row.skill_id: row for row in result.scalars().all()}
        for skill_id, row in current.items():
            if skill_id not in levels:
                await self.db.delete(row)
            else:
                row.level = levels[skill_id]
        for skill_id, level in levels.items():
            if skill_id not in current:
                self.db.add(UserSkill(user_id=user_id, skill_id=skill_id, level=level))

    @store_operation
    async def skills(self, user_ids: Iterable[int]) -> Dict[int, List[Tuple[UserSkill, Skill]]]:
        """Skills per user, alphabetical by skill name."""
        ids = list(user_ids)
        grouped: Dict[int, List[Tuple[UserSkill, Skill]]] = {user_id: [] for user_id in ids}
        if not ids:
            return grouped
        result = await self.db.execute(
            select(UserSkill, Skill)
            .join(Skill, UserSkill.skill_id == Skill.id)
            .where(UserSkill.user_id.in_(ids))
            .order_by(Skill.name.asc())
        )
        for user_skill, skill in result.all():
            grouped[user_skill.user_id].append((user_skill, skill))
        return grouped

    @store_operation
    async def list_coders(self, skill: Optional[str] = None, query: Optional[str] = None) -> List[User]:
        """Coders, optionally limited to one skill name and a free-text match on name, bio or location."""
        stmt = select(User).where(User.role == UserRole.CODER)
        skill = (skill or "").strip().lower()
        if skill:
            stmt = stmt.where(
                User.id.in_(
                    select(UserSkill.user_id)
                    .join(Skill, UserSkill.skill_id == Skill.id)
                    .where(func.lower(Skill.name) == skill)
                )
            )
        query = (query or "").strip().lower()
        if query:
            pattern = f"%{query}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.full_name).like(pattern),
                    func.lower(User.bio).like(pattern),
                    func.lower(User.location).like(pattern),
                )
            )
        result = await self.db.execute(stmt.order_by(User.full_name.asc(), User.id.asc()))
        return list(result.scalars().all())

    # ── Portfolio ──

    @store_operation
    async def portfolio(self, user_id: int) -> List[PortfolioItem]:
        result = await self.db.execute(
            select(PortfolioItem)
            .where(PortfolioItem.owner_id == user_id)
            .order_by(PortfolioItem.created_at.desc(), PortfolioItem.id.desc())
        )
        return list(result.scalars().all())

    @store_operation
    async def add_portfolio_item(
        self,
        owner_id: int,
        title: str,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
        project_url: Optional[str] = None,
    ) -> PortfolioItem:
        item = PortfolioItem(
            owner_id=owner_id,
            title=required_text(title, "title"),
            description=(description or "").strip() or None,
            image_url=_optional_url(image_url, "image_url"),
            project_url=_optional_url(project_url, "project_url"),
            created_at=self.clock(),
        )
        self.db.add(item)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("Portfolio item %s added by user %s", item.id, owner_id)
        return item

    @store_operation
    async def delete_portfolio_item(self, item_id: int, actor_id: int) -> None:
        item = await self.db.get(PortfolioItem, item_id)
        if item is None:
            raise NotFoundError("Portfolio item not found.", item_id=item_id)
        if item.owner_id != actor_id:
            raise AuthorizationError("Only the owner can delete a portfolio item.", item_id=item_id)
        try:
            await self.db.delete(item)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
