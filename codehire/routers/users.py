"""
Users router – profile registration, reads and edits; coder search;
portfolio items; skill catalogue.

Endpoints:
    POST   /users                        → create a profile
    GET    /users/me                     → own profile with skills and portfolio
    PUT    /users/me                     → edit profile, rate and skills
    POST   /users/me/portfolio           → add a portfolio item
    DELETE /users/me/portfolio/{item_id} → delete own portfolio item
    GET    /users/{id}                   → public profile
    GET    /coders?skill=&q=             → browse coders
    GET    /skills                       → skill catalogue
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.database import get_db
from codehire.dependencies import get_profiles
from codehire.models.skill import Skill
from codehire.models.user import User
from codehire.routers.auth import require_user
from codehire.schemas.user import (
    CoderOut,
    PortfolioItemIn,
    PortfolioItemOut,
    ProfileOut,
    SkillOut,
    UserCreate,
    UserOut,
    UserSkillOut,
    UserUpdate,
)
from codehire.services.profiles import ProfileService

router = APIRouter(tags=["users"])


def _skills_out(rows) -> List[UserSkillOut]:
    return [
        UserSkillOut(skill_id=skill.id, name=skill.name, category=skill.category, level=user_skill.level)
        for user_skill, skill in rows
    ]


async def _profile(profiles: ProfileService, user: User) -> ProfileOut:
    skills = await profiles.skills([user.id])
    return ProfileOut(
        **UserOut.model_validate(user).model_dump(),
        skills=_skills_out(skills[user.id]),
        portfolio=[PortfolioItemOut.model_validate(item) for item in await profiles.portfolio(user.id)],
    )


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create the marketplace profile for an account the auth provider created."""
    full_name = payload.full_name.strip()
    if not full_name:
        raise HTTPException(status_code=422, detail="Full name is required")

    user = User(email=payload.email.lower(), full_name=full_name, role=payload.role)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="A profile with this email already exists")
    await db.refresh(user)
    return user


@router.get("/users/me", response_model=ProfileOut)
async def read_me(
    current_user: User = Depends(require_user),
    profiles: ProfileService = Depends(get_profiles),
):
    """Return the authenticated user's profile."""
    return await _profile(profiles, current_user)


@router.put("/users/me", response_model=ProfileOut)
async def update_me(
    payload: UserUpdate,
    current_user: User = Depends(require_user),
    profiles: ProfileService = Depends(get_profiles),
):
    """Update the fields sent: name, bio, avatar, location, hourly rate, skills."""
    user = await profiles.update_profile(current_user.id, payload.model_dump(exclude_unset=True))
    return await _profile(profiles, user)


@router.post("/users/me/portfolio", response_model=PortfolioItemOut, status_code=status.HTTP_201_CREATED)
async def add_portfolio_item(
    payload: PortfolioItemIn,
    current_user: User = Depends(require_user),
    profiles: ProfileService = Depends(get_profiles),
):
    return await profiles.add_portfolio_item(
        current_user.id,
        payload.title,
        description=payload.description,
        image_url=payload.image_url,
        project_url=payload.project_url,
    )


@router.delete("/users/me/portfolio/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio_item(
    item_id: int,
    current_user: User = Depends(require_user),
    profiles: ProfileService = Depends(get_profiles),
):
    await profiles.delete_portfolio_item(item_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{user_id}", response_model=ProfileOut)
async def read_user(user_id: int, profiles: ProfileService = Depends(get_profiles)):
    """Get a public user profile by ID."""
    return await _profile(profiles, await profiles.get(user_id))


@router.get("/coders", response_model=List[CoderOut])
async def list_coders(
    skill: Optional[str] = None,
    q: Optional[str] = None,
    profiles: ProfileService = Depends(get_profiles),
):
    """Coders with their skills; ``skill`` matches a skill name, ``q`` searches name, bio and location."""
    coders = await profiles.list_coders(skill=skill, query=q)
    skills = await profiles.skills([coder.id for coder in coders])
    return [
        CoderOut(**UserOut.model_validate(coder).model_dump(), skills=_skills_out(skills[coder.id]))
        for coder in coders
    ]


@router.get("/skills", response_model=List[SkillOut])
async def list_skills(category: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    """Skill catalogue, grouped by category then name."""
    query = select(Skill).order_by(Skill.category.asc(), Skill.name.asc())
    if category:
        query = query.where(Skill.category == category)
    result = await db.execute(query)
    return result.scalars().all()
