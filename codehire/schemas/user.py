"""User Pydantic schemas for registration, profiles and portfolio items."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr

from codehire.models.user import UserRole
from codehire.models.user_skill import SkillLevel


class UserCreate(BaseModel):
    """Fields submitted on the registration form."""
    full_name: str
    email: EmailStr
    role: UserRole = UserRole.CODER


class UserSkillIn(BaseModel):
    skill_id: int
    level: SkillLevel = SkillLevel.INTERMEDIATE


class UserUpdate(BaseModel):
    """Only the fields sent are changed; ``skills`` replaces the whole list."""
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None
    hourly_rate: Optional[int] = None
    skills: Optional[List[UserSkillIn]] = None


class UserOut(BaseModel):
    """Public user representation returned by the API."""
    id: int
    email: str
    full_name: str
    role: UserRole
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    hourly_rate: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserSkillOut(BaseModel):
    skill_id: int
    name: str
    category: str
    level: SkillLevel


class PortfolioItemIn(BaseModel):
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    project_url: Optional[str] = None


class PortfolioItemOut(BaseModel):
    id: int
    owner_id: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    project_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CoderOut(UserOut):
    skills: List[UserSkillOut] = []


class ProfileOut(CoderOut):
    portfolio: List[PortfolioItemOut] = []


class SkillOut(BaseModel):
    id: int
    name: str
    category: str

    model_config = {"from_attributes": True}
