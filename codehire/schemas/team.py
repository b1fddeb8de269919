"""Team Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from codehire.models.team_member import TeamRole


class TeamCreate(BaseModel):
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None


class TeamOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    owner_id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TeamMemberOut(BaseModel):
    user_id: int
    full_name: str
    role: TeamRole


class TeamDetailOut(TeamOut):
    members: List[TeamMemberOut] = []


class MemberAdd(BaseModel):
    user_id: int
