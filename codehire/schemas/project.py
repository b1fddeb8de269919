"""Project Pydantic schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from codehire.models.project import HirePreference, ProjectStatus


class ProjectCreate(BaseModel):
    title: str
    description: str
    budget: Optional[float] = None
    deadline: Optional[date] = None
    required_skills: List[int] = []
    hire_preference: HirePreference = HirePreference.EITHER


class ProjectOut(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str
    budget: Optional[float] = None
    deadline: Optional[date] = None
    hire_preference: HirePreference
    required_skill_ids: List[int] = []
    status: ProjectStatus
    paid: bool
    bidding_end_time: Optional[datetime] = None
    biddable: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CheckoutOut(BaseModel):
    project_id: int
    checkout_url: str
