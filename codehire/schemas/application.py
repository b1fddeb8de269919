"""Application Pydantic schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from codehire.models.application import ApplicantKind, ApplicationStatus


class ApplicationCreate(BaseModel):
    applicant_kind: ApplicantKind = ApplicantKind.INDIVIDUAL
    team_id: Optional[int] = None
    bid_amount: Optional[float] = None
    experience_years: Optional[int] = None
    message: Optional[str] = None


class ApplicationOut(BaseModel):
    id: int
    project_id: int
    applicant_id: int
    applicant_kind: ApplicantKind
    team_id: Optional[int] = None
    bid_amount: Optional[float] = None
    experience_years: Optional[int] = None
    message: str
    status: ApplicationStatus
    created_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DecisionIn(BaseModel):
    decision: Literal["accept", "reject"]


class DecisionOut(BaseModel):
    application: ApplicationOut
    notified: bool
    warning: Optional[str] = None
