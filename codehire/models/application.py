"""Application model — a bid submitted by a coder or a team owner."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from codehire.database import Base


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ApplicantKind(str, enum.Enum):
    INDIVIDUAL = "individual"
    TEAM = "team"


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("project_id", "applicant_id", name="uq_application_project_applicant"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    applicant_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    applicant_kind: Mapped[ApplicantKind] = mapped_column(
        Enum(ApplicantKind, name="applicant_kind", values_callable=lambda e: [m.value for m in e]),
        default=ApplicantKind.INDIVIDUAL,
    )
    team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"))

    bid_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    experience_years: Mapped[Optional[int]] = mapped_column(Integer)
    message: Mapped[str] = mapped_column(Text, default="")

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status", values_callable=lambda e: [m.value for m in e]),
        default=ApplicationStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
