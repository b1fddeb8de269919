"""Project model — freelance projects posted by hirers and opened for bidding."""

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from codehire.database import Base


class ProjectStatus(str, enum.Enum):
    """
    Single authoritative lifecycle enum (schema revision 0001).

    ``OPEN`` is the pre-payment biddable state older rows were created in;
    it stays valid so those rows keep working without a runtime fallback.
    """

    DRAFT = "draft"
    OPEN = "open"
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


BIDDABLE_STATUSES = frozenset({ProjectStatus.OPEN, ProjectStatus.ACTIVE})
TERMINAL_STATUSES = frozenset({ProjectStatus.COMPLETED, ProjectStatus.CANCELLED})


class HirePreference(str, enum.Enum):
    INDIVIDUAL = "individual"
    TEAM = "team"
    EITHER = "either"


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    deadline: Mapped[Optional[date]] = mapped_column(Date)
    hire_preference: Mapped[HirePreference] = mapped_column(
        Enum(HirePreference, name="hire_preference", values_callable=_enum_values),
        default=HirePreference.EITHER,
    )

    # ── Lifecycle ──
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status", values_callable=_enum_values),
        default=ProjectStatus.DRAFT,
        index=True,
    )
    paid: Mapped[bool] = mapped_column(Boolean, default=False)
    bidding_end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    skills: Mapped[List["ProjectSkill"]] = relationship(
        "ProjectSkill", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def required_skill_ids(self) -> List[int]:
        return sorted(ps.skill_id for ps in self.skills)


class ProjectSkill(Base):
    __tablename__ = "project_skills"
    __table_args__ = (
        UniqueConstraint("project_id", "skill_id", name="uq_project_skill"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    skill_id: Mapped[int] = mapped_column(
        ForeignKey("skills.id", ondelete="CASCADE"), nullable=False
    )
