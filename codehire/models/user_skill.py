"""User skill model — skills a coder lists on their profile."""

import enum

from sqlalchemy import Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from codehire.database import Base


class SkillLevel(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class UserSkill(Base):
    __tablename__ = "user_skills"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True)

    level: Mapped[SkillLevel] = mapped_column(
        Enum(SkillLevel, name="skill_level", values_callable=lambda e: [m.value for m in e]),
        default=SkillLevel.INTERMEDIATE,
    )
