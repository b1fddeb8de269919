"""Skill model — catalogue of skills a project can require."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from codehire.database import Base


class Skill(Base):
    __tablename__ = "skills"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="General")
