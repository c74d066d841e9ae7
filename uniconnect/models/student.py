from __future__ import annotations

from enum import Enum
from typing import List, Optional
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column

from uniconnect.core.clock import utcnow
from uniconnect.core.database import Base


# --------------------------------------------------
# ENUMS
# --------------------------------------------------

class StudentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    HIDDEN = "hidden"


class Track(str, Enum):
    WEB_FRONTEND = "Web Development - Frontend"
    WEB_BACKEND = "Web Development - Backend"
    WEB_FULLSTACK = "Web Development - Full Stack"
    MOBILE = "Mobile Development"
    AI_DATA = "AI & Data"
    CYBERSECURITY = "Cybersecurity"
    UX_UI = "UX/UI Design"


SKILL_SEPARATOR = "\x1f"


def skills_search_text(skills: List[str]) -> str:
    return SKILL_SEPARATOR.join(skills)


# --------------------------------------------------
# MODEL
# --------------------------------------------------

class Student(Base):
    __tablename__ = "students"

    __table_args__ = (
        UniqueConstraint("email", name="uq_students_email"),
        Index("ix_students_status_created", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # --------------------------------------------------
    # PROFILE
    # --------------------------------------------------

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    track: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    # skills joined by SKILL_SEPARATOR; searched instead of the JSON text
    skills_search: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    bio: Mapped[str] = mapped_column(Text, nullable=False)

    linked_in: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    github: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    portfolio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    telegram: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    avatar: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    preferences: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # --------------------------------------------------
    # MODERATION
    # --------------------------------------------------

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StudentStatus.PENDING.value,
        server_default=StudentStatus.PENDING.value,
    )
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    special: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    # --------------------------------------------------
    # TIMESTAMPS
    # --------------------------------------------------

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Student id={self.id} email={self.email!r} status={self.status}>"
