import csv
import io
import logging
import re
from datetime import datetime
from typing import Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniconnect.core.clock import utcnow
from uniconnect.models.student import SKILL_SEPARATOR, Student, StudentStatus, Track, skills_search_text
from uniconnect.models.student_otp import StudentOtp
from uniconnect.schemas.student import (
    StatusCounts,
    StudentAdminUpdate,
    StudentCreate,
    StudentSelfUpdate,
    StudentStats,
    TrackCounts,
)

logger = logging.getLogger(__name__)

_STATUS_VALUES = {s.value for s in StudentStatus}

# Columns that may never be nulled by a patch
_REQUIRED_FIELDS = {"full_name", "track", "skills", "bio", "email", "status", "featured", "special"}

CSV_HEADERS = [
    "Full Name",
    "Email",
    "LinkedIn",
    "GitHub",
    "Portfolio",
    "Telegram",
    "Track",
    "Skills",
    "Bio",
    "Status",
    "Created At",
]


def normalize_email(v: str) -> str:
    return (v or "").strip().lower()


def normalize_telegram(v: Optional[str]) -> Optional[str]:
    """
    Reduce a Telegram link or handle to the bare username.
    "@bob", "https://t.me/bob" and "t.me/bob/" all give "bob".
    """
    if not v:
        return None
    cleaned = v.strip()
    cleaned = re.sub(r"^https?://", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"^(www\.)?t\.me/", "", cleaned, flags=re.IGNORECASE)
    cleaned = cleaned.lstrip("@")
    cleaned = cleaned.split("/")[0].split("?")[0].strip()
    return cleaned or None


def _escape_like(v: str) -> str:
    return v.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Student not found")


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail="This email is already registered. Please use a different email address.",
    )


# ─────────────────────────────────────────────────────────────
# CREATE
# ─────────────────────────────────────────────────────────────
async def create_student(db: AsyncSession, payload: StudentCreate, *, now: datetime | None = None) -> Student:
    email = normalize_email(str(payload.email))

    existing = (await db.execute(select(Student.id).where(Student.email == email))).scalar_one_or_none()
    if existing is not None:
        raise _conflict()

    now = now or utcnow()
    s = Student(
        email=email,
        full_name=payload.full_name,
        track=payload.track.value,
        skills=list(payload.skills),
        skills_search=skills_search_text(payload.skills),
        bio=payload.bio,
        linked_in=payload.linked_in,
        github=payload.github,
        portfolio=payload.portfolio,
        telegram=normalize_telegram(payload.telegram),
        avatar=payload.avatar,
        preferences=payload.preferences,
        status=StudentStatus.PENDING.value,
        featured=False,
        special=False,
        created_at=now,
        updated_at=now,
    )
    db.add(s)
    try:
        await db.commit()
    except IntegrityError:
        # lost the check-then-insert race; the unique constraint caught it
        await db.rollback()
        raise _conflict()
    await db.refresh(s)

    logger.info("Student %s registered (track=%s)", s.id, s.track)
    return s


# ─────────────────────────────────────────────────────────────
# READ
# ─────────────────────────────────────────────────────────────
async def list_students(
    db: AsyncSession,
    *,
    status: Optional[str] = None,
    track: Optional[str] = None,
    q: Optional[str] = None,
) -> list[Student]:
    """
    status and track are exact filters; q matches name OR skills OR bio,
    case-insensitively. Newest first.
    """
    stmt = select(Student)

    if isinstance(status, StudentStatus):
        status = status.value
    if isinstance(track, Track):
        track = track.value

    if status:
        stmt = stmt.where(Student.status == status)

    if track and track.strip():
        stmt = stmt.where(Student.track == track.strip())

    if q and q.strip():
        needle = q.strip()
        like = f"%{_escape_like(needle)}%"
        clauses = [
            Student.full_name.ilike(like, escape="\\"),
            Student.bio.ilike(like, escape="\\"),
        ]
        # each skill is matched on its own, never across the separator
        if SKILL_SEPARATOR not in needle:
            clauses.append(Student.skills_search.ilike(like, escape="\\"))
        stmt = stmt.where(or_(*clauses))

    stmt = stmt.order_by(Student.created_at.desc(), Student.id.desc())
    return list((await db.execute(stmt)).scalars().all())


def featured_first(students: Sequence[Student]) -> list[Student]:
    """Featured cards first; order is otherwise preserved (sorted() is stable)."""
    return sorted(students, key=lambda s: not s.featured)


async def get_student(db: AsyncSession, student_id: int) -> Student:
    s = await db.get(Student, student_id)
    if s is None:
        raise _not_found()
    return s


async def get_student_by_email(db: AsyncSession, email: str) -> Student | None:
    q = await db.execute(select(Student).where(Student.email == normalize_email(email)))
    return q.scalar_one_or_none()


# ─────────────────────────────────────────────────────────────
# UPDATE
# ─────────────────────────────────────────────────────────────
async def update_student_fields(
    db: AsyncSession,
    student_id: int,
    payload: StudentAdminUpdate | StudentSelfUpdate,
    *,
    now: datetime | None = None,
) -> Student:
    """
    Apply an allow-listed patch. Which fields are accepted is decided by the
    payload type (admin vs self-service); created_at is never touched.
    """
    s = await get_student(db, student_id)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        if field == "telegram":
            value = normalize_telegram(value)
        elif field == "skills":
            s.skills_search = skills_search_text(value)
        elif field == "email":
            value = normalize_email(str(value))
            if value != s.email:
                taken = (
                    await db.execute(select(Student.id).where(Student.email == value, Student.id != s.id))
                ).scalar_one_or_none()
                if taken is not None:
                    raise _conflict()
        elif isinstance(value, (StudentStatus, Track)):
            value = value.value
        setattr(s, field, value)

    s.updated_at = now or utcnow()
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise _conflict()
    await db.refresh(s)

    if "status" in changes:
        logger.info("Student %s status -> %s", s.id, s.status)
    return s


async def update_student_status(
    db: AsyncSession,
    student_id: int,
    status: StudentStatus,
    *,
    now: datetime | None = None,
) -> Student:
    # every status is reachable from every other status
    return await update_student_fields(db, student_id, StudentAdminUpdate(status=status), now=now)


# ─────────────────────────────────────────────────────────────
# DELETE
# ─────────────────────────────────────────────────────────────
async def delete_student(db: AsyncSession, student_id: int) -> None:
    s = await get_student(db, student_id)
    await db.execute(delete(StudentOtp).where(StudentOtp.student_id == s.id))
    await db.delete(s)
    await db.commit()
    logger.info("Student %s deleted", student_id)


# ─────────────────────────────────────────────────────────────
# ADMIN DASHBOARD
# ─────────────────────────────────────────────────────────────
async def student_stats(db: AsyncSession) -> StudentStats:
    rows = (
        await db.execute(
            select(Student.track, Student.status, func.count(Student.id)).group_by(Student.track, Student.status)
        )
    ).all()

    overall = StatusCounts()
    per_track = {t.value: TrackCounts(track=t.value) for t in Track}

    for track, status, count in rows:
        bucket = per_track.setdefault(track, TrackCounts(track=track))
        for counts in (overall, bucket):
            counts.total += count
            if status in _STATUS_VALUES:
                setattr(counts, status, getattr(counts, status) + count)

    return StudentStats(overall=overall, tracks=list(per_track.values()))


def students_to_csv(students: Sequence[Student]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, quoting=csv.QUOTE_ALL)
    w.writerow(CSV_HEADERS)

    for s in students:
        w.writerow(
            [
                s.full_name,
                s.email,
                s.linked_in or "",
                s.github or "",
                s.portfolio or "",
                s.telegram or "",
                s.track,
                "; ".join(s.skills or []),
                s.bio,
                s.status,
                s.created_at.date().isoformat() if s.created_at else "",
            ]
        )

    return buf.getvalue()
