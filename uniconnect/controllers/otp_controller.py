import logging
from datetime import datetime, timedelta
from typing import NamedTuple

from fastapi import HTTPException
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from uniconnect.core.clock import utcnow
from uniconnect.core.config import Settings
from uniconnect.core.email_service import EmailDispatchError, EmailNotConfiguredError, send_otp_email
from uniconnect.core.security import generate_otp_code, hash_otp_code
from uniconnect.controllers.student_controller import get_student_by_email, normalize_email
from uniconnect.models.student import Student
from uniconnect.models.student_otp import StudentOtp

logger = logging.getLogger(__name__)

OTP_EXPIRY_MINUTES = 10
# Window, measured from issuance, in which a verified code may still authorise an edit
EDIT_WINDOW_MINUTES = 30
# Housekeeping removes every challenge older than this, verified or not
RETENTION_MINUTES = 60


class OtpCheck(NamedTuple):
    valid: bool
    student_id: int | None = None


# ─────────────────────────────────────────────────────────────
# ISSUE
# ─────────────────────────────────────────────────────────────
async def issue_otp(db: AsyncSession, email: str, *, now: datetime | None = None) -> tuple[Student, str]:
    """
    Create a fresh challenge for a registered email and return the plaintext
    code. Any earlier unverified challenge for that email stops working.
    """
    email = normalize_email(email)
    student = await get_student_by_email(db, email)
    if not student:
        raise HTTPException(status_code=404, detail="No application found with this email address")

    now = now or utcnow()
    code = generate_otp_code()

    await db.execute(
        delete(StudentOtp).where(StudentOtp.email == email, StudentOtp.verified.is_(False))
    )
    db.add(
        StudentOtp(
            email=email,
            student_id=student.id,
            code_hash=hash_otp_code(code),
            expires_at=now + timedelta(minutes=OTP_EXPIRY_MINUTES),
            verified=False,
            created_at=now,
        )
    )
    await db.commit()

    return student, code


async def request_otp(db: AsyncSession, settings: Settings, email: str) -> None:
    """Issue a code and email it. The stored challenge survives a failed send."""
    student, code = await issue_otp(db, email)

    logger.info("OTP issued for student %s", student.id)
    if settings.DEBUG:
        logger.debug("OTP for %s: %s", student.email, code)

    try:
        await send_otp_email(
            settings,
            to_email=student.email,
            to_name=student.full_name,
            code=code,
            expires_minutes=OTP_EXPIRY_MINUTES,
        )
    except EmailNotConfiguredError:
        logger.error("SENDINBLUE_API_KEY is not configured; OTP email not sent")
        raise HTTPException(status_code=500, detail="Email service is not configured")
    except EmailDispatchError as e:
        logger.error("OTP email to student %s failed: %s", student.id, e)
        detail = "Failed to send verification email"
        if not settings.is_production:
            detail = f"{detail}: {e}"
        raise HTTPException(status_code=500, detail=detail)


# ─────────────────────────────────────────────────────────────
# VERIFY
# ─────────────────────────────────────────────────────────────
async def purge_stale_otps(db: AsyncSession, *, now: datetime | None = None) -> None:
    """Best effort: failures are logged, never raised."""
    cutoff = (now or utcnow()) - timedelta(minutes=RETENTION_MINUTES)
    try:
        await db.execute(delete(StudentOtp).where(StudentOtp.created_at < cutoff))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("Stale OTP cleanup failed", exc_info=True)


async def verify_otp(db: AsyncSession, email: str, code: str, *, now: datetime | None = None) -> OtpCheck:
    """
    Single use: only an unverified, unexpired challenge matches, and a match
    flips it to verified. Wrong code, expired, reused or never requested all
    give the same negative answer.
    """
    email = normalize_email(email)
    now = now or utcnow()

    q = await db.execute(
        select(StudentOtp)
        .where(StudentOtp.email == email)
        .where(StudentOtp.code_hash == hash_otp_code(code))
        .where(StudentOtp.verified.is_(False))
        .where(StudentOtp.expires_at > now)
        .order_by(StudentOtp.id.desc())
        .limit(1)
    )
    otp = q.scalar_one_or_none()

    result = OtpCheck(valid=False)
    if otp is not None:
        otp.verified = True
        await db.commit()
        result = OtpCheck(valid=True, student_id=otp.student_id)

    await purge_stale_otps(db, now=now)
    return result


async def consume_for_edit(
    db: AsyncSession,
    email: str,
    code: str,
    student_id: int,
    *,
    now: datetime | None = None,
) -> bool:
    """
    Second-stage check before a self-service write: the challenge must already
    be verified, belong to this student, and have been issued within the last
    EDIT_WINDOW_MINUTES.
    """
    now = now or utcnow()
    q = await db.execute(
        select(StudentOtp.id)
        .where(StudentOtp.email == normalize_email(email))
        .where(StudentOtp.code_hash == hash_otp_code(code))
        .where(StudentOtp.student_id == student_id)
        .where(StudentOtp.verified.is_(True))
        .where(StudentOtp.created_at >= now - timedelta(minutes=EDIT_WINDOW_MINUTES))
        .limit(1)
    )
    return q.scalar_one_or_none() is not None


async def authorize_self_edit(
    db: AsyncSession,
    student_id: int,
    email: str | None,
    code: str | None,
    *,
    now: datetime | None = None,
) -> Student:
    """Gate for PATCH /students/{id}/edit. Returns the student the caller may edit."""
    if not email or not code:
        raise HTTPException(status_code=400, detail="Email and verification code are required")

    if not await consume_for_edit(db, email, code, student_id, now=now):
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired verification code. Please verify your code first.",
        )

    student = await db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")

    if student.email != normalize_email(email):
        raise HTTPException(status_code=403, detail="Email does not match student record")

    return student
