from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from uniconnect.core.clock import utcnow
from uniconnect.core.database import Base


class StudentOtp(Base):
    """
    One emailed verification code.

    Created unverified, flipped to verified once by /otp/verify, then kept
    around for the follow-up profile edit until housekeeping removes it.
    """
    __tablename__ = "student_otps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
