from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from uniconnect.core.config import Settings, get_settings
from uniconnect.core.database import get_db
from uniconnect.controllers.otp_controller import request_otp, verify_otp
from uniconnect.schemas.otp import OtpSendRequest, OtpSendResponse, OtpVerifyRequest, OtpVerifyResponse

router = APIRouter(prefix="/otp", tags=["OTP"])


@router.post("/send", response_model=OtpSendResponse)
async def send_code(
    payload: OtpSendRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await request_otp(db, settings, str(payload.email))
    return OtpSendResponse()


@router.post("/verify", response_model=OtpVerifyResponse)
async def verify_code(payload: OtpVerifyRequest, db: AsyncSession = Depends(get_db)):
    result = await verify_otp(db, str(payload.email), payload.code)
    if not result.valid:
        raise HTTPException(status_code=400, detail="Invalid or expired verification code")
    return OtpVerifyResponse(verified=True, student_id=result.student_id)
