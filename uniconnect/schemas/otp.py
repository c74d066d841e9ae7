from typing import Annotated

from pydantic import StringConstraints

from uniconnect.schemas.base import CamelModel, NormalizedEmail


# any string is accepted; a wrong code of any shape fails the hash lookup
OtpCodeStr = Annotated[str, StringConstraints(strip_whitespace=True)]


class OtpSendRequest(CamelModel):
    email: NormalizedEmail


class OtpSendResponse(CamelModel):
    message: str = "Verification code sent to your email"


class OtpVerifyRequest(CamelModel):
    email: NormalizedEmail
    code: OtpCodeStr


class OtpVerifyResponse(CamelModel):
    verified: bool = True
    student_id: int
