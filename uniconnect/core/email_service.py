from datetime import datetime, timezone

import httpx

from uniconnect.core.config import Settings

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"


class EmailServiceError(RuntimeError):
    pass


class EmailNotConfiguredError(EmailServiceError):
    pass


class EmailDispatchError(EmailServiceError):
    pass


def _otp_html(site_name: str, code: str, expires_minutes: int) -> str:
    year = datetime.now(timezone.utc).year
    return f"""
    <div style="font-family:Arial,sans-serif;max-width:560px;margin:auto;padding:24px">
      <h2 style="margin:0 0 12px 0;">{site_name}</h2>
      <h3 style="margin:0 0 12px 0;color:#1f2937;">Verify Your Email</h3>
      <p style="margin:0 0 16px 0;color:#444;line-height:1.5;">
        You requested to edit your student profile. Use this verification code to continue:
      </p>

      <div style="background:#2563eb;border-radius:12px;padding:24px;text-align:center;margin:24px 0;">
        <span style="color:#fff;font-size:36px;font-weight:700;letter-spacing:8px;
                     font-family:'Courier New',monospace;">{code}</span>
      </div>

      <p style="margin:0 0 8px 0;color:#444;">
        <strong>Expires in:</strong> {expires_minutes} minutes<br>
        <strong>Security:</strong> Do not share this code with anyone
      </p>

      <p style="margin:18px 0 0 0;color:#666;font-size:12px;">
        If you did not request this, you can ignore this email.
      </p>
      <p style="margin:12px 0 0 0;color:#999;font-size:12px;">&copy; {year} {site_name}</p>
    </div>
    """


async def send_otp_email(
    settings: Settings,
    *,
    to_email: str,
    to_name: str,
    code: str,
    expires_minutes: int,
) -> None:
    api_key = settings.SENDINBLUE_API_KEY or ""
    if not api_key:
        raise EmailNotConfiguredError("SENDINBLUE_API_KEY not configured")

    site_name = settings.SITE_NAME
    payload = {
        "sender": {"name": settings.EMAIL_FROM_NAME, "email": settings.EMAIL_FROM},
        "to": [{"email": to_email, "name": to_name}],
        "subject": f"Your {site_name} Verification Code",
        "htmlContent": _otp_html(site_name, code, expires_minutes),
    }

    try:
        async with httpx.AsyncClient(timeout=20) as client:
            r = await client.post(
                BREVO_SEND_URL,
                headers={"api-key": api_key, "Content-Type": "application/json"},
                json=payload,
            )
    except httpx.HTTPError as e:
        raise EmailDispatchError(f"Email provider unreachable: {e}") from e

    if r.status_code >= 400:
        raise EmailDispatchError(f"Sendinblue error {r.status_code}: {r.text}")
