from fastapi import Depends, Header, HTTPException, status

from uniconnect.core.config import Settings, get_settings
from uniconnect.core.security import admin_key_matches


def _unauthorized_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized: invalid admin key.",
    )


async def require_admin(
    x_admin_key: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Admin guard dependency.

    There are no admin accounts: every privileged route compares the
    ``x-admin-key`` header against ADMIN_SECRET_KEY.
      - secret not configured on the server → 500
      - header missing or wrong            → 401
    """
    if not settings.ADMIN_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin secret key is not configured on the server.",
        )

    if not admin_key_matches(settings.ADMIN_SECRET_KEY, x_admin_key):
        raise _unauthorized_exception()


async def is_admin_request(
    x_admin_key: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> bool:
    """Non-raising variant used by public routes that reveal more to admins."""
    if not settings.ADMIN_SECRET_KEY:
        return False
    return admin_key_matches(settings.ADMIN_SECRET_KEY, x_admin_key)
