import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from uniconnect.core.database import get_db
from uniconnect.core.dependencies import require_admin
from uniconnect.controllers.settings_controller import get_or_create_settings, patch_settings, public_settings
from uniconnect.schemas.settings import PublicSettingsOut, SettingsOut, SettingsUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])
admin_router = APIRouter(
    prefix="/admin/settings",
    tags=["Admin - Settings"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=PublicSettingsOut)
async def read_public_settings(db: AsyncSession = Depends(get_db)):
    """Never fails: if the store is unreachable the defaults keep the site up."""
    try:
        row = await get_or_create_settings(db)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error fetching public settings; serving defaults")
        row = None
    return public_settings(row)


@admin_router.get("", response_model=SettingsOut)
async def read_settings(db: AsyncSession = Depends(get_db)):
    return await get_or_create_settings(db)


@admin_router.patch("", response_model=SettingsOut)
async def update_settings(payload: SettingsUpdate, db: AsyncSession = Depends(get_db)):
    return await patch_settings(db, payload)
