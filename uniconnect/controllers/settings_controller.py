import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniconnect.core.clock import utcnow
from uniconnect.models.site_settings import (
    DEFAULT_FEATURED_LABEL,
    DEFAULT_MAINTENANCE_MESSAGE,
    DEFAULT_SITE_DESCRIPTION,
    DEFAULT_SITE_NAME,
    DEFAULT_SPECIAL_LABEL,
    SiteSettings,
)
from uniconnect.schemas.settings import PublicSettingsOut, SettingsUpdate

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1

# Columns that may never be nulled by a patch
_REQUIRED_FIELDS = {"maintenance_mode", "site_name", "site_description"}


def default_settings() -> dict:
    return {
        "maintenance_mode": False,
        "maintenance_message": DEFAULT_MAINTENANCE_MESSAGE,
        "site_name": DEFAULT_SITE_NAME,
        "site_description": DEFAULT_SITE_DESCRIPTION,
        "featured_label": None,
        "special_label": None,
    }


async def _load_settings(db: AsyncSession) -> SiteSettings | None:
    return (
        await db.execute(select(SiteSettings).order_by(SiteSettings.id).limit(1))
    ).scalar_one_or_none()


async def get_or_create_settings(db: AsyncSession) -> SiteSettings:
    """
    Return the singleton row, inserting the defaults the first time.
    The fixed primary key means a second insert can never create a twin;
    a request that loses that race reads the winner's row instead.
    """
    row = await _load_settings(db)
    if row is not None:
        return row

    row = SiteSettings(id=SETTINGS_ROW_ID, updated_at=utcnow(), **default_settings())
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return await _load_settings(db)
    await db.refresh(row)
    logger.info("Created default site settings")
    return row


async def patch_settings(db: AsyncSession, payload: SettingsUpdate, *, now: datetime | None = None) -> SiteSettings:
    """Merge allow-listed fields into the singleton (creating it if needed). Last write wins."""
    row = await get_or_create_settings(db)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(row, field, value)

    row.updated_at = now or utcnow()
    await db.commit()
    await db.refresh(row)

    if "maintenance_mode" in changes:
        logger.info("Maintenance mode is now %s", "on" if row.maintenance_mode else "off")
    return row


def public_settings(row: SiteSettings | None) -> PublicSettingsOut:
    """Public subset. With no row (store unavailable) the defaults are served."""
    if row is None:
        return PublicSettingsOut(
            maintenance_mode=False,
            site_name=DEFAULT_SITE_NAME,
            site_description=DEFAULT_SITE_DESCRIPTION,
        )

    return PublicSettingsOut(
        maintenance_mode=row.maintenance_mode,
        maintenance_message=row.maintenance_message,
        site_name=row.site_name,
        site_description=row.site_description,
        featured_label=row.featured_label or DEFAULT_FEATURED_LABEL,
        special_label=row.special_label or DEFAULT_SPECIAL_LABEL,
    )
