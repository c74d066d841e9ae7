from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from uniconnect.core.clock import utcnow
from uniconnect.core.database import Base

DEFAULT_MAINTENANCE_MESSAGE = "We're currently performing maintenance. Please check back soon."
DEFAULT_SITE_NAME = "UniConnect"
DEFAULT_SITE_DESCRIPTION = "Graduation Project Team Matching Platform"

# Shown by the public settings endpoint when the admin has not set a label
DEFAULT_FEATURED_LABEL = "مبرمج المنصة"
DEFAULT_SPECIAL_LABEL = "مميز"


class SiteSettings(Base):
    """
    Singleton row holding site-wide switches.

    Only one row ever exists; it is created with the defaults below on
    first read.
    """
    __tablename__ = "site_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    maintenance_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    maintenance_message: Mapped[str | None] = mapped_column(Text, nullable=True, default=DEFAULT_MAINTENANCE_MESSAGE)
    site_name: Mapped[str] = mapped_column(String(120), nullable=False, default=DEFAULT_SITE_NAME)
    site_description: Mapped[str] = mapped_column(String(500), nullable=False, default=DEFAULT_SITE_DESCRIPTION)

    featured_label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    special_label: Mapped[str | None] = mapped_column(String(120), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<SiteSettings id={self.id} maintenance={self.maintenance_mode}>"
