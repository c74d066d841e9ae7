from datetime import datetime
from typing import Annotated, Optional

from pydantic import StringConstraints

from uniconnect.schemas.base import CamelModel


LabelStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=120)]


class SettingsOut(CamelModel):
    """Full settings row, admin only."""
    id: int
    maintenance_mode: bool
    maintenance_message: Optional[str] = None
    site_name: str
    site_description: str
    featured_label: Optional[str] = None
    special_label: Optional[str] = None
    updated_at: datetime


class PublicSettingsOut(CamelModel):
    """What every visitor's browser needs to render the shell or the maintenance page."""
    maintenance_mode: bool = False
    maintenance_message: Optional[str] = None
    site_name: str
    site_description: str
    featured_label: Optional[str] = None
    special_label: Optional[str] = None


class SettingsUpdate(CamelModel):
    """
    Allow-list for PATCH /admin/settings.
    _id, id and updatedAt are not fields, so they are ignored if sent.
    """
    maintenance_mode: Optional[bool] = None
    maintenance_message: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]] = None
    site_name: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]] = None
    site_description: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]] = None
    featured_label: Optional[LabelStr] = None
    special_label: Optional[LabelStr] = None
