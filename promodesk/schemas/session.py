"""Schemas for role login and session state."""
from typing import Optional

from promodesk.schemas.base import CamelModel
from promodesk.models.role import UserRole


class LoginRequest(CamelModel):
    role: UserRole
    user: Optional[str] = None


class SessionResponse(CamelModel):
    role: Optional[UserRole] = None
    user: Optional[str] = None
    display_name: str
    has_notification: bool = False
    landing_path: Optional[str] = None
