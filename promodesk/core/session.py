"""
Session handling.

There is no authentication. A login records the chosen role in storage and
every operation receives an explicit SessionContext naming the acting role
and user. Shop-ops logins raise the "new notification" flag; any other
login or an explicit dismissal clears it.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from promodesk.core.change_feed import ChangeFeed
from promodesk.core.exceptions import PermissionDenied, ValidationFailed
from promodesk.core.storage import StorageBackend, USER_ROLE_KEY, NOTIFICATION_FLAG_KEY
from promodesk.models.role import (
    UserRole,
    ROLE_DEMO_USERS,
    ROLE_LANDING_PATHS,
    get_role_display_name,
)
from promodesk.schemas.session import SessionResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Acting role and user for one operation."""
    role: UserRole
    user: str

    @classmethod
    def for_role(cls, role, user: Optional[str] = None) -> "SessionContext":
        role = parse_role(role)
        return cls(role=role, user=user or ROLE_DEMO_USERS[role])

    @property
    def display_name(self) -> str:
        return get_role_display_name(self.role)

    @property
    def author_label(self) -> str:
        """Label recorded as the author of SRP versions: the role, capitalised."""
        return self.role.value[:1].upper() + self.role.value[1:]


def parse_role(value) -> UserRole:
    """Coerce a header/storage value to a UserRole."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value).strip().lower())
    except ValueError:
        raise ValidationFailed(f"Unknown role '{value}'", field="role")


class SessionService:
    """Stores the selected role and the notification flag."""

    def __init__(self, storage: StorageBackend, feed: Optional[ChangeFeed] = None):
        self.storage = storage
        self.feed = feed

    async def login(self, role, user: Optional[str] = None) -> SessionResponse:
        role = parse_role(role)
        await self.storage.set(USER_ROLE_KEY, role.value)
        if role == UserRole.SHOP_OPS:
            await self.storage.set(NOTIFICATION_FLAG_KEY, "true")
        else:
            await self.storage.remove(NOTIFICATION_FLAG_KEY)
        self._publish(USER_ROLE_KEY)
        logger.info(f"Logged in as {role.value}")
        return await self.current(user=user)

    async def logout(self) -> None:
        await self.storage.remove(USER_ROLE_KEY)
        self._publish(USER_ROLE_KEY)

    async def dismiss_notification(self) -> None:
        await self.storage.remove(NOTIFICATION_FLAG_KEY)
        self._publish(NOTIFICATION_FLAG_KEY)

    async def has_notification(self) -> bool:
        return (await self.storage.get(NOTIFICATION_FLAG_KEY)) == "true"

    async def stored_role(self) -> Optional[UserRole]:
        raw = await self.storage.get(USER_ROLE_KEY)
        if not raw:
            return None
        try:
            return UserRole(raw)
        except ValueError:
            logger.warning(f"Ignoring unknown stored role '{raw}'")
            return None

    async def current(self, user: Optional[str] = None) -> SessionResponse:
        role = await self.stored_role()
        if role is None:
            return SessionResponse(display_name=get_role_display_name(None))
        return SessionResponse(
            role=role,
            user=user or ROLE_DEMO_USERS[role],
            display_name=get_role_display_name(role),
            has_notification=await self.has_notification(),
            landing_path=ROLE_LANDING_PATHS[role],
        )

    async def resolve(self, role=None, user: Optional[str] = None) -> SessionContext:
        """
        Build the context for one request.

        An explicit role wins over the stored login; with neither the caller
        has not logged in.
        """
        if role:
            return SessionContext.for_role(role, user)
        stored = await self.stored_role()
        if stored is None:
            raise PermissionDenied("No role selected. Log in first.")
        return SessionContext.for_role(stored, user)

    def _publish(self, key: str) -> None:
        if self.feed is not None:
            self.feed.publish(key, origin="session")
