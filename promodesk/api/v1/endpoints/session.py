"""Role login and session state endpoints."""
from typing import Annotated, Optional

from fastapi import APIRouter, Header, status

from promodesk.api.deps import Sessions
from promodesk.schemas.session import LoginRequest, SessionResponse


router = APIRouter(prefix="/session", tags=["Session"])


@router.post("/login", response_model=SessionResponse)
async def login(data: LoginRequest, sessions: Sessions):
    """
    Record the chosen role.

    No credentials are checked. Logging in as shop-ops raises the new
    notification flag; any other role clears it.
    """
    return await sessions.login(data.role, data.user)


@router.get("", response_model=SessionResponse)
async def get_session(
    sessions: Sessions,
    x_user_email: Annotated[Optional[str], Header()] = None,
):
    """Current role, identity and notification flag."""
    return await sessions.current(user=x_user_email)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(sessions: Sessions):
    await sessions.logout()


@router.post("/notifications/dismiss", response_model=SessionResponse)
async def dismiss_notification(sessions: Sessions):
    await sessions.dismiss_notification()
    return await sessions.current()
