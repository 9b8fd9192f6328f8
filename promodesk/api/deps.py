"""
FastAPI dependencies.

The stores live on app.state (built once in the lifespan). The acting role
comes from the X-User-Role header, falling back to the role recorded by the
last login; X-User-Email overrides the role's demo identity.
"""
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from promodesk.core.session import SessionContext, SessionService
from promodesk.services.campaign_service import CampaignStore
from promodesk.services.srp_masterlist_service import SrpMasterlistStore
from promodesk.services.trade_letter_scanner import TradeLetterScanner


def get_session_service(request: Request) -> SessionService:
    return request.app.state.sessions


def get_campaign_store(request: Request) -> CampaignStore:
    return request.app.state.campaigns


def get_srp_store(request: Request) -> SrpMasterlistStore:
    return request.app.state.srp


def get_scanner(request: Request) -> TradeLetterScanner:
    return request.app.state.scanner


async def get_session_context(
    sessions: Annotated[SessionService, Depends(get_session_service)],
    x_user_role: Annotated[Optional[str], Header()] = None,
    x_user_email: Annotated[Optional[str], Header()] = None,
) -> SessionContext:
    """Resolve the acting role and user for this request."""
    return await sessions.resolve(x_user_role, x_user_email)


# Type aliases for cleaner endpoint signatures
Session = Annotated[SessionContext, Depends(get_session_context)]
Sessions = Annotated[SessionService, Depends(get_session_service)]
Campaigns = Annotated[CampaignStore, Depends(get_campaign_store)]
SrpStore = Annotated[SrpMasterlistStore, Depends(get_srp_store)]
Scanner = Annotated[TradeLetterScanner, Depends(get_scanner)]
