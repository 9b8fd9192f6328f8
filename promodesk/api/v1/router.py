from fastapi import APIRouter

from promodesk.api.v1.endpoints import (
    session,
    campaigns,
    trade_letters,
    srp_masterlist,
)

api_router = APIRouter(prefix="/api/v1")

# Session (role login, notification flag)
api_router.include_router(session.router)

# Campaign workflow
api_router.include_router(campaigns.router)
api_router.include_router(trade_letters.router)

# SRP Masterlist
api_router.include_router(srp_masterlist.router)
