from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from promodesk.config import settings
from promodesk.api.v1.router import api_router
from promodesk.core.change_feed import ChangeFeed
from promodesk.core.exceptions import PromoDeskError
from promodesk.core.session import SessionService
from promodesk.core.storage import create_storage
from promodesk.database import init_db
from promodesk.services.campaign_service import CampaignStore
from promodesk.services.srp_masterlist_service import SrpMasterlistStore
from promodesk.services.trade_letter_scanner import TradeLetterScanner


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create the store_entries table (database backend only)
    - Build the storage backend, the change feed and the stores
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.STORAGE_BACKEND == "database":
        await init_db()

    storage = create_storage()
    feed = ChangeFeed()

    app.state.storage = storage
    app.state.feed = feed
    app.state.sessions = SessionService(storage, feed)
    app.state.campaigns = CampaignStore(storage, feed)
    app.state.srp = SrpMasterlistStore(storage, feed)
    app.state.scanner = TradeLetterScanner()

    if not settings.extraction_enabled:
        logger.warning("GEMINI_API_KEY is not set; trade letter scans will return empty drafts")

    yield

    # Shutdown
    app.state.campaigns.close()
    app.state.srp.close()
    logger.info("Shutting down...")


API_DESCRIPTION = """
## PromoDesk API

Promotional campaign approvals between Commercial, Commercial Approver,
ShopOps and Finance, plus a versioned SRP masterlist.

### Roles

There is no authentication. Log in with `POST /api/v1/session/login` or send
the role on every request in the `X-User-Role` header
(`commercial`, `commercial-approver`, `shop-ops`, `finance`).
`X-User-Email` overrides the role's demo identity.

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Transition not allowed for this role/status |
| 403 | Role may not perform the operation |
| 404 | Record not found (or not visible to the role) |
| 422 | Validation failed (missing remarks, reason, required fields) |
| 502 | Trade letter extraction failed |
| 500 | Internal Server Error |
"""

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


@app.exception_handler(PromoDeskError)
async def domain_exception_handler(request: Request, exc: PromoDeskError):
    """Translate domain errors into JSON with the status code of their class."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "type": type(exc).__name__,
            "details": exc.details,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) if settings.DEBUG else "Internal server error",
            "type": type(exc).__name__,
            "details": {"path": str(request.url.path), "method": request.method},
        },
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with storage validation."""
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "storage": "unknown"
        }
    }

    try:
        await app.state.storage.keys()
        health_status["checks"]["storage"] = f"connected ({settings.STORAGE_BACKEND})"
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["checks"]["storage"] = f"error: {str(e)}"

    # Return 503 if unhealthy
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health",
    }
