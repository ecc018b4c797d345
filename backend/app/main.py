"""
FastAPI Application Entry Point.

This is the main application file for the Day-Boat Marketplace Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.core.redis_client import redis_client
from backend.app.db.session import engine, Base, AsyncSessionLocal
from backend.app.domain.live_rides.sweeper import OfferSweeper
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.app.models.user import User
from backend.app.models.captain import Captain, Boat, BoatRoutePricing
from backend.app.models.trip import Trip
from backend.app.models.live_ride import LiveRideRequest, LiveRideOffer
from backend.app.models.notification import Notification
from backend.app.models.audit_log import AuditLog

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Starts the periodic offer sweeper when enabled, stops it on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sweeper = None
    if settings.offer_sweeper_enabled:
        sweeper = OfferSweeper(AsyncSessionLocal, redis=redis_client)
        sweeper.start()
    app.state.offer_sweeper = sweeper

    yield

    if sweeper is not None:
        await sweeper.stop()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Live-ride matching and offer expiry for the day-boat marketplace",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")
