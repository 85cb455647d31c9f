# pyright: reportMissingTypeStubs=false
"""
Booking Backend API

A FastAPI application exposing availability computation and conflict-checked
appointment booking for multi-tenant businesses.

Features:
- Day-by-day availability from weekly hours and date exceptions
- Booking validation with next-available-slot suggestions
- Double-booking prevention at insert time
- Periodic availability cache warming
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import admin, appointments, availability
from core.config import CACHE_WARMING_ENABLED, LOG_LEVEL
from core.constants import CORS_ORIGINS
from core.exceptions import BookingError
from services.cache_warming_scheduler import start_cache_warming_scheduler, stop_cache_warming_scheduler

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting Booking Backend API")

    # Database sessions are created fresh for each scheduler run
    if CACHE_WARMING_ENABLED:
        try:
            await start_cache_warming_scheduler()
        except Exception as e:
            logger.exception(f"Failed to start cache warming scheduler: {e}")

    yield

    try:
        await stop_cache_warming_scheduler()
    except Exception as e:
        logger.exception(f"Error stopping cache warming scheduler: {e}")

    logger.info("Shutting down Booking Backend API")


app = FastAPI(
    title="Booking Backend",
    description="Availability and conflict-checked appointment booking",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render booking errors with their status code and machine-readable code."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(
    availability.router,
    prefix="/api",
    tags=["availability"],
    responses={
        400: {"description": "Invalid request"},
        404: {"description": "Service not found"},
    },
)
app.include_router(
    appointments.router,
    prefix="/api/appointments",
    tags=["appointments"],
    responses={
        404: {"description": "Appointment not found"},
        409: {"description": "Booking conflict"},
    },
)
app.include_router(
    admin.router,
    prefix="/api/admin",
    tags=["admin"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
