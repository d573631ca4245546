# mentorhub/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from . import __version__
from .core.config import is_running_tests, settings
from .database import init_db
from .errors import register_error_handlers
from .routes.v1 import (
    bookings as bookings_v1,
    enrollments as enrollments_v1,
    health as health_v1,
    mentor as mentor_v1,
    prometheus,
    slots as slots_v1,
    transactions as transactions_v1,
    wallet as wallet_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info("MentorHub API starting up...")
    logger.info(f"Environment: {settings.environment}")

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    if settings.auto_create_schema and not settings.is_production:
        init_db()

    yield

    logger.info("MentorHub API shutting down...")


app = FastAPI(
    title="MentorHub API",
    description="Wallet ledger, availability calendar, enrollments and mentorship bookings",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(enrollments_v1.router)
api_v1.include_router(bookings_v1.router)
api_v1.include_router(slots_v1.router)
api_v1.include_router(transactions_v1.router)
api_v1.include_router(wallet_v1.router)
api_v1.include_router(mentor_v1.router)
api_v1.include_router(health_v1.router)

app.include_router(api_v1)

# Prometheus metrics - unauthenticated scrape endpoint
app.include_router(prometheus.router)

# Top-level liveness probe for load balancers
app.include_router(health_v1.router)
