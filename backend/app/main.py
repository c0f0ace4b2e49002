# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import is_running_tests, settings
from .core.constants import (
    ALLOWED_ORIGINS,
    API_DESCRIPTION,
    API_TITLE,
    API_VERSION,
    BRAND_NAME,
)
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes.v1 import (
    admin as admin_v1,
    bookings as bookings_v1,
    health as health_v1,
    prometheus as prometheus_v1,
    search as search_v1,
    wallet as wallet_v1,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _validate_startup_config() -> None:
    """Warn about settings that degrade features instead of failing startup."""
    if not settings.openai_api_key_value:
        logger.warning("OPENAI_API_KEY not set; mentor search will use keyword fallback")
    if settings.email_provider == "resend" and not settings.resend_api_key:
        logger.warning("EMAIL_PROVIDER=resend but RESEND_API_KEY is not set; emails will fail")
    if settings.is_production and settings.secret_key.get_secret_value().startswith("matepeak-dev"):
        logger.error("Production is running with the development SECRET_KEY")


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    _validate_startup_config()

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s allow_credentials=%s", ALLOWED_ORIGINS, True)

if settings.prometheus_enabled:
    app.add_middleware(PrometheusMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Note: Route order matters - static paths are declared before path parameters
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(wallet_v1.router, prefix="/wallet")
api_v1.include_router(search_v1.router, prefix="/search")
api_v1.include_router(admin_v1.router, prefix="/admin")
api_v1.include_router(health_v1.router)
api_v1.include_router(prometheus_v1.router)

app.include_router(api_v1)


@app.get("/")
def read_root() -> dict[str, str]:
    """Root endpoint - API information"""
    return {
        "message": f"Welcome to the {BRAND_NAME} API",
        "version": API_VERSION,
        "docs": "/docs",
    }


# Keep the original FastAPI app for tools/tests that need access to routes
fastapi_app = app

# Export what's needed
__all__ = ["app", "fastapi_app"]
