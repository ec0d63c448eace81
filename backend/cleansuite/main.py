"""CleanSuite - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cleansuite.core.config import get_settings
from cleansuite.core.database import dispose_engine
from cleansuite.core.env_validation import validate_environment
from cleansuite.core.errors import register_error_handlers
from cleansuite.core.logging_config import configure_logging
from cleansuite.routers import (
    auth_router,
    company_router,
    clients_router,
    estimates_router,
    jobs_router,
    invoices_router,
    cash_collections_router,
    payroll_router,
    notifications_router,
    activity_router,
    receipts_router,
)

# Hard-fails (exit 1) if required configuration is missing
validate_environment()

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("%s starting", settings.app_name)
    yield
    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    description="Back office for cleaning businesses: estimates, scheduled jobs, completion with payment capture, invoicing and cash reconciliation.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# In production, wildcard (*) is blocked by env_validation.py
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]
logger.info("CORS configured with origins: %s", allowed_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# API v1 routers
app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(company_router, prefix=settings.api_v1_prefix)
app.include_router(clients_router, prefix=settings.api_v1_prefix)
app.include_router(estimates_router, prefix=settings.api_v1_prefix)
app.include_router(jobs_router, prefix=settings.api_v1_prefix)
app.include_router(invoices_router, prefix=settings.api_v1_prefix)
app.include_router(receipts_router, prefix=settings.api_v1_prefix)
app.include_router(cash_collections_router, prefix=settings.api_v1_prefix)
app.include_router(payroll_router, prefix=settings.api_v1_prefix)  # Overtime rules & pay preview
app.include_router(notifications_router, prefix=settings.api_v1_prefix)
app.include_router(activity_router, prefix=settings.api_v1_prefix)  # Audit trail


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
    }
