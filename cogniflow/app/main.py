"""
FastAPI Application Entry Point.

This is the main application file for the Cogniflow ERP Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from cogniflow.app.core.config import settings
from cogniflow.app.core.observability import ObservabilityMiddleware, configure_logging
from cogniflow.app.core.redis_client import close_redis, ping_redis
from cogniflow.app.api.v1.router import router as api_v1_router
from cogniflow.app.db.session import engine, Base
from cogniflow.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from cogniflow.app.models.user import User
from cogniflow.app.models.audit_log import AuditLog
from cogniflow.app.models.account import Account
from cogniflow.app.models.transaction import Transaction  # before ledger_entry for FK
from cogniflow.app.models.ledger_entry import LedgerEntry
from cogniflow.app.models.invoice import Invoice
from cogniflow.app.models.ai_insight import AiInsight
from cogniflow.app.models.exchange_rate import ExchangeRate
from cogniflow.app.models.number_sequence import NumberSequence

logger = logging.getLogger("cogniflow")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.
    
    Creates database tables on startup; closes Redis and disposes the engine on shutdown.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    await close_redis()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="ERP backend: general ledger, receivables/payables, reports and AI insights",
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
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.
    
    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Cogniflow ERP Backend API",
        "docs": "/docs",
        "health": "/health",
    }
