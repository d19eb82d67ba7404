"""
FastAPI Application Entry Point.

This is the main application file for the Sales Ledger Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Depends
from fastapi.exceptions import RequestValidationError
from sales_ledger.app.core.config import settings
from sales_ledger.app.api.v1.router import router as api_v1_router
from sales_ledger.app.core.observability import ObservabilityMiddleware
from sales_ledger.app.core.redis_client import get_redis, ping_redis
from sales_ledger.app.db.session import engine, Base
from sales_ledger.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from sales_ledger.app.models.ledger_entry import LedgerEntry  # noqa: F401
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction  # noqa: F401
from sales_ledger.app.models.account_status import AccountStatus  # noqa: F401
from sales_ledger.app.models.user import DirectoryUser  # noqa: F401

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Sales ledger, availability and current account API",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis=Depends(get_redis)):
    """
    Health check endpoint.

    Redis only backs logout, so an unreachable Redis is reported but
    does not fail the check.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "ok" if await ping_redis(redis) else "unavailable",
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
        "message": "Welcome to Sales Ledger Backend API",
        "docs": "/docs",
        "health": "/health",
    }
