"""
FastAPI application for the creche backend.

Provides REST API endpoints for:
- Children, parent links and the daily agenda
- Attendance, chat, announcements and the school feed
- Billing (subscriptions, invoices, coupons, pricing) and contracts
- Weekly menus with nutrition analysis
- Financial forecast and the enrollment pipeline
- Provider webhooks
"""

import os
import logging
import time
from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger("creche")

from creche import __version__
from creche.db.connection import get_engine, init_db, get_db_session
from creche.gateways.exceptions import IntegrationError, IntegrationNotConfigured
from creche.utils.error_utils import CouponError, ValidationError
from creche.api.routes import (
    announcements,
    attendance,
    children,
    contracts,
    coupons,
    daily_records,
    demo,
    employees,
    feed,
    fixed_expenses,
    forecast,
    invoices,
    menus,
    messages,
    notifications,
    pipeline,
    pricing,
    subscriptions,
    webhooks,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    is_serverless = bool(os.getenv("VERCEL"))
    if not is_serverless:
        # Startup: create tables (pre-created on Vercel)
        logger.info("Initializing database connection...")
        init_db()
    yield
    if not is_serverless:
        logger.info("Shutting down...")
        engine = get_engine()
        engine.dispose()


# Create FastAPI application
app = FastAPI(
    title="Creche API",
    description="Daycare management - agenda, communication, billing, menus and forecast",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS configuration for the web frontend
_default_origins = "http://localhost:3000,http://localhost:5173,http://localhost:8080"
_cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IntegrationNotConfigured)
async def integration_not_configured_handler(request: Request, exc: IntegrationNotConfigured):
    """Provider credentials missing: the feature is unavailable."""
    logger.warning(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=503, content=exc.to_dict())


@app.exception_handler(IntegrationError)
async def integration_error_handler(request: Request, exc: IntegrationError):
    """A provider rejected or failed the request."""
    logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=502, content=exc.to_dict())


@app.exception_handler(CouponError)
async def coupon_error_handler(request: Request, exc: CouponError):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content=exc.to_dict())


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    import traceback
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
            "type": type(exc).__name__,
        },
    )


# Health check endpoint
@app.get("/health")
async def health_check() -> Dict[str, str]:
    """API health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "creche-api",
    }


@app.get("/health/db")
async def health_check_db(db: Session = Depends(get_db_session)):
    """Check database connection health and latency."""
    start = time.time()
    try:
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        latency_ms = (time.time() - start) * 1000
        return {
            "status": "unhealthy",
            "latency_ms": round(latency_ms, 2),
            "error": str(e),
        }


# Include routers
app.include_router(children.router, prefix="/api/children", tags=["Children"])
app.include_router(daily_records.router, prefix="/api/daily-records", tags=["Daily Records"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(messages.router, prefix="/api/messages", tags=["Messages"])
app.include_router(announcements.router, prefix="/api/announcements", tags=["Announcements"])
app.include_router(feed.router, prefix="/api/feed", tags=["Feed"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(subscriptions.router, prefix="/api/subscriptions", tags=["Subscriptions"])
app.include_router(contracts.router, prefix="/api/contracts", tags=["Contracts"])
app.include_router(fixed_expenses.router, prefix="/api/fixed-expenses", tags=["Fixed Expenses"])
app.include_router(employees.router, prefix="/api/employees", tags=["Employees"])
app.include_router(coupons.router, prefix="/api/coupons", tags=["Coupons"])
app.include_router(pricing.router, prefix="/api/pricing", tags=["Pricing"])
app.include_router(menus.router, prefix="/api/menus", tags=["Menus"])
app.include_router(forecast.router, prefix="/api/forecast", tags=["Forecast"])
app.include_router(pipeline.router, prefix="/api/pipeline", tags=["Pipeline"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])
app.include_router(demo.router, prefix="/api/demo", tags=["Demo"])


# Root endpoint
@app.get("/")
async def root() -> Dict[str, Any]:
    """API root endpoint with service information."""
    return {
        "service": "Creche API",
        "version": __version__,
        "docs": "/api/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "creche.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
