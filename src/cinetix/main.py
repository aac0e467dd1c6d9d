"""
CineTix SLA Service - Main Application
======================================

First-response SLA countdowns and breach escalation for CineTix
support tickets.

Modules:
- SLA Monitoring: Countdowns, response badges and breach escalation

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, escalation dispatch, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

# Configuration and Core
from cinetix.config import settings, DEFAULT_SLA_TARGET_HOURS
from cinetix.core import ApplicationException

# Infrastructure
from cinetix.infrastructure.database import (
    init_database, close_database, create_tables, get_session_context
)

# SLA Module
from cinetix.sla.infrastructure import SLAScheduler
from cinetix.sla.services import build_components, run_escalation_check
from cinetix.sla.interfaces import sla_router

# Shared
from cinetix.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler
)
from cinetix.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create service-owned tables
    4. Build SLA components (settings source, ledger, notifier)
    5. Start breach escalation scheduler

    SHUTDOWN:
    1. Stop scheduler
    2. Stop settings watcher and close notifier
    3. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting CineTix SLA Service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # If the database is not reachable the server still starts;
    # scans report database_unavailable until it comes back
    try:
        await create_tables()
    except Exception as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")

    components = build_components(settings)
    app.state.settings = settings
    app.state.sla_components = components

    scheduler = None
    if settings.sla_check_interval_seconds > 0:
        async def sla_escalation_job():
            """Background breach escalation job."""
            await run_escalation_check(components)

        scheduler = SLAScheduler(interval_seconds=settings.sla_check_interval_seconds)
        await scheduler.start(sla_escalation_job)
    else:
        logger.info("SLA escalation scheduler disabled")
    app.state.sla_scheduler = scheduler

    logger.info("CineTix SLA Service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down CineTix SLA Service")

    if scheduler:
        await scheduler.stop()

    await components.close()
    await close_database()

    logger.info("CineTix SLA Service shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="CineTix SLA Service",
    description=f"""
    ## First-Response SLA Tracking for CineTix Support

    Live countdowns for open support tickets and one-time escalation
    emails when a ticket misses its first-response target.

    ---

    ### ⏱️ SLA Monitoring Module

    **Endpoints:**
    - `GET /sla/settings` - Current targets and escalation settings
    - `GET /sla/tickets` - Open tickets with countdowns
    - `GET /sla/tickets/{{id}}` - Countdown and badge for one ticket
    - `GET /sla/tickets/{{id}}/countdown/stream` - Live countdown (SSE)
    - `POST /sla/escalations/run` - Run the breach check now

    **Default Targets (hours to first response):**

    | Priority | Target |
    |----------|--------|
    | Urgent   | {DEFAULT_SLA_TARGET_HOURS["urgent"]} |
    | High     | {DEFAULT_SLA_TARGET_HOURS["high"]} |
    | Medium   | {DEFAULT_SLA_TARGET_HOURS["medium"]} |
    | Low      | {DEFAULT_SLA_TARGET_HOURS["low"]} |

    Background check runs every {settings.sla_check_interval_seconds} seconds.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(sla_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service health",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "database": "connected",
                        "sla_settings": "database",
                        "sla_scheduler": "running"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Returns service health status including:
    - Database connectivity
    - SLA settings source
    - Scheduler state
    """
    scheduler = getattr(request.app.state, "sla_scheduler", None)
    checks = {
        "database": "connected",
        "sla_settings": settings.sla_settings_source,
        "sla_scheduler": "running" if scheduler and scheduler.is_running else "stopped"
    }

    try:
        async with get_session_context() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        checks["database"] = f"error: {str(e)}"

    return {
        "status": "healthy" if checks["database"] == "connected" else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "CineTix SLA Service",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "sla": {
                "prefix": "/sla",
                "endpoints": [
                    "GET /sla/settings - Get SLA settings",
                    "GET /sla/tickets - List open tickets with countdowns",
                    "GET /sla/tickets/{id} - Get ticket SLA status",
                    "GET /sla/tickets/{id}/countdown/stream - Stream countdown",
                    "POST /sla/escalations/run - Run breach escalation check"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cinetix.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
