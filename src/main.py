"""
SLA Escalation Engine - Main Application
=========================================

Deadline monitoring and escalation for the ticketing system.

Every run loads the active tickets, computes response and resolution
deadlines from the ticket priority, warns owners before a deadline,
notifies and escalates once a deadline passes and records the breach so it
is never notified twice.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Run orchestration, escalation, DTOs
- Domain: Entities and value objects
- Infrastructure: Database, email delivery, config watcher, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration
from src.config import settings

# Infrastructure
from src.infrastructure.database import init_database, close_database, create_tables

# SLA Module
from src.sla.infrastructure.external import SLAConfigManager, SLAScheduler
from src.sla.interfaces import sla_router
from src.sla.services import build_email_client, build_evaluation_service, run_sla_check

# Shared
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler
)
from src.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables (development only)
    4. Load SLA configuration and watch it for changes
    5. Build email client and evaluation service
    6. Start SLA scheduler

    SHUTDOWN:
    1. Stop SLA scheduler
    2. Stop config watcher
    3. Close email client
    4. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting SLA Escalation Engine", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Use migrations outside development
    if settings.environment == "development":
        logger.info("Creating database tables")
        try:
            await create_tables()
        except Exception as e:
            logger.warning(
                "Database not available - running in degraded mode",
                extra={"error": str(e)}
            )

    logger.info("Loading SLA configuration", extra={"path": str(settings.sla_config_path)})
    config_manager = SLAConfigManager()
    config_manager.load(settings.sla_config_path)
    config_manager.start_watching()

    email_client = build_email_client(settings)
    if not email_client.is_configured:
        logger.warning("EMAIL_API_KEY not set - SLA runs will fail until it is configured")

    service = build_evaluation_service(config_manager, email_client, settings)

    scheduler = None
    if settings.sla_evaluation_interval > 0:
        async def sla_check_job():
            """Background SLA check."""
            await run_sla_check(service)

        scheduler = SLAScheduler(interval_seconds=settings.sla_evaluation_interval)
        await scheduler.start(sla_check_job)
    else:
        logger.info("SLA scheduler disabled")

    # Store services in app state for dependency injection
    app.state.settings = settings
    app.state.sla_config_manager = config_manager
    app.state.email_client = email_client
    app.state.sla_evaluation_service = service
    app.state.sla_scheduler = scheduler

    logger.info("SLA Escalation Engine started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down SLA Escalation Engine")

    if scheduler:
        await scheduler.stop()

    config_manager.stop_watching()
    await email_client.close()
    await close_database()

    logger.info("SLA Escalation Engine shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="SLA Escalation Engine",
    description="""
    ## SLA Deadline Monitoring and Escalation

    Periodically evaluates active tickets against their priority SLA.

    ---

    ### SLA Monitoring

    **Endpoints:**
    - `POST /sla/check` - Run one SLA check and return the run summary

    **Behaviour:**
    - Response and resolution deadlines from the ticket priority
    - Warning email to the assignee (or requester) inside the warning window
    - Breach email to the assignee plus one escalation to the management roster
    - Breach recorded on the ticket after notification, so it is sent once
    - Background check on a fixed interval (`SLA_EVALUATION_INTERVAL`)

    ---
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
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(sla_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "sla_config": "loaded",
                        "sla_scheduler": "running",
                        "email": "configured"
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
    - SLA configuration status
    - Scheduler state
    - Email delivery configuration
    """
    state = request.app.state
    scheduler = getattr(state, "sla_scheduler", None)
    email_client = getattr(state, "email_client", None)

    checks = {
        "sla_config": "loaded" if getattr(state, "sla_config_manager", None) else "not_loaded",
        "sla_scheduler": "running" if scheduler and scheduler.is_running else "stopped",
        "email": "configured" if email_client and email_client.is_configured else "not_configured"
    }

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "SLA Escalation Engine",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "sla": {
                "prefix": "/sla",
                "endpoints": [
                    "POST /sla/check - Run SLA check"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
