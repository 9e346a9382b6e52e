"""
FastAPI application entry point.

Configures the application with routes, middleware, and settings.
"""
import os
import traceback

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from healthplan_ratios import __version__
from healthplan_ratios.api.routes import catalogue, classify, operators, periods
from healthplan_ratios.config import get_settings
from healthplan_ratios.database import init_db
from healthplan_ratios.exceptions import HealthPlanRatiosError
from healthplan_ratios.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    add_correlation_id_processor,
    redact_sensitive_processor,
)

# Initialize Sentry for error tracking (must be done early)
sentry_dsn = os.getenv("SENTRY_DSN")
if sentry_dsn:
    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("APP_VERSION", __version__),
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=None, event_level="ERROR"),
        ],
        send_default_pii=False,
    )

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        add_correlation_id_processor,
        redact_sensitive_processor,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

settings = get_settings()

app = FastAPI(
    title="Health-Plan Regulatory Indicators API",
    description="""
## Regulatory ratios of health-plan operators

Computes eleven financial ratios per operator and quarter from the free-text
ledger descriptions of the quarterly statements, and aggregates them across
operators and across quarters.

| Key | Indicator |
|-----|-----------|
| mll | Net profit margin |
| roe | Return on equity |
| dm | Loss ratio |
| da | Administrative expenses |
| dc | Commercial expenses |
| dop | Operating expenses |
| irf | Financial result |
| lc | Current ratio |
| ctcp | Third-party over own capital |
| pmcr | Average collection period |
| pmpe | Average event payment period |
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Operators", "description": "Active roster and per-operator indicators"},
        {"name": "Periods", "description": "Whole-quarter indicators, averages and rankings"},
        {"name": "Catalogue", "description": "Indicator catalogue and ledger metadata"},
        {"name": "Classification", "description": "Ledger description classification"},
        {"name": "Health", "description": "Liveness check"},
    ],
)

# Order matters: correlation ID first
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(operators.router, prefix="/api/v1", tags=["Operators"])
app.include_router(periods.router, prefix="/api/v1", tags=["Periods"])
app.include_router(catalogue.router, prefix="/api/v1", tags=["Catalogue"])
app.include_router(classify.router, prefix="/api/v1", tags=["Classification"])


@app.exception_handler(HealthPlanRatiosError)
async def healthplan_ratios_exception_handler(request: Request, exc: HealthPlanRatiosError):
    """Handle all health-plan ratios exceptions."""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "healthplan_ratios_error",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=str(request.url.path),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with consistent format."""
    sentry_sdk.capture_exception(exc)

    logger.error(
        "unhandled_error",
        error_type=type(exc).__name__,
        message=str(exc),
        path=str(request.url.path),
        traceback=traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "error_code": "HPR-999",
            "message": "An unexpected error occurred. Please try again.",
            "details": {"error_type": type(exc).__name__} if settings.debug else {},
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    """Initialize application on startup."""
    logger.info("Starting health-plan ratios API", debug=settings.debug)

    if sentry_dsn:
        logger.info("Sentry error tracking enabled", environment=os.getenv("ENVIRONMENT", "development"))
    else:
        logger.warning("Sentry error tracking not configured (SENTRY_DSN not set)")

    init_db()

    logger.info("Health-plan ratios API started successfully")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Cleanup on application shutdown."""
    logger.info("Shutting down health-plan ratios API")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
