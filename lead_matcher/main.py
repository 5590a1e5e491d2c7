"""
Lead/Sales Matcher - Main Application
FastAPI Entry Point
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse
import structlog

from lead_matcher.config import settings
from lead_matcher.middleware import CorrelationIdMiddleware
from lead_matcher.routers.matching import router as matching_router
from lead_matcher.services.matching import MATCH_THRESHOLD
from lead_matcher.services.monitoring import setup_logging

# structlog events (with match-run context) render straight to JSON;
# stdlib loggers go through setup_logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ]
)
setup_logging(settings.log_level)
logger = structlog.get_logger()

APP_VERSION = "0.1.0"

app = FastAPI(
    title="Lead/Sales Matcher",
    description="Verknüpft Verkäufe mit Leads und schätzt die Konversionswahrscheinlichkeit",
    version=APP_VERSION,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None,
)

app.add_middleware(CorrelationIdMiddleware)
app.include_router(matching_router)


@app.on_event("startup")
async def startup_event():
    logger.info("startup",
                environment=settings.environment,
                version=APP_VERSION,
                scoring_workers=settings.match_scoring_workers,
                sale_batch_size=settings.match_sale_batch_size)


@app.get("/")
async def root():
    return {
        "service": "Lead/Sales Matcher API",
        "version": APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """
    Liveness plus the matching parameters this instance runs with.

    Nothing external to check: match runs are stateless and in-memory.
    """
    return JSONResponse(
        content={
            "status": "healthy",
            "environment": settings.environment,
            "matching": {
                "threshold": MATCH_THRESHOLD,
                "scoring_workers": settings.match_scoring_workers,
                "sale_batch_size": settings.match_sale_batch_size,
                "conversion_display_threshold": settings.conversion_display_threshold,
            },
        },
        status_code=200
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lead_matcher.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development"
    )
