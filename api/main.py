"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import etl, health, quality
from core.config import settings
from core.logging import setup_logging
import logging
from api.middleware import RequestContextMiddleware
from ingestion.scheduler import ETLScheduler

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Workforce ETL API",
    description="Triggers and monitoring for the unified employee data pipeline",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

scheduler = ETLScheduler() if settings.SCHEDULER_ENABLED else None


# Include routers
app.include_router(health.router)
app.include_router(etl.router)
app.include_router(quality.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Workforce ETL API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

    if scheduler is not None:
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Workforce ETL API")
    if scheduler is not None:
        scheduler.stop()
        await scheduler.engine.dispose()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Workforce ETL API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "etl": "/etl/run",
            "quality": "/quality/check",
            "webhook": "/webhook"
        }
    }
