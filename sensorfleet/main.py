# sensorfleet/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from sensorfleet.api.routes_sensors import router as sensors_router
from sensorfleet.api.routes_aggregates import router as aggregates_router
from sensorfleet.core.config import settings
from sensorfleet.core.logging_config import setup_logging

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown events."""
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting application...")

    scheduler = None
    if settings.RUN_WORKER_IN_API:
        from sensorfleet.services.scheduler_service import start_scheduler
        scheduler = start_scheduler(settings.DB_TIMEZONE)
        logger.info("Sensor worker scheduled in-process.")

    yield

    if scheduler:
        scheduler.stop()
    logger.info("Application shutdown complete.")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description="Sensor fleet registry and temperature aggregates API",
    lifespan=lifespan,
)

app.include_router(sensors_router)
app.include_router(aggregates_router)

@app.get("/", tags=["Health"])
def health_check():
    """Basic health endpoint for uptime monitoring."""
    return {
        "status": "ok",
        "project": settings.PROJECT_NAME,
        "version": settings.PROJECT_VERSION,
    }
