from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from contextlib import asynccontextmanager
import uvicorn
import logging
import sys

from memocare.core.config import settings
from memocare.db.base import Base
from memocare.db.session import SessionLocal, engine
from memocare.recognition.engine import InvalidInput
from memocare.reminders.config import settings as reminder_settings
from memocare.reminders.dispatcher import ReminderDispatcher
from memocare.reminders.scheduler import ReminderScheduler
from memocare.websocket import manager

# Register tables on Base.metadata
from memocare.reminders import models as _reminder_models  # noqa: F401
from memocare.recognition import models as _recognition_models  # noqa: F401


def configure_logging() -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


configure_logging()
logger = logging.getLogger(__name__)


def _prepare_database() -> None:
    from sqlalchemy import inspect

    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
        return

    existing_tables = inspect(engine).get_table_names()
    missing_tables = [name for name in Base.metadata.tables if name not in existing_tables]
    if missing_tables:
        logger.warning(f"Missing database tables: {missing_tables}")
    else:
        logger.info("All required database tables exist")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info(f"Starting up {settings.PROJECT_NAME} backend...")

    try:
        _prepare_database()
    except Exception as e:
        logger.warning(f"Could not prepare database tables: {e}")

    dispatcher = ReminderDispatcher(SessionLocal, manager)
    scheduler = ReminderScheduler(dispatcher, interval_seconds=reminder_settings.SCHEDULER_SCAN_INTERVAL_SECONDS)
    app.state.reminder_scheduler = scheduler
    if reminder_settings.SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("⏸️ [Startup] Reminder scheduler disabled by configuration")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.PROJECT_NAME} backend...")
    await scheduler.stop()
    logger.info(f"✅ {settings.PROJECT_NAME} backend shutdown complete")


async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_application() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="MemoCare - reminders and object re-identification for memory support",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InvalidInput, invalid_input_handler)

    from memocare.api.ws import router as ws_router
    from memocare.recognition.api import router as recognition_router
    from memocare.reminders.api import router as reminders_router

    app.include_router(reminders_router, prefix=f"{settings.API_V1_STR}/reminders", tags=["reminders"])
    app.include_router(recognition_router, prefix=f"{settings.API_V1_STR}/objects", tags=["objects"])
    app.include_router(ws_router, prefix="/ws")

    if reminder_settings.METRICS_ENABLED:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint that redirects to API documentation"""
        return RedirectResponse(url=f"{settings.API_V1_STR}/docs")

    @app.get("/health", tags=["Health Check"])
    async def health_check():
        return {
            "status": "healthy",
            "scheduler_running": getattr(app.state, "reminder_scheduler", None) is not None
            and app.state.reminder_scheduler.running,
        }

    return app


# Create the FastAPI app instance
app = create_application()


if __name__ == "__main__":
    uvicorn.run("memocare.main:app", host=settings.SERVER_HOST, port=settings.SERVER_PORT)
