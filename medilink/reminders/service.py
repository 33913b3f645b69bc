import logging
import sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from medilink.core.config import settings as core_settings
from .api import router as reminders_router, service_worker_router
from .config import settings
from .exceptions import ReminderError

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=core_settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


async def reminder_error_handler(request: Request, exc: ReminderError) -> JSONResponse:
    logger.error("Reminder service error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=core_settings.PROJECT_NAME, version=core_settings.VERSION)
    app.add_exception_handler(ReminderError, reminder_error_handler)
    app.include_router(reminders_router, prefix=f"{core_settings.API_V1_STR}/reminders", tags=["reminders"])
    app.include_router(service_worker_router)
    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")
    return app


app = create_app()
