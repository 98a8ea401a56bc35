from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.common.http_errors import register_briefly_exception_handlers
from services.common.logging_config import (
    create_request_logging_middleware,
    get_logger,
    log_service_shutdown,
    log_service_startup,
    setup_service_logging,
)
from services.scheduling.api import calendar_router
from services.scheduling.settings import get_settings

# Set up centralized logging - will be initialized in lifespan
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()

    setup_service_logging(
        service_name="scheduling",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )

    log_service_startup(
        "scheduling",
        version="0.1.0",
        office_service_url=settings.office_service_url,
        max_concurrent_fetches=settings.max_concurrent_fetches,
    )
    yield
    log_service_shutdown("scheduling")


app = FastAPI(
    title="Briefly Scheduling Service",
    version="0.1.0",
    description="Calendar conflict detection and mutual availability search for Briefly.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.middleware("http")(create_request_logging_middleware())

# Register standardized exception handlers
register_briefly_exception_handlers(app)

app.include_router(calendar_router, prefix="/v1/scheduling")


@app.get("/health")
def health() -> dict:
    logger.info("Health check endpoint accessed")
    return {"status": "ok", "service": "scheduling"}
