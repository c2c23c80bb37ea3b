import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.exceptions import RecruitmentError
from app.core.logging_config import setup_logging
from app.api.endpoints import availability, bookings, candidates, decisions, health, interviews
from app import models  # noqa: F401  registers the deletion backstop

setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Schema changes are applied with `alembic upgrade head`, not at startup.
    """
    logger.info(f"Starting up {settings.PROJECT_NAME} (timezone {settings.BOOKING_TIMEZONE})")
    yield
    logger.info(f"Shutting down {settings.PROJECT_NAME}")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Interview and trial scheduling, candidate pipeline and archive management",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecruitmentError)
async def recruitment_error_handler(request: Request, exc: RecruitmentError):
    """Render domain errors with the status code they carry."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(health.router, prefix=settings.API_V1_STR)
app.include_router(availability.router, prefix=settings.API_V1_STR)
app.include_router(bookings.router, prefix=settings.API_V1_STR)
app.include_router(interviews.router, prefix=settings.API_V1_STR)
app.include_router(decisions.router, prefix=settings.API_V1_STR)
app.include_router(candidates.router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "version": "1.0.0",
        "status": "healthy"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
