"""
FastAPI application entry point.

Configures logging, middleware, routes, and exception handlers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import (
    MOBILE_PATH_PREFIX,
    ApiError,
    ErrorCode,
    api_error_handler,
    error_envelope,
    validation_error_handler,
)
from app.core.logging_config import configure_logging

APP_VERSION = "1.0.0"

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting GymGo API in %s mode", settings.ENVIRONMENT)
    yield
    logger.info("Shutting down GymGo API")


app = FastAPI(
    title="GymGo API",
    description="Multi-tenant gym management platform",
    version=APP_VERSION,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.DEBUG else "An unexpected error occurred"

    if request.url.path.startswith(MOBILE_PATH_PREFIX):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(ErrorCode.INTERNAL_ERROR, message),
        )

    detail = {"code": "INTERNAL_SERVER_ERROR", "message": message}
    if settings.DEBUG:
        detail["type"] = type(exc).__name__
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail},
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": APP_VERSION,
    }


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "message": "GymGo API",
        "version": APP_VERSION,
        "docs": "/api/docs" if settings.DEBUG else "disabled",
    }


from app.routers import (  # noqa: E402
    auth,
    check_ins,
    class_templates,
    classes,
    cron,
    finances,
    me,
    member_records,
    members,
    mobile,
    notifications,
    organizations,
    plans,
    reports,
    training,
)

app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(me.router, prefix="/api/v1", tags=["Me"])
app.include_router(organizations.router, prefix="/api/v1/organizations", tags=["Organizations"])
app.include_router(members.router, prefix="/api/v1/organizations", tags=["Members"])
app.include_router(member_records.router, prefix="/api/v1/organizations", tags=["Member Records"])
app.include_router(plans.router, prefix="/api/v1/organizations", tags=["Plans"])
app.include_router(finances.router, prefix="/api/v1/organizations", tags=["Finances"])
app.include_router(classes.router, prefix="/api/v1/organizations", tags=["Classes"])
app.include_router(class_templates.router, prefix="/api/v1/organizations", tags=["Class Templates"])
app.include_router(check_ins.router, prefix="/api/v1/organizations", tags=["Check-ins"])
app.include_router(training.router, prefix="/api/v1/organizations", tags=["Training"])
app.include_router(notifications.router, prefix="/api/v1/organizations", tags=["Notifications"])
app.include_router(reports.router, prefix="/api/v1/organizations", tags=["Reports"])
app.include_router(mobile.router, prefix=MOBILE_PATH_PREFIX, tags=["Mobile"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])
