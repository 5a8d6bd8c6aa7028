"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storytime.api import (
    auth_router,
    generation_router,
    health_router,
    profiles_router,
    stories_router,
)
from storytime.config import get_settings
from storytime.errors import PersistenceError, StoryTimeError
from storytime.logging_config import configure_logging
from storytime.schemas.envelope import error_body

logger = logging.getLogger(__name__)
settings = get_settings()
configure_logging(settings.log_level)


def run_migrations() -> None:
    """Run alembic migrations on startup."""
    # Skip migrations during testing
    if os.environ.get("TESTING") == "1":
        logger.info("Skipping migrations in test mode")
        return

    try:
        alembic_cfg = Config("alembic.ini")
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations completed successfully")
    except Exception as e:
        logger.error(f"Failed to run migrations: {e}")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup - run migrations
    run_migrations()
    yield
    # Shutdown


app = FastAPI(
    title="StoryTime API",
    description="AI bedtime stories for child profiles, generated asynchronously",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoryTimeError)
async def storytime_error_handler(request: Request, exc: StoryTimeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.message, exc.details)),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.info(f"Validation failed on {request.url.path}: {len(errors)} error(s)")
    return JSONResponse(status_code=400, content=error_body("Validation failed", errors))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    error = PersistenceError()
    return JSONResponse(status_code=error.status_code, content=error_body(error.message))


# Include routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profiles_router)
app.include_router(generation_router)
app.include_router(stories_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": "StoryTime API",
        "version": "0.1.0",
        "docs": "/docs",
    }
