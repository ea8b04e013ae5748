# Application factory.
# Created: 2026-10-19
#
# create_app(settings) builds the storage backend once and injects it via
# app.state; request handlers never consult the environment.

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from soundshelf.api import router as files_router
from soundshelf.api.schemas import ErrorResponse
from soundshelf.config import Settings
from soundshelf.errors import StorageError
from soundshelf.storage.factory import build_backend
from soundshelf.storage.protocol import StorageBackend

logger = logging.getLogger(__name__)

FRONTEND_DIR = Path(__file__).parent / "frontend"


def _error_body(message: str) -> dict:
    return ErrorResponse(message=message).model_dump()


def create_app(settings: Settings | None = None, backend: StorageBackend | None = None) -> FastAPI:
    """Build the FastAPI application.

    *backend* overrides the one selected by *settings* (tests use this).
    """
    settings = settings or Settings.load()
    storage = backend or build_backend(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("soundshelf ready (%s backend)", storage.kind)
        yield
        await storage.aclose()

    app = FastAPI(
        title="soundshelf",
        description="File listing and same-origin audio streaming over local or object storage.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.storage = storage

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        if exc.http_status >= 500:
            logger.error(
                "%s %s failed [%s]: %s", request.method, request.url.path, exc.code, exc.message
            )
        else:
            logger.info("%s %s [%s]: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=exc.http_status, content=_error_body(exc.message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body(str(exc) or "Internal server error"))

    app.include_router(files_router, prefix="/api")

    if FRONTEND_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(FRONTEND_DIR / "index.html")

    return app
