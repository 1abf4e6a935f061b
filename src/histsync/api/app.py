"""FastAPI application setup and lifecycle."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from histsync import __version__
from histsync.api.routes import api, public
from histsync.api.security import AuthError
from histsync.config import AppConfig
from histsync.storage import database
from histsync.storage.commands import CommandRepository
from histsync.storage.systems import SystemRepository
from histsync.storage.users import UserRepository

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("histsync.access")


def create_app(config: AppConfig) -> FastAPI:
    """Build the application. The database is opened when the app starts."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = await database.connect(config.storage.db_path)
        app.state.secret = config.auth.secret or await database.get_secret(db)
        app.state.users = UserRepository(db)
        app.state.systems = SystemRepository(db)
        app.state.commands = CommandRepository(db)
        logger.info("Server ready")
        try:
            yield
        finally:
            await database.close(db)

    app = FastAPI(title="histsync", version=__version__, lifespan=lifespan)
    app.state.config = config

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        # Unhandled exceptions are answered with 500 further out
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            latency_ms = (time.perf_counter() - start) * 1000
            client = request.client.host if request.client else "-"
            access_logger.info(
                "[HISTSYNC] %s | %3d | %10.3fms | %15s | %-7s  %s",
                datetime.now().strftime("%Y/%m/%d - %H:%M:%S"),
                status_code,
                latency_ms,
                client,
                request.method,
                request.url.path,
            )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse({"code": exc.code, "message": exc.message}, status_code=exc.code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": jsonable_encoder(exc.errors())}, status_code=400)

    app.include_router(public)
    app.include_router(api)
    return app


async def run_server(config: AppConfig) -> None:
    """Serve the API in the foreground until interrupted."""
    host, port = config.server.host_port()
    logger.info("Listening on %s:%d", host, port)
    server = uvicorn.Server(uvicorn.Config(create_app(config), host=host, port=port, log_config=None))
    await server.serve()
