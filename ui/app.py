"""FastAPI application factory."""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import load_config
from core.codec import NFUID
from core.errors import DecodeError
from core.health import (
    HealthChecker,
    check_event_loop,
    create_codec_check,
    create_entropy_check,
    create_logger_check,
)
from core.service import IdService
from internal.logging import get_logger, parse_level, StructuredLogger, AsyncFileLogger
from utils.crash import create_async_handler
from utils.entropy import SystemRandomSource
from ui.routes import api, health, ids

VERSION = "1.0.0"


def create_app(config=None):
    """Create and configure the FastAPI application."""
    config = config or load_config()

    StructuredLogger.configure(min_level=parse_level(config.logging.level))
    logger_instance = get_logger()

    # Core components; a bad codec section fails here, before serving.
    random_source = SystemRandomSource()
    codec = NFUID.from_config(config.codec, random_source=random_source)
    file_logger = AsyncFileLogger(file_path=config.logging.file)
    service = IdService(codec, audit_log=file_logger)

    health_checker = HealthChecker()
    health_checker.register("event_loop", check_event_loop, critical=True)
    health_checker.register("codec", create_codec_check(codec), critical=True)
    health_checker.register("entropy", create_entropy_check(random_source), critical=True)
    health_checker.register("audit_log", create_logger_check(file_logger), critical=False)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger_instance.info("Application starting", version=VERSION, codec=repr(codec))
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(create_async_handler(logger_instance))

        await file_logger.start()
        logger_instance.info("Application started successfully")

        yield

        logger_instance.info("Application shutting down")
        await file_logger.stop()
        logger_instance.info("Application shutdown complete", **service.get_stats())

    app = FastAPI(
        title="NFUID",
        version=VERSION,
        description="self-describing unique identifier service",
        lifespan=lifespan,
    )
    app.state.service = service

    @app.exception_handler(DecodeError)
    async def decode_error_handler(request: Request, exc: DecodeError):
        return JSONResponse(status_code=400, content=exc.to_dict())

    # Initialize route modules with dependencies
    ids.init(service)
    api.init(service, file_logger)
    health.init(service, health_checker)

    app.include_router(ids.router)
    app.include_router(api.router)
    app.include_router(health.router)

    return app
