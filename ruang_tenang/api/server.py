"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from ruang_tenang.api.routes import router
from ruang_tenang.api.middleware import setup_cors, setup_rate_limiting, setup_request_metrics
from ruang_tenang.db.connection import db
from ruang_tenang.config import LOG_LEVEL, validate_config
from ruang_tenang.exceptions import (
    LevelConfigError,
    RecordNotFoundError,
    RuangTenangError,
    ValidationError,
)
from ruang_tenang.services.container import init_container, reset_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def error_status_code(exc: RuangTenangError) -> int:
    """HTTP status for an application error that escaped its route"""
    if isinstance(exc, RecordNotFoundError):
        return 404
    if isinstance(exc, (ValidationError, LevelConfigError)):
        return 400
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    validate_config()
    await db.init_pool()
    logger.info("Database pool initialized")

    container = init_container(db)

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    # Let in-flight EXP awards finish before the pool goes away
    await container.exp_dispatcher.drain()
    reset_container()
    await db.close_pool()
    logger.info("Database pool closed")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Ruang Tenang Gamification API",
        description="EXP, levels and badges for Ruang Tenang",
        version="1.0.0",
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    setup_request_metrics(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(RuangTenangError)
    async def ruang_tenang_exception_handler(request, exc: RuangTenangError):
        return JSONResponse(status_code=error_status_code(exc), content=exc.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app


app = create_api_application()
