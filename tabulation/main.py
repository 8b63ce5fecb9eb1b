"""
tabulation/main.py
FastAPI application: scoring, ranking and advancement for multi-segment competitions.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tabulation import __version__
from tabulation.config.feature_flags import feature_flags
from tabulation.config.settings import ENV_FILE, settings
from tabulation.database import AsyncSessionLocal, close_db, init_db
from tabulation.errors import (
    APIError,
    ErrorCode,
    InternalError,
    domain_error_response,
    http_error_code,
    new_log_id,
)
from tabulation.exceptions import TabulationException
from tabulation.routes import router
from tabulation.services.judge_registration import (
    JudgeRegistrationHandler,
    UserRegistered,
    message_bus,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    logger.info(f"Loaded .env from: {ENV_FILE}")
    try:
        await init_db()
        logger.info("Database connected successfully")
    except Exception as e:
        logger.error(f"Failed to connect to database: {str(e)}")
        raise

    if feature_flags.FEATURE_JUDGE_AUTO_REGISTRATION:
        await message_bus.subscribe(UserRegistered, JudgeRegistrationHandler(AsyncSessionLocal))
        logger.info("✓ Judge auto-registration enabled")

    yield

    logger.info("Shutting down application...")
    await message_bus.close()
    try:
        await close_db()
        logger.info("Database connection closed")
    except Exception as e:
        logger.error(f"Error closing database connection: {str(e)}")


app = FastAPI(
    title="Tabulation API",
    description="Scoring, ranking and advancement engine for multi-segment competitions",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    error_details = []
    for error in exc.errors():
        error_dict = {
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "type": error.get("type")
        }
        error_details.append(error_dict)

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation Error",
            "message": "Request validation failed",
            "code": ErrorCode.VALIDATION_ERROR,
            "details": error_details
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"HTTP exception on {request.url.path}: {exc.detail}")

    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": "Error",
            "message": str(exc.detail),
            "code": http_error_code(exc.status_code)
        }
    )


@app.exception_handler(TabulationException)
async def tabulation_exception_handler(request: Request, exc: TabulationException):
    return domain_error_response(exc, request.url.path)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    logger.warning(f"API error on {request.url.path}: {exc.code} - {exc.message}")
    return exc.to_response()


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log_id = new_log_id()
    logger.error(f"[{log_id}] Unhandled exception on {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return InternalError(
        "An unexpected error occurred. Please try again later.",
        log_id=log_id
    ).to_response()


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "feature_flags": feature_flags.get_all_flags(),
        "version": __version__
    }


app.include_router(router)


if __name__ == "__main__":
    import os
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))

    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        "tabulation.main:app",
        host=host,
        port=port,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
