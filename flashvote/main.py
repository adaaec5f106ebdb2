"""
FlashVote API entry point.

Real-time yes/no voting for events: rate-limited votes, batch aggregates
and time series for dashboards, and a WebSocket change feed so clients
refetch only when something changed.

Run with: uvicorn flashvote.main:app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from flashvote.api.middleware import RequestLoggingMiddleware
from flashvote.api.router import api_router
from flashvote.core.config import get_settings
from flashvote.core.logging import get_logger, setup_logging
from flashvote.core.metrics import metrics_endpoint
from flashvote.services.cache_service import close_redis, get_cache_stats, get_redis
from flashvote.services.notification_service import vote_feed

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "flashvote_starting",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        rate_limit_backend=settings.RATE_LIMIT_BACKEND,
        cache="on" if await get_redis() else "off",
    )

    yield

    await vote_feed.close_all()
    await close_redis()
    logger.info("flashvote_stopped")


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


def register_error_handlers(app: FastAPI) -> None:
    """Every error leaves the API as {"message": ...}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": _first_validation_message(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "An unexpected error occurred"},
        )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Real-time yes/no voting API for events, items and locations",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "cache": await get_cache_stats(),
            "feed_subscribers": vote_feed.subscriber_count,
        }

    @app.get("/metrics", tags=["Health"], include_in_schema=False)
    async def metrics():
        return metrics_endpoint()

    @app.get("/", tags=["Root"])
    async def root():
        return {"name": settings.APP_NAME, "version": settings.APP_VERSION, "docs": "/docs"}

    return app


app = create_app()
