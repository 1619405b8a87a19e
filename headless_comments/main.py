"""Headless Comments API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from headless_comments.comments.renderer import HtmlCommentRenderer
from headless_comments.comments.router import router as comments_router
from headless_comments.comments.service import CommentReader, SubmissionPipeline
from headless_comments.comments.stores import CassandraCommentStore, CassandraPostStore
from headless_comments.config import Settings, get_settings
from headless_comments.config.store import ConfigStore
from headless_comments.core.context import get_request_id
from headless_comments.core.database import init_async_cassandra, shutdown_async_cassandra
from headless_comments.core.exceptions import ApiError, error_response
from headless_comments.core.logging import configure_structlog, get_logger
from headless_comments.core.middleware import RequestContextMiddleware
from headless_comments.core.redis import init_redis, shutdown_redis
from headless_comments.cors.middleware import OriginPolicyMiddleware
from headless_comments.health import router as health_router
from headless_comments.moderation.service import HeuristicModerationPolicy
from headless_comments.notifications.service import RedisNotifier
from headless_comments.spam.service import SpamClassifier


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def build_comment_services(
    app: FastAPI,
    settings: Settings,
    session: Any,
    redis_client: Any = None,
) -> None:
    """Wire the comment pipeline and reader onto ``app.state``."""
    post_store = CassandraPostStore(session=session, keyspace=settings.cassandra_keyspace)
    comment_store = CassandraCommentStore(
        session=session, keyspace=settings.cassandra_keyspace
    )

    app.state.submission_pipeline = SubmissionPipeline(
        settings=settings,
        post_store=post_store,
        comment_store=comment_store,
        classifier=SpamClassifier(settings),
        moderation=HeuristicModerationPolicy(settings, comment_store),
        notifier=RedisNotifier(redis_client),
    )
    app.state.comment_reader = CommentReader(
        post_store=post_store,
        comment_store=comment_store,
        renderer=HtmlCommentRenderer(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - options fall back to process memory)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - options are process-local",
        )
    app.state.redis = redis_client

    app.state.config_store = ConfigStore(settings, redis_client)
    await app.state.config_store.ensure_defaults()

    # Initialize Cassandra (async)
    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")

        build_comment_services(app, settings, session, redis_client)
        logger.info(
            "comment_services_initialized",
            spam_classifier_configured=settings.spam_classifier_configured,
            redis_enabled=redis_client is not None,
        )
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app(
    app_lifespan: Any = lifespan,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # SECURITY: Always set debug=False to prevent Starlette's ServerErrorMiddleware
    # from exposing stack traces in responses.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Headless blog comments API",
        debug=False,
        lifespan=app_lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Origin policy (inner): sees the options snapshot and decorates every
    # response, including errors rendered by the handlers below
    app.add_middleware(OriginPolicyMiddleware)

    # Request context middleware (added last - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id() or None

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> ORJSONResponse:
        """Render domain errors with their code and message."""
        log_method = (
            logger.error
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else logger.info
        )
        log_method(
            "api_error",
            code=exc.code,
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )
        return error_response(
            exc.status_code,
            exc.message,
            exc.code,
            request_id=_get_request_id_safe(request),
        )

    # Global exception handlers (security: never expose stack traces)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )
        return error_response(
            exc.status_code,
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error",
            "http_error",
            request_id=_get_request_id_safe(request),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error",
            "validation_error",
            request_id=_get_request_id_safe(request),
            details=[
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", [])),
                    "message": err.get("msg", "Invalid value"),
                }
                for err in exc.errors()
            ],
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        SECURITY: Never expose stack traces or internal error details to users.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred. Please try again later.",
            "internal_error",
            request_id=_get_request_id_safe(request),
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(comments_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Headless Comments API",
            "version": settings.app_version,
            "namespace": settings.api_prefix,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "headless_comments.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_config=None,
    )
