"""Health check endpoints."""

from fastapi import APIRouter, Request, Response, status

from headless_comments.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request, response: Response) -> dict[str, str | bool]:
    """Readiness probe - ready once the comment services are built."""
    settings = get_settings()
    state = request.app.state
    comments_ready = bool(getattr(state, "submission_pipeline", None)) and bool(
        getattr(state, "comment_reader", None)
    )
    if not comments_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "ready" if comments_ready else "not_ready",
        "environment": settings.environment,
        "debug": settings.debug,
        "redis": getattr(state, "redis", None) is not None,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
