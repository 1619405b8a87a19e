"""Response-side CORS filter.

Unlike Starlette's ``CORSMiddleware`` the allowed origins are not fixed at
startup: they are read from the runtime options store once per request.
Headers are applied to every response, including 401/403/404 errors and
500s raised by unhandled exceptions.
"""

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from headless_comments.config.settings import get_settings
from headless_comments.config.store import RuntimeOptions, parse_origins
from headless_comments.core.context import get_request_id
from headless_comments.core.exceptions import error_response
from headless_comments.cors.policy import OriginPolicy


logger = structlog.get_logger(__name__)


class OriginPolicyMiddleware(BaseHTTPMiddleware):
    """Apply the origin policy to every response and answer preflights."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Load runtime options, run the request, decorate the response."""
        options: RuntimeOptions | None = None
        try:
            options = await request.app.state.config_store.load()
            request.state.options = options

            if self._is_preflight(request):
                response: Response = Response(status_code=status.HTTP_200_OK)
            else:
                response = await call_next(request)

        except Exception as e:
            logger.exception(
                "unhandled_exception",
                error_type=type(e).__name__,
                error_message=str(e),
                path=request.url.path,
                method=request.method,
            )
            response = error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An unexpected error occurred. Please try again later.",
                "internal_error",
                request_id=get_request_id() or None,
            )

        policy = OriginPolicy.from_list(
            options.allowed_origins
            if options is not None
            else self._fallback_origins(request)
        )
        for name, value in policy.headers_for(request.headers.get("origin")).items():
            if name == "Vary" and "vary" in response.headers:
                response.headers["Vary"] = f"{response.headers['vary']}, {value}"
            else:
                response.headers[name] = value

        return response

    @staticmethod
    def _fallback_origins(request: Request) -> list[str]:
        """Default origins from settings, used when the options store failed."""
        store = getattr(request.app.state, "config_store", None)
        settings = store.settings if store is not None else get_settings()
        return parse_origins(settings.default_allowed_origins)

    @staticmethod
    def _is_preflight(request: Request) -> bool:
        return (
            request.method == "OPTIONS"
            and "access-control-request-method" in request.headers
        )
