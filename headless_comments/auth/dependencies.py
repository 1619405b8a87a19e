"""FastAPI dependencies for API key authentication."""

from typing import Annotated

from fastapi import Depends, Request

from headless_comments.config.store import RuntimeOptions
from headless_comments.core.exceptions import Unauthorized
from headless_comments.core.logging import get_logger
from headless_comments.core.request_params import read_body_params

from .security import verify_api_key


logger = get_logger(__name__)

API_KEY_HEADER = "X-API-Key"
API_KEY_PARAM = "api_key"


async def get_runtime_options(request: Request) -> RuntimeOptions:
    """Get the runtime options snapshot for this request.

    The origin policy middleware loads the snapshot at request start; it is
    loaded here only when the middleware did not run.
    """
    options = getattr(request.state, "options", None)
    if options is None:
        options = await request.app.state.config_store.load()
        request.state.options = options
    return options


async def get_presented_api_key(request: Request) -> str | None:
    """Extract the API key: header first, then query, then body parameter."""
    api_key = request.headers.get(API_KEY_HEADER)
    if api_key:
        return api_key

    api_key = request.query_params.get(API_KEY_PARAM)
    if api_key:
        return api_key

    value = (await read_body_params(request)).get(API_KEY_PARAM)
    return value if isinstance(value, str) else None


async def require_api_key(
    options: Annotated[RuntimeOptions, Depends(get_runtime_options)],
    presented: Annotated[str | None, Depends(get_presented_api_key)],
) -> None:
    """Reject the request unless it carries the stored API key.

    A missing key and a wrong key produce the same response.

    Raises:
        Unauthorized: If the key is missing or does not match
    """
    if not verify_api_key(presented, options.api_key):
        logger.warning("api_key_rejected", key_present=bool(presented))
        raise Unauthorized


ApiKeyRequired = Depends(require_api_key)
