"""Request body parameter access.

Clients may send parameters as a JSON object, urlencoded form or multipart
form. Handlers read them through one accessor so the body is parsed once.
"""

import contextlib
import json
from typing import Any

from fastapi import Request


FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_body_params(request: Request) -> dict[str, Any]:
    """Return body parameters as a flat dict (empty when there are none)."""
    cached = getattr(request.state, "body_params", None)
    if cached is not None:
        return cached

    params: dict[str, Any] = {}
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        params = {key: value for key, value in form.items() if isinstance(value, str)}
    elif request.method in {"POST", "PUT", "PATCH"}:
        body = await request.body()
        if body:
            with contextlib.suppress(ValueError):
                decoded = json.loads(body)
                if isinstance(decoded, dict):
                    params = decoded

    request.state.body_params = params
    return params
