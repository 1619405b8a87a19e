# Core infrastructure
from headless_comments.core.client_ip import resolve_client_ip
from headless_comments.core.context import (
    clear_context,
    get_client_ip,
    get_context,
    get_request_id,
    set_client_ip,
    set_post_id,
    set_request_id,
)
from headless_comments.core.logging import configure_structlog, get_logger


__all__ = [
    "clear_context",
    "configure_structlog",
    "get_client_ip",
    "get_context",
    "get_logger",
    "get_request_id",
    "resolve_client_ip",
    "set_client_ip",
    "set_post_id",
    "set_request_id",
]
