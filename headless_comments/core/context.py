"""Request context management using contextvars.

Each request gets a unique ID plus optional trace information and the
resolved client IP. Values are readable anywhere in the call stack and are
injected into every log entry by the logging processors.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
client_ip_var: ContextVar[str | None] = ContextVar("client_ip", default=None)
post_id_var: ContextVar[int | None] = ContextVar("post_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_trace_id() -> str | None:
    """Get the current trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID from distributed tracing headers."""
    trace_id_var.set(trace_id)


def get_client_ip() -> str | None:
    """Get the resolved client IP of the current request."""
    return client_ip_var.get()


def set_client_ip(client_ip: str | None) -> None:
    """Set the resolved client IP for the current request."""
    client_ip_var.set(client_ip or None)


def set_post_id(post_id: int | None) -> None:
    """Bind the target post to the current request."""
    post_id_var.set(post_id)


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    trace_id = get_trace_id()
    if trace_id:
        context["trace_id"] = trace_id

    client_ip = get_client_ip()
    if client_ip:
        context["client_ip"] = client_ip

    post_id = post_id_var.get()
    if post_id is not None:
        context["post_id"] = post_id

    return context


def clear_context() -> None:
    """Clear all context variables.

    This should be called at the end of each request to prevent
    context leakage between requests.
    """
    request_id_var.set("")
    trace_id_var.set(None)
    client_ip_var.set(None)
    post_id_var.set(None)
