"""API error taxonomy.

Every error carries a stable machine-readable code, a human message and the
HTTP status it maps to. None of them is retried internally.
"""

from typing import Any

from fastapi import status
from fastapi.responses import ORJSONResponse


class ApiError(Exception):
    """Base API error."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str = "api_error",
        status_code: int | None = None,
    ):
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class Unauthorized(ApiError):
    """Missing or invalid API key."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid API key"):
        super().__init__(message, "unauthorized")


class NotFound(ApiError):
    """Requested resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class PostNotFound(NotFound):
    """Target post does not exist."""

    def __init__(self, message: str = "Post not found"):
        super().__init__(message, "post_not_found")


class Forbidden(ApiError):
    """Operation not allowed on the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class CommentsClosed(Forbidden):
    """Comments are closed on the target post."""

    def __init__(self, message: str = "Comments are closed for this post"):
        super().__init__(message, "comments_closed")


class BadRequest(ApiError):
    """Submitted data was rejected."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidParent(BadRequest):
    """Parent comment is missing or belongs to another post."""

    def __init__(self, message: str = "Invalid parent comment"):
        super().__init__(message, "invalid_parent")


class MissingFields(BadRequest):
    """A required field is empty after sanitizing."""

    def __init__(self, message: str = "Name, email, and comment content are required"):
        super().__init__(message, "missing_fields")


class InvalidEmail(BadRequest):
    """Author email is not a valid address."""

    def __init__(self, message: str = "Invalid email address"):
        super().__init__(message, "invalid_email")


class SpamDetected(BadRequest):
    """The spam classifier flagged the comment."""

    def __init__(
        self,
        message: str = "Your comment has been identified as spam and cannot be posted.",
    ):
        super().__init__(message, "spam_detected")


class InternalError(ApiError):
    """Unexpected server-side failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class CommentFailed(InternalError):
    """The comment could not be persisted."""

    def __init__(self, message: str = "Failed to submit comment"):
        super().__init__(message, "comment_failed")


def error_response(
    status_code: int,
    message: str,
    code: str,
    request_id: str | None = None,
    **extra: Any,
) -> ORJSONResponse:
    """Render the error body shared by every failure response."""
    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "code": code,
            "message": message,
            "status_code": status_code,
            "request_id": request_id,
            **extra,
        },
    )
