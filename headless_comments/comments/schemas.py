"""Pydantic schemas for the comment endpoints.

Incoming fields are accepted loosely here; the comment validator decides
what is acceptable so that errors come out in a fixed order with fixed
messages.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import SortOrder
from .sanitizers import absint


def normalize_order(value: str | None) -> SortOrder:
    """Map a client supplied order to ASC/DESC.

    Case-insensitive; anything other than ASC or DESC falls back to DESC.
    """
    candidate = (value or "").strip().upper()
    if candidate == SortOrder.ASC.value:
        return SortOrder.ASC
    return SortOrder.DESC


# ==============================================================================
# Request Schemas
# ==============================================================================


class SubmitCommentRequest(BaseModel):
    """Comment submission as sent by the client.

    Unknown fields (``author_url``, ``api_key``...) are ignored; the author
    URL is never taken from user input.
    """

    model_config = ConfigDict(extra="ignore")

    author_name: Any = None
    author_email: Any = None
    content: Any = None
    parent: int = 0

    @field_validator("parent", mode="before")
    @classmethod
    def coerce_parent(cls, v: Any) -> int:
        """Coerce the parent id to a non-negative integer."""
        return absint(v)


# ==============================================================================
# Response Schemas
# ==============================================================================


class SubmitCommentResponse(BaseModel):
    """Successful submission."""

    success: bool = True
    comment_id: int
    message: str
    approved: bool
    parent: int


class CommentListResponse(BaseModel):
    """Rendered list of approved comments for a post."""

    count: int = Field(..., ge=0)
    rendered: str
    order: SortOrder
