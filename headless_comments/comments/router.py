"""Comment API endpoints.

Provides routes for:
- Listing the approved comments of a post
- Submitting a comment

Both require the site API key.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from headless_comments.auth.dependencies import ApiKeyRequired, get_runtime_options
from headless_comments.config.settings import get_settings
from headless_comments.config.store import RuntimeOptions
from headless_comments.core.context import get_client_ip, set_post_id
from headless_comments.core.logging import get_logger
from headless_comments.core.request_params import read_body_params

from .dependencies import CommentReaderDep, SubmissionPipelineDep
from .schemas import (
    CommentListResponse,
    SubmitCommentRequest,
    SubmitCommentResponse,
    normalize_order,
)
from .service import RequestMeta


logger = get_logger(__name__)

settings = get_settings()

router = APIRouter(
    prefix=settings.api_prefix,
    tags=["comments"],
    dependencies=[ApiKeyRequired],
)


@router.get(
    "/posts/{post_id}/comments",
    response_model=CommentListResponse,
    summary="List approved comments",
)
async def list_comments(
    post_id: int,
    reader: CommentReaderDep,
    order: Annotated[str | None, Query()] = None,
) -> CommentListResponse:
    """Return the approved comments of a post, rendered.

    ``order`` is ASC or DESC (any case); anything else means DESC.
    """
    set_post_id(post_id)
    return await reader.list_comments(post_id, normalize_order(order))


@router.post(
    "/posts/{post_id}/comments",
    response_model=SubmitCommentResponse,
    summary="Submit a comment",
)
async def submit_comment(
    post_id: int,
    request: Request,
    pipeline: SubmissionPipelineDep,
    options: Annotated[RuntimeOptions, Depends(get_runtime_options)],
) -> SubmitCommentResponse:
    """Submit a comment from a JSON or form body.

    Accepts ``author_name``, ``author_email``, ``content`` and ``parent``.
    The comment is spam-checked, moderated and stored; the response tells
    whether it was published right away or held for moderation.
    """
    set_post_id(post_id)
    data = SubmitCommentRequest.model_validate(await read_body_params(request))
    meta = RequestMeta(
        author_ip=getattr(request.state, "client_ip", None) or get_client_ip() or "",
        user_agent=request.headers.get("user-agent", ""),
        referrer=request.headers.get("referer", ""),
    )
    return await pipeline.submit(post_id, data, meta, options)
