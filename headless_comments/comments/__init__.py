"""Comment module.

Threaded blog comments with:
- Submission pipeline (validation, spam check, moderation, notification)
- Approved comment listing with HTML rendering

Note: Router and service are not exported here to avoid circular imports.
Import directly from headless_comments.comments.router when needed.
"""

from .models import (
    COMMENTS_TABLES_CQL,
    ApprovalState,
    Comment,
    CommentDraft,
    CommentStatus,
    Post,
    SortOrder,
)


__all__ = [
    "COMMENTS_TABLES_CQL",
    "ApprovalState",
    "Comment",
    "CommentDraft",
    "CommentStatus",
    "Post",
    "SortOrder",
]
