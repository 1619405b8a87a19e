"""Database models for posts and comments.

Cassandra table definitions for:
- Posts: the subset of post state comments depend on (existence, open flag)
- Comments: one row per comment, partitioned by post for listing and
  duplicated by id for parent lookups
- Comment meta: free-form key/value tags (spam check outcome)
- Id sequences: integer id allocation via lightweight transactions
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ApprovalState(str, Enum):
    """Moderation state of a persisted comment."""

    APPROVED = "approved"
    PENDING = "pending"
    SPAM = "spam"


class CommentStatus(str, Enum):
    """Whether a post accepts comments."""

    OPEN = "open"
    CLOSED = "closed"


class SortOrder(str, Enum):
    """Listing order by submission date."""

    ASC = "ASC"
    DESC = "DESC"


COMMENT_TYPE = "comment"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

POSTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.posts (
    post_id BIGINT PRIMARY KEY,
    title TEXT,
    permalink TEXT,
    comment_status TEXT,
    author_email TEXT,
    created_at TIMESTAMP
)
"""

# Partition by post_id, clustering by created_at for chronological listing
COMMENTS_BY_POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_post (
    post_id BIGINT,
    created_at TIMESTAMP,
    comment_id BIGINT,
    parent_id BIGINT,
    author_name TEXT,
    author_email TEXT,
    author_url TEXT,
    author_ip TEXT,
    user_agent TEXT,
    content TEXT,
    comment_type TEXT,
    approval_state TEXT,
    created_at_local TEXT,
    PRIMARY KEY ((post_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at DESC, comment_id DESC)
"""

# O(1) lookup by id (parent validation)
COMMENTS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_id (
    comment_id BIGINT PRIMARY KEY,
    post_id BIGINT,
    parent_id BIGINT,
    author_name TEXT,
    author_email TEXT,
    author_url TEXT,
    author_ip TEXT,
    user_agent TEXT,
    content TEXT,
    comment_type TEXT,
    approval_state TEXT,
    created_at TIMESTAMP,
    created_at_local TEXT
)
"""

# Per-author history for the "previously approved author" moderation rule
COMMENTS_BY_AUTHOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_author (
    author_email TEXT,
    comment_id BIGINT,
    post_id BIGINT,
    approval_state TEXT,
    PRIMARY KEY ((author_email), comment_id)
) WITH CLUSTERING ORDER BY (comment_id DESC)
"""

COMMENT_META_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_meta (
    comment_id BIGINT,
    meta_key TEXT,
    meta_value TEXT,
    PRIMARY KEY ((comment_id), meta_key)
)
"""

ID_SEQUENCES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.id_sequences (
    name TEXT PRIMARY KEY,
    next_id BIGINT
)
"""

# All table definitions for initialization
COMMENTS_TABLES_CQL = [
    POSTS_TABLE_CQL,
    COMMENTS_BY_POST_TABLE_CQL,
    COMMENTS_BY_ID_TABLE_CQL,
    COMMENTS_BY_AUTHOR_TABLE_CQL,
    COMMENT_META_TABLE_CQL,
    ID_SEQUENCES_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Post:
    """Post state consumed by the comment endpoints."""

    post_id: int
    title: str
    permalink: str | None
    comment_status: CommentStatus
    author_email: str | None = None

    @property
    def comments_open(self) -> bool:
        """Whether new comments (and listing) are allowed."""
        return self.comment_status == CommentStatus.OPEN

    @classmethod
    def from_row(cls, row: Any) -> "Post":
        """Create Post from Cassandra row."""
        return cls(
            post_id=row.post_id,
            title=row.title or "",
            permalink=row.permalink,
            comment_status=CommentStatus(row.comment_status or CommentStatus.OPEN.value),
            author_email=row.author_email,
        )


@dataclass
class CommentDraft:
    """Inbound comment after validation, before persistence."""

    post_id: int
    author_name: str
    author_email: str
    content: str
    parent_id: int
    author_ip: str
    user_agent: str
    submitted_at_local: datetime
    submitted_at_utc: datetime
    author_url: str = ""
    comment_type: str = COMMENT_TYPE
    referrer: str = ""


@dataclass
class Comment:
    """Persisted comment."""

    comment_id: int
    post_id: int
    parent_id: int
    author_name: str
    author_email: str
    author_url: str
    author_ip: str
    user_agent: str
    content: str
    comment_type: str
    approval_state: ApprovalState
    created_at: datetime
    created_at_local: str

    @property
    def is_approved(self) -> bool:
        """Whether the comment is publicly visible."""
        return self.approval_state == ApprovalState.APPROVED

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        created_at = row.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return cls(
            comment_id=row.comment_id,
            post_id=row.post_id,
            parent_id=row.parent_id or 0,
            author_name=row.author_name or "Anonymous",
            author_email=row.author_email or "",
            author_url=row.author_url or "",
            author_ip=row.author_ip or "",
            user_agent=row.user_agent or "",
            content=row.content or "",
            comment_type=row.comment_type or COMMENT_TYPE,
            approval_state=ApprovalState(row.approval_state),
            created_at=created_at,
            created_at_local=row.created_at_local or "",
        )

    @classmethod
    def from_draft(
        cls,
        draft: CommentDraft,
        comment_id: int,
        approval_state: ApprovalState,
    ) -> "Comment":
        """Create the persisted form of a draft."""
        return cls(
            comment_id=comment_id,
            post_id=draft.post_id,
            parent_id=draft.parent_id,
            author_name=draft.author_name,
            author_email=draft.author_email,
            author_url=draft.author_url,
            author_ip=draft.author_ip,
            user_agent=draft.user_agent,
            content=draft.content,
            comment_type=draft.comment_type,
            approval_state=approval_state,
            created_at=draft.submitted_at_utc,
            created_at_local=draft.submitted_at_local.isoformat(),
        )
