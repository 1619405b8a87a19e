# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Post and comment persistence.

The comment endpoints talk to storage only through the ``PostStore`` and
``CommentStore`` protocols. The Cassandra implementations below are the
production backends; tests substitute in-memory fakes.
"""

from typing import TYPE_CHECKING, Protocol

from headless_comments.core.logging import get_logger

from .models import ApprovalState, Comment, CommentDraft, Post, SortOrder


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class PersistenceError(Exception):
    """Storage rejected or failed a write."""


class PostStore(Protocol):
    """Read access to posts."""

    async def get(self, post_id: int) -> Post | None: ...

    async def exists(self, post_id: int) -> bool: ...

    async def comments_open(self, post_id: int) -> bool: ...


class CommentStore(Protocol):
    """Read/insert access to comments."""

    async def get(self, comment_id: int) -> Comment | None: ...

    async def list_approved(self, post_id: int, order: SortOrder) -> list[Comment]: ...

    async def insert(self, draft: CommentDraft, approval_state: ApprovalState) -> int: ...

    async def tag_meta(self, comment_id: int, key: str, value: str) -> None: ...

    async def has_approved_comment(self, author_email: str) -> bool: ...


# ==============================================================================
# Cassandra backends
# ==============================================================================


class CassandraPostStore:
    """Posts stored in Cassandra."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._get_post = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.posts WHERE post_id = ?"
        )

    async def get(self, post_id: int) -> Post | None:
        """Get a post by id."""
        result = await self.session.aexecute(self._get_post, [post_id])
        row = result.one()
        return Post.from_row(row) if row else None

    async def exists(self, post_id: int) -> bool:
        """Check whether the post exists."""
        return await self.get(post_id) is not None

    async def comments_open(self, post_id: int) -> bool:
        """Check whether the post accepts comments."""
        post = await self.get(post_id)
        return bool(post and post.comments_open)


class CassandraCommentStore:
    """Comments stored in Cassandra.

    Writes go to ``comments_by_id``, ``comments_by_post`` and
    ``comments_by_author``. Integer ids are allocated from ``id_sequences``
    with compare-and-set updates, which serialise concurrent inserts.
    """

    SEQUENCE_NAME = "comments"
    MAX_ID_ATTEMPTS = 10

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        columns = (
            "comment_id, post_id, parent_id, author_name, author_email, author_url, "
            "author_ip, user_agent, content, comment_type, approval_state, "
            "created_at, created_at_local"
        )
        placeholders = ", ".join("?" * 13)

        self._insert_by_id = self.session.prepare(
            f"INSERT INTO {self.keyspace}.comments_by_id ({columns}) VALUES ({placeholders})"
        )
        self._insert_by_post = self.session.prepare(
            f"INSERT INTO {self.keyspace}.comments_by_post ({columns}) VALUES ({placeholders})"
        )
        self._insert_by_author = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments_by_author
            (author_email, comment_id, post_id, approval_state)
            VALUES (?, ?, ?, ?)
        """)
        self._get_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.comments_by_id WHERE comment_id = ?"
        )
        self._list_desc = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.comments_by_post WHERE post_id = ?"
        )
        self._list_asc = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments_by_post
            WHERE post_id = ?
            ORDER BY created_at ASC, comment_id ASC
        """)
        self._by_author = self.session.prepare(f"""
            SELECT approval_state FROM {self.keyspace}.comments_by_author
            WHERE author_email = ?
        """)
        self._insert_meta = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comment_meta (comment_id, meta_key, meta_value)
            VALUES (?, ?, ?)
        """)

        # Id allocation
        self._get_sequence = self.session.prepare(
            f"SELECT next_id FROM {self.keyspace}.id_sequences WHERE name = ?"
        )
        self._create_sequence = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.id_sequences (name, next_id)
            VALUES (?, ?) IF NOT EXISTS
        """)
        self._advance_sequence = self.session.prepare(f"""
            UPDATE {self.keyspace}.id_sequences SET next_id = ?
            WHERE name = ? IF next_id = ?
        """)

    async def _allocate_id(self) -> int:
        """Allocate the next comment id.

        Raises:
            PersistenceError: If contention persists after MAX_ID_ATTEMPTS
        """
        for _ in range(self.MAX_ID_ATTEMPTS):
            result = await self.session.aexecute(self._get_sequence, [self.SEQUENCE_NAME])
            row = result.one()

            if row is None:
                created = await self.session.aexecute(
                    self._create_sequence, [self.SEQUENCE_NAME, 2]
                )
                if created.was_applied:
                    return 1
                continue

            current = row.next_id
            advanced = await self.session.aexecute(
                self._advance_sequence, [current + 1, self.SEQUENCE_NAME, current]
            )
            if advanced.was_applied:
                return current

        msg = "Could not allocate comment id"
        raise PersistenceError(msg)

    async def get(self, comment_id: int) -> Comment | None:
        """Get a comment by id."""
        result = await self.session.aexecute(self._get_by_id, [comment_id])
        row = result.one()
        return Comment.from_row(row) if row else None

    async def list_approved(self, post_id: int, order: SortOrder) -> list[Comment]:
        """List approved comments of a post ordered by submission date."""
        statement = self._list_asc if order == SortOrder.ASC else self._list_desc
        rows = await self.session.aexecute(statement, [post_id])
        return [
            Comment.from_row(row)
            for row in rows
            if row.approval_state == ApprovalState.APPROVED.value
        ]

    async def insert(self, draft: CommentDraft, approval_state: ApprovalState) -> int:
        """Persist a comment and return its id.

        Raises:
            PersistenceError: If any write fails
        """
        try:
            comment_id = await self._allocate_id()
            comment = Comment.from_draft(draft, comment_id, approval_state)
            values = [
                comment.comment_id,
                comment.post_id,
                comment.parent_id,
                comment.author_name,
                comment.author_email,
                comment.author_url,
                comment.author_ip,
                comment.user_agent,
                comment.content,
                comment.comment_type,
                comment.approval_state.value,
                comment.created_at,
                comment.created_at_local,
            ]
            await self.session.aexecute(self._insert_by_id, values)
            await self.session.aexecute(self._insert_by_post, values)
            await self.session.aexecute(
                self._insert_by_author,
                [
                    comment.author_email.lower(),
                    comment.comment_id,
                    comment.post_id,
                    comment.approval_state.value,
                ],
            )
        except PersistenceError:
            raise
        except Exception as e:
            logger.error("comment_write_failed", error=str(e), post_id=draft.post_id)
            raise PersistenceError(str(e)) from e

        return comment_id

    async def tag_meta(self, comment_id: int, key: str, value: str) -> None:
        """Attach a meta value to a comment.

        Raises:
            PersistenceError: If the write fails
        """
        try:
            await self.session.aexecute(self._insert_meta, [comment_id, key, value])
        except Exception as e:
            raise PersistenceError(str(e)) from e

    async def has_approved_comment(self, author_email: str) -> bool:
        """Check whether the author has any approved comment."""
        rows = await self.session.aexecute(self._by_author, [author_email.lower()])
        return any(row.approval_state == ApprovalState.APPROVED.value for row in rows)
