"""Comment submission validation.

Checks run in a fixed order and the first failure wins:
1. post exists
2. post comments are open
3. parent comment (if any) exists on the same post
4. name, email and content are non-empty after sanitizing
5. email is syntactically valid

Validation has no side effects.
"""

from dataclasses import dataclass

from headless_comments.core.exceptions import (
    CommentsClosed,
    InvalidEmail,
    InvalidParent,
    MissingFields,
    PostNotFound,
)

from .sanitizers import is_valid_email, sanitize_email, sanitize_multiline, sanitize_text
from .schemas import SubmitCommentRequest
from .stores import CommentStore, PostStore


@dataclass(frozen=True)
class ValidatedFields:
    """Sanitized submission fields."""

    author_name: str
    author_email: str
    content: str
    parent_id: int


class CommentValidator:
    """Validate submissions against post state and field rules."""

    def __init__(self, post_store: PostStore, comment_store: CommentStore):
        """Initialize with stores."""
        self.post_store = post_store
        self.comment_store = comment_store

    async def ensure_post_open(self, post_id: int) -> None:
        """Check that the post exists and accepts comments.

        Raises:
            PostNotFound: If the post does not exist
            CommentsClosed: If comments are closed
        """
        if not await self.post_store.exists(post_id):
            raise PostNotFound
        if not await self.post_store.comments_open(post_id):
            raise CommentsClosed

    async def validate(self, post_id: int, data: SubmitCommentRequest) -> ValidatedFields:
        """Run all submission checks.

        Returns:
            The sanitized fields

        Raises:
            PostNotFound, CommentsClosed, InvalidParent, MissingFields,
            InvalidEmail
        """
        await self.ensure_post_open(post_id)

        author_name = sanitize_text(data.author_name)
        author_email = sanitize_email(data.author_email)
        content = sanitize_multiline(data.content)
        parent_id = data.parent

        if parent_id > 0:
            parent = await self.comment_store.get(parent_id)
            if parent is None or parent.post_id != post_id:
                raise InvalidParent

        if not author_name or not author_email or not content:
            raise MissingFields

        if not is_valid_email(author_email):
            raise InvalidEmail

        return ValidatedFields(
            author_name=author_name,
            author_email=author_email,
            content=content,
            parent_id=parent_id,
        )
