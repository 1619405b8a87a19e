"""Spam classifier request and outcome types."""

from dataclasses import asdict, dataclass
from enum import Enum


class SpamCheckResult(str, Enum):
    """Outcome of a classifier call.

    ``UNAVAILABLE`` means the check did not run (disabled or not configured);
    ``ERROR`` means it ran and failed (timeout, transport error, bad status).
    Both are treated as not spam, but they are logged and tagged apart from
    a clean ``HAM`` verdict.
    """

    SPAM = "spam"
    HAM = "ham"
    UNAVAILABLE = "unavailable"
    ERROR = "error"

    @property
    def is_spam(self) -> bool:
        """Whether the comment must be rejected."""
        return self is SpamCheckResult.SPAM


@dataclass(frozen=True)
class ClassifierPayload:
    """Fields sent to the comment-check endpoint."""

    blog: str
    user_ip: str
    user_agent: str
    referrer: str
    permalink: str
    comment_type: str
    comment_author: str
    comment_author_email: str
    comment_author_url: str
    comment_content: str
    blog_lang: str
    blog_charset: str
    comment_parent: int = 0

    def to_form(self) -> dict[str, str]:
        """Form fields, with ``comment_parent`` only for replies."""
        form = {key: str(value) for key, value in asdict(self).items()}
        if not self.comment_parent:
            form.pop("comment_parent")
        return form
