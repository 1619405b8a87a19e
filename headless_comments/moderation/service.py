"""Moderation policy.

Decides whether a non-spam comment is published immediately or held for a
moderator. The decision only ever yields APPROVED or PENDING; spam is the
classifier's call, not this policy's.
"""

import re
from typing import TYPE_CHECKING, Protocol

from headless_comments.comments.models import ApprovalState, CommentDraft
from headless_comments.core.logging import get_logger


if TYPE_CHECKING:
    from headless_comments.comments.stores import CommentStore
    from headless_comments.config.settings import Settings


logger = get_logger(__name__)

# URL pattern for link counting
URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)


class ModerationPolicy(Protocol):
    """Approval decision for a validated, non-spam comment."""

    async def decide(self, draft: CommentDraft) -> ApprovalState: ...


def count_links(content: str) -> int:
    """Count http(s) links in comment content."""
    return len(URL_PATTERN.findall(content))


def matches_any(terms: list[str], *fields: str) -> str | None:
    """Return the first term found (case-insensitive) in any field."""
    haystack = "\n".join(fields).lower()
    for term in terms:
        term = term.strip().lower()
        if term and term in haystack:
            return term
    return None


class HeuristicModerationPolicy:
    """Settings-driven moderation rules.

    Checks, in order (the first rule that holds a comment wins):
    - manual approval required for every comment
    - too many links
    - disallowed or hold-for-moderation terms in any author field or content
    - author must have a previously approved comment
    """

    def __init__(self, settings: "Settings", comment_store: "CommentStore"):
        """Initialize with settings and the comment store."""
        self.settings = settings
        self.comment_store = comment_store

    async def decide(self, draft: CommentDraft) -> ApprovalState:
        """Return APPROVED or PENDING for the draft."""
        reason = await self._hold_reason(draft)
        if reason:
            logger.info("comment_held_for_moderation", reason=reason)
            return ApprovalState.PENDING
        return ApprovalState.APPROVED

    async def _hold_reason(self, draft: CommentDraft) -> str | None:
        settings = self.settings

        if settings.moderation_require_approval:
            return "manual_approval_required"

        if count_links(draft.content) > settings.moderation_max_links:
            return "too_many_links"

        fields = (
            draft.author_name,
            draft.author_email,
            draft.author_url,
            draft.content,
            draft.author_ip,
            draft.user_agent,
        )
        if matches_any(settings.moderation_disallowed_keys, *fields):
            return "disallowed_term"
        if matches_any(settings.moderation_hold_keys, *fields):
            return "hold_term"

        if settings.moderation_require_previous_approval and not (
            await self.comment_store.has_approved_comment(draft.author_email)
        ):
            return "no_previous_approval"

        return None
