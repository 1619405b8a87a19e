"""Spam classifier client.

Talks to an Akismet-compatible ``comment-check`` endpoint. The check is
fail-open: when it is disabled, unconfigured, slow or broken the comment
goes on to normal moderation. Callers get a distinct result for each of
these paths so they can be told apart from a clean verdict.
"""

import httpx

from headless_comments.comments.models import CommentDraft
from headless_comments.config.settings import Settings
from headless_comments.core.logging import get_logger

from .models import ClassifierPayload, SpamCheckResult


logger = get_logger(__name__)

SPAM_RESPONSE_BODY = "true"


class SpamClassifier:
    """Adapter around the external spam classifier."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize from settings.

        Args:
            settings: Application settings (endpoint, key, timeout, site info)
            transport: Optional httpx transport (tests)
        """
        self.settings = settings
        self.url = settings.spam_classifier_url
        self.api_key = settings.spam_classifier_api_key
        self.timeout = settings.spam_classifier_timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        """Whether an endpoint and a credential are configured."""
        return bool(self.url and self.api_key)

    def is_active(self, enabled: bool) -> bool:
        """The check runs only if toggled on and configured."""
        return enabled and self.configured

    def build_payload(self, draft: CommentDraft, permalink: str) -> ClassifierPayload:
        """Assemble the classifier request for a draft."""
        return ClassifierPayload(
            blog=self.settings.site_home_url,
            user_ip=draft.author_ip,
            user_agent=draft.user_agent,
            referrer=draft.referrer,
            permalink=permalink,
            comment_type=draft.comment_type,
            comment_author=draft.author_name,
            comment_author_email=draft.author_email,
            comment_author_url=draft.author_url,
            comment_content=draft.content,
            blog_lang=self.settings.site_locale,
            blog_charset=self.settings.site_charset,
            comment_parent=draft.parent_id,
        )

    async def check(self, payload: ClassifierPayload) -> SpamCheckResult:
        """Ask the classifier for a verdict.

        A trimmed response body of exactly ``true`` is spam; any other body
        is ham. Timeouts, transport errors and non-200 statuses yield
        ``SpamCheckResult.ERROR``. Never raises.
        """
        if not self.configured:
            return SpamCheckResult.UNAVAILABLE

        data = payload.to_form()
        data["api_key"] = self.api_key or ""
        headers = {"User-Agent": self.settings.spam_classifier_user_agent}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(self.url, data=data, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("spam_check_timeout", error=str(e), timeout=self.timeout)
            return SpamCheckResult.ERROR
        except httpx.HTTPError as e:
            logger.warning("spam_check_failed", error=str(e), error_type=type(e).__name__)
            return SpamCheckResult.ERROR

        if response.status_code != httpx.codes.OK:
            logger.warning(
                "spam_check_bad_status",
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            return SpamCheckResult.ERROR

        if response.text.strip() == SPAM_RESPONSE_BODY:
            return SpamCheckResult.SPAM
        return SpamCheckResult.HAM
