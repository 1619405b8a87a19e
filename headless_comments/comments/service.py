"""Comment service layer.

Business logic for:
- The submission pipeline: validate, classify, moderate, persist, notify
- Reading approved comments in submission order
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from zoneinfo import ZoneInfo

from headless_comments.config.settings import Settings
from headless_comments.config.store import RuntimeOptions
from headless_comments.core.exceptions import CommentFailed, SpamDetected
from headless_comments.core.logging import get_logger
from headless_comments.moderation.service import ModerationPolicy
from headless_comments.notifications.service import Notifier
from headless_comments.spam.models import SpamCheckResult
from headless_comments.spam.service import SpamClassifier

from .models import ApprovalState, CommentDraft, SortOrder
from .renderer import CommentRenderer
from .schemas import CommentListResponse, SubmitCommentRequest, SubmitCommentResponse
from .stores import CommentStore, PersistenceError, PostStore
from .validator import CommentValidator, ValidatedFields


logger = get_logger(__name__)

# Meta key recording which spam check path a stored comment took
SPAM_CHECK_META_KEY = "spam_check_result"

MESSAGE_APPROVED = "Comment submitted successfully!"
MESSAGE_PENDING = "Comment submitted successfully! It is awaiting moderation."


class SubmissionStage(str, Enum):
    """Stages a submission passes through, in order."""

    RECEIVED = "received"
    VALIDATED = "validated"
    CLASSIFIED = "classified"
    PERSISTED = "persisted"
    NOTIFIED = "notified"
    RESPONDED = "responded"


@dataclass(frozen=True)
class RequestMeta:
    """Transport-level facts about the submitting client."""

    author_ip: str = ""
    user_agent: str = ""
    referrer: str = ""


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


class SubmissionPipeline:
    """Orchestrates a comment submission.

    The pipeline is built once per process with its collaborators injected.
    Each call is a single attempt; nothing is retried.
    """

    def __init__(
        self,
        settings: Settings,
        post_store: PostStore,
        comment_store: CommentStore,
        classifier: SpamClassifier,
        moderation: ModerationPolicy,
        notifier: Notifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize with collaborators."""
        self.settings = settings
        self.post_store = post_store
        self.comment_store = comment_store
        self.validator = CommentValidator(post_store, comment_store)
        self.classifier = classifier
        self.moderation = moderation
        self.notifier = notifier
        self.clock = clock
        self.site_timezone = ZoneInfo(settings.site_timezone)

    async def submit(
        self,
        post_id: int,
        data: SubmitCommentRequest,
        meta: RequestMeta,
        options: RuntimeOptions,
    ) -> SubmitCommentResponse:
        """Run a submission end to end.

        Raises:
            PostNotFound, CommentsClosed, InvalidParent, MissingFields,
            InvalidEmail: validation failed, nothing stored
            SpamDetected: stored as spam for audit, nobody notified
            CommentFailed: the store rejected the write, nobody notified
        """
        self._stage(SubmissionStage.RECEIVED, post_id=post_id)

        fields = await self.validator.validate(post_id, data)
        draft = self.build_draft(post_id, fields, meta)
        self._stage(SubmissionStage.VALIDATED, parent_id=draft.parent_id)

        spam_check_active = self.classifier.is_active(options.use_spam_check)
        verdict = await self.classify(draft, spam_check_active)
        self._stage(SubmissionStage.CLASSIFIED, spam_check=verdict.value)

        if verdict.is_spam:
            comment_id = await self._persist(draft, ApprovalState.SPAM)
            await self._tag(comment_id, verdict)
            logger.warning("comment_rejected_as_spam", comment_id=comment_id)
            raise SpamDetected

        approval = await self.moderation.decide(draft)
        comment_id = await self._persist(draft, approval)
        if spam_check_active:
            await self._tag(comment_id, verdict)
        self._stage(
            SubmissionStage.PERSISTED,
            comment_id=comment_id,
            approval_state=approval.value,
        )

        approved = approval == ApprovalState.APPROVED
        if approved:
            await self.notifier.notify_author(comment_id)
        else:
            await self.notifier.notify_moderator(comment_id)
        self._stage(SubmissionStage.NOTIFIED, comment_id=comment_id)

        logger.info(
            "comment_submitted",
            comment_id=comment_id,
            approval_state=approval.value,
            spam_check=verdict.value,
        )
        self._stage(SubmissionStage.RESPONDED, comment_id=comment_id)
        return SubmitCommentResponse(
            comment_id=comment_id,
            message=MESSAGE_APPROVED if approved else MESSAGE_PENDING,
            approved=approved,
            parent=draft.parent_id,
        )

    def build_draft(
        self, post_id: int, fields: ValidatedFields, meta: RequestMeta
    ) -> CommentDraft:
        """Build the full draft record, stamping local and UTC time."""
        submitted_at_utc = self.clock().astimezone(UTC)
        return CommentDraft(
            post_id=post_id,
            author_name=fields.author_name,
            author_email=fields.author_email,
            content=fields.content,
            parent_id=fields.parent_id,
            author_ip=meta.author_ip,
            user_agent=meta.user_agent,
            referrer=meta.referrer,
            submitted_at_local=submitted_at_utc.astimezone(self.site_timezone),
            submitted_at_utc=submitted_at_utc,
        )

    async def classify(self, draft: CommentDraft, active: bool) -> SpamCheckResult:
        """Run the spam check if active; otherwise report it unavailable."""
        if not active:
            return SpamCheckResult.UNAVAILABLE

        payload = self.classifier.build_payload(draft, await self._permalink(draft.post_id))
        verdict = await self.classifier.check(payload)
        if verdict == SpamCheckResult.ERROR:
            # Fail open: the comment continues to normal moderation
            logger.warning("spam_check_failed_open", post_id=draft.post_id)
        return verdict

    async def _permalink(self, post_id: int) -> str:
        post = await self.post_store.get(post_id)
        if post and post.permalink:
            return post.permalink
        return self.settings.site_permalink_template.format(
            home=self.settings.site_home_url.rstrip("/"), post_id=post_id
        )

    async def _persist(self, draft: CommentDraft, approval: ApprovalState) -> int:
        try:
            return await self.comment_store.insert(draft, approval)
        except PersistenceError as e:
            logger.error(
                "comment_insert_failed",
                error=str(e),
                approval_state=approval.value,
            )
            raise CommentFailed from e

    async def _tag(self, comment_id: int, verdict: SpamCheckResult) -> None:
        """Record the spam check outcome on the stored comment."""
        try:
            await self.comment_store.tag_meta(
                comment_id, SPAM_CHECK_META_KEY, verdict.value
            )
        except PersistenceError as e:
            logger.warning("comment_tag_failed", comment_id=comment_id, error=str(e))

    @staticmethod
    def _stage(stage: SubmissionStage, **context: object) -> None:
        logger.debug("submission_stage", stage=stage.value, **context)


class CommentReader:
    """Lists approved comments of an open post."""

    def __init__(
        self,
        post_store: PostStore,
        comment_store: CommentStore,
        renderer: CommentRenderer,
    ):
        """Initialize with stores and the renderer."""
        self.validator = CommentValidator(post_store, comment_store)
        self.comment_store = comment_store
        self.renderer = renderer

    async def list_comments(self, post_id: int, order: SortOrder) -> CommentListResponse:
        """Return the rendered approved comments of a post.

        Raises:
            PostNotFound: If the post does not exist
            CommentsClosed: If comments are closed
        """
        await self.validator.ensure_post_open(post_id)

        comments = await self.comment_store.list_approved(post_id, order)
        return CommentListResponse(
            count=len(comments),
            rendered=self.renderer.render(comments),
            order=order,
        )
