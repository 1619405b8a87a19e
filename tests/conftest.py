"""Shared fixtures.

Storage, moderation and notifications are replaced by in-memory fakes; the
spam classifier is the real client over an ``httpx.MockTransport``.
"""

from collections.abc import AsyncGenerator, Callable, Iterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from headless_comments.comments.models import (
    ApprovalState,
    Comment,
    CommentDraft,
    CommentStatus,
    Post,
    SortOrder,
)
from headless_comments.comments.renderer import HtmlCommentRenderer
from headless_comments.comments.service import CommentReader, SubmissionPipeline
from headless_comments.comments.stores import PersistenceError
from headless_comments.config.settings import Settings
from headless_comments.config.store import (
    OPTION_ALLOWED_ORIGINS,
    OPTION_API_KEY,
    OPTION_USE_SPAM_CHECK,
    ConfigStore,
)
from headless_comments.spam.service import SpamClassifier


TEST_API_KEY = "k3yK3yk3yK3yk3yK3yk3yK3yk3yK3y12"
CLASSIFIER_URL = "https://classifier.test/1.1/comment-check"


# ==============================================================================
# In-memory collaborators
# ==============================================================================


class FakePostStore:
    """Posts held in a dict."""

    def __init__(self, posts: list[Post] | None = None):
        self.posts = {post.post_id: post for post in posts or []}

    async def get(self, post_id: int) -> Post | None:
        return self.posts.get(post_id)

    async def exists(self, post_id: int) -> bool:
        return post_id in self.posts

    async def comments_open(self, post_id: int) -> bool:
        post = self.posts.get(post_id)
        return bool(post and post.comments_open)


class FakeCommentStore:
    """Comments and meta tags held in dicts; ids count up from 1."""

    def __init__(self):
        self.comments: dict[int, Comment] = {}
        self.meta: dict[int, dict[str, str]] = {}
        self.approved_authors: set[str] = set()
        self.fail_inserts = False
        self._next_id = 1

    def add(self, comment: Comment) -> Comment:
        self.comments[comment.comment_id] = comment
        self._next_id = max(self._next_id, comment.comment_id + 1)
        return comment

    async def get(self, comment_id: int) -> Comment | None:
        return self.comments.get(comment_id)

    async def list_approved(self, post_id: int, order: SortOrder) -> list[Comment]:
        approved = [
            c for c in self.comments.values() if c.post_id == post_id and c.is_approved
        ]
        return sorted(
            approved,
            key=lambda c: (c.created_at, c.comment_id),
            reverse=order == SortOrder.DESC,
        )

    async def insert(self, draft: CommentDraft, approval_state: ApprovalState) -> int:
        if self.fail_inserts:
            msg = "write timeout"
            raise PersistenceError(msg)
        comment_id = self._next_id
        self._next_id += 1
        self.comments[comment_id] = Comment.from_draft(draft, comment_id, approval_state)
        return comment_id

    async def tag_meta(self, comment_id: int, key: str, value: str) -> None:
        self.meta.setdefault(comment_id, {})[key] = value

    async def has_approved_comment(self, author_email: str) -> bool:
        return author_email.lower() in self.approved_authors or any(
            c.is_approved and c.author_email.lower() == author_email.lower()
            for c in self.comments.values()
        )


class FixedModerationPolicy:
    """Always returns the same decision and records what it saw."""

    def __init__(self, decision: ApprovalState = ApprovalState.APPROVED):
        self.decision = decision
        self.drafts: list[CommentDraft] = []

    async def decide(self, draft: CommentDraft) -> ApprovalState:
        self.drafts.append(draft)
        return self.decision


class RecordingNotifier:
    """Records notifications as (target, comment_id) tuples."""

    def __init__(self):
        self.sent: list[tuple[str, int]] = []

    async def notify_author(self, comment_id: int) -> None:
        self.sent.append(("author", comment_id))

    async def notify_moderator(self, comment_id: int) -> None:
        self.sent.append(("moderator", comment_id))


class ClassifierEndpoint:
    """Programmable classifier endpoint for ``httpx.MockTransport``."""

    def __init__(self, body: str = "false", status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.raise_error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error:
            raise self.raise_error
        return httpx.Response(self.status_code, text=self.body)

    @property
    def calls(self) -> int:
        return len(self.requests)


def make_comment(
    comment_id: int,
    post_id: int = 1,
    approval_state: ApprovalState = ApprovalState.APPROVED,
    created_at: datetime | None = None,
    parent_id: int = 0,
    author_name: str = "Ada",
    content: str = "Hello",
) -> Comment:
    """Build a stored comment."""
    created_at = created_at or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    return Comment(
        comment_id=comment_id,
        post_id=post_id,
        parent_id=parent_id,
        author_name=author_name,
        author_email="ada@example.com",
        author_url="",
        author_ip="203.0.113.7",
        user_agent="pytest",
        content=content,
        comment_type="comment",
        approval_state=approval_state,
        created_at=created_at,
        created_at_local=created_at.isoformat(),
    )


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings for tests: classifier configured, no moderation heuristics."""
    return Settings(
        environment="testing",
        log_dir=str(tmp_path / "logs"),
        site_home_url="https://blog.example.com",
        spam_classifier_url=CLASSIFIER_URL,
        spam_classifier_api_key="classifier-key",
        moderation_require_previous_approval=False,
    )


@pytest.fixture
def posts() -> list[Post]:
    """Post 1 is open, post 2 is closed, post 3 is open."""
    return [
        Post(1, "Hello world", "https://blog.example.com/hello", CommentStatus.OPEN),
        Post(2, "Closed", "https://blog.example.com/closed", CommentStatus.CLOSED),
        Post(3, "Another", None, CommentStatus.OPEN),
    ]


@pytest.fixture
def post_store(posts) -> FakePostStore:
    """In-memory post store."""
    return FakePostStore(posts)


@pytest.fixture
def comment_store() -> FakeCommentStore:
    """In-memory comment store."""
    return FakeCommentStore()


@pytest.fixture
def moderation() -> FixedModerationPolicy:
    """Moderation policy that approves everything."""
    return FixedModerationPolicy(ApprovalState.APPROVED)


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Notifier that records calls."""
    return RecordingNotifier()


@pytest.fixture
def classifier_endpoint() -> ClassifierEndpoint:
    """Classifier endpoint answering ham by default."""
    return ClassifierEndpoint()


@pytest.fixture
def classifier(settings, classifier_endpoint) -> SpamClassifier:
    """Spam classifier wired to the mock endpoint."""
    return SpamClassifier(settings, transport=httpx.MockTransport(classifier_endpoint))


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock that advances one minute per call."""
    start = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
    ticks = iter(range(10_000))
    return lambda: start + timedelta(minutes=next(ticks))


@pytest.fixture
def pipeline(
    settings, post_store, comment_store, classifier, moderation, notifier, clock
) -> SubmissionPipeline:
    """Submission pipeline over the fakes."""
    return SubmissionPipeline(
        settings=settings,
        post_store=post_store,
        comment_store=comment_store,
        classifier=classifier,
        moderation=moderation,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def reader(post_store, comment_store) -> CommentReader:
    """Comment reader over the fakes."""
    return CommentReader(post_store, comment_store, HtmlCommentRenderer())


@pytest.fixture
def config_store(settings) -> ConfigStore:
    """Process-local options store."""
    return ConfigStore(settings)


@pytest.fixture
def app(settings, config_store, pipeline, reader) -> FastAPI:
    """Application with fakes on app.state and no external connections."""
    from headless_comments.main import create_app  # noqa: PLC0415

    @asynccontextmanager
    async def test_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await config_store.set(OPTION_API_KEY, TEST_API_KEY)
        await config_store.set(
            OPTION_ALLOWED_ORIGINS, "http://localhost:4321\nhttps://front.example.com"
        )
        await config_store.set(OPTION_USE_SPAM_CHECK, "0")
        app.state.redis = None
        app.state.config_store = config_store
        app.state.submission_pipeline = pipeline
        app.state.comment_reader = reader
        yield

    return create_app(app_lifespan=test_lifespan)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client running the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Headers carrying the valid API key."""
    return {"X-API-Key": TEST_API_KEY}
