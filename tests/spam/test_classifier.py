"""Tests for the spam classifier client."""

from datetime import UTC, datetime
from urllib.parse import parse_qs

import httpx
import pytest

from headless_comments.comments.models import CommentDraft
from headless_comments.spam.models import ClassifierPayload, SpamCheckResult
from headless_comments.spam.service import SpamClassifier
from tests.conftest import CLASSIFIER_URL, ClassifierEndpoint


NOW = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)


@pytest.fixture
def draft() -> CommentDraft:
    """A reply draft."""
    return CommentDraft(
        post_id=1,
        author_name="Ada",
        author_email="ada@example.com",
        content="Great post",
        parent_id=4,
        author_ip="203.0.113.7",
        user_agent="Mozilla/5.0",
        submitted_at_local=NOW,
        submitted_at_utc=NOW,
        referrer="https://front.example.com/hello",
    )


@pytest.fixture
def payload(classifier: SpamClassifier, draft: CommentDraft) -> ClassifierPayload:
    """Payload for the reply draft."""
    return classifier.build_payload(draft, "https://blog.example.com/hello")


def sent_form(endpoint: ClassifierEndpoint) -> dict[str, str]:
    """Decode the last form body sent to the endpoint."""
    body = endpoint.requests[-1].content.decode()
    return {key: values[0] for key, values in parse_qs(body).items()}


class TestActivation:
    """Tests for when the classifier runs."""

    def test_active_when_enabled_and_configured(self, classifier: SpamClassifier) -> None:
        """Toggle on with endpoint and key configured."""
        assert classifier.configured is True
        assert classifier.is_active(True) is True

    def test_inactive_when_toggled_off(self, classifier: SpamClassifier) -> None:
        """Toggle off disables the check."""
        assert classifier.is_active(False) is False

    def test_inactive_without_credentials(self, settings) -> None:
        """Missing key disables the check."""
        settings.spam_classifier_api_key = None
        assert SpamClassifier(settings).is_active(True) is False

    @pytest.mark.asyncio
    async def test_unconfigured_check_is_unavailable(
        self, settings, payload: ClassifierPayload
    ) -> None:
        """An unconfigured client never calls out."""
        settings.spam_classifier_url = None
        endpoint = ClassifierEndpoint(body="true")
        classifier = SpamClassifier(settings, transport=httpx.MockTransport(endpoint))

        assert await classifier.check(payload) == SpamCheckResult.UNAVAILABLE
        assert endpoint.calls == 0


class TestPayload:
    """Tests for the request sent to the classifier."""

    @pytest.mark.asyncio
    async def test_fields(
        self,
        classifier: SpamClassifier,
        classifier_endpoint: ClassifierEndpoint,
        payload: ClassifierPayload,
    ) -> None:
        """All comment and site fields are sent with the API key."""
        await classifier.check(payload)

        request = classifier_endpoint.requests[0]
        assert str(request.url) == CLASSIFIER_URL
        assert request.headers["user-agent"].startswith("headless-comments/")
        assert sent_form(classifier_endpoint) == {
            "blog": "https://blog.example.com",
            "user_ip": "203.0.113.7",
            "user_agent": "Mozilla/5.0",
            "referrer": "https://front.example.com/hello",
            "permalink": "https://blog.example.com/hello",
            "comment_type": "comment",
            "comment_author": "Ada",
            "comment_author_email": "ada@example.com",
            "comment_content": "Great post",
            "blog_lang": "en_US",
            "blog_charset": "UTF-8",
            "comment_parent": "4",
            "api_key": "classifier-key",
        }

    def test_parent_omitted_for_top_level(self, payload: ClassifierPayload) -> None:
        """comment_parent is only sent for replies."""
        top_level = ClassifierPayload(**{**payload.__dict__, "comment_parent": 0})

        assert "comment_parent" not in top_level.to_form()
        assert top_level.to_form()["comment_author_url"] == ""


class TestVerdict:
    """Tests for response parsing."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("body", "expected"),
        [
            ("true", SpamCheckResult.SPAM),
            ("  true\n", SpamCheckResult.SPAM),
            ("false", SpamCheckResult.HAM),
            ("invalid", SpamCheckResult.HAM),
            ("TRUE", SpamCheckResult.HAM),
            ("", SpamCheckResult.HAM),
        ],
    )
    async def test_body(
        self,
        classifier: SpamClassifier,
        classifier_endpoint: ClassifierEndpoint,
        payload: ClassifierPayload,
        body: str,
        expected: SpamCheckResult,
    ) -> None:
        """Only a trimmed body of exactly 'true' is spam."""
        classifier_endpoint.body = body
        assert await classifier.check(payload) == expected

    @pytest.mark.asyncio
    async def test_bad_status_is_error(
        self,
        classifier: SpamClassifier,
        classifier_endpoint: ClassifierEndpoint,
        payload: ClassifierPayload,
    ) -> None:
        """Non-200 responses fail open as ERROR, even with a spam body."""
        classifier_endpoint.status_code = 500
        classifier_endpoint.body = "true"

        result = await classifier.check(payload)

        assert result == SpamCheckResult.ERROR
        assert result.is_spam is False

    @pytest.mark.asyncio
    async def test_timeout_is_error(
        self,
        classifier: SpamClassifier,
        classifier_endpoint: ClassifierEndpoint,
        payload: ClassifierPayload,
    ) -> None:
        """Timeouts fail open as ERROR."""
        classifier_endpoint.raise_error = httpx.ConnectTimeout("timed out")
        assert await classifier.check(payload) == SpamCheckResult.ERROR

    @pytest.mark.asyncio
    async def test_transport_error_is_error(
        self,
        classifier: SpamClassifier,
        classifier_endpoint: ClassifierEndpoint,
        payload: ClassifierPayload,
    ) -> None:
        """Connection failures fail open as ERROR."""
        classifier_endpoint.raise_error = httpx.ConnectError("refused")
        assert await classifier.check(payload) == SpamCheckResult.ERROR
