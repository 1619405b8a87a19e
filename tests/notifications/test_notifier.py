"""Tests for the Redis notifier."""

import json
from unittest.mock import AsyncMock

import pytest

from headless_comments.core.redis import (
    author_notification_channel,
    moderator_notification_channel,
)
from headless_comments.notifications.service import RedisNotifier


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    return AsyncMock()


class TestRedisNotifier:
    """Tests for RedisNotifier."""

    @pytest.mark.asyncio
    async def test_notify_author(self, mock_redis) -> None:
        """Approved comments go to the author channel."""
        await RedisNotifier(mock_redis).notify_author(12)

        channel, raw = mock_redis.publish.await_args.args
        message = json.loads(raw)
        assert channel == author_notification_channel()
        assert message["type"] == "comment_approved"
        assert message["comment_id"] == 12
        assert "created_at" in message

    @pytest.mark.asyncio
    async def test_notify_moderator(self, mock_redis) -> None:
        """Pending comments go to the moderator channel."""
        await RedisNotifier(mock_redis).notify_moderator(13)

        channel, raw = mock_redis.publish.await_args.args
        assert channel == moderator_notification_channel()
        assert json.loads(raw)["type"] == "comment_pending"

    @pytest.mark.asyncio
    async def test_publish_failure_not_raised(self, mock_redis) -> None:
        """Delivery problems never fail the submission."""
        mock_redis.publish.side_effect = ConnectionError("redis down")

        await RedisNotifier(mock_redis).notify_author(12)

    @pytest.mark.asyncio
    async def test_without_redis(self) -> None:
        """Without Redis notifications are skipped."""
        await RedisNotifier(None).notify_moderator(12)
