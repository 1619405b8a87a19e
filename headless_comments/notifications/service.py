"""Comment notifications.

Publishes events to Redis Pub/Sub; a separate mailer or dashboard worker
subscribes and delivers them to the post author or the moderators.
"""

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from headless_comments.core.logging import get_logger
from headless_comments.core.redis import (
    author_notification_channel,
    moderator_notification_channel,
)


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = get_logger(__name__)


class Notifier(Protocol):
    """Notification targets for a newly stored comment."""

    async def notify_author(self, comment_id: int) -> None: ...

    async def notify_moderator(self, comment_id: int) -> None: ...


class RedisNotifier:
    """Notifier backed by Redis Pub/Sub."""

    def __init__(self, redis: "Redis | None" = None):
        """Initialize with optional Redis client."""
        self.redis = redis

    async def notify_author(self, comment_id: int) -> None:
        """Tell the post author a comment was published."""
        await self._publish(author_notification_channel(), "comment_approved", comment_id)

    async def notify_moderator(self, comment_id: int) -> None:
        """Tell moderators a comment awaits review."""
        await self._publish(
            moderator_notification_channel(), "comment_pending", comment_id
        )

    async def _publish(self, channel: str, event: str, comment_id: int) -> None:
        """Publish one event. Delivery problems never fail the request."""
        if not self.redis:
            logger.warning(
                "notification_skipped", notification=event, comment_id=comment_id
            )
            return

        message = {
            "type": event,
            "comment_id": comment_id,
            "created_at": datetime.now(UTC).isoformat(),
        }
        try:
            await self.redis.publish(channel, json.dumps(message))
        except Exception as e:
            logger.warning(
                "notification_publish_failed",
                notification=event,
                comment_id=comment_id,
                error=str(e),
            )
        else:
            logger.info(
                "notification_published", notification=event, comment_id=comment_id
            )
