"""Notifications for newly stored comments."""

from headless_comments.notifications.service import Notifier, RedisNotifier


__all__ = ["Notifier", "RedisNotifier"]
