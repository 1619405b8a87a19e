"""Spam classifier adapter."""

from headless_comments.spam.models import ClassifierPayload, SpamCheckResult
from headless_comments.spam.service import SpamClassifier


__all__ = ["ClassifierPayload", "SpamCheckResult", "SpamClassifier"]
