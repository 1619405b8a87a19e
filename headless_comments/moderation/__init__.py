"""Moderation policy for non-spam comments."""

from headless_comments.moderation.service import (
    HeuristicModerationPolicy,
    ModerationPolicy,
)


__all__ = ["HeuristicModerationPolicy", "ModerationPolicy"]
