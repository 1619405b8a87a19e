"""API key authentication."""

from headless_comments.auth.security import verify_api_key


__all__ = ["verify_api_key"]
