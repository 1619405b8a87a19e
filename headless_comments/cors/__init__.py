"""Cross-origin policy and its response-side middleware."""

from headless_comments.cors.middleware import OriginPolicyMiddleware
from headless_comments.cors.policy import (
    ALLOW_HEADERS,
    ALLOW_METHODS,
    WILDCARD,
    OriginPolicy,
)


__all__ = [
    "ALLOW_HEADERS",
    "ALLOW_METHODS",
    "WILDCARD",
    "OriginPolicy",
    "OriginPolicyMiddleware",
]
